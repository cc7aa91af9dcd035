"""
Integration tests for the command line entry point.
"""

import asyncio
import json

import pytest

from pairlink.adapters import MemoryTransport
from pairlink.cli import DEFAULT_TRANSPORT, build_parser, load_transport, main, run_pairing
from pairlink.domain.events import DisconnectReason


def test_missing_phone_number_exits_non_zero(capsys):
    """Test running without arguments prints usage and fails."""
    with pytest.raises(SystemExit) as exc_info:
        main([])

    assert exc_info.value.code != 0
    assert "phone_number" in capsys.readouterr().err


def test_parser_defaults(monkeypatch):
    monkeypatch.delenv("PAIRLINK_AUTH_DIR", raising=False)
    monkeypatch.delenv("PAIRLINK_TRANSPORT", raising=False)

    args = build_parser().parse_args(["5521989974782"])

    assert args.phone_number == "5521989974782"
    assert args.auth_dir == "pairlink_auth_info"
    assert args.transport == DEFAULT_TRANSPORT
    assert args.debug is False


def test_load_default_transport():
    assert isinstance(load_transport(DEFAULT_TRANSPORT), MemoryTransport)


@pytest.mark.parametrize("path", ["pairlink.adapters", ":MemoryTransport", "pairlink.adapters:"])
def test_load_transport_rejects_bad_paths(path):
    with pytest.raises(ValueError):
        load_transport(path)


def test_unknown_transport_is_usage_error():
    with pytest.raises(SystemExit) as exc_info:
        main(["5521989974782", "--transport", "pairlink.adapters:NoSuchTransport"])

    assert exc_info.value.code == 2


def test_malformed_phone_number_fails(tmp_path):
    """Test a number with letters fails before any session is opened."""
    assert main(["call-me-maybe", "--auth-dir", str(tmp_path)]) == 1


@pytest.mark.asyncio
async def test_run_pairing_exits_on_logout(tmp_path, capsys):
    """Test a revoked session ends the command successfully."""
    (tmp_path / "creds.json").write_text(json.dumps({"registered": True, "me": "5521989974782:1@s.example"}))
    transport = MemoryTransport()

    task = asyncio.ensure_future(run_pairing("5521989974782", str(tmp_path), transport))
    session = await transport.wait_for_sessions(1)
    await session.emit_open()
    await session.emit_close(DisconnectReason.LOGGED_OUT)

    assert await asyncio.wait_for(task, 1) == 0

    out = capsys.readouterr().out
    assert "Successfully connected!" in out
    assert "Disconnected: logged_out" in out
    assert "Logged out, exiting" in out


@pytest.mark.asyncio
async def test_run_pairing_prints_code(tmp_path, capsys):
    transport = MemoryTransport(pairing_codes=["WXYZ-1234"])

    task = asyncio.ensure_future(run_pairing("5521989974782", str(tmp_path), transport))
    await transport.wait_for_sessions(1)
    for _ in range(20):
        if "PAIRING CODE" in capsys.readouterr().out:
            break
        await asyncio.sleep(0.01)
    else:
        pytest.fail("pairing code was never printed")

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert transport.sessions[0].closed
