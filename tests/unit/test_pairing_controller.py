"""
Unit tests for the pairing controller.
"""

import asyncio

import pytest

from pairlink.adapters import MemoryTransport
from pairlink.domain.credentials import Credentials
from pairlink.domain.errors import PairingError
from pairlink.ports.transport_port import SessionOptions
from pairlink.services.pairing import PairingController, PairingState


async def open_session(transport, credentials=None):
    options = SessionOptions(version=(2, 3000, 1), credentials=credentials or Credentials.fresh())
    return await transport.open_session(options)


class TestPairingController:
    """Test pairing decisions for one attempt."""

    @pytest.mark.asyncio
    async def test_requests_code_when_unregistered(self, transport):
        """Test fresh credentials trigger exactly one request."""
        session = await open_session(transport)
        codes = []
        controller = PairingController(session, "15551234567", on_pairing_code=codes.append)

        code = await controller.evaluate()

        assert code == "WXYZ-1234"
        assert codes == ["WXYZ-1234"]
        assert session.pairing_requests == ["15551234567"]
        assert controller.state == PairingState.ISSUED
        assert controller.request_count == 1
        assert not controller.outstanding

    @pytest.mark.asyncio
    async def test_repeated_evaluation_does_not_request_again(self, transport):
        """Test later updates in the same attempt reuse the issued code."""
        session = await open_session(transport)
        codes = []
        controller = PairingController(session, "15551234567", on_pairing_code=codes.append)

        await controller.evaluate()
        await controller.evaluate()
        await controller.evaluate()

        assert len(session.pairing_requests) == 1
        assert codes == ["WXYZ-1234"]

    @pytest.mark.asyncio
    async def test_issued_code_remembered_when_credentials_lag(self):
        """Test a code obtained here counts even if credentials never show it."""

        class SilentSession:
            credentials = Credentials.fresh()
            requests = 0

            async def request_pairing_code(self, phone_number):
                self.requests += 1
                return "LAGS-0001"

        session = SilentSession()
        codes = []
        controller = PairingController(session, "15551234567", on_pairing_code=codes.append)

        await controller.evaluate()
        assert await controller.evaluate() == "LAGS-0001"

        assert session.requests == 1
        assert codes == ["LAGS-0001"]

    @pytest.mark.asyncio
    async def test_no_second_request_while_outstanding(self):
        """Test concurrent evaluations issue a single request."""
        gate = asyncio.Event()
        transport = MemoryTransport(pairing_codes=["WXYZ-1234"], pairing_gate=gate)
        session = await open_session(transport)
        codes = []
        controller = PairingController(session, "15551234567", on_pairing_code=codes.append)

        first = asyncio.ensure_future(controller.evaluate())
        while not session.pairing_requests:
            await asyncio.sleep(0)

        assert controller.outstanding
        assert await controller.evaluate() is None
        assert await controller.evaluate() is None

        gate.set()
        assert await first == "WXYZ-1234"

        assert len(session.pairing_requests) == 1
        assert codes == ["WXYZ-1234"]

    @pytest.mark.asyncio
    async def test_existing_code_redelivered_without_request(self, transport):
        """Test an already issued code is delivered and no request is made."""
        session = await open_session(transport, Credentials(pairing_code="ABCD-1234"))
        codes = []
        controller = PairingController(session, "15551234567", on_pairing_code=codes.append)

        code = await controller.evaluate()

        assert code == "ABCD-1234"
        assert codes == ["ABCD-1234"]
        assert session.pairing_requests == []

    @pytest.mark.asyncio
    async def test_existing_code_delivered_once_per_attempt(self, transport):
        """Test duplicate delivery only happens across attempts."""
        session = await open_session(transport, Credentials(pairing_code="ABCD-1234"))
        codes = []
        first = PairingController(session, "15551234567", on_pairing_code=codes.append, attempt_id=1)

        await first.evaluate()
        await first.evaluate()
        assert codes == ["ABCD-1234"]

        second = PairingController(session, "15551234567", on_pairing_code=codes.append, attempt_id=2)
        await second.evaluate()
        assert codes == ["ABCD-1234", "ABCD-1234"]

    @pytest.mark.asyncio
    async def test_registered_is_inert(self, transport):
        """Test nothing happens once registered."""
        session = await open_session(transport, Credentials(registered=True, pairing_code="ABCD-1234"))
        codes = []
        controller = PairingController(session, "15551234567", on_pairing_code=codes.append)

        assert await controller.evaluate() is None

        assert codes == []
        assert session.pairing_requests == []
        assert controller.state == PairingState.REGISTERED

    @pytest.mark.asyncio
    async def test_follows_credentials_through_the_attempt(self, transport):
        """Test needs-code, then awaiting, then registered within one session."""
        session = await open_session(transport)
        codes = []
        controller = PairingController(session, "15551234567", on_pairing_code=codes.append)

        assert session.credentials.needs_pairing_code
        assert await controller.evaluate() == "WXYZ-1234"

        assert session.credentials.awaiting_pairing
        assert await controller.evaluate() == "WXYZ-1234"

        await session.emit_credentials(session.credentials.mark_registered())
        assert await controller.evaluate() is None

        assert controller.state == PairingState.REGISTERED
        assert codes == ["WXYZ-1234"]
        assert len(session.pairing_requests) == 1

    @pytest.mark.asyncio
    async def test_rejected_request_propagates_and_clears_flag(self):
        """Test a rejection raises and leaves no outstanding request."""
        transport = MemoryTransport(pairing_error=PairingError("rate limited", "15551234567"))
        session = await open_session(transport)
        codes = []
        controller = PairingController(session, "15551234567", on_pairing_code=codes.append)

        with pytest.raises(PairingError, match="rate limited"):
            await controller.evaluate()

        assert not controller.outstanding
        assert controller.state == PairingState.FAILED
        assert codes == []

    @pytest.mark.asyncio
    async def test_rejected_request_not_retried_in_same_attempt(self):
        """Test later updates of a failed attempt do not hot-loop requests."""
        transport = MemoryTransport(pairing_error=PairingError("invalid number"))
        session = await open_session(transport)
        controller = PairingController(session, "15551234567")

        with pytest.raises(PairingError):
            await controller.evaluate()
        assert await controller.evaluate() is None

        assert len(session.pairing_requests) == 1

    @pytest.mark.asyncio
    async def test_async_hook(self, transport):
        """Test coroutine hooks are awaited."""
        session = await open_session(transport)
        received = []

        async def on_pairing_code(code):
            await asyncio.sleep(0)
            received.append(code)

        controller = PairingController(session, "15551234567", on_pairing_code=on_pairing_code)
        await controller.evaluate()

        assert received == ["WXYZ-1234"]

    @pytest.mark.asyncio
    async def test_failing_hook_does_not_break_pairing(self, transport):
        """Test an exception in application code is contained."""
        session = await open_session(transport)

        def on_pairing_code(code):
            raise RuntimeError("UI not ready")

        controller = PairingController(session, "15551234567", on_pairing_code=on_pairing_code)

        assert await controller.evaluate() == "WXYZ-1234"
        assert controller.state == PairingState.ISSUED
