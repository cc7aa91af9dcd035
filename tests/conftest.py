"""
Shared fixtures: in-memory adapters, a recording sleep and hook recorder.
"""

import asyncio
from typing import Any, List

import pytest

from pairlink.adapters import MemoryCredentialStore, MemoryTransport
from pairlink.domain.config import ConnectionConfig

PHONE_NUMBER = "15551234567"


class RecordingSleep:
    """Stands in for asyncio.sleep: records delays, yields once, never waits."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        await asyncio.sleep(0)


class HookRecorder:
    """Collects every hook invocation."""

    def __init__(self):
        self.codes: List[str] = []
        self.connected: List[Any] = []
        self.disconnected: List[str] = []
        self.messages: List[Any] = []

    def config(self, phone_number: str = PHONE_NUMBER, **overrides) -> ConnectionConfig:
        hooks = dict(
            on_pairing_code=self.codes.append,
            on_connected=self.connected.append,
            on_disconnected=self.disconnected.append,
            on_message=self.messages.append,
        )
        hooks.update(overrides)
        return ConnectionConfig(phone_number=phone_number, **hooks)


async def _settle(rounds: int = 20) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def settle():
    """Coroutine function letting pending tasks run."""
    return _settle


@pytest.fixture
def store():
    return MemoryCredentialStore()


@pytest.fixture
def transport():
    return MemoryTransport(pairing_codes=["WXYZ-1234", "QRST-5678"])


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def hooks():
    return HookRecorder()


@pytest.fixture
def hook_recorder():
    """Factory for extra recorders when a test runs several connections."""
    return HookRecorder
