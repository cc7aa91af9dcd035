"""
Memory Transport - Scripted in-process transport (testing and demos).

Mimics the observable behavior of the remote service without any network:
a pairing code request stores the code in the session credentials and
emits ``creds.update`` before returning, the way the real service does.
"""

import asyncio
import logging
import secrets
from typing import Any, Callable, Iterable, Iterator, List, Optional, Tuple

from pairlink.ports.transport_port import (
    TransportPort,
    SessionHandle,
    SessionOptions,
    ProtocolVersion,
)
from pairlink.adapters.emitter import EventEmitter
from pairlink.domain.credentials import Credentials
from pairlink.domain.errors import PairingError, TransportError
from pairlink.domain.events import (
    CONNECTION_UPDATE,
    CREDS_UPDATE,
    MESSAGES_UPSERT,
    ConnectionUpdate,
    DeliveryType,
    MessageEnvelope,
    MessagesUpsert,
)

logger = logging.getLogger(__name__)

DEFAULT_VERSION = (2, 3000, 1015901307)

# Pairing codes avoid characters that are easy to misread
PAIRING_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTVWXYZ"


def generate_pairing_code() -> str:
    """Random 8-character code formatted as XXXX-XXXX."""
    raw = "".join(secrets.choice(PAIRING_ALPHABET) for _ in range(8))
    return f"{raw[:4]}-{raw[4:]}"


class MemorySession(SessionHandle):
    """
    One in-memory session attempt.

    Tests drive it with ``emit_open``, ``emit_close``, ``emit_credentials``
    and ``emit_messages``.
    """

    def __init__(self, transport: "MemoryTransport", options: SessionOptions, number: int):
        self._transport = transport
        self._emitter = EventEmitter()
        self._credentials = options.credentials
        self.options = options
        self.number = number
        self.closed = False
        self.pairing_requests: List[str] = []

        # Per-session scripting, copied from the transport when opened
        self.pairing_error: Optional[PairingError] = transport.pairing_error
        self.pairing_gate: Optional[asyncio.Event] = transport.pairing_gate

    @property
    def credentials(self) -> Credentials:
        return self._credentials

    def on(self, event: str, handler: Callable[[Any], Any]) -> None:
        self._emitter.on(event, handler)

    def off(self, event: str, handler: Callable[[Any], Any]) -> None:
        self._emitter.off(event, handler)

    def listener_count(self, event: str) -> int:
        return self._emitter.listener_count(event)

    async def request_pairing_code(self, phone_number: str) -> str:
        if self.closed:
            raise PairingError("Session is closed", phone_number)

        self.pairing_requests.append(phone_number)
        self._transport.pairing_requests.append(phone_number)
        self.options.logger.debug("Pairing code requested for %s", phone_number)

        if self.pairing_gate is not None:
            await self.pairing_gate.wait()
        if self.pairing_error is not None:
            raise self.pairing_error
        if not phone_number.isdigit():
            raise PairingError(f"Malformed phone number: {phone_number!r}", phone_number)

        code = self._transport.next_pairing_code()
        await self.emit_credentials(self._credentials.with_pairing_code(code))
        return code

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._emitter.remove_all_listeners()

    # Scripting helpers

    async def emit_connecting(self) -> None:
        await self._emitter.emit(CONNECTION_UPDATE, ConnectionUpdate.connecting())

    async def emit_open(self) -> None:
        await self._emitter.emit(CONNECTION_UPDATE, ConnectionUpdate.opened())

    async def emit_close(self, status_code: Optional[int] = None, message: str = "") -> None:
        await self._emitter.emit(CONNECTION_UPDATE, ConnectionUpdate.closed(status_code, message))

    async def emit_update(self, update: ConnectionUpdate) -> None:
        await self._emitter.emit(CONNECTION_UPDATE, update)

    async def emit_credentials(self, credentials: Credentials) -> None:
        self._credentials = credentials
        await self._emitter.emit(CREDS_UPDATE, credentials)

    async def complete_pairing(self, me: str = "") -> None:
        """Simulate the user entering the code: register, then open."""
        await self.emit_credentials(self._credentials.mark_registered(me or None))
        await self.emit_open()

    async def emit_messages(
        self,
        messages: Iterable[MessageEnvelope],
        delivery: DeliveryType = DeliveryType.NOTIFY,
    ) -> None:
        await self._emitter.emit(MESSAGES_UPSERT, MessagesUpsert(messages=list(messages), delivery=delivery))


class MemoryTransport(TransportPort):
    """
    In-memory transport.

    WARNING: Only for testing and demos. Nothing leaves the process.

    Every opened session is kept in ``sessions`` (oldest first) so tests can
    inspect attempts after the supervisor has discarded them.
    """

    def __init__(
        self,
        version: Tuple[int, int, int] = DEFAULT_VERSION,
        pairing_codes: Optional[Iterable[str]] = None,
        pairing_error: Optional[PairingError] = None,
        pairing_gate: Optional[asyncio.Event] = None,
        open_error: Optional[TransportError] = None,
    ):
        """
        Initialize memory transport.

        Args:
            version: Version reported by fetch_latest_version
            pairing_codes: Codes handed out in order (random when exhausted)
            pairing_error: Error every new session raises on pairing requests
            pairing_gate: Event pairing requests wait on before answering
            open_error: Error raised by the next open_session call
        """
        self._version = version
        self._codes: Iterator[str] = iter(pairing_codes or ())
        self.pairing_error = pairing_error
        self.pairing_gate = pairing_gate
        self.open_error = open_error

        self.sessions: List[MemorySession] = []
        self.opened_with: List[SessionOptions] = []
        self.pairing_requests: List[str] = []
        self._opened = asyncio.Condition()

    @property
    def latest_session(self) -> Optional[MemorySession]:
        return self.sessions[-1] if self.sessions else None

    def next_pairing_code(self) -> str:
        return next(self._codes, None) or generate_pairing_code()

    async def fetch_latest_version(self) -> ProtocolVersion:
        return ProtocolVersion(version=self._version, is_latest=True)

    async def open_session(self, options: SessionOptions) -> MemorySession:
        if self.open_error is not None:
            error, self.open_error = self.open_error, None
            raise error

        session = MemorySession(self, options, number=len(self.sessions) + 1)
        async with self._opened:
            self.sessions.append(session)
            self.opened_with.append(options)
            self._opened.notify_all()

        logger.debug("Opened memory session #%d", session.number)
        return session

    async def wait_for_sessions(self, count: int, timeout: float = 1.0) -> MemorySession:
        """Wait until at least ``count`` sessions were opened; return the latest."""
        async def _wait():
            async with self._opened:
                await self._opened.wait_for(lambda: len(self.sessions) >= count)

        await asyncio.wait_for(_wait(), timeout)
        return self.sessions[-1]
