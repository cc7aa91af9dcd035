"""
Unit tests for the event router.
"""

import pytest

from pairlink.adapters import MemoryCredentialStore, MemoryTransport
from pairlink.domain.config import ConnectionConfig
from pairlink.domain.credentials import Credentials
from pairlink.domain.errors import PairingError, StorageError
from pairlink.domain.events import (
    CONNECTION_UPDATE,
    CREDS_UPDATE,
    MESSAGES_UPSERT,
    SESSION_EVENTS,
    ConnectionPhase,
    DeliveryType,
    MessageEnvelope,
)
from pairlink.ports.transport_port import SessionOptions
from pairlink.services.pairing import PairingController
from pairlink.services.router import EventRouter


class StubSupervisor:
    """Records what the router forwards."""

    def __init__(self, current: bool = True):
        self.current = current
        self.updates = []
        self.failures = []
        self.pairing_state_at_update = []
        self.pairing = None

    def is_current(self, attempt_id):
        return self.current

    async def handle_connection_update(self, attempt_id, update):
        self.updates.append((attempt_id, update))
        self.pairing_state_at_update.append(self.pairing.request_count if self.pairing else None)

    def fail(self, attempt_id, error):
        self.failures.append((attempt_id, error))


async def build_router(credentials=None, current=True, **hooks):
    transport = MemoryTransport(pairing_codes=["WXYZ-1234"])
    session = await transport.open_session(
        SessionOptions(version=(2, 3000, 1), credentials=credentials or Credentials.fresh())
    )
    store = MemoryCredentialStore()
    config = ConnectionConfig(phone_number="15551234567", **hooks)
    pairing = PairingController(session, config.phone_number, on_pairing_code=config.on_pairing_code, attempt_id=7)
    supervisor = StubSupervisor(current=current)
    supervisor.pairing = pairing
    router = EventRouter(7, session, store, pairing, supervisor, config)
    router.attach()
    return router, session, store, supervisor


class TestEventRouter:
    """Test event wiring for one attempt."""

    @pytest.mark.asyncio
    async def test_attach_and_detach(self):
        """Test subscriptions are removed on detach."""
        router, session, _, _ = await build_router()

        assert set(SESSION_EVENTS) == {CONNECTION_UPDATE, CREDS_UPDATE, MESSAGES_UPSERT}
        for event in SESSION_EVENTS:
            assert session.listener_count(event) == 1

        router.detach()
        router.detach()

        assert not router.attached
        for event in SESSION_EVENTS:
            assert session.listener_count(event) == 0

    @pytest.mark.asyncio
    async def test_reattach_after_detach(self):
        router, session, store, _ = await build_router()
        router.detach()
        router.attach()

        await session.emit_credentials(Credentials(pairing_code="ABCD-1234"))

        assert len(store.saved) == 1
        for event in SESSION_EVENTS:
            assert session.listener_count(event) == 1

    @pytest.mark.asyncio
    async def test_attach_is_idempotent(self):
        router, session, _, _ = await build_router()
        router.attach()

        assert session.listener_count(CONNECTION_UPDATE) == 1

    @pytest.mark.asyncio
    async def test_creds_update_is_saved(self):
        """Test every credentials update reaches the store."""
        _, session, store, _ = await build_router()

        await session.emit_credentials(Credentials(pairing_code="ABCD-1234"))
        await session.emit_credentials(Credentials(registered=True, pairing_code="ABCD-1234"))

        assert [c.registered for c in store.saved] == [False, True]
        assert store.current.registered is True

    @pytest.mark.asyncio
    async def test_save_failure_reported_to_supervisor(self):
        """Test a failed save is fatal to the attempt."""
        _, session, store, supervisor = await build_router()
        store.fail_save = StorageError("disk full")

        await session.emit_credentials(Credentials(pairing_code="ABCD-1234"))

        assert len(supervisor.failures) == 1
        attempt_id, error = supervisor.failures[0]
        assert attempt_id == 7
        assert isinstance(error, StorageError)

    @pytest.mark.asyncio
    async def test_connection_update_runs_pairing_before_supervisor(self):
        """Test the pairing decision happens before the supervisor sees the update."""
        _, session, _, supervisor = await build_router()

        await session.emit_connecting()

        assert session.pairing_requests == ["15551234567"]
        assert supervisor.pairing_state_at_update == [1]
        assert supervisor.updates[0][1].phase == ConnectionPhase.CONNECTING

    @pytest.mark.asyncio
    async def test_pairing_rejection_does_not_stop_routing(self):
        """Test the supervisor still sees the update after a rejected request."""
        _, session, _, supervisor = await build_router()
        session.pairing_error = PairingError("rate limited")

        await session.emit_close(428)

        assert len(supervisor.updates) == 1

    @pytest.mark.asyncio
    async def test_only_notify_messages_forwarded(self):
        """Test history backfill is filtered and order preserved."""
        received = []
        _, session, _, _ = await build_router(on_message=received.append)

        live = [MessageEnvelope(id="m1"), MessageEnvelope(id="m2"), MessageEnvelope(id="m3")]
        history = [MessageEnvelope(id="old1")]

        await session.emit_messages(history, delivery=DeliveryType.APPEND)
        await session.emit_messages(live)

        assert [m.id for m in received] == ["m1", "m2", "m3"]
        assert received[0] is live[0]  # forwarded unmodified

    @pytest.mark.asyncio
    async def test_superseded_attempt_ignored(self):
        """Test events for a stale attempt do nothing."""
        received = []
        _, session, store, supervisor = await build_router(current=False, on_message=received.append)

        await session.emit_credentials(Credentials(pairing_code="ABCD-1234"))
        await session.emit_connecting()
        await session.emit_messages([MessageEnvelope(id="m1")])

        assert store.saved == []
        assert session.pairing_requests == []
        assert supervisor.updates == []
        assert received == []
