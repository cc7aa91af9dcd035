"""
Event Router - wires one session attempt's events to the core and hooks.
"""

import logging
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict

from pairlink.domain.config import ConnectionConfig
from pairlink.domain.credentials import Credentials
from pairlink.domain.errors import PairingError, StorageError
from pairlink.domain.events import (
    CONNECTION_UPDATE,
    CREDS_UPDATE,
    MESSAGES_UPSERT,
    SESSION_EVENTS,
    ConnectionUpdate,
    DeliveryType,
    MessagesUpsert,
)
from pairlink.ports.credential_store_port import CredentialStorePort
from pairlink.ports.transport_port import SessionHandle
from pairlink.services.hooks import invoke_hook
from pairlink.services.pairing import PairingController

if TYPE_CHECKING:
    from pairlink.services.supervisor import ReconnectionSupervisor

logger = logging.getLogger(__name__)


class EventRouter:
    """
    Subscribes to a session's three event streams for one attempt.

    Handlers of a superseded attempt (or of a detached router) do nothing,
    so a late event from an old session can never save twice or request a
    second pairing code.
    """

    def __init__(
        self,
        attempt_id: int,
        session: SessionHandle,
        credential_store: CredentialStorePort,
        pairing: PairingController,
        supervisor: "ReconnectionSupervisor",
        config: ConnectionConfig,
    ):
        self.attempt_id = attempt_id
        self._session = session
        self._store = credential_store
        self._pairing = pairing
        self._supervisor = supervisor
        self._config = config
        self._attached = False

    @property
    def attached(self) -> bool:
        return self._attached

    def _handlers(self) -> Dict[str, Callable[[Any], Awaitable[None]]]:
        return {
            CONNECTION_UPDATE: self._on_connection_update,
            CREDS_UPDATE: self._on_creds_update,
            MESSAGES_UPSERT: self._on_messages_upsert,
        }

    def attach(self) -> None:
        if self._attached:
            return
        handlers = self._handlers()
        for event in SESSION_EVENTS:
            self._session.on(event, handlers[event])
        self._attached = True

    def detach(self) -> None:
        if not self._attached:
            return
        handlers = self._handlers()
        for event in SESSION_EVENTS:
            self._session.off(event, handlers[event])
        self._attached = False

    def _is_live(self, event: str) -> bool:
        if self._attached and self._supervisor.is_current(self.attempt_id):
            return True
        logger.debug("Ignoring %s from superseded attempt %d", event, self.attempt_id)
        return False

    async def _on_creds_update(self, credentials: Credentials) -> None:
        if not self._is_live(CREDS_UPDATE):
            return
        try:
            await self._store.save(credentials)
        except StorageError as e:
            logger.error("Attempt %d: failed to persist credentials: %s", self.attempt_id, e)
            self._supervisor.fail(self.attempt_id, e)

    async def _on_connection_update(self, update: ConnectionUpdate) -> None:
        if not self._is_live(CONNECTION_UPDATE):
            return

        cause = update.close_cause
        logger.info(
            "Connection update: phase=%s status=%s registered=%s",
            update.phase.value if update.phase else None,
            cause.status_code if cause else None,
            self._session.credentials.registered,
        )

        # Pairing first, so the supervisor classifies with fresh credentials
        try:
            await self._pairing.evaluate()
        except PairingError:
            logger.warning(
                "Attempt %d: pairing rejected, a new request is made on the next attempt",
                self.attempt_id,
            )

        await self._supervisor.handle_connection_update(self.attempt_id, update)

    async def _on_messages_upsert(self, upsert: MessagesUpsert) -> None:
        if not self._is_live(MESSAGES_UPSERT):
            return
        if upsert.delivery != DeliveryType.NOTIFY:
            logger.debug("Skipping %d %s message(s)", len(upsert.messages), upsert.delivery.value)
            return
        for message in upsert.messages:
            await invoke_hook("on_message", self._config.on_message, message)
