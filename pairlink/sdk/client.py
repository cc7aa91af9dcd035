"""
Pairing Client - High-level SDK for connecting with a pairing code.

Simplifies the common workflow for application developers.
"""

from typing import Awaitable, Callable, Optional
import asyncio

from pairlink.domain.config import ConnectionConfig, SupervisorSettings
from pairlink.domain.decision import RetryDecision
from pairlink.ports.credential_store_port import CredentialStorePort
from pairlink.ports.transport_port import SessionHandle, TransportPort
from pairlink.adapters.file_credential_store import FileCredentialStore
from pairlink.services.supervisor import ReconnectionSupervisor, SupervisorState


class Connection:
    """
    Handle for a running connection.

    Returned by ``connect``. The session it exposes changes with every
    reconnection attempt; hold on to the Connection, not to the session.
    """

    def __init__(self, supervisor: ReconnectionSupervisor):
        self._supervisor = supervisor

    @property
    def session(self) -> Optional[SessionHandle]:
        """Session of the current attempt."""
        return self._supervisor.session

    @property
    def attempt_id(self) -> int:
        return self._supervisor.attempt_id

    @property
    def state(self) -> SupervisorState:
        return self._supervisor.state

    @property
    def supervisor(self) -> ReconnectionSupervisor:
        return self._supervisor

    async def cancel(self) -> None:
        """Stop reconnecting and close the live session."""
        await self._supervisor.stop()

    async def wait_closed(self) -> Optional[RetryDecision]:
        """
        Wait for a terminal outcome.

        Returns:
            Terminal decision, or None if cancelled

        Raises:
            StorageError / TransportError that stopped the reconnection loop
        """
        return await self._supervisor.wait_closed()

    async def __aenter__(self) -> "Connection":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.cancel()


class PairingClient:
    """
    Connects accounts through a transport, pairing by phone number.

    Example:
        from pairlink import PairingClient, ConnectionConfig
        from pairlink.adapters import MemoryTransport

        client = PairingClient(transport=MemoryTransport())

        connection = await client.connect(ConnectionConfig(
            phone_number="15551234567",
            on_pairing_code=lambda code: print("Enter", code),
        ))
        await connection.wait_closed()
    """

    def __init__(
        self,
        transport: TransportPort,
        settings: Optional[SupervisorSettings] = None,
        store_factory: Optional[Callable[[ConnectionConfig], CredentialStorePort]] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Initialize pairing client.

        Args:
            transport: Transport adapter (required)
            settings: Reconnection policy (optional)
            store_factory: Builds the credential store for a config
                (default: FileCredentialStore in config.auth_directory)
            sleep: Delay coroutine used between attempts
        """
        self._transport = transport
        self._settings = settings
        self._store_factory = store_factory or (lambda config: FileCredentialStore(config.auth_directory))
        self._sleep = sleep

    async def connect(
        self,
        config: ConnectionConfig,
        credential_store: Optional[CredentialStorePort] = None,
    ) -> Connection:
        """
        Start connecting an account.

        Resolves once the initial pairing request has been issued (or an
        existing code re-delivered), not once the connection is open.

        Args:
            config: Phone number, auth directory and hooks
            credential_store: Store to use instead of the factory's

        Returns:
            Connection handle

        Raises:
            StorageError: Credentials could not be loaded or saved
            TransportError: The session could not be opened
            PairingError: The pairing code request was rejected
        """
        supervisor = ReconnectionSupervisor(
            config,
            credential_store or self._store_factory(config),
            self._transport,
            settings=self._settings,
            sleep=self._sleep,
        )
        await supervisor.start()
        return Connection(supervisor)


async def connect(
    config: ConnectionConfig,
    *,
    transport: TransportPort,
    credential_store: Optional[CredentialStorePort] = None,
    settings: Optional[SupervisorSettings] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> Connection:
    """Shortcut for ``PairingClient(transport, settings).connect(config)``."""
    client = PairingClient(transport, settings=settings, sleep=sleep)
    return await client.connect(config, credential_store=credential_store)
