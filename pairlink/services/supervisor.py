"""
Reconnection Supervisor - owns the session attempts and the retry loop.
"""

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional

from pairlink.domain.config import ConnectionConfig, SupervisorSettings
from pairlink.domain.decision import RetryDecision, classify_closure
from pairlink.domain.errors import PairingError, PairlinkError
from pairlink.domain.events import ConnectionPhase, ConnectionUpdate
from pairlink.ports.credential_store_port import CredentialStorePort
from pairlink.ports.transport_port import SessionHandle, SessionOptions, TransportPort
from pairlink.services.hooks import invoke_hook
from pairlink.services.pairing import PairingController
from pairlink.services.router import EventRouter

logger = logging.getLogger(__name__)


class SupervisorState(Enum):
    """Lifecycle of the current attempt."""
    IDLE = "idle"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"      # closure seen, waiting to reconnect
    STOPPED = "stopped"    # terminal, no further attempts


class ReconnectionSupervisor:
    """
    Runs session attempts one after another until a terminal outcome.

    Each attempt reloads credentials, opens a brand-new session, attaches an
    EventRouter and runs the PairingController. The first closure of the
    current attempt is classified (see classify_closure); retries are
    scheduled by an explicit loop, never by recursion, and an attempt starts
    only after the previous session has been detached and closed.

    Attempt ids increase monotonically. Anything reported for an id other
    than the current one is ignored.
    """

    def __init__(
        self,
        config: ConnectionConfig,
        credential_store: CredentialStorePort,
        transport: TransportPort,
        settings: Optional[SupervisorSettings] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Args:
            config: Connection config shared by all attempts
            credential_store: Where credentials are loaded and saved
            transport: Session factory
            settings: Retry policy (defaults if omitted)
            sleep: Delay coroutine (injectable for tests)
        """
        self._config = config
        self._store = credential_store
        self._transport = transport
        self._settings = settings or SupervisorSettings()
        self._sleep = sleep
        self._transport_logger = logging.getLogger("pairlink.transport")

        self._state = SupervisorState.IDLE
        self._attempt_id = 0
        self._session: Optional[SessionHandle] = None
        self._router: Optional[EventRouter] = None
        self._pairing: Optional[PairingController] = None
        self._closure: Optional["asyncio.Future[RetryDecision]"] = None

        self._task: Optional["asyncio.Task[None]"] = None
        self._stopped = asyncio.Event()
        self._error: Optional[BaseException] = None
        self._pending_error: Optional[PairlinkError] = None
        self._disconnect_reported = False
        self.last_decision: Optional[RetryDecision] = None

    @property
    def state(self) -> SupervisorState:
        return self._state

    @property
    def attempt_id(self) -> int:
        return self._attempt_id

    @property
    def session(self) -> Optional[SessionHandle]:
        """Session of the current attempt (None between attempts)."""
        return self._session

    @property
    def pairing(self) -> Optional[PairingController]:
        return self._pairing

    @property
    def error(self) -> Optional[BaseException]:
        """Fatal error that stopped the loop, if any."""
        return self._error

    def is_current(self, attempt_id: int) -> bool:
        return attempt_id == self._attempt_id and self._state != SupervisorState.STOPPED

    async def start(self) -> SessionHandle:
        """
        Run the first attempt and start the reconnection loop.

        Returns once the initial pairing request (if any) has been issued
        and answered, not once the connection is open.

        Raises:
            StorageError, TransportError, PairingError: First attempt failed
        """
        if self._state != SupervisorState.IDLE:
            raise RuntimeError("Supervisor already started")

        try:
            await self._start_attempt(initial=True)
            self._raise_early_failure()
        except BaseException as e:
            self._error = e
            await self._discard_attempt()
            self._finish()
            raise

        self._task = asyncio.get_running_loop().create_task(self._run())
        return self._session

    async def stop(self) -> None:
        """Cancel any pending reconnect and close the live session."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        # A task cancelled before its first step never reaches its finally
        await self._discard_attempt()
        self._finish()

    async def wait_closed(self) -> Optional[RetryDecision]:
        """
        Wait until the loop stops.

        Returns:
            The terminal decision (None if stopped by cancellation)

        Raises:
            The fatal error that stopped the loop
        """
        await self._stopped.wait()
        if self._error is not None:
            raise self._error
        return self.last_decision

    def fail(self, attempt_id: int, error: PairlinkError) -> None:
        """
        Report an error that is fatal to the current attempt.

        Also applies after the attempt's closure was classified: the loop
        checks for it before scheduling the next attempt.
        """
        if not self.is_current(attempt_id):
            return
        if self._pending_error is None:
            self._pending_error = error
        if self._closure is not None and not self._closure.done():
            self._closure.set_exception(error)

    async def handle_connection_update(self, attempt_id: int, update: ConnectionUpdate) -> None:
        if not self.is_current(attempt_id):
            logger.debug("Ignoring connection update from superseded attempt %d", attempt_id)
            return

        if update.phase == ConnectionPhase.CONNECTING:
            self._state = SupervisorState.CONNECTING
        elif update.phase == ConnectionPhase.OPEN:
            self._state = SupervisorState.OPEN
            logger.info("Connected (attempt %d)", attempt_id)
            await invoke_hook("on_connected", self._config.on_connected, self._session)
        elif update.phase == ConnectionPhase.CLOSE:
            self._on_close(attempt_id, update)

    def _on_close(self, attempt_id: int, update: ConnectionUpdate) -> None:
        if self._closure is None or self._closure.done():
            logger.debug("Duplicate close for attempt %d ignored", attempt_id)
            return

        registered = self._session.credentials.registered
        decision = classify_closure(
            update.close_cause,
            registered,
            pairing_wait_delay=self._settings.pairing_wait_delay,
            reconnect_delay=self._settings.reconnect_delay,
        )

        if decision.expected:
            logger.info("Waiting for pairing code to be entered... reconnecting in %ss", decision.delay)
        elif decision.is_terminal:
            logger.info("Logged out")
        else:
            cause = update.close_cause
            logger.warning(
                "Connection closed (status=%s %s), reconnecting in %ss",
                cause.status_code if cause else None,
                cause.message if cause else "",
                decision.delay,
            )

        self._state = SupervisorState.CLOSED
        self._closure.set_result(decision)

    async def _run(self) -> None:
        try:
            while True:
                decision = await self._closure
                self.last_decision = decision
                await self._discard_attempt()

                if self._pending_error is not None:
                    self.last_decision = None
                    raise self._pending_error

                if decision.is_terminal:
                    await self._report_disconnect(decision)
                    return

                max_attempts = self._settings.max_attempts
                if max_attempts is not None and self._attempt_id >= max_attempts:
                    logger.warning("Giving up after %d attempt(s)", self._attempt_id)
                    self.last_decision = RetryDecision.terminal("max_attempts")
                    await self._report_disconnect(self.last_decision)
                    return

                await self._sleep(decision.delay)
                await self._start_attempt(initial=False)
        except asyncio.CancelledError:
            logger.info("Reconnection cancelled")
            self.last_decision = None
            await self._discard_attempt()
            raise
        except PairlinkError as e:
            self._error = e
            logger.error("Connection stopped on attempt %d: %s", self._attempt_id, e)
            await self._discard_attempt()
        except Exception as e:
            self._error = e
            logger.exception("Unexpected error on attempt %d", self._attempt_id)
            await self._discard_attempt()
        finally:
            self._finish()

    async def _start_attempt(self, initial: bool) -> None:
        self._attempt_id += 1
        attempt_id = self._attempt_id
        self._state = SupervisorState.CONNECTING
        self._closure = asyncio.get_running_loop().create_future()

        credentials = await self._store.load()
        version = await self._resolve_version()

        options = SessionOptions(
            version=version,
            credentials=credentials,
            logger=self._transport_logger,
            browser=self._settings.browser,
        )
        session = await self._transport.open_session(options)
        logger.debug(
            "Attempt %d: session opened (registered=%s, pairing_code=%s)",
            attempt_id, credentials.registered, credentials.pairing_code,
        )

        self._session = session
        self._pairing = PairingController(
            session,
            self._config.phone_number,
            on_pairing_code=self._config.on_pairing_code,
            attempt_id=attempt_id,
        )
        self._router = EventRouter(
            attempt_id, session, self._store, self._pairing, self, self._config
        )
        self._router.attach()

        try:
            await self._pairing.evaluate()
        except PairingError:
            if initial:
                raise
            logger.warning(
                "Attempt %d: pairing rejected, a new request is made on the next attempt",
                attempt_id,
            )

    async def _resolve_version(self):
        if self._settings.protocol_version is not None:
            return self._settings.protocol_version
        latest = await self._transport.fetch_latest_version()
        logger.info("Using protocol v%s, is_latest: %s", latest, latest.is_latest)
        return latest.version

    def _raise_early_failure(self) -> None:
        # A save may have failed while the first pairing request was in flight
        if self._closure is not None and self._closure.done() and self._closure.exception():
            raise self._closure.exception()

    async def _discard_attempt(self) -> None:
        router, session = self._router, self._session
        self._router = None
        self._session = None
        if router is not None:
            router.detach()
        if session is not None:
            await session.close()

    async def _report_disconnect(self, decision: RetryDecision) -> None:
        if self._disconnect_reported:
            return
        self._disconnect_reported = True
        await invoke_hook("on_disconnected", self._config.on_disconnected, decision.reason)

    def _finish(self) -> None:
        self._state = SupervisorState.STOPPED
        self._stopped.set()
