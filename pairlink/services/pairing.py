"""
Pairing Controller - decides when to request a pairing code.
"""

import logging
from enum import Enum
from typing import Optional, Set

from pairlink.domain.config import Hook
from pairlink.domain.errors import PairingError
from pairlink.ports.transport_port import SessionHandle
from pairlink.services.hooks import invoke_hook

logger = logging.getLogger(__name__)


class PairingState(Enum):
    """Pairing progress within one session attempt."""
    IDLE = "idle"
    REQUESTING = "requesting"    # request outstanding
    ISSUED = "issued"            # this attempt obtained a code
    FAILED = "failed"            # this attempt's request was rejected
    REGISTERED = "registered"


class PairingController:
    """
    Pairing decisions for a single session attempt.

    Run at startup and on every connection update. Given the session's
    current credentials:

    - unregistered, no code: request exactly one code for this attempt
    - unregistered, code present: re-deliver it, no network call
    - registered: nothing to do

    The outstanding request is tracked here rather than inferred from the
    credentials, because the credentials may not show the new code until
    the transport has emitted and persisted it.
    """

    def __init__(
        self,
        session: SessionHandle,
        phone_number: str,
        on_pairing_code: Optional[Hook] = None,
        attempt_id: int = 0,
    ):
        """
        Args:
            session: Session attempt to request codes from
            phone_number: Normalized phone number
            on_pairing_code: Hook receiving each code
            attempt_id: Attempt this controller belongs to (for logs)
        """
        self._session = session
        self._phone_number = phone_number
        self._on_pairing_code = on_pairing_code
        self._attempt_id = attempt_id

        self._state = PairingState.IDLE
        self._issued_code: Optional[str] = None
        self._delivered: Set[str] = set()
        self.request_count = 0

    @property
    def state(self) -> PairingState:
        return self._state

    @property
    def outstanding(self) -> bool:
        """A pairing code request is in flight."""
        return self._state == PairingState.REQUESTING

    async def evaluate(self) -> Optional[str]:
        """
        Apply the pairing rules to the session's current credentials.

        Returns:
            The pairing code in effect, or None when registered, while a
            request is outstanding, or after a rejected request

        Raises:
            PairingError: If this call issued a request and it was rejected
        """
        credentials = self._session.credentials

        if credentials.registered:
            if self._state != PairingState.REGISTERED:
                logger.info("Attempt %d: already registered, no pairing needed", self._attempt_id)
                self._state = PairingState.REGISTERED
            return None

        if self._state == PairingState.REQUESTING:
            logger.debug("Attempt %d: pairing code request already outstanding", self._attempt_id)
            return None

        code = credentials.pairing_code if credentials.awaiting_pairing else self._issued_code
        if code:
            if code not in self._delivered:
                logger.info("Pairing code already generated: %s", code)
                logger.info("Waiting for you to enter the code on your phone...")
            await self._deliver(code)
            return code

        if self._state == PairingState.FAILED:
            # Rejected once in this attempt; the next attempt may try again
            return None

        if credentials.needs_pairing_code:
            return await self._request()
        return None

    async def _request(self) -> str:
        self._state = PairingState.REQUESTING
        self.request_count += 1
        logger.info("Requesting pairing code for %s...", self._phone_number)

        try:
            code = await self._session.request_pairing_code(self._phone_number)
        except PairingError as e:
            self._state = PairingState.FAILED
            logger.error("Error requesting pairing code for %s: %s", self._phone_number, e)
            raise
        except BaseException:
            self._state = PairingState.FAILED
            raise

        self._state = PairingState.ISSUED
        self._issued_code = code
        logger.info("PAIRING CODE: %s", code)
        await self._deliver(code)
        return code

    async def _deliver(self, code: str) -> None:
        # Once per code per attempt; a new attempt delivers again
        if code in self._delivered:
            return
        self._delivered.add(code)
        await invoke_hook("on_pairing_code", self._on_pairing_code, code)
