"""
Services - The connection lifecycle core.

- PairingController: requests or re-delivers pairing codes
- ReconnectionSupervisor: classifies closures and runs the retry loop
- EventRouter: wires session events to both and to the caller's hooks
"""

from pairlink.services.pairing import PairingController, PairingState
from pairlink.services.router import EventRouter
from pairlink.services.supervisor import ReconnectionSupervisor, SupervisorState

__all__ = [
    "PairingController",
    "PairingState",
    "EventRouter",
    "ReconnectionSupervisor",
    "SupervisorState",
]
