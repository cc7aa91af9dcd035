"""
Error taxonomy for the pairing and connection lifecycle.

Closure causes are deliberately absent: a closed connection is a classified
signal (see decision.py), not an exception.
"""


class PairlinkError(Exception):
    """Base class for all pairlink errors."""


class ConfigurationError(PairlinkError, ValueError):
    """Invalid connection config or supervisor settings."""


class StorageError(PairlinkError):
    """
    Credential read or write failure.

    Always fatal to the current session attempt. Never retried silently,
    since retrying a failed save risks divergent credential state.
    """


class TransportError(PairlinkError, ConnectionError):
    """
    The transport session could not be constructed.

    Fatal to the current attempt. Retrying is caller policy; the
    reconnection supervisor only reacts to closures of opened sessions.
    """


class PairingError(PairlinkError):
    """
    A pairing code request was rejected (malformed number, remote refusal,
    rate limit).
    """

    def __init__(self, message: str, phone_number: str = ""):
        super().__init__(message)
        self.phone_number = phone_number
