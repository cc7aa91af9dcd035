"""
Credentials Domain Model - the slice of authentication state the core reads.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, Any, Optional


@dataclass(frozen=True)
class Credentials:
    """
    Credentials value - authentication material owned by a credential store.

    Only two fields drive decisions: ``registered`` and ``pairing_code``.
    Everything else the transport needs (keys, identities, counters) rides
    along in ``extra`` and is never inspected here.

    Domain rules:
    - once registered, a session never becomes unregistered again
    - pairing_code is set at most once per pairing cycle
    """
    registered: bool = False
    pairing_code: Optional[str] = None

    # Account identifier, known once registration completes
    me: Optional[str] = None

    # Opaque transport material
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def fresh(cls) -> "Credentials":
        """Unregistered credentials with no pairing code issued."""
        return cls()

    @property
    def awaiting_pairing(self) -> bool:
        """A code was issued but the remote device has not confirmed it yet."""
        return not self.registered and self.pairing_code is not None

    @property
    def needs_pairing_code(self) -> bool:
        """Nothing issued yet and not registered."""
        return not self.registered and self.pairing_code is None

    def with_pairing_code(self, code: str) -> "Credentials":
        """Return a copy carrying the issued pairing code."""
        return replace(self, pairing_code=code)

    def mark_registered(self, me: Optional[str] = None) -> "Credentials":
        """Return a copy flagged as fully registered."""
        return replace(self, registered=True, me=me or self.me)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dict."""
        return {
            "registered": self.registered,
            "pairing_code": self.pairing_code,
            "me": self.me,
            "extra": dict(self.extra),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Credentials":
        """Deserialize from dict."""
        return cls(
            registered=bool(data.get("registered", False)),
            pairing_code=data.get("pairing_code") or None,
            me=data.get("me"),
            extra=dict(data.get("extra") or {}),
        )
