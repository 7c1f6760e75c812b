"""
Core data models for the Slack Session Client.

This module defines the credential record and the session value that the
session manager drives through its lifecycle.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Any
import uuid


class SessionState(Enum):
    """Lifecycle states of the single managed session."""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    ACTIVE = "active"
    RECONNECTING = "reconnecting"
    FAILED = "failed"


@dataclass
class Credential:
    """
    The single persisted credential record.

    ``record_id`` is the identity of the stored record and survives token
    replacement; ``token`` is the opaque secret itself.
    """
    token: str
    record_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def to_dict(self) -> Dict[str, Any]:
        """Convert the credential to its stored document form."""
        return {"_id": self.record_id, "token": self.token}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Credential":
        """Build a credential from a stored document."""
        return cls(token=data["token"], record_id=data.get("_id") or uuid.uuid4().hex)

    def __repr__(self):
        return f"Credential(record_id={self.record_id!r}, token=<redacted>)"


@dataclass
class Session:
    """
    Logical connection to the external service.

    ``generation`` identifies the current connect cycle. Timers and connect
    results tagged with an older generation are stale and get ignored.
    """
    state: SessionState = SessionState.DISCONNECTED
    retry_count: int = 0
    generation: int = 0
    last_transition: datetime = field(default_factory=datetime.now)

    def is_active(self) -> bool:
        """Check if the session is currently active."""
        return self.state == SessionState.ACTIVE

    def to_dict(self) -> Dict[str, Any]:
        """Convert session to dictionary for status reporting."""
        return {
            "state": self.state.value,
            "retry_count": self.retry_count,
            "generation": self.generation,
            "last_transition": self.last_transition.isoformat()
        }
