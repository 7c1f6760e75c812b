"""
Slack Session Client - keeps one authenticated Slack Socket Mode session alive.

This package stores a single app token, connects with it, watches the
session and reconnects a bounded number of times before asking the
operator for a new token.
"""

__version__ = "0.1.0"
__author__ = "Slack Session Client Team"

from .models import Credential, Session, SessionState
from .config import Config, load_config
from .exceptions import (
    SlackSessionClientError,
    PersistenceError,
    CredentialMissingError,
    SessionConnectError,
    ConfigurationError
)
from .interfaces import SessionClient, SessionListener, PresentationGate
from .store import CredentialStore
from .session_manager import SessionManager

__all__ = [
    "Credential",
    "Session",
    "SessionState",
    "Config",
    "load_config",
    "SlackSessionClientError",
    "PersistenceError",
    "CredentialMissingError",
    "SessionConnectError",
    "ConfigurationError",
    "SessionClient",
    "SessionListener",
    "PresentationGate",
    "CredentialStore",
    "SessionManager"
]
