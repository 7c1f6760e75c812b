"""
Session manager module for the Slack Session Client.

This module handles the session lifecycle and the reconnection policy.
"""

from .session_manager import SessionManager
from .transitions import SessionEvent, Effect, Transition, advance

__all__ = [
    "SessionManager",
    "SessionEvent",
    "Effect",
    "Transition",
    "advance"
]
