"""
Slack client module for the Slack Session Client.

This module connects the session manager to Slack over Socket Mode.
"""

from .client import SlackSessionClient

__all__ = [
    "SlackSessionClient"
]
