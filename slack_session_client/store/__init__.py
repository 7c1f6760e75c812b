"""
Credential persistence for the Slack Session Client.
"""

from .credential_store import CredentialStore

__all__ = [
    "CredentialStore"
]
