"""
Custom exceptions for the Slack Session Client.

This module defines the exception hierarchy used by the credential store,
the session client adapters and the configuration layer.
"""


class SlackSessionClientError(Exception):
    """Base exception for all Slack Session Client errors."""

    def __init__(self, message: str, details: str = None):
        self.message = message
        self.details = details
        super().__init__(self.message)

    def __str__(self):
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class PersistenceError(SlackSessionClientError):
    """Raised when the credential record cannot be read or written."""

    def __init__(self, message: str = "Credential store error", details: str = None):
        super().__init__(message, details)


class CredentialMissingError(SlackSessionClientError):
    """Raised when no credential record has been stored yet."""

    def __init__(self, message: str = "No credential stored", details: str = None):
        super().__init__(message, details)


class SessionConnectError(SlackSessionClientError):
    """Raised when a connect attempt against the external service is rejected."""

    def __init__(self, message: str = "Session connect failed", details: str = None):
        super().__init__(message, details)


class ConfigurationError(SlackSessionClientError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str = "Configuration error", details: str = None):
        super().__init__(message, details)
