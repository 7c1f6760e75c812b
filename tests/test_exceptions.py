"""
Unit tests for the exceptions module.
"""

import pytest
from slack_session_client.exceptions import (
    SlackSessionClientError,
    PersistenceError,
    CredentialMissingError,
    SessionConnectError,
    ConfigurationError
)


class TestSlackSessionClientError:
    """Test the base exception class."""

    def test_basic_exception(self):
        """Test basic exception creation."""
        error = SlackSessionClientError("Test error")
        assert str(error) == "Test error"
        assert error.message == "Test error"
        assert error.details is None

    def test_exception_with_details(self):
        """Test exception with details."""
        error = SlackSessionClientError("Test error", "Additional details")
        assert str(error) == "Test error: Additional details"
        assert error.details == "Additional details"


@pytest.mark.parametrize("exception_class,default_message", [
    (PersistenceError, "Credential store error"),
    (CredentialMissingError, "No credential stored"),
    (SessionConnectError, "Session connect failed"),
    (ConfigurationError, "Configuration error"),
])
class TestSpecificExceptions:
    """Test the concrete exception types."""

    def test_default_message(self, exception_class, default_message):
        error = exception_class()
        assert error.message == default_message
        assert str(error) == default_message

    def test_with_details(self, exception_class, default_message):
        error = exception_class("Custom", "more context")
        assert str(error) == "Custom: more context"

    def test_inherits_base(self, exception_class, default_message):
        with pytest.raises(SlackSessionClientError):
            raise exception_class()


def test_missing_credential_is_not_a_persistence_failure():
    """Test callers can tell 'no record' apart from 'store broken'."""
    assert not issubclass(CredentialMissingError, PersistenceError)
    assert not issubclass(PersistenceError, CredentialMissingError)
