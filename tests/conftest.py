"""
Shared fixtures for Slack Session Client tests.

Fixtures build a session manager in a temporary data directory, wired to
recording doubles instead of Slack and a real UI.
"""

import pytest
import tempfile

from slack_session_client.config import Config
from slack_session_client.session_manager.session_manager import SessionManager
from slack_session_client.store.credential_store import CredentialStore
from tests.session_doubles import FakeSessionClient, RecordingGate


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep SLACK_SESSION_* variables from leaking into tests."""
    for name in (
        "SLACK_SESSION_DATA_DIR",
        "SLACK_SESSION_LOG_LEVEL",
        "SLACK_SESSION_LOG_FILE",
        "SLACK_SESSION_MAX_RETRIES",
        "SLACK_SESSION_RECONNECT_DELAY",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test data."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


@pytest.fixture
def test_config(temp_dir):
    """Create a test configuration with a short reconnect delay."""
    return Config(
        data_dir=temp_dir,
        log_level="DEBUG",
        max_retries=3,
        reconnect_delay=0.05
    )


@pytest.fixture
def store(test_config):
    """Credential store in the temporary data directory."""
    return CredentialStore(test_config.credential_path)


@pytest.fixture
def fake_client():
    return FakeSessionClient()


@pytest.fixture
def gate():
    return RecordingGate()


@pytest.fixture
def manager(test_config, store, fake_client, gate):
    """Attached session manager wired to the test doubles."""
    session_manager = SessionManager(test_config, store, fake_client, gate)
    session_manager.attach()
    return session_manager


@pytest.fixture
def state_history(manager):
    """List of (old_state, new_state) pairs recorded from the manager."""
    history = []
    manager.add_state_listener(lambda old, new, session: history.append((old, new)))
    return history
