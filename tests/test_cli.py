"""
Tests for the command-line interface and the console presentation gate.
"""

import pytest
import asyncio
import os
import threading
import yaml
from pathlib import Path
from unittest.mock import AsyncMock, patch

from slack_session_client.cli import (
    ConsolePresentationGate, run_session, main, build_parser,
    CREDENTIAL_PROMPT, MAIN_SURFACE
)
from slack_session_client.models import SessionState
from slack_session_client.store.credential_store import CredentialStore
from tests.session_doubles import FakeSessionClient, RecordingGate, TEST_TOKEN, wait_for


def scripted_input(*lines):
    """Input function returning ``lines`` in order, then EOF."""
    remaining = list(lines)

    def read(prompt):
        if not remaining:
            raise EOFError
        return remaining.pop(0)

    return read


@pytest.fixture
def blocking_input():
    """Input function that blocks like a terminal with nobody typing."""
    released = threading.Event()

    def read(prompt):
        released.wait(5)
        raise EOFError

    yield read
    released.set()


@pytest.fixture
def config_file(temp_dir):
    path = os.path.join(temp_dir, "config.yaml")
    with open(path, 'w') as f:
        yaml.dump({'data_dir': os.path.join(temp_dir, 'data')}, f)
    return path


@pytest.fixture
def quiet_logging():
    with patch('slack_session_client.cli.configure_logging') as mock_configure:
        yield mock_configure


class TestConsolePresentationGate:
    """Test the terminal presentation gate."""

    @pytest.mark.asyncio
    async def test_show_main_surface(self):
        outputs = []
        gate = ConsolePresentationGate(output=outputs.append)

        await gate.show_main_surface()

        assert gate.surface == MAIN_SURFACE
        assert "Connected to Slack" in outputs[-1]

    @pytest.mark.asyncio
    async def test_prompt_submits_until_main_surface(self):
        """Test the prompt skips blank lines and stops once connected."""
        received = []
        gate = ConsolePresentationGate(input_func=scripted_input("", "  xapp-1-A  ", "never-read"),
                                       output=lambda text: None)

        async def handler(token):
            received.append(token)
            await gate.show_main_surface()

        gate.set_credential_handler(handler)

        await gate.show_credential_prompt()
        await gate.prompt_task

        assert received == ["xapp-1-A"]
        assert gate.surface == MAIN_SURFACE

    @pytest.mark.asyncio
    async def test_prompt_retries_after_rejected_token(self):
        outputs = []
        gate = ConsolePresentationGate(input_func=scripted_input("bad-token"), output=outputs.append)
        gate.set_credential_handler(AsyncMock())

        await gate.show_credential_prompt()
        await gate.prompt_task

        assert gate.surface == CREDENTIAL_PROMPT
        assert any("try again" in line for line in outputs)
        assert "No more input" in outputs[-1]

    @pytest.mark.asyncio
    async def test_prompt_not_duplicated(self):
        """Test a second prompt directive reuses the running reader."""
        gate = ConsolePresentationGate(input_func=scripted_input(), output=lambda text: None)
        gate.set_credential_handler(AsyncMock())

        await gate.show_credential_prompt()
        first_task = gate.prompt_task
        await gate.show_credential_prompt()

        assert gate.prompt_task is first_task
        await first_task

    @pytest.mark.asyncio
    async def test_submit_without_handler(self):
        gate = ConsolePresentationGate()

        with pytest.raises(RuntimeError):
            await gate.credential_submitted(TEST_TOKEN)

    @pytest.mark.asyncio
    async def test_close_cancels_blocked_prompt(self, blocking_input):
        """Test closing the gate does not wait for a line of input."""
        gate = ConsolePresentationGate(input_func=blocking_input, output=lambda text: None)
        gate.set_credential_handler(AsyncMock())

        await gate.show_credential_prompt()
        await asyncio.sleep(0.02)
        await asyncio.wait_for(gate.close(), 1.0)

        assert gate.prompt_task.cancelled()

    @pytest.mark.asyncio
    async def test_close_without_prompt(self):
        gate = ConsolePresentationGate()

        await gate.close()

        assert gate.prompt_task is None


class TestRunSession:
    """Test running the session manager end to end with doubles."""

    @pytest.mark.asyncio
    async def test_run_with_stored_credential(self, test_config):
        await CredentialStore(test_config.credential_path).put(TEST_TOKEN)
        client = FakeSessionClient()
        gate = RecordingGate()
        stop_event = asyncio.Event()

        task = asyncio.create_task(run_session(test_config, client, gate, stop_event))
        await wait_for(lambda: gate.main_count == 1)
        stop_event.set()
        manager = await task

        assert manager.state == SessionState.ACTIVE
        assert client.connect_calls == [TEST_TOKEN]
        assert client.disconnect_calls == 1

    @pytest.mark.asyncio
    async def test_run_without_credential_prompts(self, test_config):
        client = FakeSessionClient()
        gate = RecordingGate()
        stop_event = asyncio.Event()

        task = asyncio.create_task(run_session(test_config, client, gate, stop_event))
        await wait_for(lambda: gate.prompt_count == 1)
        stop_event.set()
        manager = await task

        assert manager.state == SessionState.DISCONNECTED
        assert client.connect_calls == []

    @pytest.mark.asyncio
    async def test_console_credential_entry_connects(self, test_config):
        """Test a token typed at the console is stored and used."""
        client = FakeSessionClient()
        client.emit_ready_on_connect = True
        gate = ConsolePresentationGate(input_func=scripted_input(TEST_TOKEN), output=lambda text: None)
        stop_event = asyncio.Event()

        task = asyncio.create_task(run_session(test_config, client, gate, stop_event))
        await wait_for(lambda: gate.surface == MAIN_SURFACE)
        stop_event.set()
        manager = await task

        assert manager.state == SessionState.ACTIVE
        assert (await CredentialStore(test_config.credential_path).get()).token == TEST_TOKEN

    @pytest.mark.asyncio
    async def test_run_stops_on_cancel(self, test_config):
        client = FakeSessionClient()
        gate = RecordingGate()

        task = asyncio.create_task(run_session(test_config, client, gate))
        await wait_for(lambda: gate.prompt_count == 1)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert client.disconnect_calls == 1

    @pytest.mark.asyncio
    async def test_stop_closes_blocked_console_prompt(self, test_config, blocking_input):
        """Test shutdown does not wait for the operator to press Enter."""
        client = FakeSessionClient()
        gate = ConsolePresentationGate(input_func=blocking_input, output=lambda text: None)
        stop_event = asyncio.Event()

        task = asyncio.create_task(run_session(test_config, client, gate, stop_event))
        await wait_for(lambda: gate.prompt_task is not None)
        stop_event.set()
        await asyncio.wait_for(task, 2.0)

        assert gate.prompt_task.cancelled()
        assert client.disconnect_calls == 1

    @pytest.mark.asyncio
    async def test_cancel_closes_blocked_console_prompt(self, test_config, blocking_input):
        """Test an interrupt while prompting ends the run promptly."""
        client = FakeSessionClient()
        gate = ConsolePresentationGate(input_func=blocking_input, output=lambda text: None)

        task = asyncio.create_task(run_session(test_config, client, gate))
        await wait_for(lambda: gate.prompt_task is not None)
        await asyncio.sleep(0.02)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await asyncio.wait_for(task, 2.0)
        assert gate.prompt_task.cancelled()


class TestMain:
    """Test the CLI entry point."""

    def test_parser_defaults(self):
        args = build_parser().parse_args([])

        assert args.command is None
        assert args.config is None

    def test_init_config(self, temp_dir, capsys):
        path = os.path.join(temp_dir, "generated.yaml")

        main(["--init-config", path])

        assert os.path.exists(path)
        assert "Default configuration written" in capsys.readouterr().out

    def test_missing_config_exits(self, temp_dir, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--config", os.path.join(temp_dir, "missing.yaml"), "status"])

        assert exc_info.value.code == 1
        assert "Configuration error" in capsys.readouterr().out

    def test_set_token_then_status(self, config_file, quiet_logging, capsys):
        main(["--config", config_file, "set-token", TEST_TOKEN])
        main(["--config", config_file, "status"])

        output = capsys.readouterr().out
        assert "saved to" in output
        assert "xapp-***" in output
        assert TEST_TOKEN not in output

    def test_status_without_credential_exits(self, config_file, quiet_logging):
        with pytest.raises(SystemExit) as exc_info:
            main(["--config", config_file, "status"])

        assert exc_info.value.code == 1

    def test_status_with_corrupt_store_exits(self, config_file, temp_dir, quiet_logging, capsys):
        data_dir = Path(temp_dir) / "data"
        data_dir.mkdir()
        (data_dir / "config.db").write_text("{broken")

        with pytest.raises(SystemExit) as exc_info:
            main(["--config", config_file, "status"])

        assert exc_info.value.code == 1
        assert "Credential store error" in capsys.readouterr().out

    def test_log_level_override(self, config_file, quiet_logging):
        with pytest.raises(SystemExit):
            main(["--config", config_file, "--log-level", "DEBUG", "status"])

        config = quiet_logging.call_args.args[0]
        assert config.log_level == "DEBUG"

    @pytest.mark.parametrize("argv", [[], ["run"]])
    def test_run_is_default(self, config_file, quiet_logging, argv):
        with patch('slack_session_client.cli.run_session', new_callable=AsyncMock) as mock_run:
            main(["--config", config_file] + argv)

        mock_run.assert_awaited_once()
        assert mock_run.call_args.args[0].data_dir.endswith("data")
