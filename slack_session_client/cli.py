"""
Command-line interface for the Slack Session Client.

This module provides the console entry point: it wires the credential
store, the Slack session client and a console presentation gate into a
session manager and runs it until interrupted.
"""

import argparse
import asyncio
import logging
import sys
import threading
from typing import Callable, List, Optional

from . import __version__
from .config import Config, load_config, create_default_config_file
from .exceptions import ConfigurationError, CredentialMissingError, PersistenceError
from .interfaces import PresentationGate, SessionClient
from .logging_config import configure_logging
from .session_manager import SessionManager
from .store import CredentialStore
from .utils import mask_token


CREDENTIAL_PROMPT = "credential_prompt"
MAIN_SURFACE = "main"


class ConsolePresentationGate(PresentationGate):
    """
    Presentation gate for a terminal.

    The credential prompt reads tokens from stdin in a daemon thread until
    the main surface is shown or the gate is closed.
    """

    def __init__(self, input_func: Callable[[str], str] = input,
                 output: Callable[[str], None] = print):
        super().__init__()
        self.input_func = input_func
        self.output = output
        self.surface: Optional[str] = None
        self.prompt_task: Optional[asyncio.Task] = None

    async def show_credential_prompt(self) -> None:
        self.surface = CREDENTIAL_PROMPT
        self.output("🔑 Enter your Slack app-level token (xapp-...)")

        if self.prompt_task is None or self.prompt_task.done():
            self.prompt_task = asyncio.create_task(self._read_credentials())

    async def show_main_surface(self) -> None:
        self.surface = MAIN_SURFACE
        self.output("✅ Connected to Slack. Press Ctrl+C to quit.")

    async def _read_credentials(self) -> None:
        while self.surface == CREDENTIAL_PROMPT:
            try:
                token = await self._read_line("token> ")
            except EOFError:
                self.output("❌ No more input, credential prompt closed")
                return

            token = token.strip()
            if not token:
                continue

            await self.credential_submitted(token)

            if self.surface == CREDENTIAL_PROMPT:
                self.output("❌ Could not connect with that token, try again")

    async def _read_line(self, prompt: str) -> str:
        """
        Read one line in a daemon thread.

        A blocked ``input`` cannot be interrupted. Cancelling the caller
        abandons the thread, which does not keep the process alive.
        """
        loop = asyncio.get_running_loop()
        future = loop.create_future()

        def deliver(line: Optional[str], error: Optional[Exception]) -> None:
            if future.done():
                return
            if error is not None:
                future.set_exception(error)
            else:
                future.set_result(line)

        def read() -> None:
            line, error = None, None
            try:
                line = self.input_func(prompt)
            except Exception as e:
                error = e
            try:
                loop.call_soon_threadsafe(deliver, line, error)
            except RuntimeError:
                # Loop already closed; nobody is waiting for the line
                pass

        threading.Thread(target=read, name="credential-prompt", daemon=True).start()
        return await future

    async def close(self) -> None:
        """Stop reading credentials from the console."""
        if self.prompt_task is not None and not self.prompt_task.done():
            self.prompt_task.cancel()
            await asyncio.gather(self.prompt_task, return_exceptions=True)


async def run_session(config: Config, client: Optional[SessionClient] = None,
                      gate: Optional[PresentationGate] = None,
                      stop_event: Optional[asyncio.Event] = None) -> SessionManager:
    """
    Run the session manager until ``stop_event`` is set or the task is cancelled.

    Args:
        config: Application configuration
        client: Session client; defaults to the Slack Socket Mode client
        gate: Presentation gate; defaults to the console gate
        stop_event: Event that ends the run when set

    Returns:
        SessionManager: The manager, stopped
    """
    if client is None:
        from .slack_client.client import SlackSessionClient
        client = SlackSessionClient()

    gate = gate or ConsolePresentationGate()
    manager = SessionManager(config, CredentialStore(config.credential_path), client, gate)
    manager.attach()

    stop_event = stop_event or asyncio.Event()
    try:
        await manager.start()
        await stop_event.wait()
    finally:
        await manager.stop()
        await gate.close()

    return manager


async def save_token(config: Config, token: str) -> None:
    """Persist a token without connecting."""
    credential = await CredentialStore(config.credential_path).put(token)
    print(f"✅ Token {mask_token(credential.token)} saved to {config.credential_path}")


async def show_status(config: Config) -> bool:
    """Print whether a credential is stored. Returns True if one is."""
    store = CredentialStore(config.credential_path)
    try:
        credential = await store.get()
    except CredentialMissingError:
        print(f"ℹ️ No credential stored at {config.credential_path}")
        return False

    print(f"✅ Credential {mask_token(credential.token)} stored at {config.credential_path}")
    print(f"   Record: {credential.record_id}")
    print(f"   Max retries: {config.max_retries}, reconnect delay: {config.reconnect_delay}s")
    return True


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="slack-session-client",
        description="Slack Session Client - keep one Slack Socket Mode session alive",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  slack-session-client                         # Connect with the stored token
  slack-session-client set-token xapp-...      # Store a token
  slack-session-client status                  # Show stored token info
  slack-session-client --init-config cfg.yaml  # Write a default config file
        """
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')
    subparsers.add_parser('run', help='Connect and keep the session alive (default)')
    set_token_parser = subparsers.add_parser('set-token', help='Store a Slack app token')
    set_token_parser.add_argument('token', help='Slack app-level token (xapp-...)')
    subparsers.add_parser('status', help='Show the stored credential')

    parser.add_argument(
        "--config", "-c",
        type=str,
        help="Path to configuration file (default: ~/.slack-session-client/config.yaml)"
    )
    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override the configured logging level"
    )
    parser.add_argument(
        "--init-config",
        type=str,
        metavar="PATH",
        help="Write a default configuration file and exit"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"Slack Session Client {__version__}"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the CLI."""
    args = build_parser().parse_args(argv)

    if args.init_config:
        create_default_config_file(args.init_config)
        print(f"✅ Default configuration written to {args.init_config}")
        return

    try:
        config = load_config(args.config)
        if args.log_level:
            config.log_level = args.log_level
    except ConfigurationError as e:
        print(f"❌ Configuration error: {e}")
        sys.exit(1)

    configure_logging(config)
    logger = logging.getLogger(__name__)

    try:
        if args.command == 'set-token':
            asyncio.run(save_token(config, args.token))
        elif args.command == 'status':
            if not asyncio.run(show_status(config)):
                sys.exit(1)
        else:
            logger.info("🚀 Starting Slack Session Client...")
            asyncio.run(run_session(config))
    except PersistenceError as e:
        print(f"❌ Credential store error: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("👋 Shutting down Slack Session Client...")


if __name__ == "__main__":
    main()
