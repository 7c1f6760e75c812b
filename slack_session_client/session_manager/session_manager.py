"""
Session manager for the single Slack session.

This module owns the session lifecycle: it reads the stored credential,
connects through the session client, reacts to client events and drives
the bounded reconnection policy, issuing surface directives to the
presentation gate along the way.
"""

import asyncio
from typing import Any, Callable, Dict, List, Optional

from ..models import Credential, Session, SessionState
from ..config import Config
from ..exceptions import PersistenceError, CredentialMissingError
from ..interfaces import SessionClient, SessionListener, PresentationGate
from ..store.credential_store import CredentialStore
from ..error_handler import ErrorTracker
from ..logging_config import log_session_event
from ..utils import get_logger, mask_token
from .transitions import SessionEvent, Effect, Transition, advance


StateListener = Callable[[SessionState, SessionState, Session], None]


class SessionManager(SessionListener):
    """
    Lifecycle manager for one authenticated session.

    Runs on a single event loop. At most one connect is in flight at a
    time and at most one reconnect timer is pending.
    """

    def __init__(self, config: Config, store: CredentialStore,
                 client: SessionClient, gate: PresentationGate):
        """
        Initialize the session manager.

        Args:
            config: Application configuration
            store: Credential store holding the single credential record
            client: Session client used to reach the external service
            gate: Presentation gate receiving surface directives
        """
        self.config = config
        self.store = store
        self.client = client
        self.gate = gate
        self.logger = get_logger(__name__)

        self.session = Session()
        self.credential: Optional[Credential] = None

        self.max_retries = config.max_retries
        self.reconnect_delay = config.reconnect_delay

        # Reconnect timer and the generation it belongs to
        self.reconnect_task: Optional[asyncio.Task] = None
        self.reconnect_generation: Optional[int] = None

        # Generation of the most recent connect handed to the client
        self.client_generation = 0

        self.error_tracker = ErrorTracker()
        self.state_listeners: List[StateListener] = []
        self._connect_lock = asyncio.Lock()
        self.is_attached = False

    @property
    def state(self) -> SessionState:
        return self.session.state

    @property
    def retry_count(self) -> int:
        return self.session.retry_count

    def attach(self) -> None:
        """Subscribe to client events and receive credentials from the gate."""
        if self.is_attached:
            return

        self.client.subscribe(self)
        self.gate.set_credential_handler(self.submit_credential)
        self.is_attached = True

    def add_state_listener(self, listener: StateListener) -> None:
        """
        Add a callback invoked as ``listener(old_state, new_state, session)``
        on every state change.
        """
        self.state_listeners.append(listener)

    async def start(self) -> None:
        """
        Read the stored credential and connect, or ask for a credential.

        Only acts from the Disconnected state.
        """
        if self.session.state != SessionState.DISCONNECTED:
            self.logger.info(f"Start ignored, session is {self.session.state.value}")
            return

        try:
            credential = await self.store.get()
        except CredentialMissingError:
            self.logger.info("No stored credential, requesting one")
            await self._dispatch(SessionEvent.CREDENTIAL_MISSING)
            return
        except PersistenceError as e:
            self.logger.error(f"Could not read credential: {e}")
            self.error_tracker.record_error(e, {'phase': 'read_credential'})
            return

        self.credential = credential
        await self._dispatch(SessionEvent.CREDENTIAL_AVAILABLE)

    async def submit_credential(self, token: str) -> None:
        """
        Persist a credential entered by the operator and start the session.

        Args:
            token: The submitted secret
        """
        self.logger.info(f"Credential submitted ({mask_token(token)})")

        try:
            await self.store.put(token)
        except PersistenceError as e:
            self.logger.error(f"Could not save credential: {e}")
            self.error_tracker.record_error(e, {'phase': 'write_credential'})
            return

        await self.start()

    async def stop(self) -> None:
        """Cancel any pending reconnect and close the client session."""
        self._cancel_reconnect()

        try:
            await self.client.disconnect()
        except Exception as e:
            self.logger.error(f"Error during disconnect: {e}")

        self.logger.info("Session manager stopped")

    async def on_session_ready(self) -> None:
        """Client event: the session is authenticated."""
        self.logger.debug("Session client reported ready")
        await self._dispatch(SessionEvent.CONNECT_SUCCEEDED, self.client_generation)

    async def on_session_error(self, error: Any) -> None:
        """Client event: an error occurred. Logged only."""
        self.logger.error(f"Session client error: {error}")
        self.error_tracker.record_error(error, {
            'phase': 'session',
            'state': self.session.state.value,
            'generation': self.session.generation
        })
        await self._dispatch(SessionEvent.ERROR)

    async def on_session_disconnected(self) -> None:
        """Client event: the session dropped."""
        self.logger.warning(f"Session disconnected while {self.session.state.value}")
        await self._dispatch(SessionEvent.DISCONNECTED)

    def get_status(self) -> Dict[str, Any]:
        """
        Get a snapshot of the manager state.

        Returns:
            Dict[str, Any]: Session state, retry settings and error statistics
        """
        return {
            **self.session.to_dict(),
            "max_retries": self.max_retries,
            "reconnect_delay": self.reconnect_delay,
            "reconnect_pending": self.reconnect_task is not None and not self.reconnect_task.done(),
            "has_credential": self.credential is not None,
            "errors": self.error_tracker.get_error_statistics()
        }

    async def _dispatch(self, event: SessionEvent, generation: Optional[int] = None) -> None:
        transition = advance(self.session, event, generation, self.max_retries)
        self.session = transition.session

        if transition.changed:
            self._notify_state_change(transition)

        for effect in transition.effects:
            await self._run_effect(effect, transition)

        if transition.session.state == SessionState.FAILED:
            await self._dispatch(SessionEvent.RESET)

    def _notify_state_change(self, transition: Transition) -> None:
        old_state = transition.previous_state
        new_state = transition.session.state

        log_session_event(
            self.logger,
            f"{old_state.value} -> {new_state.value}",
            session_state=new_state.value,
            retry_count=transition.session.retry_count,
            generation=transition.session.generation
        )

        if new_state == SessionState.RECONNECTING:
            self.logger.info(
                f"Attempting to reconnect... {transition.session.retry_count}/{self.max_retries}"
            )
        elif new_state == SessionState.FAILED:
            self.logger.warning(
                f"Reconnect retries exhausted ({transition.session.retry_count}/{self.max_retries}), "
                "requesting a new credential"
            )

        for listener in self.state_listeners:
            try:
                listener(old_state, new_state, transition.session)
            except Exception as e:
                self.logger.error(f"Error in state listener: {e}")

    async def _run_effect(self, effect: Effect, transition: Transition) -> None:
        if effect == Effect.CONNECT:
            await self._connect(transition.session.generation)
        elif effect == Effect.REQUEST_CREDENTIAL:
            await self._direct(self.gate.show_credential_prompt)
        elif effect == Effect.SHOW_MAIN_SURFACE:
            await self._direct(self.gate.show_main_surface)
        elif effect == Effect.SCHEDULE_RECONNECT:
            self._schedule_reconnect(transition.session.generation)
        elif effect == Effect.CANCEL_RECONNECT:
            self._cancel_reconnect()

    async def _direct(self, directive: Callable) -> None:
        try:
            await directive()
        except Exception as e:
            name = getattr(directive, '__name__', repr(directive))
            self.logger.error(f"Presentation directive {name} failed: {e}")

    async def _connect(self, generation: int) -> None:
        # A superseded attempt may still be pending; never overlap connects
        async with self._connect_lock:
            if (self.session.state != SessionState.CONNECTING
                    or self.session.generation != generation):
                self.logger.debug(f"Skipping stale connect for generation {generation}")
                return

            self.client_generation = generation
            self.logger.info(f"Connecting with credential {mask_token(self.credential.token)}...")
            try:
                await self.client.connect(self.credential)
            except Exception as e:
                self.logger.error(f"Failed to connect: {e}")
                self.error_tracker.record_error(e, {'phase': 'connect', 'generation': generation})
                await self._dispatch(SessionEvent.CONNECT_FAILED, generation)
                return

        if self.session.generation == generation:
            self.logger.info("Successfully connected")
        else:
            self.logger.info(f"Connect for superseded generation {generation} completed, ignoring")
        await self._dispatch(SessionEvent.CONNECT_SUCCEEDED, generation)

    def _schedule_reconnect(self, generation: int) -> None:
        if self.reconnect_task is not None and not self.reconnect_task.done():
            if self.reconnect_generation == generation:
                self.logger.debug(f"Reconnect already scheduled for generation {generation}")
                return
            self._cancel_reconnect()

        self.reconnect_generation = generation
        self.reconnect_task = asyncio.create_task(self._reconnect_after(self.reconnect_delay, generation))
        self.logger.info(f"Reconnecting in {self.reconnect_delay} seconds...")

    def _cancel_reconnect(self) -> None:
        if self.reconnect_task is not None and not self.reconnect_task.done():
            self.reconnect_task.cancel()
            self.logger.debug(f"Cancelled reconnect for generation {self.reconnect_generation}")
        self.reconnect_task = None
        self.reconnect_generation = None

    async def _reconnect_after(self, delay: float, generation: int) -> None:
        await asyncio.sleep(delay)

        # The timer has fired; from here on it is no longer cancellable
        if self.reconnect_generation == generation:
            self.reconnect_task = None
            self.reconnect_generation = None

        try:
            await self._dispatch(SessionEvent.RECONNECT_DUE, generation)
        except Exception as e:
            self.logger.error(f"Unexpected error during reconnect: {e}", exc_info=True)
