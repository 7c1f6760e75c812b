"""
Pure transition function for the session lifecycle.

``advance`` maps (session, event) to the next session value and the list
of effects the caller must carry out. It performs no I/O, so every rule of
the reconnection policy can be checked without a live client.

Rules:
- Disconnected: a stored credential starts a connect, a missing one asks
  the operator for a credential.
- Connecting: success activates the session and resets the retry counter;
  failure drops back to Disconnected without touching the counter.
- A disconnect increments the retry counter in Active, Reconnecting and
  Connecting. Reaching ``max_retries`` fails the session; otherwise Active
  schedules one reconnect timer and the other two states wait on the
  timer or connect already pending.
- Failed always resets to Disconnected with a fresh credential prompt.
- Errors never change state.

Every transition that issues a connect or abandons a cycle bumps
``generation``; timer and connect results carrying an older generation
are ignored.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from ..models import Session, SessionState


DEFAULT_MAX_RETRIES = 3


class SessionEvent(Enum):
    """Inputs to the lifecycle state machine."""
    CREDENTIAL_AVAILABLE = "credential_available"
    CREDENTIAL_MISSING = "credential_missing"
    CONNECT_SUCCEEDED = "connect_succeeded"
    CONNECT_FAILED = "connect_failed"
    DISCONNECTED = "disconnected"
    ERROR = "error"
    RECONNECT_DUE = "reconnect_due"
    RESET = "reset"


class Effect(Enum):
    """Side effects requested by a transition."""
    CONNECT = "connect"
    REQUEST_CREDENTIAL = "request_credential"
    SHOW_MAIN_SURFACE = "show_main_surface"
    SCHEDULE_RECONNECT = "schedule_reconnect"
    CANCEL_RECONNECT = "cancel_reconnect"


@dataclass(frozen=True)
class Transition:
    """Result of applying one event."""
    session: Session
    effects: Tuple[Effect, ...] = ()
    previous_state: Optional[SessionState] = None

    @property
    def changed(self) -> bool:
        return self.previous_state is not None and self.previous_state != self.session.state


def _move(session: Session, state: SessionState, *effects: Effect, **changes) -> Transition:
    if state != session.state:
        changes.setdefault('last_transition', datetime.now())
    return Transition(
        session=replace(session, state=state, **changes),
        effects=tuple(effects),
        previous_state=session.state
    )


def _stay(session: Session, *effects: Effect) -> Transition:
    return Transition(session=session, effects=tuple(effects), previous_state=session.state)


def _is_current(session: Session, generation: Optional[int]) -> bool:
    return generation is None or generation == session.generation


def advance(session: Session, event: SessionEvent, generation: Optional[int] = None,
            max_retries: int = DEFAULT_MAX_RETRIES) -> Transition:
    """
    Apply an event to the session.

    Args:
        session: Current session value (not modified)
        event: Event to apply
        generation: Generation the event belongs to, for timer and connect
            results. None means "the current one".
        max_retries: Disconnects tolerated before the session fails

    Returns:
        Transition: The next session value and the effects to perform
    """
    state = session.state

    if event == SessionEvent.CREDENTIAL_AVAILABLE:
        if state == SessionState.DISCONNECTED:
            return _move(session, SessionState.CONNECTING, Effect.CONNECT,
                         generation=session.generation + 1)
        return _stay(session)

    if event == SessionEvent.CREDENTIAL_MISSING:
        if state == SessionState.DISCONNECTED:
            return _stay(session, Effect.REQUEST_CREDENTIAL)
        return _stay(session)

    if event == SessionEvent.CONNECT_SUCCEEDED:
        if state == SessionState.CONNECTING and _is_current(session, generation):
            return _move(session, SessionState.ACTIVE, Effect.SHOW_MAIN_SURFACE, retry_count=0)
        return _stay(session)

    if event == SessionEvent.CONNECT_FAILED:
        if state == SessionState.CONNECTING and _is_current(session, generation):
            return _move(session, SessionState.DISCONNECTED)
        return _stay(session)

    if event == SessionEvent.DISCONNECTED:
        if state not in (SessionState.ACTIVE, SessionState.RECONNECTING, SessionState.CONNECTING):
            return _stay(session)

        retry_count = min(session.retry_count + 1, max_retries)
        if retry_count >= max_retries:
            return _move(session, SessionState.FAILED, Effect.CANCEL_RECONNECT,
                         retry_count=retry_count)
        if state == SessionState.ACTIVE:
            return _move(session, SessionState.RECONNECTING, Effect.SCHEDULE_RECONNECT,
                         retry_count=retry_count)
        return _move(session, state, retry_count=retry_count)

    if event == SessionEvent.RECONNECT_DUE:
        if state == SessionState.RECONNECTING and _is_current(session, generation):
            return _move(session, SessionState.CONNECTING, Effect.CONNECT,
                         generation=session.generation + 1)
        return _stay(session)

    if event == SessionEvent.RESET:
        if state == SessionState.FAILED:
            return _move(session, SessionState.DISCONNECTED, Effect.REQUEST_CREDENTIAL,
                         retry_count=0, generation=session.generation + 1)
        return _stay(session)

    # SessionEvent.ERROR and anything unknown leave the session untouched
    return _stay(session)
