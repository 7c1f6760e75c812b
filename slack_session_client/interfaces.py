"""
Abstract interfaces for the session manager's collaborators.

The session manager consumes a session client (the connection to the
external service) and issues directives to a presentation gate (whatever
decides which surface the operator sees). Both are swappable without
touching the lifecycle logic.
"""

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Optional

from .models import Credential
from .utils import get_logger


CredentialHandler = Callable[[str], Awaitable[None]]


class SessionListener(ABC):
    """Receiver of session client lifecycle events."""

    @abstractmethod
    async def on_session_ready(self) -> None:
        """The session is authenticated and usable."""
        pass

    @abstractmethod
    async def on_session_error(self, error: Any) -> None:
        """The client reported an error. Does not imply a disconnect."""
        pass

    @abstractmethod
    async def on_session_disconnected(self) -> None:
        """The live session dropped."""
        pass


class SessionClient(ABC):
    """
    Capability for connecting to the external service.

    Implementations deliver ``ready``, ``error`` and ``disconnected``
    events to the single subscribed listener through the ``emit_*``
    helpers.
    """

    def __init__(self):
        self.listener: Optional[SessionListener] = None
        self.logger = get_logger(__name__)

    def subscribe(self, listener: SessionListener) -> None:
        """
        Register the event listener, replacing any previous one.

        Args:
            listener: Receiver of lifecycle events
        """
        self.listener = listener

    @abstractmethod
    async def connect(self, credential: Credential) -> None:
        """
        Open a session with the given credential.

        Raises:
            SessionConnectError: If the service rejects the attempt
        """
        pass

    async def disconnect(self) -> None:
        """Close the session, if any. Optional for implementations."""
        pass

    async def emit_ready(self) -> None:
        if self.listener:
            await self.listener.on_session_ready()

    async def emit_error(self, error: Any) -> None:
        if self.listener:
            await self.listener.on_session_error(error)
        else:
            self.logger.error(f"Session client error with no listener: {error}")

    async def emit_disconnected(self) -> None:
        if self.listener:
            await self.listener.on_session_disconnected()


class PresentationGate(ABC):
    """
    Target for surface directives.

    The core only tells the gate which surface should be visible; it never
    asks what is on screen. Credentials typed by the operator come back
    through ``credential_submitted``.
    """

    def __init__(self):
        self._credential_handler: Optional[CredentialHandler] = None

    def set_credential_handler(self, handler: CredentialHandler) -> None:
        """Register the coroutine that receives submitted credentials."""
        self._credential_handler = handler

    async def credential_submitted(self, token: str) -> None:
        """
        Forward a credential entered by the operator.

        Args:
            token: The submitted secret
        """
        if self._credential_handler is None:
            raise RuntimeError("No credential handler registered on the presentation gate")
        await self._credential_handler(token)

    @abstractmethod
    async def show_credential_prompt(self) -> None:
        """Ask the operator for a credential."""
        pass

    @abstractmethod
    async def show_main_surface(self) -> None:
        """Show the main surface, closing any open credential prompt."""
        pass

    async def close(self) -> None:
        """Release resources held by the gate. Called once on shutdown."""
        pass
