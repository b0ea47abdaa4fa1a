"""Browser session abstractions."""

from __future__ import annotations

import enum
from typing import Any, Callable, Protocol

from ..config import SessionConfig


class SessionState(str, enum.Enum):
    """Lifecycle of the session slot held by a manager."""

    UNINITIALIZED = "uninitialized"
    READY = "ready"
    CLOSED = "closed"


class SessionNotReadyError(RuntimeError):
    """Raised when a page or context is requested without a ready session."""


class AutomationSession(Protocol):
    """The subset of ``stagehand.Stagehand`` the manager relies on."""

    page: Any
    context: Any

    async def init(self) -> Any:
        """Launch the local browser or attach to the remote session."""

    async def close(self) -> Any:
        """Release browser and remote session resources."""

    def agent(self, **kwargs: Any) -> Any:
        """Create an autonomous agent bound to this session."""


SessionFactory = Callable[[SessionConfig], AutomationSession]
