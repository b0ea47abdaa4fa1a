"""Single-flight ownership of one shared Stagehand session."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from ..config import SessionConfig, SessionOverrides, SessionSettings, resolve_session_config
from .base import AutomationSession, SessionFactory, SessionNotReadyError, SessionState

LOGGER = logging.getLogger(__name__)


class SessionManager:
    """Owns at most one ready automation session at a time.

    The first :meth:`acquire` builds and initialises a session; later calls
    return the same handle until :meth:`close` empties the slot. Concurrent
    first-time callers share a single initialisation.
    """

    def __init__(
        self,
        settings: Optional[SessionSettings] = None,
        factory: Optional[SessionFactory] = None,
    ) -> None:
        self._settings = settings
        self._factory = factory
        self._lock = asyncio.Lock()
        self._session: Optional[AutomationSession] = None
        self._config: Optional[SessionConfig] = None
        self._state = SessionState.UNINITIALIZED

    async def __aenter__(self) -> "SessionManager":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            await self.close()
            return
        try:
            await self.close()
        except Exception:
            LOGGER.warning("Session teardown failed after an error", exc_info=True)

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def session(self) -> Optional[AutomationSession]:
        return self._session

    @property
    def config(self) -> Optional[SessionConfig]:
        """Configuration snapshot of the active session, if any."""

        return self._config

    async def acquire(self, overrides: Optional[SessionOverrides] = None) -> AutomationSession:
        """Return the shared session, creating it on first use.

        ``overrides`` only apply when a new session is created; they are
        ignored while a session is already ready. The ready check on the
        fast path does not take the lock, so a caller racing a concurrent
        :meth:`close` may receive the handle that is being torn down.
        """

        session = self._session
        if session is not None:
            if overrides is not None:
                LOGGER.debug("Session already ready; ignoring configuration overrides")
            return session
        async with self._lock:
            if self._session is not None:
                return self._session
            config = resolve_session_config(overrides, self._settings)
            factory = self._factory or _default_factory()
            LOGGER.info(
                "Initialising %s session with model %s",
                config.env.value,
                config.model_name,
            )
            session = factory(config)
            try:
                await session.init()
            except BaseException:
                await _discard(session)
                raise
            self._session = session
            self._config = config
            self._state = SessionState.READY
            LOGGER.debug("Session ready")
            return session

    def current_page(self, session: Optional[AutomationSession] = None) -> Any:
        """Return the primary page of the ready session."""

        return self._require_ready(session).page

    def current_context(self, session: Optional[AutomationSession] = None) -> Any:
        """Return the browsing context of the ready session."""

        return self._require_ready(session).context

    async def close(self) -> None:
        """Tear down the active session; a no-op when there is none."""

        async with self._lock:
            session = self._session
            if session is None:
                return
            self._session = None
            self._config = None
            self._state = SessionState.CLOSED
            LOGGER.info("Closing session")
            await session.close()

    def _require_ready(self, session: Optional[AutomationSession]) -> AutomationSession:
        current = self._session
        if current is None:
            raise SessionNotReadyError(f"No ready session (state: {self._state.value})")
        if session is not None and session is not current:
            raise SessionNotReadyError("Session handle is not the active session")
        return current


async def _discard(session: AutomationSession) -> None:
    try:
        await session.close()
    except Exception:
        LOGGER.warning("Could not close session after failed initialisation", exc_info=True)


def _default_factory() -> SessionFactory:
    from ..factory import build_stagehand

    return build_stagehand
