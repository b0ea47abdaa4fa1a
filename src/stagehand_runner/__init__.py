"""Drive a browser with natural-language instructions through Stagehand."""

from .browser.base import SessionNotReadyError, SessionState
from .browser.session import SessionManager
from .browser.settle import SettleOutcome, await_page_settled
from .config import SessionConfig, SessionEnvironment, SessionOverrides, SessionSettings

__all__ = [
    "SessionConfig",
    "SessionEnvironment",
    "SessionManager",
    "SessionNotReadyError",
    "SessionOverrides",
    "SessionSettings",
    "SessionState",
    "SettleOutcome",
    "await_page_settled",
]
