from __future__ import annotations

import asyncio
from typing import Any, Optional

import pytest

from stagehand_runner.config import MODEL_API_KEY_ENV_VARS, SessionConfig, SessionSettings

_SESSION_ENV_VARS = (
    "BROWSERBASE_API_KEY",
    "BROWSERBASE_PROJECT_ID",
    "HEADLESS",
    "STAGEHAND_VERBOSE",
    "STAGEHAND_MODEL_NAME",
    *MODEL_API_KEY_ENV_VARS,
)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in _SESSION_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def settings(clean_env: pytest.MonkeyPatch) -> SessionSettings:
    return SessionSettings(_env_file=None)


class FakePage:
    def __init__(self) -> None:
        self.visited: list[str] = []
        self.load_states: list[tuple[str, Optional[int]]] = []
        self.acts: list[str] = []
        self.extract_calls: list[tuple[str, type]] = []
        self.extract_result: Any = {}
        self.extract_error: Optional[Exception] = None
        self.screenshots: list[str] = []

    async def goto(self, url: str) -> None:
        self.visited.append(url)

    async def wait_for_load_state(self, state: str, timeout: Optional[int] = None) -> None:
        self.load_states.append((state, timeout))

    async def act(self, action: str) -> dict[str, Any]:
        self.acts.append(action)
        return {"success": True, "action": action}

    async def extract(self, instruction: str, schema: type) -> Any:
        self.extract_calls.append((instruction, schema))
        if self.extract_error is not None:
            raise self.extract_error
        return self.extract_result

    async def screenshot(self, path: str, full_page: bool = False) -> bytes:
        self.screenshots.append(path)
        with open(path, "wb") as handle:
            handle.write(b"png")
        return b"png"


class FakeAgent:
    def __init__(self, **kwargs: Any) -> None:
        self.kwargs = kwargs
        self.executions: list[dict[str, Any]] = []

    async def execute(self, **kwargs: Any) -> dict[str, Any]:
        self.executions.append(kwargs)
        return {"completed": True, "message": "done"}


class FakeSession:
    def __init__(
        self,
        config: SessionConfig,
        init_error: Optional[Exception] = None,
        close_error: Optional[Exception] = None,
    ) -> None:
        self.config = config
        self.page = FakePage()
        self.context = object()
        self.init_calls = 0
        self.close_calls = 0
        self.agents: list[FakeAgent] = []
        self._init_error = init_error
        self._close_error = close_error

    async def init(self) -> None:
        self.init_calls += 1
        # Yield so concurrent acquirers can pile up behind the first one.
        await asyncio.sleep(0)
        if self._init_error is not None:
            raise self._init_error

    async def close(self) -> None:
        self.close_calls += 1
        if self._close_error is not None:
            raise self._close_error

    def agent(self, **kwargs: Any) -> FakeAgent:
        created = FakeAgent(**kwargs)
        self.agents.append(created)
        return created


class RecordingFactory:
    """Builds fake sessions and remembers every one it created."""

    def __init__(self) -> None:
        self.created: list[FakeSession] = []
        self.init_errors: list[Exception] = []
        self.close_error: Optional[Exception] = None

    def __call__(self, config: SessionConfig) -> FakeSession:
        init_error = self.init_errors.pop(0) if self.init_errors else None
        session = FakeSession(config, init_error=init_error, close_error=self.close_error)
        self.created.append(session)
        return session

    @property
    def init_calls(self) -> int:
        return sum(session.init_calls for session in self.created)


@pytest.fixture
def factory() -> RecordingFactory:
    return RecordingFactory()
