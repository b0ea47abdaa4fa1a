"""Task routines that drive an acquired session with natural language."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any, Optional, TypeVar

from pydantic import BaseModel

from .browser.base import AutomationSession
from .browser.session import SessionManager
from .browser.settle import DEFAULT_SETTLE_TIMEOUT, SettleOutcome, await_page_settled
from .config import SessionOverrides
from .models import PageSummary, TaskDefinition

LOGGER = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)


async def navigate(page: Any, url: str, settle_timeout: float = DEFAULT_SETTLE_TIMEOUT) -> SettleOutcome:
    """Open ``url`` and wait until the page has settled."""

    LOGGER.info("Navigating to %s", url)
    await page.goto(url)
    return await await_page_settled(page, settle_timeout)


async def extract_data(
    session: AutomationSession,
    url: Optional[str],
    instruction: str,
    schema: type[SchemaT],
    settle_timeout: float = DEFAULT_SETTLE_TIMEOUT,
) -> SchemaT:
    """Extract data matching ``schema`` from ``url`` (or the current page)."""

    page = session.page
    if url:
        await navigate(page, url, settle_timeout)
    LOGGER.info("Extracting: %s", instruction)
    result = await page.extract(instruction, schema=schema)
    return _validate_extraction(result, schema)


async def fill_form(
    session: AutomationSession,
    url: Optional[str],
    actions: Iterable[str],
    settle_timeout: float = DEFAULT_SETTLE_TIMEOUT,
) -> list[Any]:
    """Perform each natural-language action in order and collect the results."""

    page = session.page
    if url:
        await navigate(page, url, settle_timeout)
    results: list[Any] = []
    for action in actions:
        LOGGER.info("Acting: %s", action)
        results.append(await page.act(action))
    return results


async def run_agent(
    session: AutomationSession,
    url: Optional[str],
    instruction: str,
    *,
    model_name: Optional[str] = None,
    api_key: Optional[str] = None,
    max_steps: int = 20,
    settle_timeout: float = DEFAULT_SETTLE_TIMEOUT,
) -> Any:
    """Hand a multi-step instruction to the autonomous agent."""

    if url:
        await navigate(session.page, url, settle_timeout)
    agent_kwargs: dict[str, Any] = {}
    if model_name:
        agent_kwargs["model"] = model_name
    if api_key:
        agent_kwargs["options"] = {"apiKey": api_key}
    agent = session.agent(**agent_kwargs)
    LOGGER.info("Running agent: %s", instruction)
    return await agent.execute(instruction=instruction, max_steps=max_steps)


async def capture_screenshot(page: Any, path: Path) -> Path:
    """Write a full-page PNG to ``path``, creating parent directories."""

    path.parent.mkdir(parents=True, exist_ok=True)
    await page.screenshot(path=str(path), full_page=True)
    LOGGER.info("Screenshot saved to %s", path)
    return path


async def run_task(
    manager: SessionManager,
    task: TaskDefinition,
    overrides: Optional[SessionOverrides] = None,
) -> PageSummary:
    """Template flow: open a page, extract a summary and save a screenshot.

    On failure an error screenshot is attempted before the exception is
    re-raised. The session is always closed.
    """

    page = None
    try:
        session = await manager.acquire(overrides)
        page = manager.current_page(session)
        summary = await extract_data(
            session,
            task.url,
            task.instruction,
            PageSummary,
            settle_timeout=task.settle_timeout,
        )
        if task.screenshot_path:
            await capture_screenshot(page, task.screenshot_path)
        return summary
    except Exception:
        LOGGER.exception("Task failed")
        if page is not None and task.error_screenshot_path:
            try:
                await capture_screenshot(page, task.error_screenshot_path)
            except Exception:  # pragma: no cover - best effort diagnostics
                LOGGER.warning("Could not capture error screenshot", exc_info=True)
        raise
    finally:
        await close_quietly(manager)


async def close_quietly(manager: SessionManager) -> None:
    """Close the manager, logging teardown failures instead of raising them."""

    try:
        await manager.close()
    except Exception:
        LOGGER.warning("Session teardown failed", exc_info=True)


def _validate_extraction(result: Any, schema: type[SchemaT]) -> SchemaT:
    if isinstance(result, schema):
        return result
    if isinstance(result, BaseModel):
        result = result.model_dump()
    if isinstance(result, Mapping) and "data" in result and "data" not in schema.model_fields:
        result = result["data"]
    return schema.model_validate(result)
