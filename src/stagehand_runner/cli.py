"""Command line interface for stagehand-runner."""

from __future__ import annotations

import asyncio
import enum
import json
import logging
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version
from pathlib import Path
from typing import Annotated, Any, Optional

import typer
from pydantic import BaseModel

from .browser.session import SessionManager
from .config import SessionOverrides, load_settings
from .models import ArticleList, PageSummary, TaskDefinition
from .tasks import capture_screenshot, close_quietly, extract_data, fill_form, run_agent, run_task

app = typer.Typer(help="Drive a browser with natural-language instructions")

LOGGER = logging.getLogger(__name__)


class SchemaChoice(str, enum.Enum):
    ARTICLES = "articles"
    SUMMARY = "summary"


_SCHEMAS: dict[SchemaChoice, type[BaseModel]] = {
    SchemaChoice.ARTICLES: ArticleList,
    SchemaChoice.SUMMARY: PageSummary,
}

EnvFileOption = Annotated[
    Optional[Path],
    typer.Option("--env-file", help="Path to an .env file with default configuration values."),
]
HeadlessOption = Annotated[
    Optional[bool],
    typer.Option("--headless/--headed", help="Run the browser in headless mode (or headed)."),
]
ModelOption = Annotated[
    Optional[str],
    typer.Option("--model", help="Model used to ground natural-language instructions."),
]
ScreenshotOption = Annotated[
    Optional[Path],
    typer.Option("--screenshot", help="Save a full-page screenshot to this path."),
]


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Configure logging before executing any command."""

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@app.command()
def version() -> None:
    """Print the package version."""

    try:
        typer.echo(get_version("stagehand-runner"))
    except PackageNotFoundError:  # pragma: no cover - when running from source tree
        typer.echo("0.0.0")


@app.command()
def extract(
    url: Annotated[str, typer.Argument(help="Page to extract from.")] = "https://news.ycombinator.com",
    instruction: Annotated[
        str,
        typer.Option("--instruction", "-i", help="What to extract."),
    ] = "extract the top 5 articles from the page, including title and url",
    schema: Annotated[
        SchemaChoice,
        typer.Option("--schema", help="Shape of the extracted data."),
    ] = SchemaChoice.ARTICLES,
    env_file: EnvFileOption = None,
    headless: HeadlessOption = None,
    model: ModelOption = None,
) -> None:
    """Extract structured data from a web page."""

    manager = _build_manager(env_file)

    async def _run() -> BaseModel:
        try:
            session = await manager.acquire(_overrides(headless, model))
            return await extract_data(session, url, instruction, _SCHEMAS[schema])
        finally:
            await close_quietly(manager)

    data = _run_or_exit(_run())
    typer.echo(json.dumps(data.model_dump(mode="json"), indent=2))


@app.command("fill-form")
def fill_form_command(
    url: Annotated[str, typer.Argument(help="Page holding the form.")],
    actions: Annotated[
        list[str],
        typer.Option("--action", "-a", help="Natural-language action; repeat for several."),
    ],
    screenshot: ScreenshotOption = None,
    env_file: EnvFileOption = None,
    headless: HeadlessOption = None,
    model: ModelOption = None,
) -> None:
    """Fill in a form using natural-language actions."""

    manager = _build_manager(env_file)

    async def _run() -> list[Any]:
        try:
            session = await manager.acquire(_overrides(headless, model))
            results = await fill_form(session, url, actions)
            if screenshot:
                await capture_screenshot(manager.current_page(session), screenshot)
            return results
        finally:
            await close_quietly(manager)

    results = _run_or_exit(_run())
    typer.echo(f"Performed {len(results)} action(s).")


@app.command()
def agent(
    url: Annotated[str, typer.Argument(help="Starting page.")],
    instruction: Annotated[
        str,
        typer.Option("--instruction", "-i", help="Multi-step task for the agent."),
    ],
    max_steps: Annotated[
        int,
        typer.Option("--max-steps", min=1, help="Upper bound on agent steps."),
    ] = 20,
    screenshot: ScreenshotOption = None,
    env_file: EnvFileOption = None,
    headless: HeadlessOption = None,
    model: ModelOption = None,
) -> None:
    """Run an autonomous multi-step agent task."""

    manager = _build_manager(env_file)

    async def _run() -> Any:
        try:
            session = await manager.acquire(_overrides(headless, model))
            config = manager.config
            api_key = None
            if config is not None and config.model_api_key is not None:
                api_key = config.model_api_key.get_secret_value()
            result = await run_agent(
                session,
                url,
                instruction,
                model_name=config.model_name if config is not None else None,
                api_key=api_key,
                max_steps=max_steps,
            )
            if screenshot:
                await capture_screenshot(manager.current_page(session), screenshot)
            return result
        finally:
            await close_quietly(manager)

    result = _run_or_exit(_run())
    typer.echo(f"Agent result: {result}")


@app.command()
def run(
    url: Annotated[str, typer.Argument(help="Page to summarise.")] = "https://example.com",
    screenshot: ScreenshotOption = None,
    env_file: EnvFileOption = None,
    headless: HeadlessOption = None,
    model: ModelOption = None,
) -> None:
    """Run the template task: summarise a page and optionally save a screenshot."""

    manager = _build_manager(env_file)
    task = TaskDefinition(url=url, screenshot_path=screenshot)
    summary = _run_or_exit(run_task(manager, task, _overrides(headless, model)))
    typer.echo(f"Extracted data: {summary.model_dump_json()}")


def _build_manager(env_file: Optional[Path]) -> SessionManager:
    return SessionManager(settings=load_settings(env_file))


def _overrides(headless: Optional[bool], model: Optional[str]) -> Optional[SessionOverrides]:
    if headless is None and model is None:
        return None
    return SessionOverrides(headless=headless, model_name=model)


def _run_or_exit(coro: Any) -> Any:
    try:
        return asyncio.run(coro)
    except Exception as exc:
        LOGGER.debug("Command failed", exc_info=True)
        typer.echo(f"Task failed: {exc}", err=True)
        raise typer.Exit(code=1) from exc


if __name__ == "__main__":
    app()
