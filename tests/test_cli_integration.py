from __future__ import annotations

from pathlib import Path

from typer.testing import CliRunner

from stagehand_runner.browser.session import SessionManager
from stagehand_runner.cli import app
from stagehand_runner.config import SessionSettings


def _install_manager(monkeypatch, settings, factory) -> None:
    def fake_build_manager(env_file):  # type: ignore[no-untyped-def]
        return SessionManager(settings=settings, factory=factory)

    monkeypatch.setattr("stagehand_runner.cli._build_manager", fake_build_manager)


class _ConfiguringFactory:
    def __init__(self, factory, extract_result=None, extract_error=None) -> None:
        self._factory = factory
        self._extract_result = extract_result
        self._extract_error = extract_error

    def __call__(self, config):  # type: ignore[no-untyped-def]
        session = self._factory(config)
        session.page.extract_result = self._extract_result
        session.page.extract_error = self._extract_error
        return session


def test_extract_command_prints_json(monkeypatch, settings, factory) -> None:
    configuring = _ConfiguringFactory(
        factory, extract_result={"heading": "Example Domain", "description": "Sample"}
    )
    _install_manager(monkeypatch, settings, configuring)

    result = CliRunner().invoke(
        app,
        ["extract", "https://example.com", "--schema", "summary", "--headless", "--model", "openai/gpt-4o"],
    )

    assert result.exit_code == 0, result.output
    assert '"heading": "Example Domain"' in result.stdout
    assert '"description": "Sample"' in result.stdout
    session = factory.created[0]
    assert session.config.headless is True
    assert session.config.model_name == "openai/gpt-4o"
    assert session.page.visited == ["https://example.com"]
    assert session.close_calls == 1


def test_extract_command_failure_exits_and_closes(monkeypatch, settings, factory) -> None:
    configuring = _ConfiguringFactory(factory, extract_error=RuntimeError("extraction failed"))
    _install_manager(monkeypatch, settings, configuring)

    result = CliRunner().invoke(app, ["extract", "https://news.ycombinator.com"])

    assert result.exit_code == 1
    assert "Task failed: extraction failed" in result.output
    assert factory.created[0].close_calls == 1


def test_fill_form_command_runs_each_action(monkeypatch, settings, factory, tmp_path: Path) -> None:
    _install_manager(monkeypatch, settings, factory)
    shot = tmp_path / "form-filled.png"

    result = CliRunner().invoke(
        app,
        [
            "fill-form",
            "https://httpbin.org/forms/post",
            "--action",
            "fill the customer name field with John Doe",
            "--action",
            "fill the telephone field with 555-1234",
            "--screenshot",
            str(shot),
        ],
    )

    assert result.exit_code == 0, result.output
    assert "Performed 2 action(s)." in result.stdout
    session = factory.created[0]
    assert session.page.acts == [
        "fill the customer name field with John Doe",
        "fill the telephone field with 555-1234",
    ]
    assert shot.exists()
    assert session.close_calls == 1


def test_agent_command_uses_session_model(monkeypatch, clean_env, factory) -> None:
    clean_env.setenv("GOOGLE_API_KEY", "g-key")
    _install_manager(monkeypatch, SessionSettings(_env_file=None), factory)

    result = CliRunner().invoke(
        app,
        [
            "agent",
            "https://news.ycombinator.com",
            "--instruction",
            "Click on the first article link and tell me its title",
            "--max-steps",
            "3",
        ],
    )

    assert result.exit_code == 0, result.output
    assert "Agent result:" in result.stdout
    agent = factory.created[0].agents[0]
    assert agent.kwargs["model"] == "google/gemini-2.0-flash"
    assert agent.kwargs["options"] == {"apiKey": "g-key"}
    assert agent.executions[0]["max_steps"] == 3
    assert factory.created[0].close_calls == 1


def test_run_command_runs_template_task(monkeypatch, settings, factory, tmp_path: Path) -> None:
    configuring = _ConfiguringFactory(
        factory, extract_result={"heading": "Example Domain", "description": "Sample"}
    )
    _install_manager(monkeypatch, settings, configuring)
    shot = tmp_path / "result.png"

    result = CliRunner().invoke(app, ["run", "https://example.com", "--screenshot", str(shot)])

    assert result.exit_code == 0, result.output
    assert "Example Domain" in result.stdout
    assert shot.exists()
    assert factory.created[0].close_calls == 1


def test_version_command() -> None:
    result = CliRunner().invoke(app, ["version"])

    assert result.exit_code == 0
    assert result.stdout.strip()


def test_run_command_passes_overrides_and_skips_screenshot(monkeypatch, settings, factory, tmp_path: Path) -> None:
    configuring = _ConfiguringFactory(
        factory, extract_result={"heading": "Example Domain", "description": "Sample"}
    )
    _install_manager(monkeypatch, settings, configuring)
    monkeypatch.chdir(tmp_path)

    result = CliRunner().invoke(
        app,
        ["run", "https://example.com", "--headless", "--model", "openai/gpt-4o"],
    )

    assert result.exit_code == 0, result.output
    session = factory.created[0]
    assert session.config.headless is True
    assert session.config.model_name == "openai/gpt-4o"
    assert session.page.screenshots == []
    assert session.close_calls == 1
