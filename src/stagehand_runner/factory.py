"""Factories for constructing components from configuration."""

from __future__ import annotations

from typing import Any

from stagehand import Stagehand, StagehandConfig

from .config import SessionConfig


def build_stagehand_config(config: SessionConfig) -> StagehandConfig:
    options: dict[str, Any] = {
        "env": config.env.value,
        "model_name": config.model_name,
        "verbose": config.verbose,
        "enable_caching": config.enable_caching,
        "local_browser_launch_options": {"headless": config.headless},
    }
    if config.model_api_key is not None:
        options["model_client_options"] = {"apiKey": config.model_api_key.get_secret_value()}
    if config.browserbase_api_key is not None:
        options["api_key"] = config.browserbase_api_key.get_secret_value()
    if config.browserbase_project_id:
        options["project_id"] = config.browserbase_project_id
    if config.dom_settle_timeout is not None:
        options["dom_settle_timeout_ms"] = int(config.dom_settle_timeout * 1000)
    return StagehandConfig(**options)


def build_stagehand(config: SessionConfig) -> Stagehand:
    return Stagehand(config=build_stagehand_config(config))
