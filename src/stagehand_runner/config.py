"""Configuration models for stagehand runner sessions."""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Annotated, Optional, Union

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_MODEL_NAME = "google/gemini-2.0-flash"

# Checked in order; the first non-empty value is used.
MODEL_API_KEY_ENV_VARS = (
    "GOOGLE_API_KEY",
    "GOOGLE_GENERATIVE_AI_API_KEY",
    "ANTHROPIC_API_KEY",
    "OPENAI_API_KEY",
)


class SessionEnvironment(str, enum.Enum):
    """Where the browser runs."""

    LOCAL = "LOCAL"
    REMOTE_MANAGED = "BROWSERBASE"


_TRUTHY = {"true", "1", "yes", "on"}


def _coerce_verbose(value: object) -> object:
    if isinstance(value, bool):
        return 1 if value else 0
    if isinstance(value, str):
        text = value.strip().lower()
        if text in {"0", "1", "2"}:
            return int(text)
        # Unrecognised flag values mean "off".
        return 1 if text in _TRUTHY else 0
    return value


def _coerce_flag(value: object) -> object:
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY
    return value


VerboseLevel = Annotated[int, BeforeValidator(_coerce_verbose), Field(ge=0, le=2)]
EnvFlag = Annotated[bool, BeforeValidator(_coerce_flag)]


class SessionConfig(BaseModel):
    """Immutable snapshot of the settings a session was created with."""

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    env: SessionEnvironment = SessionEnvironment.LOCAL
    headless: bool = False
    verbose: VerboseLevel = 0
    enable_caching: bool = True
    model_name: str = DEFAULT_MODEL_NAME
    model_api_key: Optional[SecretStr] = None
    browserbase_api_key: Optional[SecretStr] = None
    browserbase_project_id: Optional[str] = None
    dom_settle_timeout: Optional[float] = Field(
        default=None,
        description="Seconds stagehand waits for the DOM to settle before acting.",
    )


class SessionOverrides(BaseModel):
    """Caller-supplied values that win over environment defaults."""

    model_config = ConfigDict(protected_namespaces=())

    env: Optional[SessionEnvironment] = None
    headless: Optional[bool] = None
    verbose: Optional[VerboseLevel] = None
    enable_caching: Optional[bool] = None
    model_name: Optional[str] = None
    model_api_key: Optional[SecretStr] = None
    browserbase_api_key: Optional[SecretStr] = None
    browserbase_project_id: Optional[str] = None
    dom_settle_timeout: Optional[float] = None


class SessionSettings(BaseSettings):
    """Environment-derived defaults for new sessions."""

    model_config = SettingsConfigDict(
        env_file=(".env",),
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
        protected_namespaces=(),
        populate_by_name=True,
    )

    browserbase_api_key: Optional[SecretStr] = Field(
        default=None, validation_alias=AliasChoices("BROWSERBASE_API_KEY")
    )
    browserbase_project_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("BROWSERBASE_PROJECT_ID")
    )
    headless: EnvFlag = Field(default=False, validation_alias=AliasChoices("HEADLESS"))
    verbose: VerboseLevel = Field(
        default=0, validation_alias=AliasChoices("STAGEHAND_VERBOSE")
    )
    model_name: str = Field(
        default=DEFAULT_MODEL_NAME, validation_alias=AliasChoices("STAGEHAND_MODEL_NAME")
    )
    google_api_key: Optional[SecretStr] = Field(
        default=None, validation_alias=AliasChoices("GOOGLE_API_KEY")
    )
    google_generative_ai_api_key: Optional[SecretStr] = Field(
        default=None, validation_alias=AliasChoices("GOOGLE_GENERATIVE_AI_API_KEY")
    )
    anthropic_api_key: Optional[SecretStr] = Field(
        default=None, validation_alias=AliasChoices("ANTHROPIC_API_KEY")
    )
    openai_api_key: Optional[SecretStr] = Field(
        default=None, validation_alias=AliasChoices("OPENAI_API_KEY")
    )

    def resolve_model_api_key(self) -> Optional[SecretStr]:
        """Return the first configured model credential in priority order."""

        for name in MODEL_API_KEY_ENV_VARS:
            value: Optional[SecretStr] = getattr(self, name.lower())
            if value is not None and value.get_secret_value():
                return value
        return None

    def default_environment(self) -> SessionEnvironment:
        if self.browserbase_api_key is not None and self.browserbase_api_key.get_secret_value():
            return SessionEnvironment.REMOTE_MANAGED
        return SessionEnvironment.LOCAL


def load_settings(env_file: Union[Path, None] = None) -> SessionSettings:
    """Read session defaults from the environment and an optional ``.env`` file."""

    if env_file is not None:
        return SessionSettings(_env_file=env_file)
    return SessionSettings()


def resolve_session_config(
    overrides: Optional[SessionOverrides] = None,
    settings: Optional[SessionSettings] = None,
) -> SessionConfig:
    """Merge caller overrides over environment defaults into a config snapshot."""

    settings = settings if settings is not None else load_settings()
    explicit = overrides.model_dump(exclude_none=True) if overrides else {}
    defaults = {
        "env": settings.default_environment(),
        "headless": settings.headless,
        "verbose": settings.verbose,
        "model_name": settings.model_name,
        "model_api_key": settings.resolve_model_api_key(),
        "browserbase_api_key": settings.browserbase_api_key,
        "browserbase_project_id": settings.browserbase_project_id,
    }
    return SessionConfig(**{**defaults, **explicit})
