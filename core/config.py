"""Configuration for cronwise: ``config.yaml`` plus ``.env``, checked by pydantic.

String values may reference the environment as ``${VAR}`` or
``${VAR:-fallback}``. Invalid values raise ``pydantic.ValidationError``
at startup instead of surfacing later as odd behaviour.
"""

from __future__ import annotations

import logging
import os
import re
from datetime import timedelta
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from core.duration import parse_duration
from scheduler.cron import DEFAULT_SEARCH_LIMIT

logger = logging.getLogger(__name__)

DEFAULT_HOME = Path.home() / ".cronwise"
HOME_ENV_VAR = "CRONWISE_HOME"

_ENV_REF = re.compile(r"\$\{(\w+)(?::-([^}]*))?\}")


def expand_env(value: Any) -> Any:
    """Substitute ${VAR} / ${VAR:-fallback} in every string of a YAML tree.

    Unset variables without a fallback are left as written so that callers
    can tell a missing secret from an empty one.
    """
    if isinstance(value, dict):
        return {key: expand_env(item) for key, item in value.items()}
    if isinstance(value, list):
        return [expand_env(item) for item in value]
    if not isinstance(value, str):
        return value

    def substitute(match: re.Match) -> str:
        name, fallback = match.group(1), match.group(2)
        if name in os.environ:
            return os.environ[name]
        if fallback is not None:
            return fallback
        logger.warning("Environment variable %s not set", name)
        return match.group(0)

    return _ENV_REF.sub(substitute, value)



class ServerConfig(BaseModel):
    host: str = "127.0.0.1"
    port: int = 8321


class AIProviderConfig(BaseModel):
    api_key: str = ""
    model: str = ""
    base_url: str = ""
    max_tokens: int = 1024
    temperature: float = 0.2


class AIConfig(BaseModel):
    default_provider: str = "gemini"
    providers: dict[str, AIProviderConfig] = Field(default_factory=dict)


class RateLimitConfig(BaseModel):
    """Sliding window per client: `requests` per `window`."""

    enabled: bool = True
    requests: int = Field(default=10, ge=1)
    window: str = "10s"
    # Key clients on X-Forwarded-For. Enable only behind a trusted proxy.
    trust_forwarded: bool = False

    @field_validator("window")
    @classmethod
    def _check_window(cls, value: str) -> str:
        if parse_duration(value) <= timedelta(0):
            raise ValueError("window must be positive")
        return value

    @property
    def window_seconds(self) -> float:
        return parse_duration(self.window).total_seconds()


class HistoryConfig(BaseModel):
    max_items: int = Field(default=10, ge=1)


class CronConfig(BaseModel):
    occurrence_count: int = Field(default=5, ge=0)
    # Minutes of simulated time the occurrence search may cover.
    search_limit: int = Field(default=DEFAULT_SEARCH_LIMIT, ge=1)


class LoggingConfig(BaseModel):
    level: str = "INFO"


class AppConfig(BaseModel):
    """Top-level application configuration."""

    home_dir: str = str(DEFAULT_HOME)
    server: ServerConfig = Field(default_factory=ServerConfig)
    ai: AIConfig = Field(default_factory=AIConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    history: HistoryConfig = Field(default_factory=HistoryConfig)
    cron: CronConfig = Field(default_factory=CronConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def home_path(self) -> Path:
        """Resolved home directory as a Path."""
        return Path(self.home_dir).expanduser()



def resolve_home() -> Path:
    """The state directory: $CRONWISE_HOME, else ~/.cronwise."""
    return Path(os.environ.get(HOME_ENV_VAR) or DEFAULT_HOME).expanduser()


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        logger.warning("No config file at %s, using defaults", path)
        return {}
    with path.open() as f:
        data = yaml.safe_load(f)
    logger.info("Loaded config from %s", path)
    return data if isinstance(data, dict) else {}


# Providers can be configured by their API key alone, e.g. GEMINI_API_KEY.
_PROVIDER_ENV_KEYS = {
    "gemini": "GEMINI_API_KEY",
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
}


def _apply_env_api_keys(raw: dict) -> None:
    ai = raw.get("ai") or {}
    providers = ai.get("providers") or {}
    for name, env_var in _PROVIDER_ENV_KEYS.items():
        api_key = os.environ.get(env_var)
        if not api_key:
            continue
        provider = providers[name] = providers.get(name) or {}
        if not provider.get("api_key"):
            provider["api_key"] = api_key
    if providers:
        ai["providers"] = providers
        raw["ai"] = ai


def load_config(
    config_path: str | Path | None = None,
    env_path: str | Path | None = None,
) -> AppConfig:
    """Build the AppConfig and make sure the home directory exists.

    The .env file is loaded first so that both ${VAR} references and the
    provider API key variables can come from it. Paths default to
    ``config.yaml`` and ``.env`` inside the home directory.
    """
    home = resolve_home()
    env_file = Path(env_path) if env_path else home / ".env"
    config_file = Path(config_path) if config_path else home / "config.yaml"

    if env_file.exists():
        load_dotenv(env_file)
        logger.info("Loaded environment from %s", env_file)

    raw = expand_env(_read_yaml(config_file))
    if os.environ.get(HOME_ENV_VAR):
        raw["home_dir"] = os.environ[HOME_ENV_VAR]
    _apply_env_api_keys(raw)

    config = AppConfig(**raw)
    config.home_path.mkdir(parents=True, exist_ok=True)
    return config
