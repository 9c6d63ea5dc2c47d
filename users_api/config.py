"""Configuration management for the users API."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple

import yaml

from .security import DEFAULT_DEV_TOKEN, parse_token_list

DEFAULT_ENVIRONMENT = "production"
DEFAULT_EXEMPT_PREFIXES: Tuple[str, ...] = ("/health", "/docs", "/redoc", "/openapi")

TOKENS_ENV = "API_TOKENS"
ENVIRONMENT_ENV = "USERS_API_ENVIRONMENT"
SEED_ENV = "USERS_API_SEED_DEMO_USER"
CONFIG_ENV = "USERS_API_CONFIG"


def _env_flag(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _as_flag(value: object, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return _env_flag(str(value), default)


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the users API."""

    api_tokens: Tuple[str, ...] = (DEFAULT_DEV_TOKEN,)
    environment: str = DEFAULT_ENVIRONMENT
    seed_demo_user: bool = True
    auth_exempt_prefixes: Tuple[str, ...] = DEFAULT_EXEMPT_PREFIXES

    @property
    def development(self) -> bool:
        return self.environment.strip().lower() == "development"

    @staticmethod
    def from_dict(data: Mapping[str, object], env: Optional[Mapping[str, str]] = None) -> "Settings":
        """Create :class:`Settings` from config file data and environment.

        Tokens come from the ``api_tokens`` key, then ``API_TOKENS``, then the
        development token. The environment name and seed flag read the
        environment variables first.
        """
        if env is None:
            env = os.environ

        raw_tokens = data.get("api_tokens")
        if raw_tokens is None:
            raw_tokens = env.get(TOKENS_ENV)
        if raw_tokens is None:
            raw_tokens = DEFAULT_DEV_TOKEN
        if not isinstance(raw_tokens, (str, list, tuple)):
            raise ValueError("api_tokens must be a comma separated string or a list of strings")
        tokens = tuple(parse_token_list(raw_tokens))
        if not tokens:
            raise ValueError("At least one API token must be configured")

        environment = env.get(ENVIRONMENT_ENV) or str(data.get("environment") or DEFAULT_ENVIRONMENT)

        if SEED_ENV in env:
            seed = _env_flag(env.get(SEED_ENV), True)
        else:
            seed = _as_flag(data.get("seed_demo_user"), True)

        raw_prefixes = data.get("auth_exempt_prefixes")
        if raw_prefixes is None:
            prefixes = DEFAULT_EXEMPT_PREFIXES
        elif isinstance(raw_prefixes, list):
            prefixes = tuple(str(item).strip() for item in raw_prefixes if str(item).strip())
        else:
            raise ValueError("auth_exempt_prefixes must be a list of path prefixes")

        return Settings(
            api_tokens=tokens,
            environment=environment.strip(),
            seed_demo_user=seed,
            auth_exempt_prefixes=prefixes,
        )


def resolve_config_path(env_value: Optional[str]) -> Optional[Path]:
    """Resolve the path to the optional YAML configuration file."""
    if env_value:
        return Path(env_value).expanduser().resolve(strict=False)
    candidate = (Path(__file__).resolve().parent.parent / "config" / "users_api.yaml").resolve(strict=False)
    if candidate.exists():
        return candidate
    return None


def load_settings(
    config_path: Optional[Path] = None,
    *,
    env: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Load settings from ``config_path`` (if any) and the environment."""
    if env is None:
        env = os.environ
    if config_path is None:
        config_path = resolve_config_path(env.get(CONFIG_ENV))

    raw: Dict[str, object] = {}
    if config_path is not None:
        with config_path.open("r", encoding="utf-8") as handle:
            loaded = yaml.safe_load(handle) or {}
        if not isinstance(loaded, dict):
            raise ValueError(f"Configuration file {config_path} must contain a mapping")
        raw = loaded

    return Settings.from_dict(raw, env)


__all__ = ["DEFAULT_EXEMPT_PREFIXES", "Settings", "load_settings", "resolve_config_path"]
