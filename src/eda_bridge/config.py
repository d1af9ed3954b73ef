"""Provider configuration loading with environment variable fallback."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from dotenv import dotenv_values
from pydantic import ValidationError

from .errors import ConfigError
from .models import ProviderConfig, parse_duration
from .types import EnvMap

# Environment variables
ENV_BASE_URL = "BASE_URL"
ENV_KC_REALM = "KEYCLOAK_MASTER_REALM"
ENV_KC_CLIENT_ID = "KEYCLOAK_ADMIN_CLIENT_ID"
ENV_KC_USERNAME = "KEYCLOAK_ADMIN_USERNAME"
ENV_KC_PASSWORD = "KEYCLOAK_ADMIN_PASSWORD"
ENV_EDA_CLIENT_ID = "CLIENT_ID"
ENV_EDA_CLIENT_SECRET = "CLIENT_SECRET"
ENV_EDA_REALM = "REALM"
ENV_EDA_USERNAME = "USERNAME"
ENV_EDA_PASSWORD = "PASSWORD"
ENV_TLS_SKIP_VERIFY = "TLS_SKIP_VERIFY"
ENV_REST_DEBUG = "REST_DEBUG"
ENV_REST_TIMEOUT = "REST_TIMEOUT"
ENV_REST_RETRIES = "REST_RETRIES"
ENV_REST_RETRY_INTERVAL = "REST_RETRY_INTERVAL"

# Default values
DEF_KC_REALM = "master"
DEF_KC_CLIENT_ID = "admin-cli"
DEF_EDA_REALM = "eda"
DEF_EDA_CLIENT_ID = "eda"
DEF_USERNAME = "admin"
DEF_PASSWORD = "admin"
DEF_REST_TIMEOUT = 15.0
DEF_REST_RETRIES = 3
DEF_REST_RETRY_INTERVAL = 5.0

_TRUE_VALUES = ("1", "t", "true", "yes", "on")
_FALSE_VALUES = ("0", "f", "false", "no", "off")


def get_env(key: str, env: Mapping[str, str] | None = None) -> str:
    """Return a non-empty environment variable or raise ConfigError."""
    env = os.environ if env is None else env
    value = env.get(key, "")
    if value:
        return value
    raise ConfigError(f"unable to find environment variable: {key}")


def get_env_with_default(key: str, default: str, env: Mapping[str, str] | None = None) -> str:
    env = os.environ if env is None else env
    return env.get(key) or default


def get_env_bool(key: str, default: bool, env: Mapping[str, str] | None = None) -> bool:
    """Read a boolean; unparsable values fall back to the default."""
    env = os.environ if env is None else env
    value = (env.get(key) or "").strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    return default


def get_env_int(key: str, default: int, env: Mapping[str, str] | None = None) -> int:
    env = os.environ if env is None else env
    value = env.get(key)
    if value:
        try:
            return int(value)
        except ValueError:
            pass
    return default


def get_env_duration(key: str, default: float, env: Mapping[str, str] | None = None) -> float:
    env = os.environ if env is None else env
    value = env.get(key)
    if value:
        try:
            return parse_duration(value)
        except ValueError:
            pass
    return default


def apply_env_defaults(cfg: ProviderConfig, env: Mapping[str, str] | None = None) -> ProviderConfig:
    """Fill unset configuration values from the environment, then defaults.

    Returns a new config; the argument is left untouched.
    """
    env = os.environ if env is None else env
    updates: dict[str, Any] = {}

    def fill(name: str, value: Any) -> None:
        if not getattr(cfg, name):
            updates[name] = value

    fill("base_url", get_env_with_default(ENV_BASE_URL, "", env))
    fill("kc_username", get_env_with_default(ENV_KC_USERNAME, DEF_USERNAME, env))
    fill("kc_password", get_env_with_default(ENV_KC_PASSWORD, DEF_PASSWORD, env))
    fill("kc_realm", get_env_with_default(ENV_KC_REALM, DEF_KC_REALM, env))
    fill("kc_client_id", get_env_with_default(ENV_KC_CLIENT_ID, DEF_KC_CLIENT_ID, env))
    fill("eda_username", get_env_with_default(ENV_EDA_USERNAME, DEF_USERNAME, env))
    fill("eda_password", get_env_with_default(ENV_EDA_PASSWORD, DEF_PASSWORD, env))
    fill("eda_realm", get_env_with_default(ENV_EDA_REALM, DEF_EDA_REALM, env))
    fill("eda_client_id", get_env_with_default(ENV_EDA_CLIENT_ID, DEF_EDA_CLIENT_ID, env))
    fill("eda_client_secret", get_env_with_default(ENV_EDA_CLIENT_SECRET, "", env))
    fill("tls_skip_verify", get_env_bool(ENV_TLS_SKIP_VERIFY, False, env))
    fill("rest_debug", get_env_bool(ENV_REST_DEBUG, False, env))
    fill("rest_timeout", get_env_duration(ENV_REST_TIMEOUT, DEF_REST_TIMEOUT, env))
    fill("rest_retries", get_env_int(ENV_REST_RETRIES, DEF_REST_RETRIES, env))
    fill("rest_retry_interval", get_env_duration(ENV_REST_RETRY_INTERVAL, DEF_REST_RETRY_INTERVAL, env))

    return cfg.model_copy(update=updates)


def load_config(
    path: Path | None = None,
    *,
    env: Mapping[str, str] | None = None,
    dotenv_path: Path | None = None,
) -> ProviderConfig:
    """Load the provider configuration.

    Values come from the YAML file at ``path`` (if any), then from the
    environment. A dotenv file only supplies variables the environment does
    not already set.
    """
    data: dict[str, Any] = {}
    if path is not None:
        try:
            loaded = yaml.safe_load(Path(path).read_text())
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to read config file {path}: {e}") from e
        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")
        data = loaded

    merged_env: EnvMap = {}
    if dotenv_path is not None:
        if not Path(dotenv_path).exists():
            raise ConfigError(f"Dotenv file not found: {dotenv_path}")
        merged_env.update({k: str(v) for k, v in dotenv_values(dotenv_path).items() if v is not None})
    merged_env.update(os.environ if env is None else env)

    try:
        cfg = ProviderConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid provider configuration: {e}") from e
    return apply_env_defaults(cfg, merged_env)
