"""Configuration and credential models."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .casing import to_lower_camel

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ns|us|µs|ms|s|m|h)")
_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def parse_duration(value: Any) -> float:
    """Parse a duration into seconds.

    Accepts numbers of seconds and Go style strings such as "15s", "500ms"
    or "1m30s". A bare numeric string is read as seconds.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        return float(value)
    if not isinstance(value, str):
        raise ValueError(f"Invalid duration: {value!r}")

    text = value.strip()
    try:
        return float(text)
    except ValueError:
        pass

    pos, total = 0, 0.0
    for match in _DURATION_PART.finditer(text):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    if pos == 0 or pos != len(text):
        raise ValueError(f"Invalid duration: {value!r}")
    return total


def _field(default: Any, alias: str) -> Any:
    # snake_case attribute name, plain camelCase and the acronym-aware API key
    return Field(default=default, validation_alias=AliasChoices(alias, _camel(alias), to_lower_camel(alias)))


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(p.capitalize() for p in rest)


class ProviderConfig(BaseModel):
    """Provider configuration.

    Empty values are filled from the environment and defaults by
    `config.apply_env_defaults`.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    base_url: str = _field("", "base_url")
    kc_username: str = _field("", "kc_username")
    kc_password: str = _field("", "kc_password")
    kc_realm: str = _field("", "kc_realm")
    kc_client_id: str = _field("", "kc_client_id")
    eda_username: str = _field("", "eda_username")
    eda_password: str = _field("", "eda_password")
    eda_realm: str = _field("", "eda_realm")
    eda_client_id: str = _field("", "eda_client_id")
    eda_client_secret: str = _field("", "eda_client_secret")
    tls_skip_verify: bool = _field(False, "tls_skip_verify")
    rest_debug: bool = _field(False, "rest_debug")
    rest_timeout: float = _field(0.0, "rest_timeout")
    rest_retries: int = _field(0, "rest_retries")
    rest_retry_interval: float = _field(0.0, "rest_retry_interval")

    @field_validator("rest_timeout", "rest_retry_interval", mode="before")
    @classmethod
    def _parse_duration(cls, v: Any) -> float:
        if v is None or v == "":
            return 0.0
        return parse_duration(v)

    @field_validator(
        "base_url",
        "kc_username",
        "kc_password",
        "kc_realm",
        "kc_client_id",
        "eda_username",
        "eda_password",
        "eda_realm",
        "eda_client_id",
        "eda_client_secret",
        mode="before",
    )
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v


class ClientCredential(BaseModel):
    """OAuth2 client credentials for one token endpoint."""

    model_config = ConfigDict(frozen=True)

    auth_url: str
    client_id: str
    client_secret: str = ""
    username: str = ""
    password: str = ""


class TokenResponse(BaseModel):
    """Body of a successful token endpoint response."""

    model_config = ConfigDict(extra="ignore")

    access_token: str = ""
    refresh_token: str = ""
    scope: str = ""
    token_type: str = ""
    expires_in: float = 0.0

    @field_validator("access_token", "refresh_token", "scope", "token_type", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("expires_in", mode="before")
    @classmethod
    def _none_to_zero(cls, v: Any) -> Any:
        return 0.0 if v is None else v


class Grant(BaseModel):
    """Cached token material, updated in place after every login."""

    access_token: str = ""
    refresh_token: str = ""
    scope: str = ""
    token_type: str = ""
    expires_in: float = 0.0
    issued_at: datetime | None = None

    def update_from(self, token: TokenResponse, issued_at: datetime) -> None:
        self.access_token = token.access_token
        self.refresh_token = token.refresh_token
        self.scope = token.scope
        self.token_type = token.token_type
        self.expires_in = token.expires_in
        self.issued_at = issued_at

    def reset(self) -> None:
        self.update_from(TokenResponse(), None)  # type: ignore[arg-type]
