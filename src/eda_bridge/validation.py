"""Semantic validation of the provider configuration."""

from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import urlparse

if TYPE_CHECKING:
    from .models import ProviderConfig
    from .types import Errors


def validate_config(cfg: ProviderConfig) -> Errors:
    """
    Perform semantic validation on a resolved provider configuration.

    Args:
        cfg: The configuration, usually after environment defaults were applied

    Returns:
        A list of validation errors, empty if valid
    """
    errors = []

    errors.extend(validate_base_url(cfg))
    errors.extend(validate_rest_settings(cfg))
    errors.extend(validate_credentials(cfg))

    return errors


def validate_base_url(cfg: ProviderConfig) -> Errors:
    """Validate that the base URL is set and uses http or https."""
    errors = []

    if not cfg.base_url:
        errors.append("Missing base URL: set 'base_url' or BASE_URL")
        return errors

    parsed = urlparse(cfg.base_url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        errors.append(f"Invalid base URL '{cfg.base_url}': must be an http(s) URL")

    return errors


def validate_rest_settings(cfg: ProviderConfig) -> Errors:
    errors = []

    if cfg.rest_timeout <= 0:
        errors.append(f"Invalid REST timeout {cfg.rest_timeout}s: must be positive")
    if cfg.rest_retries < 0:
        errors.append(f"Invalid REST retries {cfg.rest_retries}: must not be negative")
    if cfg.rest_retry_interval < 0:
        errors.append(f"Invalid REST retry interval {cfg.rest_retry_interval}s: must not be negative")

    return errors


def validate_credentials(cfg: ProviderConfig) -> Errors:
    """
    Validate both credential sets.

    Rules:
    - realms and client ids are always required
    - Keycloak admin credentials are only needed when no EDA client secret is set
    """
    errors = []

    for label, value in (
        ("EDA realm", cfg.eda_realm),
        ("EDA client id", cfg.eda_client_id),
        ("Keycloak realm", cfg.kc_realm),
        ("Keycloak client id", cfg.kc_client_id),
    ):
        if not value:
            errors.append(f"Missing {label}")

    if not cfg.eda_client_secret and not (cfg.kc_username and cfg.kc_password):
        errors.append("Missing Keycloak admin username/password, required to look up the EDA client secret")

    return errors
