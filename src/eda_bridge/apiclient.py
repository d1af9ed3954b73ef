"""Authenticated client for the EDA REST API."""

from __future__ import annotations

import time
from collections.abc import Mapping
from typing import Any

from .credentials import CredentialStore
from .errors import ConfigError, HttpError
from .log import get_logger
from .models import ClientCredential, ProviderConfig
from .rest import HTTP_DELETE, HTTP_GET, HTTP_POST, HTTP_PUT, RestClient

_logger = get_logger("apiclient")

# URLs
KEYCLOAK_URL = "/core/httpproxy/v1/keycloak"
OAUTH_URL = KEYCLOAK_URL + "/realms/{realm}/protocol/openid-connect/token"
CLIENT_URL = KEYCLOAK_URL + "/admin/realms/{realm}/clients"


def oauth_url(realm: str) -> str:
    return OAUTH_URL.format(realm=realm)


class EdaApiClient:
    """CRUD access to the EDA API with cached bearer tokens.

    When ``eda_client_secret`` is empty the secret is fetched from Keycloak at
    construction time, using the Keycloak admin credentials.
    """

    def __init__(
        self,
        config: ProviderConfig,
        *,
        rest: RestClient | None = None,
        **store_options: Any,
    ) -> None:
        if config is None:
            raise ConfigError("config cannot be None")
        if not config.base_url:
            raise ConfigError("base_url is required")

        self.config = config
        self.rest = rest or RestClient(
            config.base_url,
            timeout=config.rest_timeout,
            retries=config.rest_retries,
            retry_interval=config.rest_retry_interval,
            verify=not config.tls_skip_verify,
            debug=config.rest_debug,
        )
        primary = ClientCredential(
            auth_url=oauth_url(config.eda_realm),
            client_id=config.eda_client_id,
            client_secret=config.eda_client_secret,
            username=config.eda_username,
            password=config.eda_password,
        )
        secondary = ClientCredential(
            auth_url=oauth_url(config.kc_realm),
            client_id=config.kc_client_id,
            username=config.kc_username,
            password=config.kc_password,
        )
        self.credentials = CredentialStore(
            self.rest,
            primary,
            secondary,
            listing_path=CLIENT_URL,
            listing_params={"realm": config.eda_realm},
            **store_options,
        )
        if not config.eda_client_secret:
            try:
                secret = self.credentials.resolve_client_secret(config.eda_client_id)
            except BaseException:
                if rest is None:
                    self.rest.close()
                raise
            self.credentials.with_client_secret(secret)

    def close(self) -> None:
        self.rest.close()

    def __enter__(self) -> EdaApiClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def create(self, path: str, path_params: Mapping[str, str] | None = None, body: Any = None) -> Any:
        return self.execute(HTTP_POST, path, path_params=path_params, body=body)

    def get(self, path: str, path_params: Mapping[str, str] | None = None) -> Any:
        return self.execute(HTTP_GET, path, path_params=path_params)

    def get_by_query(
        self,
        path: str,
        path_params: Mapping[str, str] | None = None,
        query_params: Mapping[str, str] | None = None,
    ) -> Any:
        return self.execute(HTTP_GET, path, path_params=path_params, query_params=query_params)

    def update(self, path: str, path_params: Mapping[str, str] | None = None, body: Any = None) -> Any:
        return self.execute(HTTP_PUT, path, path_params=path_params, body=body)

    def delete(self, path: str, path_params: Mapping[str, str] | None = None) -> Any:
        return self.execute(HTTP_DELETE, path, path_params=path_params)

    def execute(
        self,
        method: str,
        path: str,
        *,
        path_params: Mapping[str, str] | None = None,
        query_params: Mapping[str, str] | None = None,
        body: Any = None,
    ) -> Any:
        """Send one authenticated request and return the decoded JSON body.

        Returns None for empty responses. Raises HttpError on a non-2xx status.
        """
        token = self.credentials.primary_token()
        start = time.monotonic()
        resp = self.rest.execute(method, path, token, body=body, path_params=path_params, query_params=query_params)
        _logger.info(
            "execute %s %s path_params=%s query_params=%s status=%d time=%.3fs",
            method,
            path,
            dict(path_params or {}),
            dict(query_params or {}),
            resp.status_code,
            time.monotonic() - start,
        )
        if not resp.is_success:
            raise HttpError(resp.status_code, resp.text, method, path)
        if not resp.content:
            return None
        return resp.json()
