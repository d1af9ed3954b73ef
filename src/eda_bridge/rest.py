"""Thin HTTP transport over httpx."""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping
from typing import Any
from urllib.parse import quote

import httpx

from .log import get_logger, mask

_logger = get_logger("rest")

HTTP_POST = "POST"
HTTP_GET = "GET"
HTTP_PUT = "PUT"
HTTP_PATCH = "PATCH"
HTTP_DELETE = "DELETE"
HTTP_HEAD = "HEAD"
HTTP_OPTIONS = "OPTIONS"

SUPPORTED_METHODS = frozenset({HTTP_POST, HTTP_GET, HTTP_PUT, HTTP_PATCH, HTTP_DELETE, HTTP_HEAD, HTTP_OPTIONS})

JSON_HEADERS = {"Content-Type": "application/json", "Accept": "application/json"}


def expand_path(path: str, path_params: Mapping[str, str] | None) -> str:
    """Substitute ``{name}`` placeholders with URL-quoted values."""
    for name, value in (path_params or {}).items():
        path = path.replace("{" + name + "}", quote(str(value), safe=""))
    return path


class RestClient:
    """HTTP client for the EDA API and its Keycloak proxy.

    Connection level failures (``httpx.TransportError``) are retried up to
    ``retries`` times, ``retry_interval`` seconds apart. HTTP error statuses
    are returned to the caller untouched.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 15.0,
        retries: int = 3,
        retry_interval: float = 5.0,
        verify: bool = True,
        debug: bool = False,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.base_url = base_url
        self.retries = max(retries, 0)
        self.retry_interval = retry_interval
        self.debug = debug
        self._sleep = sleep
        hooks = {"request": [self._log_request], "response": [self._log_response]} if debug else {}
        self._client = httpx.Client(base_url=base_url, timeout=timeout, verify=verify, event_hooks=hooks)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> RestClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def login(self, auth_url: str, form: Mapping[str, str]) -> httpx.Response:
        """POST an OAuth2 token request as form data."""
        return self._send(HTTP_POST, auth_url, data=dict(form), headers={"Accept": "application/json"})

    def query(
        self,
        access_token: str,
        path: str,
        path_params: Mapping[str, str] | None = None,
        query_params: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        return self.execute(HTTP_GET, path, access_token, path_params=path_params, query_params=query_params)

    def execute(
        self,
        method: str,
        path: str,
        access_token: str,
        body: Any = None,
        path_params: Mapping[str, str] | None = None,
        query_params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        method = method.upper()
        if method not in SUPPORTED_METHODS:
            raise ValueError(f"unsupported request: {method}")

        request_headers = dict(JSON_HEADERS if headers is None else headers)
        request_headers["Authorization"] = f"Bearer {access_token}"
        return self._send(
            method,
            expand_path(path, path_params),
            json=body,
            params=dict(query_params or {}),
            headers=request_headers,
        )

    def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        attempt = 0
        while True:
            try:
                return self._client.request(method, url, **kwargs)
            except httpx.TransportError as e:
                if attempt >= self.retries:
                    raise
                attempt += 1
                _logger.warning(
                    "%s %s failed (%s), retry %d/%d in %.1fs",
                    method,
                    url,
                    e,
                    attempt,
                    self.retries,
                    self.retry_interval,
                )
                self._sleep(self.retry_interval)

    @staticmethod
    def _log_request(request: httpx.Request) -> None:
        auth = request.headers.get("Authorization", "")
        _logger.debug("request %s %s auth=%s", request.method, request.url, mask(auth.removeprefix("Bearer ")))

    @staticmethod
    def _log_response(response: httpx.Response) -> None:
        _logger.debug("response %s %s -> %d", response.request.method, response.request.url, response.status_code)
