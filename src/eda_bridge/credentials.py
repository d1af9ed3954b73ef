"""OAuth2 token cache for the EDA API and its identity provider.

The store holds two (credential, grant) pairs. The primary pair authenticates
API calls; the secondary pair talks to Keycloak and is only used to look up
the primary client secret when it is not configured.

All token logic runs under one store-wide lock, backoff sleeps included, so a
failing login is never re-attempted by a second caller in parallel.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import Any, Protocol

import httpx

from .errors import (
    CredentialError,
    EmptyTokenError,
    LoginFailedError,
    SecretFieldMissingError,
    SecretNotFoundError,
)
from .log import get_logger, mask
from .models import ClientCredential, Grant, TokenResponse

_logger = get_logger("credentials")

# OAuth2 form keys
KEY_CLIENT_ID = "client_id"
KEY_CLIENT_SECRET = "client_secret"
KEY_USERNAME = "username"
KEY_PASSWORD = "password"
KEY_GRANT_TYPE = "grant_type"
KEY_PASSWORD_GRANT = "password"
KEY_REFRESH_GRANT = "refresh_token"

KEY_SECRET = "secret"

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_BACKOFF = 1.0

PRIMARY = "primary"
SECONDARY = "secondary"


class TokenTransport(Protocol):
    """What the store needs from the HTTP layer."""

    def login(self, auth_url: str, form: Mapping[str, str]) -> httpx.Response: ...

    def query(
        self,
        access_token: str,
        path: str,
        path_params: Mapping[str, str] | None = None,
        query_params: Mapping[str, str] | None = None,
    ) -> httpx.Response: ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def oauth_body(cred: ClientCredential, refresh_token: str = "") -> dict[str, str]:
    """Build the token request form for a password or refresh grant."""
    body = {KEY_CLIENT_ID: cred.client_id, KEY_CLIENT_SECRET: cred.client_secret}
    if refresh_token:
        body[KEY_GRANT_TYPE] = KEY_REFRESH_GRANT
        body[KEY_REFRESH_GRANT] = refresh_token
    else:
        body[KEY_GRANT_TYPE] = KEY_PASSWORD_GRANT
        body[KEY_USERNAME] = cred.username
        body[KEY_PASSWORD] = cred.password
    return body


class CredentialStore:
    """Thread-safe cache of the primary and secondary OAuth2 grants."""

    def __init__(
        self,
        transport: TokenTransport,
        primary: ClientCredential,
        secondary: ClientCredential,
        *,
        listing_path: str = "",
        listing_params: Mapping[str, str] | None = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        backoff: float = DEFAULT_BACKOFF,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.transport = transport
        self.listing_path = listing_path
        self.listing_params = dict(listing_params or {})
        self.max_attempts = max(max_attempts, 1)
        self.backoff = backoff
        self._sleep = sleep
        self._clock = clock
        self._lock = threading.Lock()
        self._creds: dict[str, ClientCredential] = {PRIMARY: primary, SECONDARY: secondary}
        self._grants: dict[str, Grant] = {PRIMARY: Grant(), SECONDARY: Grant()}

    @property
    def primary(self) -> ClientCredential:
        return self._creds[PRIMARY]

    @property
    def secondary(self) -> ClientCredential:
        return self._creds[SECONDARY]

    def grant(self, purpose: str) -> Grant:
        """Return a snapshot of the grant for ``purpose``."""
        with self._lock:
            return self._grants[purpose].model_copy()

    def primary_token(self) -> str:
        return self.get_access_token(PRIMARY)

    def secondary_token(self) -> str:
        return self.get_access_token(SECONDARY)

    def with_client_secret(self, secret: str) -> None:
        """Install the primary client secret and drop any cached primary grant."""
        with self._lock:
            self._creds[PRIMARY] = self._creds[PRIMARY].model_copy(update={"client_secret": secret})
            self._grants[PRIMARY].reset()

    def is_expired(self, grant: Grant) -> bool:
        if grant.issued_at is None:
            return False
        elapsed = (self._clock() - grant.issued_at).total_seconds()
        return elapsed >= grant.expires_in

    def get_access_token(self, purpose: str) -> str:
        """Return a valid access token for ``purpose``, logging in when needed.

        Raises:
            LoginFailedError: every login attempt failed
            EmptyTokenError: the token endpoint returned no access token
        """
        if purpose not in self._creds:
            raise ValueError(f"unknown credential purpose: {purpose}")

        with self._lock:
            cred = self._creds[purpose]
            grant = self._grants[purpose]
            expired = self.is_expired(grant)
            _logger.debug(
                "get_access_token(%s) url=%s expired=%s token=%s",
                purpose,
                cred.auth_url,
                expired,
                mask(grant.access_token),
            )

            if grant.issued_at is not None and not expired and grant.access_token:
                _logger.debug("reusing %s token %s", purpose, mask(grant.access_token))
                return grant.access_token

            refresh_token = grant.refresh_token if expired else ""
            self._login(cred, grant, oauth_body(cred, refresh_token))
            return grant.access_token

    def _login(self, cred: ClientCredential, grant: Grant, form: Mapping[str, str]) -> None:
        # caller holds self._lock
        last_error = ""
        for attempt in range(self.max_attempts):
            try:
                resp = self.transport.login(cred.auth_url, form)
                if resp.is_error:
                    last_error = f"HTTP {resp.status_code}: {resp.text}"
                else:
                    token = TokenResponse.model_validate(resp.json())
                    if not token.access_token:
                        raise EmptyTokenError(f"token endpoint {cred.auth_url} returned no access token")
                    grant.update_from(token, self._clock())
                    _logger.info(
                        "logged in to %s as %s (grant=%s, expires_in=%ss)",
                        cred.auth_url,
                        cred.client_id,
                        form.get(KEY_GRANT_TYPE),
                        token.expires_in,
                    )
                    return
            except (httpx.HTTPError, ValueError) as e:
                last_error = str(e)

            _logger.warning("login to %s failed (attempt %d/%d): %s", cred.auth_url, attempt + 1, self.max_attempts, last_error)
            if attempt < self.max_attempts - 1:
                delay = self.backoff * 2**attempt
                _logger.debug("retrying login to %s in %.1fs", cred.auth_url, delay)
                self._sleep(delay)

        raise LoginFailedError(cred.auth_url, self.max_attempts, last_error)

    def resolve_client_secret(self, client_id: str) -> str:
        """Look up the secret of ``client_id`` through the identity provider admin API.

        Raises:
            SecretNotFoundError: no client matches ``client_id``
            SecretFieldMissingError: the matching client has no secret
            CredentialError: the listing is unusable or ambiguous
        """
        token = self.secondary_token()
        try:
            resp = self.transport.query(token, self.listing_path, self.listing_params, {"clientId": client_id})
        except httpx.HTTPError as e:
            raise CredentialError(f"client listing failed: {e}") from e
        if resp.is_error:
            raise CredentialError(f"client listing failed: HTTP {resp.status_code}: {resp.text}")

        try:
            result: Any = resp.json()
        except ValueError as e:
            raise CredentialError(f"client listing returned invalid JSON: {e}") from e
        if not isinstance(result, list):
            raise CredentialError(f"client listing returned {type(result).__name__}, expected a list")

        _logger.debug("resolve_client_secret(%s) matches=%d", client_id, len(result))
        if not result:
            raise SecretNotFoundError(f"client not found: {client_id}")
        if len(result) > 1:
            raise CredentialError(f"client id {client_id} matched {len(result)} clients")

        match = result[0]
        secret = match.get(KEY_SECRET) if isinstance(match, dict) else None
        if not secret or not isinstance(secret, str):
            raise SecretFieldMissingError(f"client secret not found for client: {client_id}")
        _logger.debug("resolved client secret %s", mask(secret))
        return secret
