"""Exceptions raised by the EDA bridge."""

from __future__ import annotations


class EdaBridgeError(Exception):
    """Base class for every error raised by this package."""


class ConfigError(EdaBridgeError):
    """Invalid or incomplete provider configuration."""


# Marshalling


class MarshalError(EdaBridgeError):
    """Conversion between an attribute tree and native data failed.

    Attributes:
        path: Dotted location of the offending value ("" for the root)
    """

    def __init__(self, message: str, path: str = "") -> None:
        self.reason = message
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)


class NilInputError(MarshalError):
    """A value or type was missing where one is required."""


class TypeMismatchError(MarshalError):
    """Native data does not have the shape the attribute type expects."""

    def __init__(self, expected: str, got: object, path: str = "") -> None:
        self.expected = expected
        self.got = got if isinstance(got, str) else type(got).__name__
        super().__init__(f"type mismatch: expected {expected} got {self.got}", path)


class UnsupportedTypeError(MarshalError):
    """The attribute type or value is outside the supported set."""


class ConversionError(MarshalError):
    """A value has the right shape but cannot be represented in the target."""


# Credentials


class CredentialError(EdaBridgeError):
    """Token acquisition or client secret resolution failed."""


class LoginFailedError(CredentialError):
    """Every login attempt failed.

    Attributes:
        attempts: Number of attempts made
        last_error: Description of the final failure
    """

    def __init__(self, auth_url: str, attempts: int, last_error: str) -> None:
        self.auth_url = auth_url
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"login to {auth_url} failed after {attempts} attempts: {last_error}")


class EmptyTokenError(CredentialError):
    """The token endpoint answered successfully but returned no access token."""


class SecretNotFoundError(CredentialError):
    """No client matches the requested client id."""


class SecretFieldMissingError(CredentialError):
    """The matching client carries no secret."""


# API boundary


class HttpError(EdaBridgeError):
    """The backend API answered with a non-success status."""

    def __init__(self, status: int, body: str, method: str = "", path: str = "") -> None:
        self.status = status
        self.body = body
        self.method = method
        self.path = path
        prefix = f"{method} {path}: " if method else ""
        super().__init__(f"{prefix}HTTP {status}: {body}")
