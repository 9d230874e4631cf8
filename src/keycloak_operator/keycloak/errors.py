"""Keycloak admin API errors."""

from __future__ import annotations


class KeycloakError(Exception):
    """Base exception for Keycloak API errors."""

    def __init__(self, message: str, status_code: int | None = None, kind: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.kind = kind


class KeycloakAuthError(KeycloakError):
    """Authentication failed or no token is available."""

    pass


class KeycloakRequestError(KeycloakError):
    """The request could not be sent or no response was received."""

    pass


class KeycloakDecodeError(KeycloakError):
    """A response body could not be decoded."""

    pass


class KeycloakSerializationError(KeycloakError):
    """A request body could not be serialized."""

    pass
