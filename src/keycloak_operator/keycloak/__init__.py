"""Keycloak admin API client."""

from keycloak_operator.keycloak.client import GroupChange, KeycloakClient, plan_group_changes
from keycloak_operator.keycloak.errors import (
    KeycloakAuthError,
    KeycloakDecodeError,
    KeycloakError,
    KeycloakRequestError,
    KeycloakSerializationError,
)
from keycloak_operator.keycloak.factory import authenticated_client
from keycloak_operator.keycloak.settings import KeycloakSettings

__all__ = [
    "GroupChange",
    "KeycloakAuthError",
    "KeycloakClient",
    "KeycloakDecodeError",
    "KeycloakError",
    "KeycloakRequestError",
    "KeycloakSerializationError",
    "KeycloakSettings",
    "authenticated_client",
    "plan_group_changes",
]
