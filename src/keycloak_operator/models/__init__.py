"""Specification and Keycloak API models."""

from keycloak_operator.models.api import (
    AuthenticationExecutionInfo,
    AuthenticatorConfig,
    FederatedIdentity,
    KeycloakAPIClient,
    KeycloakAPIPasswordReset,
    KeycloakAPIRealm,
    KeycloakAPIUser,
    KeycloakCredential,
    KeycloakIdentityProvider,
    KeycloakRealmGroup,
    KeycloakUserRole,
    TokenResponse,
)
from keycloak_operator.models.base import APIModel, YamlModel, resolve_env
from keycloak_operator.models.keycloak import (
    Keycloak,
    KeycloakDeploymentSpec,
    KeycloakExternal,
    KeycloakExternalAccess,
    KeycloakExternalDatabase,
    KeycloakPodDisruptionBudget,
    KeycloakStatus,
)
from keycloak_operator.models.realm import KeycloakRealm, RedirectorIdentityProviderOverride

__all__ = [
    "APIModel",
    "AuthenticationExecutionInfo",
    "AuthenticatorConfig",
    "FederatedIdentity",
    "Keycloak",
    "KeycloakAPIClient",
    "KeycloakAPIPasswordReset",
    "KeycloakAPIRealm",
    "KeycloakAPIUser",
    "KeycloakCredential",
    "KeycloakDeploymentSpec",
    "KeycloakExternal",
    "KeycloakExternalAccess",
    "KeycloakExternalDatabase",
    "KeycloakIdentityProvider",
    "KeycloakPodDisruptionBudget",
    "KeycloakRealm",
    "KeycloakRealmGroup",
    "KeycloakStatus",
    "KeycloakUserRole",
    "RedirectorIdentityProviderOverride",
    "TokenResponse",
    "YamlModel",
    "resolve_env",
]
