"""Keycloak admin REST API representations.

Example realm (YAML, either naming style is accepted):
    realm: demo
    enabled: true
    displayName: Demo realm
    users:
      - username: alice
        email: alice@example.com
        credentials:
          - type: password
            value: ${ALICE_PASSWORD}
    groups:
      - name: admins
        subGroups:
          - name: ops
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from keycloak_operator.models.base import APIModel


class KeycloakCredential(APIModel):
    """User credential."""

    type: str = "password"
    value: str = ""
    temporary: bool = False


class FederatedIdentity(APIModel):
    """Link between a user and an external identity provider account."""

    identity_provider: str = ""
    user_id: str = ""
    user_name: str = ""


class KeycloakAPIUser(APIModel):
    """User representation."""

    id: str | None = None
    username: str
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    email_verified: bool | None = None
    enabled: bool = True
    credentials: list[KeycloakCredential] | None = None
    realm_roles: list[str] | None = None
    client_roles: dict[str, list[str]] | None = None
    groups: list[str] | None = None
    federated_identities: list[FederatedIdentity] | None = None
    required_actions: list[str] | None = None
    attributes: dict[str, list[str]] | None = None


class KeycloakUserRole(APIModel):
    """Realm or client role, as used in role mappings."""

    id: str | None = None
    name: str
    description: str | None = None
    composite: bool | None = None
    client_role: bool | None = None
    container_id: str | None = None


class KeycloakAPIClient(APIModel):
    """OIDC client representation."""

    id: str | None = None
    client_id: str
    name: str | None = None
    description: str | None = None
    secret: str | None = None
    enabled: bool = True
    protocol: str | None = None
    public_client: bool | None = None
    bearer_only: bool | None = None
    service_accounts_enabled: bool | None = None
    standard_flow_enabled: bool | None = None
    direct_access_grants_enabled: bool | None = None
    root_url: str | None = None
    base_url: str | None = None
    redirect_uris: list[str] | None = None
    web_origins: list[str] | None = None
    default_client_scopes: list[str] | None = None
    optional_client_scopes: list[str] | None = None


class KeycloakIdentityProvider(APIModel):
    """Identity provider instance."""

    alias: str
    display_name: str | None = None
    provider_id: str = "oidc"
    enabled: bool = True
    trust_email: bool | None = None
    store_token: bool | None = None
    first_broker_login_flow_alias: str | None = None
    config: dict[str, str] = Field(default_factory=dict)


class KeycloakRealmGroup(APIModel):
    """Group with nested sub-groups."""

    id: str | None = None
    name: str
    path: str | None = None
    attributes: dict[str, list[str]] | None = None
    realm_roles: list[str] | None = None
    client_roles: dict[str, list[str]] | None = None
    sub_groups: list[KeycloakRealmGroup] = Field(default_factory=list)


class KeycloakAPIRealm(APIModel):
    """Realm representation."""

    id: str | None = None
    realm: str
    enabled: bool = True
    display_name: str | None = None
    users: list[KeycloakAPIUser] | None = None
    clients: list[KeycloakAPIClient] | None = None
    groups: list[KeycloakRealmGroup] | None = None
    identity_providers: list[KeycloakIdentityProvider] | None = None
    user_federation_providers: list[dict[str, Any]] | None = None


class AuthenticationExecutionInfo(APIModel):
    """One execution step of an authentication flow."""

    id: str | None = None
    provider_id: str | None = None
    display_name: str | None = None
    alias: str | None = None
    requirement: str | None = None
    level: int | None = None
    index: int | None = None
    authentication_config: str | None = None


class AuthenticatorConfig(APIModel):
    """Configuration attached to an authenticator execution."""

    id: str | None = None
    alias: str
    config: dict[str, str] = Field(default_factory=dict)


class KeycloakAPIPasswordReset(APIModel):
    """Body of a reset-password request."""

    type: str = "password"
    value: str
    temporary: bool = False


class TokenResponse(BaseModel):
    """OAuth token endpoint response (snake_case on the wire)."""

    access_token: str = ""
    expires_in: int | None = None
    refresh_token: str | None = None
    token_type: str | None = None
    error: str = ""
    error_description: str = ""
