"""Keycloak Admin API client.

Wraps the Keycloak Admin REST API behind four primitives with fixed
idempotency rules, plus typed operations for:
- Realms and realm groups
- Clients
- Users, credentials and federated identities
- User realm/client role mappings
- Identity providers
- Authentication executions and authenticator configs

Primitive rules:
- create: 201/204 succeed, 409 (already exists) is logged and treated as success
- update: any 2xx succeeds
- get: 404 returns None, anything but 200 raises
- list: non-2xx raises, an undecodable body is logged and yields []
- delete: 204/404 (and any other 2xx) succeed
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar

import httpx
from pydantic import BaseModel
from pydantic_core import PydanticSerializationError

from keycloak_operator.keycloak.errors import (
    KeycloakAuthError,
    KeycloakDecodeError,
    KeycloakError,
    KeycloakRequestError,
    KeycloakSerializationError,
)
from keycloak_operator.keycloak.settings import KeycloakSettings
from keycloak_operator.models.base import APIModel
from keycloak_operator.models.api import (
    AuthenticationExecutionInfo,
    AuthenticatorConfig,
    FederatedIdentity,
    KeycloakAPIClient,
    KeycloakAPIPasswordReset,
    KeycloakAPIRealm,
    KeycloakAPIUser,
    KeycloakIdentityProvider,
    KeycloakRealmGroup,
    KeycloakUserRole,
    TokenResponse,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

BROWSER_FLOW = "browser"
REDIRECTOR_PROVIDER_ID = "identity-provider-redirector"


def _identity(body: Any) -> Any:
    return body


def _to_payload(obj: Any) -> Any:
    if isinstance(obj, APIModel):
        return obj.to_api()
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json", by_alias=True, exclude_none=True)
    if isinstance(obj, list):
        return [_to_payload(item) for item in obj]
    return obj


@dataclass
class GroupChange:
    """One step of an additive realm group merge.

    ``existing_id`` is None for a group that must be created; ``children``
    are the sub-groups to create underneath it.
    """

    group: KeycloakRealmGroup
    existing_id: str | None = None
    children: list[KeycloakRealmGroup] = field(default_factory=list)

    @property
    def is_create(self) -> bool:
        return self.existing_id is None


def plan_group_changes(
    desired: list[KeycloakRealmGroup],
    existing: list[KeycloakRealmGroup],
) -> list[GroupChange]:
    """Match desired groups to existing ones by name.

    Matched groups are updated and get their missing sub-groups (one level)
    created; unmatched groups are created with all their sub-groups. Existing
    groups that are not declared are left alone.
    """
    by_name = {g.name: g for g in existing}
    changes: list[GroupChange] = []

    for group in desired:
        current = by_name.get(group.name)
        if current is None:
            changes.append(GroupChange(group=group, children=list(group.sub_groups)))
            continue

        current_children = {c.name for c in current.sub_groups}
        missing = [c for c in group.sub_groups if c.name not in current_children]
        changes.append(GroupChange(group=group, existing_id=current.id, children=missing))

    return changes


class KeycloakClient:
    """Async client for the Keycloak Admin REST API.

    One instance owns one authenticated session; the token is obtained once
    by ``login`` and never refreshed.
    """

    def __init__(
        self,
        settings: KeycloakSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._settings = settings
        self._transport = transport
        self._token: str | None = None
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "KeycloakClient":
        """Async context manager entry."""
        self._client = httpx.AsyncClient(
            timeout=self._settings.timeout,
            verify=self._settings.verify_tls,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def settings(self) -> KeycloakSettings:
        """Get settings."""
        return self._settings

    @property
    def is_authenticated(self) -> bool:
        return self._token is not None

    # -------------------------------------------------------------------------
    # Authentication
    # -------------------------------------------------------------------------

    async def login(self, username: str | None = None, password: str | None = None) -> None:
        """Obtain an admin token with the password grant against the master realm."""
        username = username or self._settings.admin_user
        password = password or self._settings.admin_password
        if not username or not password:
            raise KeycloakAuthError("No admin credentials provided")

        data = {
            "username": username,
            "password": password,
            "client_id": self._settings.admin_client_id,
            "grant_type": "password",
        }

        logger.debug("Authenticating with admin user: %s", username)
        response = await self._send("POST", self._settings.token_url, "token", data=data)

        try:
            token = TokenResponse.model_validate(response.json())
        except ValueError as e:
            raise KeycloakDecodeError(
                f"Failed to decode token response: {e}",
                status_code=response.status_code,
                kind="token",
            ) from e

        if token.error:
            raise KeycloakAuthError(
                token.error_description or token.error,
                status_code=response.status_code,
                kind="token",
            )
        if not token.access_token:
            raise KeycloakAuthError(
                f"Admin user authentication failed ({response.status_code})",
                status_code=response.status_code,
                kind="token",
            )

        self._token = token.access_token
        logger.info("Authenticated as admin user: %s", username)

    async def ping(self) -> None:
        """Check that the server answers on its root path."""
        response = await self._send("GET", self._settings.ping_url, "ping", authenticated=False)
        if response.status_code != 200:
            raise KeycloakError(
                f"Keycloak ping failed: {response.status_code}",
                status_code=response.status_code,
                kind="ping",
            )

    # -------------------------------------------------------------------------
    # HTTP helpers
    # -------------------------------------------------------------------------

    def _url(self, path: str) -> str:
        return f"{self._settings.admin_url}/{path.lstrip('/')}"

    def _headers(self) -> dict[str, str]:
        """Get request headers with auth token."""
        if not self._token:
            raise KeycloakAuthError("Not authenticated, call login() first")
        return {
            "Authorization": f"Bearer {self._token}",
            "Content-Type": "application/json",
        }

    async def _send(
        self,
        method: str,
        url: str,
        kind: str,
        *,
        authenticated: bool = False,
        content: str | None = None,
        data: dict[str, str] | None = None,
    ) -> httpx.Response:
        if self._client is None:
            raise KeycloakError("Client is not open, use 'async with'", kind=kind)

        headers = self._headers() if authenticated else None
        try:
            response = await self._client.request(
                method, url, headers=headers, content=content, data=data
            )
        except httpx.HTTPError as e:
            raise KeycloakRequestError(f"{method} {url} failed: {e}", kind=kind) from e

        if authenticated and response.status_code == 401:
            raise KeycloakAuthError(
                "Authentication expired or invalid",
                status_code=401,
                kind=kind,
            )
        return response

    def _serialize(self, obj: Any, kind: str) -> str:
        try:
            return json.dumps(_to_payload(obj))
        except (TypeError, ValueError, PydanticSerializationError) as e:
            raise KeycloakSerializationError(f"Failed to serialize {kind}: {e}", kind=kind) from e

    # -------------------------------------------------------------------------
    # Primitives
    # -------------------------------------------------------------------------

    async def create(self, obj: Any, path: str, kind: str) -> str:
        """POST ``obj`` and return the id from the Location header.

        Returns "" when the server sends no Location (including on 409).
        """
        body = self._serialize(obj, kind)
        response = await self._send(
            "POST", self._url(path), kind, authenticated=True, content=body
        )

        if response.status_code == 409:
            logger.info("%s already exists at %s", kind, path)
        elif response.status_code not in (201, 204):
            raise KeycloakError(
                f"failed to create {kind}: ({response.status_code}) {response.text}",
                status_code=response.status_code,
                kind=kind,
            )
        else:
            logger.debug("Created %s at %s", kind, path)

        location = response.headers.get("Location", "")
        return location.rstrip("/").rsplit("/", 1)[-1] if location else ""

    async def update(self, obj: Any, path: str, kind: str) -> None:
        """PUT ``obj``; any 2xx status succeeds."""
        body = self._serialize(obj, kind)
        response = await self._send(
            "PUT", self._url(path), kind, authenticated=True, content=body
        )
        if not 200 <= response.status_code < 300:
            raise KeycloakError(
                f"failed to update {kind}: ({response.status_code}) {response.text}",
                status_code=response.status_code,
                kind=kind,
            )
        logger.debug("Updated %s at %s", kind, path)

    async def get(
        self,
        path: str,
        kind: str,
        decode: Callable[[Any], T] = _identity,
    ) -> T | None:
        """GET one object; 404 means absent and yields None."""
        response = await self._send("GET", self._url(path), kind, authenticated=True)

        if response.status_code == 404:
            logger.debug("%s not found at %s", kind, path)
            return None
        if response.status_code != 200:
            raise KeycloakError(
                f"failed to get {kind}: ({response.status_code}) {response.text}",
                status_code=response.status_code,
                kind=kind,
            )

        try:
            return decode(response.json())
        except (TypeError, ValueError) as e:
            raise KeycloakDecodeError(
                f"failed to decode {kind}: {e}", status_code=200, kind=kind
            ) from e

    async def list(
        self,
        path: str,
        kind: str,
        decode: Callable[[Any], T] = _identity,
    ) -> list[T]:
        """GET a collection and decode each element.

        A body that cannot be decoded is logged and yields an empty list.
        """
        response = await self._send("GET", self._url(path), kind, authenticated=True)

        if not 200 <= response.status_code < 300:
            raise KeycloakError(
                f"failed to list {kind}: ({response.status_code}) {response.text}",
                status_code=response.status_code,
                kind=kind,
            )

        try:
            items = response.json()
            if not isinstance(items, list):
                raise ValueError(f"expected a JSON array, got {type(items).__name__}")
            return [decode(item) for item in items]
        except (TypeError, ValueError) as e:
            logger.error("Failed to decode %s list from %s: %s", kind, path, e)
            return []

    async def delete(self, path: str, kind: str, obj: Any = None) -> None:
        """DELETE with an optional JSON body; an already missing object succeeds."""
        body = self._serialize(obj, kind) if obj is not None else None
        response = await self._send(
            "DELETE", self._url(path), kind, authenticated=True, content=body
        )

        if response.status_code == 404:
            logger.debug("%s already deleted at %s", kind, path)
            return
        if not 200 <= response.status_code < 300:
            raise KeycloakError(
                f"failed to delete {kind}: ({response.status_code}) {response.text}",
                status_code=response.status_code,
                kind=kind,
            )
        logger.debug("Deleted %s at %s", kind, path)

    # -------------------------------------------------------------------------
    # Realms
    # -------------------------------------------------------------------------

    async def create_realm(self, realm: KeycloakAPIRealm) -> str:
        return await self.create(realm, "realms", "realm")

    async def get_realm(self, realm_name: str) -> KeycloakAPIRealm | None:
        return await self.get(f"realms/{realm_name}", "realm", KeycloakAPIRealm.model_validate)

    async def update_realm(self, realm: KeycloakAPIRealm) -> None:
        await self.update(realm, f"realms/{realm.realm}", "realm")

    async def delete_realm(self, realm_name: str) -> None:
        await self.delete(f"realms/{realm_name}", "realm")

    async def list_realms(self) -> list[KeycloakAPIRealm]:
        return await self.list("realms", "realm", KeycloakAPIRealm.model_validate)

    async def list_realm_groups(self, realm_name: str) -> list[KeycloakRealmGroup]:
        return await self.list(
            f"realms/{realm_name}/groups", "groups", KeycloakRealmGroup.model_validate
        )

    async def update_realm_groups(self, realm: KeycloakAPIRealm) -> list[GroupChange]:
        """Merge the declared groups into the realm (additive, one sub-group level)."""
        existing = await self.list_realm_groups(realm.realm)
        changes = plan_group_changes(realm.groups or [], existing)

        for change in changes:
            payload = change.group.to_api()
            payload.pop("subGroups", None)

            if change.is_create:
                parent_id = await self.create(payload, f"realms/{realm.realm}/groups", "group")
                logger.info("Created group %s in realm %s", change.group.name, realm.realm)
            else:
                payload["id"] = change.existing_id
                await self.update(
                    payload, f"realms/{realm.realm}/groups/{change.existing_id}", "group"
                )
                parent_id = change.existing_id or ""

            if change.children and not parent_id:
                raise KeycloakError(
                    f"no id returned for group {change.group.name}, cannot create sub-groups",
                    kind="group",
                )
            for child in change.children:
                await self.create(
                    child, f"realms/{realm.realm}/groups/{parent_id}/children", "group"
                )

        return changes

    async def configure_browser_redirector(
        self,
        realm_name: str,
        identity_provider: str,
        flow_alias: str = BROWSER_FLOW,
    ) -> str:
        """Make the identity-provider redirector of a flow default to ``identity_provider``."""
        executions = await self.list_authentication_executions_for_flow(flow_alias, realm_name)
        for execution in executions:
            if execution.provider_id == REDIRECTOR_PROVIDER_ID and execution.id:
                config = AuthenticatorConfig(
                    alias=identity_provider,
                    config={"defaultProvider": identity_provider},
                )
                return await self.create_authenticator_config(config, realm_name, execution.id)

        raise KeycloakError(
            f"flow {flow_alias} in realm {realm_name} has no {REDIRECTOR_PROVIDER_ID} execution",
            kind="AuthenticationExecution",
        )

    # -------------------------------------------------------------------------
    # Clients
    # -------------------------------------------------------------------------

    async def create_client(self, client: KeycloakAPIClient, realm_name: str) -> str:
        return await self.create(client, f"realms/{realm_name}/clients", "client")

    async def get_client(self, client_id: str, realm_name: str) -> KeycloakAPIClient | None:
        return await self.get(
            f"realms/{realm_name}/clients/{client_id}", "client", KeycloakAPIClient.model_validate
        )

    async def get_client_secret(self, client_id: str, realm_name: str) -> str:
        """Get the client secret."""
        result = await self.get(f"realms/{realm_name}/clients/{client_id}/client-secret", "client-secret")
        if not result:
            raise KeycloakError(f"client {client_id} has no secret", kind="client-secret")
        return result.get("value", "")

    async def get_client_install(self, client_id: str, realm_name: str) -> dict[str, Any] | None:
        """Get the keycloak.json installation document of a client."""
        return await self.get(
            f"realms/{realm_name}/clients/{client_id}/installation/providers/keycloak-oidc-keycloak-json",
            "client-installation",
        )

    async def update_client(self, client: KeycloakAPIClient, realm_name: str) -> None:
        await self.update(client, f"realms/{realm_name}/clients/{client.id}", "client")

    async def delete_client(self, client_id: str, realm_name: str) -> None:
        await self.delete(f"realms/{realm_name}/clients/{client_id}", "client")

    async def list_clients(self, realm_name: str) -> list[KeycloakAPIClient]:
        return await self.list(
            f"realms/{realm_name}/clients", "clients", KeycloakAPIClient.model_validate
        )

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    async def create_user(self, user: KeycloakAPIUser, realm_name: str) -> str:
        return await self.create(user, f"realms/{realm_name}/users", "user")

    async def get_user(self, user_id: str, realm_name: str) -> KeycloakAPIUser | None:
        return await self.get(
            f"realms/{realm_name}/users/{user_id}", "user", KeycloakAPIUser.model_validate
        )

    async def find_user_by_email(self, email: str, realm_name: str) -> KeycloakAPIUser | None:
        """Return the first user matching an email search, if any."""

        def first(body: Any) -> KeycloakAPIUser | None:
            users = [KeycloakAPIUser.model_validate(u) for u in body]
            return users[0] if users else None

        return await self.get(
            f"realms/{realm_name}/users?first=0&max=1&search={email}", "user", first
        )

    async def find_user_by_username(self, username: str, realm_name: str) -> KeycloakAPIUser | None:
        """Return the user whose username matches exactly, if any."""

        def exact(body: Any) -> KeycloakAPIUser | None:
            for raw in body:
                user = KeycloakAPIUser.model_validate(raw)
                if user.username == username:
                    return user
            return None

        return await self.get(
            f"realms/{realm_name}/users?username={username}&max=-1", "user", exact
        )

    async def update_user(self, user: KeycloakAPIUser, realm_name: str) -> None:
        await self.update(user, f"realms/{realm_name}/users/{user.id}", "user")

    async def delete_user(self, user_id: str, realm_name: str) -> None:
        await self.delete(f"realms/{realm_name}/users/{user_id}", "user")

    async def list_users(self, realm_name: str) -> list[KeycloakAPIUser]:
        return await self.list(
            f"realms/{realm_name}/users", "users", KeycloakAPIUser.model_validate
        )

    async def update_password(self, user: KeycloakAPIUser, realm_name: str, new_password: str) -> None:
        """Reset a user's password (non-temporary)."""
        reset = KeycloakAPIPasswordReset(value=new_password)
        await self.update(reset, f"realms/{realm_name}/users/{user.id}/reset-password", "password-reset")

    # -------------------------------------------------------------------------
    # Federated identities
    # -------------------------------------------------------------------------

    async def create_federated_identity(
        self, fid: FederatedIdentity, user_id: str, realm_name: str
    ) -> str:
        return await self.create(
            fid,
            f"realms/{realm_name}/users/{user_id}/federated-identity/{fid.identity_provider}",
            "federated-identity",
        )

    async def remove_federated_identity(
        self, fid: FederatedIdentity, user_id: str, realm_name: str
    ) -> None:
        await self.delete(
            f"realms/{realm_name}/users/{user_id}/federated-identity/{fid.identity_provider}",
            "federated-identity",
            fid,
        )

    async def get_user_federated_identities(
        self, user_id: str, realm_name: str
    ) -> list[FederatedIdentity]:
        return await self.list(
            f"realms/{realm_name}/users/{user_id}/federated-identity",
            "federated-identity",
            FederatedIdentity.model_validate,
        )

    # -------------------------------------------------------------------------
    # Role mappings
    # -------------------------------------------------------------------------

    def _client_roles_path(self, realm_name: str, client_id: str, user_id: str) -> str:
        return f"realms/{realm_name}/users/{user_id}/role-mappings/clients/{client_id}"

    def _realm_roles_path(self, realm_name: str, user_id: str) -> str:
        return f"realms/{realm_name}/users/{user_id}/role-mappings/realm"

    async def create_user_client_role(
        self, role: KeycloakUserRole, realm_name: str, client_id: str, user_id: str
    ) -> str:
        return await self.create(
            [role], self._client_roles_path(realm_name, client_id, user_id), "user-client-role"
        )

    async def list_user_client_roles(
        self, realm_name: str, client_id: str, user_id: str
    ) -> list[KeycloakUserRole]:
        return await self.list(
            self._client_roles_path(realm_name, client_id, user_id),
            "user-client-roles",
            KeycloakUserRole.model_validate,
        )

    async def list_available_user_client_roles(
        self, realm_name: str, client_id: str, user_id: str
    ) -> list[KeycloakUserRole]:
        return await self.list(
            f"{self._client_roles_path(realm_name, client_id, user_id)}/available",
            "user-client-roles",
            KeycloakUserRole.model_validate,
        )

    async def delete_user_client_role(
        self, role: KeycloakUserRole, realm_name: str, client_id: str, user_id: str
    ) -> None:
        await self.delete(
            self._client_roles_path(realm_name, client_id, user_id), "user-client-role", [role]
        )

    async def create_user_realm_role(
        self, role: KeycloakUserRole, realm_name: str, user_id: str
    ) -> str:
        return await self.create(
            [role], self._realm_roles_path(realm_name, user_id), "user-realm-role"
        )

    async def list_user_realm_roles(self, realm_name: str, user_id: str) -> list[KeycloakUserRole]:
        return await self.list(
            self._realm_roles_path(realm_name, user_id),
            "user-realm-roles",
            KeycloakUserRole.model_validate,
        )

    async def list_available_user_realm_roles(
        self, realm_name: str, user_id: str
    ) -> list[KeycloakUserRole]:
        return await self.list(
            f"{self._realm_roles_path(realm_name, user_id)}/available",
            "user-realm-roles",
            KeycloakUserRole.model_validate,
        )

    async def delete_user_realm_role(
        self, role: KeycloakUserRole, realm_name: str, user_id: str
    ) -> None:
        await self.delete(self._realm_roles_path(realm_name, user_id), "user-realm-role", [role])

    # -------------------------------------------------------------------------
    # Identity providers
    # -------------------------------------------------------------------------

    async def create_identity_provider(
        self, provider: KeycloakIdentityProvider, realm_name: str
    ) -> str:
        return await self.create(
            provider, f"realms/{realm_name}/identity-provider/instances", "identity-provider"
        )

    async def get_identity_provider(
        self, alias: str, realm_name: str
    ) -> KeycloakIdentityProvider | None:
        return await self.get(
            f"realms/{realm_name}/identity-provider/instances/{alias}",
            "identity-provider",
            KeycloakIdentityProvider.model_validate,
        )

    async def update_identity_provider(
        self, provider: KeycloakIdentityProvider, realm_name: str
    ) -> None:
        await self.update(
            provider,
            f"realms/{realm_name}/identity-provider/instances/{provider.alias}",
            "identity-provider",
        )

    async def delete_identity_provider(self, alias: str, realm_name: str) -> None:
        await self.delete(
            f"realms/{realm_name}/identity-provider/instances/{alias}", "identity-provider"
        )

    async def list_identity_providers(self, realm_name: str) -> list[KeycloakIdentityProvider]:
        return await self.list(
            f"realms/{realm_name}/identity-provider/instances",
            "identity-providers",
            KeycloakIdentityProvider.model_validate,
        )

    # -------------------------------------------------------------------------
    # Authentication flows
    # -------------------------------------------------------------------------

    async def list_authentication_executions_for_flow(
        self, flow_alias: str, realm_name: str
    ) -> list[AuthenticationExecutionInfo]:
        return await self.list(
            f"realms/{realm_name}/authentication/flows/{flow_alias}/executions",
            "AuthenticationExecution",
            AuthenticationExecutionInfo.model_validate,
        )

    async def create_authenticator_config(
        self, config: AuthenticatorConfig, realm_name: str, execution_id: str
    ) -> str:
        return await self.create(
            config,
            f"realms/{realm_name}/authentication/executions/{execution_id}/config",
            "AuthenticatorConfig",
        )

    async def get_authenticator_config(
        self, config_id: str, realm_name: str
    ) -> AuthenticatorConfig | None:
        return await self.get(
            f"realms/{realm_name}/authentication/config/{config_id}",
            "AuthenticatorConfig",
            AuthenticatorConfig.model_validate,
        )

    async def update_authenticator_config(
        self, config: AuthenticatorConfig, realm_name: str
    ) -> None:
        await self.update(
            config, f"realms/{realm_name}/authentication/config/{config.id}", "AuthenticatorConfig"
        )

    async def delete_authenticator_config(self, config_id: str, realm_name: str) -> None:
        await self.delete(
            f"realms/{realm_name}/authentication/config/{config_id}", "AuthenticatorConfig"
        )
