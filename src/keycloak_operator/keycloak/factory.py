"""Open an admin session for a Keycloak instance.

Credentials come from the instance's admin secret in the cluster. For an
external Keycloak the secret is ``credential-<name>`` and the URL is the
declared one; for a managed instance both come from its status.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx

from keycloak_operator.cluster.base import SECRET, ClusterClient, NotFoundError, ObjectKey
from keycloak_operator.keycloak.client import KeycloakClient
from keycloak_operator.keycloak.errors import KeycloakAuthError, KeycloakError
from keycloak_operator.keycloak.settings import KeycloakSettings
from keycloak_operator.manifests.constants import (
    ADMIN_PASSWORD_KEY,
    ADMIN_SECRET_PREFIX,
    ADMIN_USERNAME_KEY,
)
from keycloak_operator.manifests.util import secret_value
from keycloak_operator.models.keycloak import Keycloak

logger = logging.getLogger(__name__)


def admin_endpoint(cr: Keycloak) -> tuple[str, str]:
    """Return (credential secret name, base URL) for an instance."""
    if cr.external.enabled:
        return f"{ADMIN_SECRET_PREFIX}{cr.name}", cr.external.url
    return cr.status.credential_secret, cr.status.internal_url


@asynccontextmanager
async def authenticated_client(
    cr: Keycloak,
    cluster: ClusterClient,
    settings: KeycloakSettings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    base_url: str | None = None,
) -> AsyncIterator[KeycloakClient]:
    """Yield a logged-in ``KeycloakClient`` for ``cr``.

    ``base_url`` replaces the instance URL, for running outside the cluster.
    """
    secret_name, url = admin_endpoint(cr)
    url = base_url or url
    if not secret_name or not url:
        raise KeycloakError(
            f"Keycloak {cr.namespace}/{cr.name} has no credential secret or URL yet"
        )

    try:
        secret = cluster.get(SECRET, ObjectKey(secret_name, cr.namespace))
    except NotFoundError as e:
        raise KeycloakAuthError(f"Admin secret {cr.namespace}/{secret_name} not found") from e

    username = secret_value(secret, ADMIN_USERNAME_KEY)
    password = secret_value(secret, ADMIN_PASSWORD_KEY)
    if not username or not password:
        raise KeycloakAuthError(f"Admin secret {cr.namespace}/{secret_name} has no credentials")

    settings = (settings or KeycloakSettings()).with_overrides(base_url=url)
    logger.debug("Opening admin session for %s at %s", cr.name, settings.base_url)

    async with KeycloakClient(settings, transport=transport) as client:
        await client.login(username, password)
        yield client
