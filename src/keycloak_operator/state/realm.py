"""Current state of one realm: the realm itself and its user credential secrets."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any

import structlog

from keycloak_operator import manifests
from keycloak_operator.cluster.base import SECRET, ClusterClient, NotFoundError
from keycloak_operator.keycloak.client import KeycloakClient
from keycloak_operator.models.api import KeycloakAPIRealm
from keycloak_operator.models.keycloak import Keycloak
from keycloak_operator.models.realm import KeycloakRealm

logger = structlog.get_logger()


@dataclass
class RealmState:
    realm: KeycloakAPIRealm | None = None
    # username -> credential secret (None when it does not exist yet)
    realm_user_secrets: dict[str, dict[str, Any] | None] = field(default_factory=dict)


class RealmStateReader:
    """Read a realm through the admin API and its user secrets from the cluster."""

    def __init__(self, keycloak: KeycloakClient, cluster: ClusterClient):
        self._keycloak = keycloak
        self._cluster = cluster

    async def read(self, realm: KeycloakRealm, keycloak: Keycloak) -> RealmState:
        state = RealmState()
        state.realm = await self._keycloak.get_realm(realm.realm_name)

        for user in realm.realm.users or []:
            key = manifests.realm_credential_secret_selector(realm, user, keycloak)
            try:
                secret = self._cluster.get(SECRET, key)
            except NotFoundError:
                secret = None
            state.realm_user_secrets[user.username] = copy.deepcopy(secret)

        logger.debug(
            "Realm state read",
            realm=realm.realm_name,
            exists=state.realm is not None,
            user_secrets=sum(1 for s in state.realm_user_secrets.values() if s is not None),
        )
        return state
