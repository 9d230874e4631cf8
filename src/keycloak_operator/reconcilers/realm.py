"""Plan the actions that converge one realm."""

from __future__ import annotations

import structlog

from keycloak_operator import manifests
from keycloak_operator.actions import (
    Action,
    ConfigureRealmAction,
    CreateAction,
    CreateRealmAction,
    DeleteRealmAction,
    DesiredClusterState,
    PingAction,
    UpdateRealmAction,
    UpdateRealmGroupsAction,
)
from keycloak_operator.models.api import KeycloakAPIUser
from keycloak_operator.models.keycloak import Keycloak
from keycloak_operator.models.realm import KeycloakRealm
from keycloak_operator.state.realm import RealmState

logger = structlog.get_logger()


class KeycloakRealmReconciler:
    """Compute realm actions for realms hosted by one Keycloak instance."""

    def __init__(self, keycloak: Keycloak):
        self._keycloak = keycloak

    def reconcile(self, state: RealmState, cr: KeycloakRealm) -> DesiredClusterState:
        desired = DesiredClusterState()
        where = f"{cr.namespace}/{cr.realm_name}"

        if cr.is_deleting:
            desired.add_action(DeleteRealmAction(ref=cr, msg=f"removing realm {where}"))
            return desired

        desired.add_action(PingAction(msg="check if keycloak is available"))
        desired.add_action(self._new_realm(state, cr, where))
        desired.add_actions(self._user_secret(state, cr, user, where) for user in cr.realm.users or [])
        desired.add_action(self._browser_redirector(state, cr))

        if cr.realm.groups is not None:
            desired.add_action(UpdateRealmGroupsAction(ref=cr, msg=f"update realm groups {where}"))
        if cr.realm.user_federation_providers is not None:
            desired.add_action(UpdateRealmAction(ref=cr, msg=f"update realm {where}"))

        logger.debug("Realm reconcile planned", realm=cr.realm_name, actions=len(desired))
        return desired

    def _new_realm(self, state: RealmState, cr: KeycloakRealm, where: str) -> Action | None:
        if state.realm is not None:
            return None
        return CreateRealmAction(ref=cr, msg=f"create realm {where}")

    def _user_secret(
        self, state: RealmState, cr: KeycloakRealm, user: KeycloakAPIUser, where: str
    ) -> Action | None:
        if state.realm_user_secrets.get(user.username) is not None:
            return None
        return CreateAction(
            ref=manifests.realm_credential_secret(cr, user, self._keycloak),
            msg=f"create credential secret for user {user.username} in realm {where}",
        )

    def _browser_redirector(self, state: RealmState, cr: KeycloakRealm) -> Action | None:
        # only configured when the realm is first created
        if not cr.realm_overrides or state.realm is not None:
            return None
        return ConfigureRealmAction(ref=cr, msg="configure browser redirector")
