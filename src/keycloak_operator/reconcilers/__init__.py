"""Action planners."""

from keycloak_operator.reconcilers.keycloak import (
    KeycloakReconciler,
    set_status_endpoints,
    update_status,
)
from keycloak_operator.reconcilers.realm import KeycloakRealmReconciler

__all__ = [
    "KeycloakRealmReconciler",
    "KeycloakReconciler",
    "set_status_endpoints",
    "update_status",
]
