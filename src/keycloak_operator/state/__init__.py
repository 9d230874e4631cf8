"""Current-state readers."""

from keycloak_operator.state.cluster import (
    ClusterState,
    ClusterStateReader,
    is_resources_ready,
    is_route_ready,
    is_statefulset_ready,
)
from keycloak_operator.state.realm import RealmState, RealmStateReader

__all__ = [
    "ClusterState",
    "ClusterStateReader",
    "RealmState",
    "RealmStateReader",
    "is_resources_ready",
    "is_route_ready",
    "is_statefulset_ready",
]
