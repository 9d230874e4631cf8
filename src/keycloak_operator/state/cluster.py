"""Current cluster state of one Keycloak instance, and readiness."""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any

import structlog

from keycloak_operator import manifests
from keycloak_operator.capabilities import ROUTE_CAPABILITY, CapabilityCache, capability_key
from keycloak_operator.cluster.base import (
    CONFIG_MAP,
    GRAFANA_DASHBOARD,
    INGRESS,
    POD_DISRUPTION_BUDGET,
    PROMETHEUS_RULE,
    ROUTE,
    SECRET,
    SERVICE,
    SERVICE_MONITOR,
    STATEFUL_SET,
    ClusterClient,
    KindNotRegisteredError,
    NotFoundError,
    ObjectKey,
    ResourceKind,
)
from keycloak_operator.models.keycloak import Keycloak

logger = structlog.get_logger()


@dataclass
class ClusterState:
    """Snapshot of every managed object; None means absent or unsupported."""

    admin_secret: dict[str, Any] | None = None
    prometheus_rule: dict[str, Any] | None = None
    service_monitor: dict[str, Any] | None = None
    grafana_dashboard: dict[str, Any] | None = None
    database_secret: dict[str, Any] | None = None
    probes: dict[str, Any] | None = None
    service: dict[str, Any] | None = None
    discovery_service: dict[str, Any] | None = None
    statefulset: dict[str, Any] | None = None
    pod_disruption_budget: dict[str, Any] | None = None
    route: dict[str, Any] | None = None
    ingress: dict[str, Any] | None = None


class ClusterStateReader:
    """Fetch each managed object once per pass.

    A missing object or an unregistered kind reads as None; any other cluster
    error aborts the whole read so that no plan is made from partial data.
    """

    def __init__(
        self,
        cluster: ClusterClient,
        capabilities: CapabilityCache,
        controller_name: str = "keycloak",
    ):
        self._cluster = cluster
        self._capabilities = capabilities
        self._controller_name = controller_name

    def _supports(self, kind: ResourceKind) -> bool:
        return self._capabilities.get(capability_key(self._controller_name, kind.kind))

    def _read(
        self,
        cr: Keycloak,
        kind: ResourceKind,
        key: ObjectKey,
        record: bool = True,
    ) -> dict[str, Any] | None:
        try:
            obj = self._cluster.get(kind, key)
        except NotFoundError:
            logger.debug("Resource not found", kind=kind.kind, name=key.name, namespace=key.namespace)
            return None
        except KindNotRegisteredError:
            logger.debug("Resource kind not registered", kind=kind.kind)
            return None

        if record:
            cr.update_status_secondary_resources(kind.kind, key.name)
        return copy.deepcopy(obj)

    def read(self, cr: Keycloak) -> ClusterState:
        state = ClusterState()

        state.admin_secret = self._read(cr, SECRET, manifests.admin_secret_selector(cr))

        if self._supports(PROMETHEUS_RULE):
            state.prometheus_rule = self._read(
                cr, PROMETHEUS_RULE, manifests.prometheus_rule_selector(cr)
            )
        if self._supports(SERVICE_MONITOR):
            state.service_monitor = self._read(
                cr, SERVICE_MONITOR, manifests.service_monitor_selector(cr)
            )
        if self._supports(GRAFANA_DASHBOARD):
            state.grafana_dashboard = self._read(
                cr, GRAFANA_DASHBOARD, manifests.grafana_dashboard_selector(cr)
            )

        state.database_secret = self._read(cr, SECRET, manifests.database_secret_selector(cr))
        state.probes = self._read(cr, CONFIG_MAP, manifests.probes_config_map_selector(cr))
        state.service = self._read(cr, SERVICE, manifests.keycloak_service_selector(cr))
        state.discovery_service = self._read(
            cr, SERVICE, manifests.discovery_service_selector(cr)
        )
        state.statefulset = self._read(
            cr, STATEFUL_SET, manifests.keycloak_statefulset_selector(cr)
        )
        state.pod_disruption_budget = self._read(
            cr,
            POD_DISRUPTION_BUDGET,
            manifests.pod_disruption_budget_selector(cr),
            record=cr.pod_disruption_budget.enabled,
        )

        if self._capabilities.get(ROUTE_CAPABILITY):
            state.route = self._read(cr, ROUTE, manifests.route_selector(cr))
        else:
            state.ingress = self._read(cr, INGRESS, manifests.ingress_selector(cr))

        logger.debug(
            "Cluster state read",
            name=cr.name,
            namespace=cr.namespace,
            present=sorted(k for k, v in vars(state).items() if v is not None),
        )
        return state


def is_statefulset_ready(statefulset: dict[str, Any] | None) -> bool:
    """All desired replicas exist, are ready and run the current revision."""
    if not statefulset:
        return False
    spec = statefulset.get("spec") or {}
    status = statefulset.get("status") or {}

    desired = spec.get("replicas", 1)
    if not desired == status.get("replicas", 0) == status.get("readyReplicas", 0):
        return False
    return status.get("currentRevision") == status.get("updateRevision")


def is_route_ready(route: dict[str, Any] | None) -> bool:
    """Some router admitted the route."""
    if not route:
        return False
    for ingress in (route.get("status") or {}).get("ingress") or []:
        for condition in ingress.get("conditions") or []:
            if condition.get("type") == "Admitted" and condition.get("status") == "True":
                return True
    return False


def is_resources_ready(state: ClusterState, cr: Keycloak, capabilities: CapabilityCache) -> bool:
    """Report whether the planned resources have converged."""
    if cr.unmanaged:
        return True

    route_ready = True
    if cr.external_access.enabled and capabilities.get(ROUTE_CAPABILITY):
        route_ready = is_route_ready(state.route)

    return is_statefulset_ready(state.statefulset) and route_ready
