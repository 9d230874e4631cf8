"""Plan the cluster objects of one Keycloak instance.

Planning is pure: it reads the snapshot, the specification and the capability
flags, and returns actions without touching the cluster.
"""

from __future__ import annotations

from typing import Any, Callable

import structlog

from keycloak_operator import manifests
from keycloak_operator.actions import Action, CreateAction, DesiredClusterState, UpdateAction
from keycloak_operator.capabilities import ROUTE_CAPABILITY, CapabilityCache, capability_key
from keycloak_operator.cluster.base import (
    GRAFANA_DASHBOARD,
    PROMETHEUS_RULE,
    SERVICE_MONITOR,
    ResourceKind,
)
from keycloak_operator.manifests.constants import KEYCLOAK_HTTPS_PORT, KEYCLOAK_SERVICE_NAME
from keycloak_operator.models.keycloak import Keycloak
from keycloak_operator.state.cluster import ClusterState

logger = structlog.get_logger()

Builder = Callable[[Keycloak], dict[str, Any]]
Reconciler = Callable[[Keycloak, dict[str, Any]], dict[str, Any]]


def _create_or_update(
    cr: Keycloak,
    current: dict[str, Any] | None,
    build: Builder,
    reconcile: Reconciler,
    what: str,
) -> Action:
    if current is None:
        return CreateAction(ref=build(cr), msg=f"create {what}")
    return UpdateAction(ref=reconcile(cr, current), current=current, msg=f"update {what}")


class KeycloakReconciler:
    """Compute the ordered actions that converge one Keycloak instance."""

    def __init__(self, capabilities: CapabilityCache, controller_name: str = "keycloak"):
        self._capabilities = capabilities
        self._controller_name = controller_name

    def _supports(self, kind: ResourceKind) -> bool:
        return self._capabilities.get(capability_key(self._controller_name, kind.kind))

    def reconcile(self, state: ClusterState, cr: Keycloak) -> DesiredClusterState:
        desired = DesiredClusterState()

        desired.add_action(self._admin_secret(state, cr))
        desired.add_action(self._prometheus_rule(state, cr))
        desired.add_action(self._service_monitor(state, cr))
        desired.add_action(self._grafana_dashboard(state, cr))
        desired.add_action(self._database_secret(state, cr))
        desired.add_action(self._probes(state, cr))
        desired.add_action(self._service(state, cr))
        desired.add_action(self._discovery_service(state, cr))
        desired.add_action(self._statefulset(state, cr))
        desired.add_action(self._pod_disruption_budget(state, cr))

        if self._capabilities.get(ROUTE_CAPABILITY):
            desired.add_action(self._route(state, cr))
        else:
            desired.add_action(self._ingress(state, cr))

        logger.debug(
            "Keycloak reconcile planned",
            name=cr.name,
            namespace=cr.namespace,
            actions=len(desired),
        )
        return desired

    def _admin_secret(self, state: ClusterState, cr: Keycloak) -> Action:
        return _create_or_update(
            cr,
            state.admin_secret,
            manifests.admin_secret,
            manifests.admin_secret_reconciled,
            "keycloak admin secret",
        )

    def _prometheus_rule(self, state: ClusterState, cr: Keycloak) -> Action | None:
        if not self._supports(PROMETHEUS_RULE):
            return None
        return _create_or_update(
            cr,
            state.prometheus_rule,
            manifests.prometheus_rule,
            manifests.prometheus_rule_reconciled,
            "keycloak prometheus rule",
        )

    def _service_monitor(self, state: ClusterState, cr: Keycloak) -> Action | None:
        if not self._supports(SERVICE_MONITOR):
            return None
        return _create_or_update(
            cr,
            state.service_monitor,
            manifests.service_monitor,
            manifests.service_monitor_reconciled,
            "keycloak service monitor",
        )

    def _grafana_dashboard(self, state: ClusterState, cr: Keycloak) -> Action | None:
        if not self._supports(GRAFANA_DASHBOARD):
            return None
        return _create_or_update(
            cr,
            state.grafana_dashboard,
            manifests.grafana_dashboard,
            manifests.grafana_dashboard_reconciled,
            "keycloak grafana dashboard",
        )

    def _database_secret(self, state: ClusterState, cr: Keycloak) -> Action:
        what = "external database secret" if cr.external_database.enabled else "database secret"
        return _create_or_update(
            cr,
            state.database_secret,
            manifests.database_secret,
            manifests.database_secret_reconciled,
            what,
        )

    def _probes(self, state: ClusterState, cr: Keycloak) -> Action:
        return _create_or_update(
            cr,
            state.probes,
            manifests.probes_config_map,
            manifests.probes_config_map_reconciled,
            "keycloak probes",
        )

    def _service(self, state: ClusterState, cr: Keycloak) -> Action:
        return _create_or_update(
            cr,
            state.service,
            manifests.keycloak_service,
            manifests.keycloak_service_reconciled,
            "keycloak service",
        )

    def _discovery_service(self, state: ClusterState, cr: Keycloak) -> Action:
        return _create_or_update(
            cr,
            state.discovery_service,
            manifests.discovery_service,
            manifests.discovery_service_reconciled,
            "keycloak discovery service",
        )

    def _statefulset(self, state: ClusterState, cr: Keycloak) -> Action:
        # connection settings come from the secret as it exists now
        db_secret = state.database_secret
        return _create_or_update(
            cr,
            state.statefulset,
            lambda spec: manifests.keycloak_statefulset(spec, db_secret),
            lambda spec, current: manifests.keycloak_statefulset_reconciled(spec, current, db_secret),
            "keycloak statefulset",
        )

    def _pod_disruption_budget(self, state: ClusterState, cr: Keycloak) -> Action | None:
        if not cr.pod_disruption_budget.enabled:
            return None
        return _create_or_update(
            cr,
            state.pod_disruption_budget,
            manifests.pod_disruption_budget,
            manifests.pod_disruption_budget_reconciled,
            "keycloak pod disruption budget",
        )

    def _route(self, state: ClusterState, cr: Keycloak) -> Action | None:
        if not cr.external_access.enabled:
            return None
        return _create_or_update(
            cr, state.route, manifests.route, manifests.route_reconciled, "keycloak route"
        )

    def _ingress(self, state: ClusterState, cr: Keycloak) -> Action | None:
        if not cr.external_access.enabled:
            return None
        return _create_or_update(
            cr, state.ingress, manifests.ingress, manifests.ingress_reconciled, "keycloak ingress"
        )


def set_status_endpoints(cr: Keycloak) -> None:
    """Fill the admin secret name and in-cluster URL realm reconciles use."""
    cr.status.credential_secret = manifests.admin_secret_name(cr)
    cr.status.internal_url = (
        f"https://{KEYCLOAK_SERVICE_NAME}.{cr.namespace}.svc:{KEYCLOAK_HTTPS_PORT}"
    )


def update_status(cr: Keycloak, state: ClusterState, ready: bool) -> None:
    """Record readiness and the endpoints realm reconciles authenticate against."""
    cr.status.ready = ready
    cr.status.phase = "reconciled" if ready else "reconciling"
    cr.status.message = "" if ready else "waiting for keycloak to become ready"
    set_status_endpoints(cr)

    host = ""
    if state.route:
        host = (state.route.get("spec") or {}).get("host", "")
    elif state.ingress:
        rules = (state.ingress.get("spec") or {}).get("rules") or []
        host = rules[0].get("host", "") if rules else ""
    cr.status.external_url = f"https://{host}" if host else ""
