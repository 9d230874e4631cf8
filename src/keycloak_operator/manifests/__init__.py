"""Desired-object builders.

Every managed kind has a ``<kind>(cr)`` builder for the object to create, a
``<kind>_selector(cr)`` giving its name and namespace, and a
``<kind>_reconciled(cr, current)`` that applies the managed fields onto a live
copy. All are deterministic except for freshly generated credentials.
"""

from keycloak_operator.manifests.access import (
    ingress,
    ingress_reconciled,
    ingress_selector,
    route,
    route_reconciled,
    route_selector,
)
from keycloak_operator.manifests.credentials import (
    admin_secret,
    admin_secret_name,
    admin_secret_reconciled,
    admin_secret_selector,
    database_secret,
    database_secret_reconciled,
    database_secret_selector,
    realm_credential_secret,
    realm_credential_secret_selector,
)
from keycloak_operator.manifests.monitoring import (
    grafana_dashboard,
    grafana_dashboard_reconciled,
    grafana_dashboard_selector,
    prometheus_rule,
    prometheus_rule_reconciled,
    prometheus_rule_selector,
    service_monitor,
    service_monitor_reconciled,
    service_monitor_selector,
)
from keycloak_operator.manifests.util import realm_user_secret_name, sanitize_resource_name
from keycloak_operator.manifests.workload import (
    discovery_service,
    discovery_service_reconciled,
    discovery_service_selector,
    keycloak_service,
    keycloak_service_reconciled,
    keycloak_service_selector,
    keycloak_statefulset,
    keycloak_statefulset_reconciled,
    keycloak_statefulset_selector,
    pod_disruption_budget,
    pod_disruption_budget_reconciled,
    pod_disruption_budget_selector,
    probes_config_map,
    probes_config_map_reconciled,
    probes_config_map_selector,
)

__all__ = [
    "admin_secret",
    "admin_secret_name",
    "admin_secret_reconciled",
    "admin_secret_selector",
    "database_secret",
    "database_secret_reconciled",
    "database_secret_selector",
    "discovery_service",
    "discovery_service_reconciled",
    "discovery_service_selector",
    "grafana_dashboard",
    "grafana_dashboard_reconciled",
    "grafana_dashboard_selector",
    "ingress",
    "ingress_reconciled",
    "ingress_selector",
    "keycloak_service",
    "keycloak_service_reconciled",
    "keycloak_service_selector",
    "keycloak_statefulset",
    "keycloak_statefulset_reconciled",
    "keycloak_statefulset_selector",
    "pod_disruption_budget",
    "pod_disruption_budget_reconciled",
    "pod_disruption_budget_selector",
    "probes_config_map",
    "probes_config_map_reconciled",
    "probes_config_map_selector",
    "prometheus_rule",
    "prometheus_rule_reconciled",
    "prometheus_rule_selector",
    "realm_credential_secret",
    "realm_credential_secret_selector",
    "realm_user_secret_name",
    "route",
    "route_reconciled",
    "route_selector",
    "sanitize_resource_name",
    "service_monitor",
    "service_monitor_reconciled",
    "service_monitor_selector",
]
