"""Prometheus rule, service monitor and Grafana dashboard."""

from __future__ import annotations

import copy
import json
from typing import Any

from keycloak_operator.cluster.base import (
    GRAFANA_DASHBOARD,
    PROMETHEUS_RULE,
    SERVICE_MONITOR,
    ObjectKey,
)
from keycloak_operator.manifests import constants as c
from keycloak_operator.manifests.util import labels, metadata
from keycloak_operator.models.keycloak import Keycloak


def _alert(name: str, expr: str, summary: str, severity: str = "warning") -> dict[str, Any]:
    return {
        "alert": name,
        "expr": expr,
        "for": "5m",
        "labels": {"severity": severity},
        "annotations": {"message": summary},
    }


def _rule_groups(cr: Keycloak) -> list[dict[str, Any]]:
    job = f'job="{c.KEYCLOAK_SERVICE_NAME}",namespace="{cr.namespace}"'
    return [
        {
            "name": "general.rules",
            "rules": [
                _alert(
                    "KeycloakJavaNonHeapThresholdExceeded",
                    f'100 * jvm_memory_bytes_used{{area="nonheap",{job}}}'
                    f' / jvm_memory_bytes_max{{area="nonheap",{job}}} > 90',
                    "Keycloak non-heap memory usage is above 90%",
                ),
                _alert(
                    "KeycloakJavaGCTimePerMinuteScavenge",
                    f'increase(jvm_gc_collection_seconds_sum{{gc="PS Scavenge",{job}}}[1m]) > 1 * 60 * 0.9',
                    "Keycloak spends more than 90% of each minute in young generation GC",
                ),
                _alert(
                    "KeycloakInstanceNotAvailable",
                    f"(1 - absent(kube_pod_status_ready{{namespace=\"{cr.namespace}\","
                    f" condition=\"true\"}} * on (pod) group_left (label_component)"
                    f" kube_pod_labels{{label_component=\"{c.KEYCLOAK_COMPONENT}\"}})) == 0",
                    "No Keycloak instance is ready",
                    severity="critical",
                ),
            ],
        }
    ]


# -----------------------------------------------------------------------------
# PrometheusRule
# -----------------------------------------------------------------------------


def prometheus_rule(cr: Keycloak) -> dict[str, Any]:
    return {
        "apiVersion": PROMETHEUS_RULE.api_version,
        "kind": PROMETHEUS_RULE.kind,
        "metadata": metadata(c.KEYCLOAK_MONITORING_NAME, cr.namespace, labels=labels()),
        "spec": {"groups": _rule_groups(cr)},
    }


def prometheus_rule_selector(cr: Keycloak) -> ObjectKey:
    return ObjectKey(c.KEYCLOAK_MONITORING_NAME, cr.namespace)


def prometheus_rule_reconciled(cr: Keycloak, current: dict[str, Any]) -> dict[str, Any]:
    reconciled = copy.deepcopy(current)
    reconciled["spec"] = {"groups": _rule_groups(cr)}
    return reconciled


# -----------------------------------------------------------------------------
# ServiceMonitor
# -----------------------------------------------------------------------------


def _service_monitor_spec(cr: Keycloak) -> dict[str, Any]:
    return {
        "endpoints": [
            {
                "path": "/auth/realms/master/metrics",
                "port": c.KEYCLOAK_SERVICE_NAME,
                "scheme": "https",
                "tlsConfig": {"insecureSkipVerify": True},
            },
        ],
        "namespaceSelector": {"matchNames": [cr.namespace]},
        "selector": {"matchLabels": labels()},
    }


def service_monitor(cr: Keycloak) -> dict[str, Any]:
    return {
        "apiVersion": SERVICE_MONITOR.api_version,
        "kind": SERVICE_MONITOR.kind,
        "metadata": metadata(c.KEYCLOAK_MONITORING_NAME, cr.namespace, labels=labels()),
        "spec": _service_monitor_spec(cr),
    }


def service_monitor_selector(cr: Keycloak) -> ObjectKey:
    return ObjectKey(c.KEYCLOAK_MONITORING_NAME, cr.namespace)


def service_monitor_reconciled(cr: Keycloak, current: dict[str, Any]) -> dict[str, Any]:
    reconciled = copy.deepcopy(current)
    reconciled["spec"] = _service_monitor_spec(cr)
    return reconciled


# -----------------------------------------------------------------------------
# GrafanaDashboard
# -----------------------------------------------------------------------------


def _dashboard_json(cr: Keycloak) -> str:
    def panel(panel_id: int, title: str, expr: str) -> dict[str, Any]:
        return {
            "id": panel_id,
            "title": title,
            "type": "graph",
            "datasource": "Prometheus",
            "targets": [{"expr": expr, "refId": "A"}],
        }

    selector = f'namespace="{cr.namespace}",job="{c.KEYCLOAK_SERVICE_NAME}"'
    dashboard = {
        "title": "Keycloak",
        "uid": f"keycloak-{cr.namespace}",
        "schemaVersion": 16,
        "panels": [
            panel(1, "Logins", f"sum(increase(keycloak_logins{{{selector}}}[5m]))"),
            panel(2, "Failed logins", f"sum(increase(keycloak_failed_login_attempts{{{selector}}}[5m]))"),
            panel(3, "Heap used", f'jvm_memory_bytes_used{{area="heap",{selector}}}'),
        ],
    }
    return json.dumps(dashboard, sort_keys=True)


def grafana_dashboard(cr: Keycloak) -> dict[str, Any]:
    return {
        "apiVersion": GRAFANA_DASHBOARD.api_version,
        "kind": GRAFANA_DASHBOARD.kind,
        "metadata": metadata(
            c.KEYCLOAK_MONITORING_NAME,
            cr.namespace,
            labels={"monitoring-key": "middleware", **labels()},
        ),
        "spec": {"name": "keycloak.json", "json": _dashboard_json(cr)},
    }


def grafana_dashboard_selector(cr: Keycloak) -> ObjectKey:
    return ObjectKey(c.KEYCLOAK_MONITORING_NAME, cr.namespace)


def grafana_dashboard_reconciled(cr: Keycloak, current: dict[str, Any]) -> dict[str, Any]:
    reconciled = copy.deepcopy(current)
    reconciled["spec"] = {"name": "keycloak.json", "json": _dashboard_json(cr)}
    return reconciled
