"""Probes config map, services, stateful set and pod disruption budget."""

from __future__ import annotations

import copy
from typing import Any

from keycloak_operator.cluster.base import POD_DISRUPTION_BUDGET, ObjectKey
from keycloak_operator.manifests import constants as c
from keycloak_operator.manifests.credentials import admin_secret_name
from keycloak_operator.manifests.util import labels, merge_envs, metadata, secret_value
from keycloak_operator.models.keycloak import Keycloak

LIVENESS_SCRIPT = f"""#!/bin/bash
set -e
curl -s --max-time 10 --fail http://$(hostname -i):{c.KEYCLOAK_HTTP_PORT}/auth > /dev/null
"""

READINESS_SCRIPT = f"""#!/bin/bash
set -e
curl -s --max-time 10 --fail http://$(hostname -i):{c.KEYCLOAK_HTTP_PORT}/auth/realms/master > /dev/null
"""


# -----------------------------------------------------------------------------
# Probes
# -----------------------------------------------------------------------------


def _probes_data() -> dict[str, str]:
    return {
        c.LIVENESS_PROBE_SCRIPT: LIVENESS_SCRIPT,
        c.READINESS_PROBE_SCRIPT: READINESS_SCRIPT,
    }


def probes_config_map(cr: Keycloak) -> dict[str, Any]:
    return {
        "apiVersion": "v1",
        "kind": "ConfigMap",
        "metadata": metadata(c.KEYCLOAK_PROBES_NAME, cr.namespace, labels=labels()),
        "data": _probes_data(),
    }


def probes_config_map_selector(cr: Keycloak) -> ObjectKey:
    return ObjectKey(c.KEYCLOAK_PROBES_NAME, cr.namespace)


def probes_config_map_reconciled(cr: Keycloak, current: dict[str, Any]) -> dict[str, Any]:
    reconciled = copy.deepcopy(current)
    reconciled["data"] = _probes_data()
    return reconciled


# -----------------------------------------------------------------------------
# Services
# -----------------------------------------------------------------------------


def _service_ports() -> list[dict[str, Any]]:
    return [
        {
            "name": c.KEYCLOAK_SERVICE_NAME,
            "port": c.KEYCLOAK_HTTPS_PORT,
            "targetPort": c.KEYCLOAK_HTTPS_PORT,
            "protocol": "TCP",
        }
    ]


def keycloak_service(cr: Keycloak) -> dict[str, Any]:
    return {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": metadata(
            c.KEYCLOAK_SERVICE_NAME,
            cr.namespace,
            labels=labels(),
            annotations={
                "service.alpha.openshift.io/serving-cert-secret-name": c.SERVING_CERT_SECRET_NAME,
            },
        ),
        "spec": {
            "ports": _service_ports(),
            "selector": labels(c.KEYCLOAK_COMPONENT),
        },
    }


def keycloak_service_selector(cr: Keycloak) -> ObjectKey:
    return ObjectKey(c.KEYCLOAK_SERVICE_NAME, cr.namespace)


def keycloak_service_reconciled(cr: Keycloak, current: dict[str, Any]) -> dict[str, Any]:
    # clusterIP is immutable, so keep the rest of the live spec
    reconciled = copy.deepcopy(current)
    spec = reconciled.setdefault("spec", {})
    spec["ports"] = _service_ports()
    spec["selector"] = labels(c.KEYCLOAK_COMPONENT)
    return reconciled


def _discovery_spec() -> dict[str, Any]:
    return {
        "ports": [
            {
                "port": c.KEYCLOAK_DISCOVERY_PORT,
                "targetPort": c.KEYCLOAK_DISCOVERY_PORT,
                "protocol": "TCP",
            }
        ],
        "selector": labels(c.KEYCLOAK_COMPONENT),
        "clusterIP": "None",
        "publishNotReadyAddresses": True,
    }


def discovery_service(cr: Keycloak) -> dict[str, Any]:
    return {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": metadata(c.KEYCLOAK_DISCOVERY_SERVICE_NAME, cr.namespace, labels=labels()),
        "spec": _discovery_spec(),
    }


def discovery_service_selector(cr: Keycloak) -> ObjectKey:
    return ObjectKey(c.KEYCLOAK_DISCOVERY_SERVICE_NAME, cr.namespace)


def discovery_service_reconciled(cr: Keycloak, current: dict[str, Any]) -> dict[str, Any]:
    reconciled = copy.deepcopy(current)
    spec = reconciled.setdefault("spec", {})
    spec.update({k: v for k, v in _discovery_spec().items() if k != "clusterIP"})
    return reconciled


# -----------------------------------------------------------------------------
# StatefulSet
# -----------------------------------------------------------------------------


def sanitize_replicas(instances: int, is_create: bool) -> int:
    """A new stateful set runs at least one replica; an existing one may scale to 0."""
    if is_create and instances < 1:
        return 1
    return instances


def database_port(db_secret: dict[str, Any] | None) -> int:
    raw = secret_value(db_secret, c.DATABASE_EXTERNAL_PORT_KEY)
    try:
        return int(raw)
    except ValueError:
        return c.POSTGRESQL_DEFAULT_PORT


def database_name(db_secret: dict[str, Any] | None) -> str:
    return secret_value(db_secret, c.DATABASE_NAME_KEY) or c.POSTGRESQL_DATABASE


def database_address(cr: Keycloak, db_secret: dict[str, Any] | None) -> str:
    if cr.external_database.enabled:
        external = secret_value(db_secret, c.DATABASE_EXTERNAL_ADDRESS_KEY)
        if external:
            return external
    return f"{c.POSTGRESQL_SERVICE_NAME}.{cr.namespace}"


def _secret_env(name: str, secret: str, key: str) -> dict[str, Any]:
    return {"name": name, "valueFrom": {"secretKeyRef": {"name": secret, "key": key}}}


def keycloak_env(cr: Keycloak, db_secret: dict[str, Any] | None) -> list[dict[str, Any]]:
    """Container environment; user-declared variables override generated ones."""
    env = [
        # Database
        {"name": "DB_VENDOR", "value": "POSTGRES"},
        {"name": "DB_SCHEMA", "value": "public"},
        {"name": "DB_ADDR", "value": database_address(cr, db_secret)},
        {"name": "DB_PORT", "value": str(database_port(db_secret))},
        {"name": "DB_DATABASE", "value": database_name(db_secret)},
        _secret_env("DB_USER", c.DATABASE_SECRET_NAME, c.DATABASE_USERNAME_KEY),
        _secret_env("DB_PASSWORD", c.DATABASE_SECRET_NAME, c.DATABASE_PASSWORD_KEY),
        # Discovery
        {"name": "NAMESPACE", "value": cr.namespace},
        {"name": "JGROUPS_DISCOVERY_PROTOCOL", "value": "dns.DNS_PING"},
        {
            "name": "JGROUPS_DISCOVERY_PROPERTIES",
            "value": f"dns_query={c.KEYCLOAK_DISCOVERY_SERVICE_NAME}.{cr.namespace}",
        },
        # Cache
        {"name": "CACHE_OWNERS_COUNT", "value": "2"},
        {"name": "CACHE_OWNERS_AUTH_SESSIONS_COUNT", "value": "2"},
        # Admin
        _secret_env("KEYCLOAK_USER", admin_secret_name(cr), c.ADMIN_USERNAME_KEY),
        _secret_env("KEYCLOAK_PASSWORD", admin_secret_name(cr), c.ADMIN_PASSWORD_KEY),
        {"name": "X509_CA_BUNDLE", "value": "/var/run/secrets/kubernetes.io/serviceaccount/*.crt"},
        {"name": "PROXY_ADDRESS_FORWARDING", "value": "true"},
    ]
    overrides = [{"name": k, "value": v} for k, v in cr.deployment.env.items()]
    return merge_envs(overrides, env)


def _probe(script: str, initial_delay: int) -> dict[str, Any]:
    return {
        "exec": {"command": ["/bin/sh", "-c", f"/probes/{script}"]},
        "initialDelaySeconds": initial_delay,
        "timeoutSeconds": c.PROBE_TIMEOUT_SECONDS,
        "periodSeconds": c.PROBE_PERIOD_SECONDS,
        "failureThreshold": c.PROBE_FAILURE_THRESHOLD,
    }


def _keycloak_container(cr: Keycloak, db_secret: dict[str, Any] | None) -> dict[str, Any]:
    return {
        "name": c.KEYCLOAK_STATEFULSET_NAME,
        "image": cr.deployment.image or c.DEFAULT_KEYCLOAK_IMAGE,
        "ports": [
            {"containerPort": c.KEYCLOAK_HTTPS_PORT, "protocol": "TCP"},
            {"containerPort": c.KEYCLOAK_MANAGEMENT_PORT, "protocol": "TCP"},
            {"containerPort": c.KEYCLOAK_HTTP_PORT, "protocol": "TCP"},
        ],
        "env": keycloak_env(cr, db_secret),
        "volumeMounts": [
            {"name": c.SERVING_CERT_SECRET_NAME, "mountPath": "/etc/x509/https"},
            {"name": c.EXTENSIONS_VOLUME_NAME, "mountPath": c.EXTENSIONS_PATH, "readOnly": False},
            {"name": c.KEYCLOAK_PROBES_NAME, "mountPath": "/probes"},
        ],
        "livenessProbe": _probe(c.LIVENESS_PROBE_SCRIPT, c.LIVENESS_PROBE_INITIAL_DELAY),
        "readinessProbe": _probe(c.READINESS_PROBE_SCRIPT, c.READINESS_PROBE_INITIAL_DELAY),
        "resources": copy.deepcopy(cr.deployment.resources),
    }


def _init_containers(cr: Keycloak) -> list[dict[str, Any]]:
    if not cr.extensions:
        return []
    return [
        {
            "name": "extensions-init",
            "image": cr.deployment.init_container_image or c.DEFAULT_KEYCLOAK_INIT_CONTAINER,
            "env": [{"name": c.EXTENSIONS_ENV_VAR, "value": ",".join(cr.extensions)}],
            "volumeMounts": [
                {
                    "name": c.EXTENSIONS_VOLUME_NAME,
                    "mountPath": c.EXTENSIONS_INIT_CONTAINER_PATH,
                    "readOnly": False,
                }
            ],
        }
    ]


def _volumes() -> list[dict[str, Any]]:
    return [
        {
            "name": c.SERVING_CERT_SECRET_NAME,
            "secret": {"secretName": c.SERVING_CERT_SECRET_NAME, "optional": True},
        },
        {"name": c.EXTENSIONS_VOLUME_NAME, "emptyDir": {}},
        {
            "name": c.KEYCLOAK_PROBES_NAME,
            "configMap": {"name": c.KEYCLOAK_PROBES_NAME, "defaultMode": 0o555},
        },
    ]


def _pod_spec(cr: Keycloak, db_secret: dict[str, Any] | None) -> dict[str, Any]:
    return {
        "containers": [_keycloak_container(cr, db_secret)],
        "initContainers": _init_containers(cr),
        "volumes": _volumes(),
    }


def keycloak_statefulset(cr: Keycloak, db_secret: dict[str, Any] | None) -> dict[str, Any]:
    """Build the Keycloak stateful set; ``db_secret`` supplies the connection settings."""
    pod_labels = labels(c.KEYCLOAK_COMPONENT)
    return {
        "apiVersion": "apps/v1",
        "kind": "StatefulSet",
        "metadata": metadata(c.KEYCLOAK_STATEFULSET_NAME, cr.namespace, labels=pod_labels),
        "spec": {
            "replicas": sanitize_replicas(cr.instances, is_create=True),
            "serviceName": c.KEYCLOAK_DISCOVERY_SERVICE_NAME,
            "selector": {"matchLabels": pod_labels},
            "template": {
                "metadata": {"name": c.KEYCLOAK_STATEFULSET_NAME, "labels": pod_labels},
                "spec": _pod_spec(cr, db_secret),
            },
        },
    }


def keycloak_statefulset_selector(cr: Keycloak) -> ObjectKey:
    return ObjectKey(c.KEYCLOAK_STATEFULSET_NAME, cr.namespace)


def keycloak_statefulset_reconciled(
    cr: Keycloak, current: dict[str, Any], db_secret: dict[str, Any] | None
) -> dict[str, Any]:
    """Apply the managed container fields onto the live stateful set."""
    reconciled = copy.deepcopy(current)
    spec = reconciled.setdefault("spec", {})
    spec["replicas"] = sanitize_replicas(cr.instances, is_create=False)

    pod_spec = spec.setdefault("template", {}).setdefault("spec", {})
    desired = _keycloak_container(cr, db_secret)
    containers = pod_spec.setdefault("containers", [])
    for i, container in enumerate(containers):
        if container.get("name") == desired["name"]:
            containers[i] = {**container, **desired}
            break
    else:
        containers.append(desired)

    pod_spec["initContainers"] = _init_containers(cr)
    pod_spec["volumes"] = _volumes()
    return reconciled


# -----------------------------------------------------------------------------
# PodDisruptionBudget
# -----------------------------------------------------------------------------


def _pdb_spec(cr: Keycloak) -> dict[str, Any]:
    return {
        "maxUnavailable": cr.pod_disruption_budget.max_unavailable,
        "selector": {"matchLabels": labels(c.KEYCLOAK_COMPONENT)},
    }


def pod_disruption_budget(cr: Keycloak) -> dict[str, Any]:
    return {
        "apiVersion": POD_DISRUPTION_BUDGET.api_version,
        "kind": POD_DISRUPTION_BUDGET.kind,
        "metadata": metadata(c.KEYCLOAK_STATEFULSET_NAME, cr.namespace, labels=labels()),
        "spec": _pdb_spec(cr),
    }


def pod_disruption_budget_selector(cr: Keycloak) -> ObjectKey:
    return ObjectKey(c.KEYCLOAK_STATEFULSET_NAME, cr.namespace)


def pod_disruption_budget_reconciled(cr: Keycloak, current: dict[str, Any]) -> dict[str, Any]:
    reconciled = copy.deepcopy(current)
    reconciled["spec"] = _pdb_spec(cr)
    return reconciled
