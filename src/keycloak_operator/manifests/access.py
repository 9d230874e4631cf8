"""External access: OpenShift Route or Kubernetes Ingress."""

from __future__ import annotations

import copy
from typing import Any

from keycloak_operator.cluster.base import INGRESS, ROUTE, ObjectKey
from keycloak_operator.manifests import constants as c
from keycloak_operator.manifests.util import labels, metadata
from keycloak_operator.models.keycloak import Keycloak


# -----------------------------------------------------------------------------
# Route
# -----------------------------------------------------------------------------


def _route_spec(cr: Keycloak) -> dict[str, Any]:
    spec: dict[str, Any] = {
        "to": {"kind": "Service", "name": c.KEYCLOAK_SERVICE_NAME},
        "port": {"targetPort": c.KEYCLOAK_SERVICE_NAME},
        "tls": {"termination": cr.external_access.tls_termination},
    }
    if cr.external_access.host:
        spec["host"] = cr.external_access.host
    return spec


def route(cr: Keycloak) -> dict[str, Any]:
    return {
        "apiVersion": ROUTE.api_version,
        "kind": ROUTE.kind,
        "metadata": metadata(
            c.APPLICATION_NAME,
            cr.namespace,
            labels=labels(),
            annotations=dict(cr.external_access.annotations) or None,
        ),
        "spec": _route_spec(cr),
    }


def route_selector(cr: Keycloak) -> ObjectKey:
    return ObjectKey(c.APPLICATION_NAME, cr.namespace)


def route_reconciled(cr: Keycloak, current: dict[str, Any]) -> dict[str, Any]:
    """Keep the admitted host unless one is declared."""
    reconciled = copy.deepcopy(current)
    spec = reconciled.setdefault("spec", {})
    spec.update(_route_spec(cr))
    return reconciled


# -----------------------------------------------------------------------------
# Ingress
# -----------------------------------------------------------------------------


def _ingress_rule(host: str) -> dict[str, Any]:
    return {
        "host": host,
        "http": {
            "paths": [
                {
                    "path": "/",
                    "pathType": "Prefix",
                    "backend": {
                        "service": {
                            "name": c.KEYCLOAK_SERVICE_NAME,
                            "port": {"number": c.KEYCLOAK_HTTPS_PORT},
                        }
                    },
                }
            ]
        },
    }


def ingress(cr: Keycloak) -> dict[str, Any]:
    host = cr.external_access.host or c.INGRESS_DEFAULT_HOST
    return {
        "apiVersion": INGRESS.api_version,
        "kind": INGRESS.kind,
        "metadata": metadata(
            c.APPLICATION_NAME,
            cr.namespace,
            labels=labels(),
            annotations=dict(cr.external_access.annotations),
        ),
        "spec": {
            "rules": [_ingress_rule(host)],
            "tls": [{"hosts": [host], "secretName": f"{host}-tls"}],
        },
    }


def ingress_selector(cr: Keycloak) -> ObjectKey:
    return ObjectKey(c.APPLICATION_NAME, cr.namespace)


def ingress_reconciled(cr: Keycloak, current: dict[str, Any]) -> dict[str, Any]:
    """Refresh annotations and backend, keeping the live host and TLS settings."""
    reconciled = copy.deepcopy(current)
    spec = current.get("spec") or {}
    rules = spec.get("rules") or []
    host = rules[0].get("host", "") if rules else cr.external_access.host or c.INGRESS_DEFAULT_HOST

    reconciled.setdefault("metadata", {})["annotations"] = dict(cr.external_access.annotations)
    reconciled["spec"] = {
        "tls": copy.deepcopy(spec.get("tls") or []),
        "rules": [_ingress_rule(host)],
    }
    return reconciled
