"""Cluster API boundary.

The reconciliation engine talks to the cluster only through the
``ClusterClient`` protocol. Objects travel as plain JSON-compatible dicts
(``apiVersion``/``kind``/``metadata``/...), the same shape the Kubernetes API
returns.

Callers rely on a three-way error distinction on ``get``:

- ``NotFoundError``: the kind exists but the named object does not
- ``KindNotRegisteredError``: the kind itself is not served by the cluster
  (for example a CRD that was never installed)
- any other ``ClusterError``: a real failure
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NamedTuple, Protocol


class ClusterError(Exception):
    """Base exception for cluster API errors."""

    def __init__(self, message: str, kind: str | None = None):
        super().__init__(message)
        self.kind = kind


class NotFoundError(ClusterError):
    """Object does not exist."""

    pass


class KindNotRegisteredError(ClusterError):
    """Resource kind is not served by the cluster."""

    pass


@dataclass(frozen=True)
class ResourceKind:
    """API group/version and kind of a managed resource."""

    api_version: str
    kind: str

    def __str__(self) -> str:
        return f"{self.api_version}/{self.kind}"


class ObjectKey(NamedTuple):
    """Name and namespace selecting one object."""

    name: str
    namespace: str


SECRET = ResourceKind("v1", "Secret")
CONFIG_MAP = ResourceKind("v1", "ConfigMap")
SERVICE = ResourceKind("v1", "Service")
STATEFUL_SET = ResourceKind("apps/v1", "StatefulSet")
POD_DISRUPTION_BUDGET = ResourceKind("policy/v1", "PodDisruptionBudget")
INGRESS = ResourceKind("networking.k8s.io/v1", "Ingress")
ROUTE = ResourceKind("route.openshift.io/v1", "Route")
SERVICE_MONITOR = ResourceKind("monitoring.coreos.com/v1", "ServiceMonitor")
PROMETHEUS_RULE = ResourceKind("monitoring.coreos.com/v1", "PrometheusRule")
GRAFANA_DASHBOARD = ResourceKind("integreatly.org/v1alpha1", "GrafanaDashboard")


def kind_of(obj: dict[str, Any]) -> ResourceKind:
    """Get the resource kind of a manifest."""
    return ResourceKind(obj["apiVersion"], obj["kind"])


def key_of(obj: dict[str, Any]) -> ObjectKey:
    """Get the object key of a manifest."""
    metadata = obj.get("metadata", {})
    return ObjectKey(metadata.get("name", ""), metadata.get("namespace", ""))


class ClusterClient(Protocol):
    """Get/Create/Update/Delete against the cluster API."""

    def get(self, kind: ResourceKind, key: ObjectKey) -> dict[str, Any]:
        """Fetch one object. Raises NotFoundError or KindNotRegisteredError."""
        ...

    def create(self, obj: dict[str, Any]) -> dict[str, Any]:
        ...

    def update(self, obj: dict[str, Any]) -> dict[str, Any]:
        ...

    def delete(self, obj: dict[str, Any]) -> None:
        """Delete one object. Raises NotFoundError when it is already gone."""
        ...

    def is_registered(self, kind: ResourceKind) -> bool:
        """Check whether the cluster serves the given kind."""
        ...
