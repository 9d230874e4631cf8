"""ClusterClient on top of the kubernetes dynamic client."""

from __future__ import annotations

import logging
from typing import Any

from kubernetes import client, config
from kubernetes.dynamic import DynamicClient
from kubernetes.dynamic.exceptions import (
    DynamicApiError,
    NotFoundError as DynamicNotFoundError,
    ResourceNotFoundError,
)

from keycloak_operator.cluster.base import (
    ClusterError,
    KindNotRegisteredError,
    NotFoundError,
    ObjectKey,
    ResourceKind,
    key_of,
    kind_of,
)

logger = logging.getLogger(__name__)


class KubernetesClusterClient:
    """Cluster client backed by ``kubernetes.dynamic.DynamicClient``.

    Maps the dynamic client's errors onto the cluster error taxonomy:
    ``ResourceNotFoundError`` (discovery miss) becomes
    ``KindNotRegisteredError``, HTTP 404 becomes ``NotFoundError``.
    """

    def __init__(self, dynamic: DynamicClient):
        self._dynamic = dynamic

    @classmethod
    def from_config(cls) -> "KubernetesClusterClient":
        """Build a client from in-cluster config, falling back to kubeconfig."""
        try:
            config.load_incluster_config()
        except config.ConfigException:
            try:
                config.load_kube_config()
            except config.ConfigException as e:
                raise ClusterError(f"no cluster configuration found: {e}") from e
        return cls(DynamicClient(client.ApiClient()))

    def _resource(self, kind: ResourceKind) -> Any:
        try:
            return self._dynamic.resources.get(api_version=kind.api_version, kind=kind.kind)
        except ResourceNotFoundError as e:
            raise KindNotRegisteredError(f"{kind} is not registered: {e}", kind=kind.kind) from e

    def get(self, kind: ResourceKind, key: ObjectKey) -> dict[str, Any]:
        resource = self._resource(kind)
        try:
            obj = resource.get(name=key.name, namespace=key.namespace)
        except DynamicNotFoundError as e:
            raise NotFoundError(f"{kind.kind} {key.namespace}/{key.name} not found", kind=kind.kind) from e
        except DynamicApiError as e:
            raise ClusterError(
                f"failed to get {kind.kind} {key.namespace}/{key.name}: ({e.status}) {e.reason}",
                kind=kind.kind,
            ) from e
        return obj.to_dict()

    def create(self, obj: dict[str, Any]) -> dict[str, Any]:
        kind = kind_of(obj)
        key = key_of(obj)
        resource = self._resource(kind)
        try:
            created = resource.create(body=obj, namespace=key.namespace)
        except DynamicApiError as e:
            raise ClusterError(
                f"failed to create {kind.kind} {key.namespace}/{key.name}: ({e.status}) {e.reason}",
                kind=kind.kind,
            ) from e
        logger.info("Created %s %s/%s", kind.kind, key.namespace, key.name)
        return created.to_dict()

    def update(self, obj: dict[str, Any]) -> dict[str, Any]:
        kind = kind_of(obj)
        key = key_of(obj)
        resource = self._resource(kind)
        try:
            updated = resource.replace(body=obj, namespace=key.namespace)
        except DynamicNotFoundError as e:
            raise NotFoundError(f"{kind.kind} {key.namespace}/{key.name} not found", kind=kind.kind) from e
        except DynamicApiError as e:
            raise ClusterError(
                f"failed to update {kind.kind} {key.namespace}/{key.name}: ({e.status}) {e.reason}",
                kind=kind.kind,
            ) from e
        logger.debug("Updated %s %s/%s", kind.kind, key.namespace, key.name)
        return updated.to_dict()

    def delete(self, obj: dict[str, Any]) -> None:
        kind = kind_of(obj)
        key = key_of(obj)
        resource = self._resource(kind)
        try:
            resource.delete(name=key.name, namespace=key.namespace)
        except DynamicNotFoundError as e:
            raise NotFoundError(f"{kind.kind} {key.namespace}/{key.name} not found", kind=kind.kind) from e
        except DynamicApiError as e:
            raise ClusterError(
                f"failed to delete {kind.kind} {key.namespace}/{key.name}: ({e.status}) {e.reason}",
                kind=kind.kind,
            ) from e
        logger.info("Deleted %s %s/%s", kind.kind, key.namespace, key.name)

    def is_registered(self, kind: ResourceKind) -> bool:
        try:
            self._resource(kind)
        except KindNotRegisteredError:
            return False
        return True
