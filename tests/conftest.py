"""Pytest configuration and fixtures."""

import copy
from typing import Any

import pytest

from keycloak_operator.capabilities import CapabilityCache
from keycloak_operator.cluster.base import (
    ClusterError,
    KindNotRegisteredError,
    NotFoundError,
    ObjectKey,
    ResourceKind,
    key_of,
    kind_of,
)
from keycloak_operator.models import Keycloak, KeycloakRealm


class FakeClusterClient:
    """In-memory cluster keyed by (kind, name, namespace)."""

    def __init__(self, unregistered: set[ResourceKind] | None = None):
        self.objects: dict[tuple[ResourceKind, ObjectKey], dict[str, Any]] = {}
        self.unregistered = set(unregistered or ())
        self.calls: list[tuple[str, str, str]] = []
        self.fail_on: dict[str, Exception] = {}

    def add(self, obj: dict[str, Any]) -> dict[str, Any]:
        self.objects[(kind_of(obj), key_of(obj))] = copy.deepcopy(obj)
        return obj

    def _check(self, op: str, kind: ResourceKind, key: ObjectKey) -> None:
        self.calls.append((op, kind.kind, key.name))
        if op in self.fail_on:
            raise self.fail_on[op]
        if kind in self.unregistered:
            raise KindNotRegisteredError(f"{kind} is not served", kind=kind.kind)

    def get(self, kind: ResourceKind, key: ObjectKey) -> dict[str, Any]:
        self._check("get", kind, key)
        try:
            return copy.deepcopy(self.objects[(kind, key)])
        except KeyError:
            raise NotFoundError(f"{kind.kind} {key.namespace}/{key.name} not found", kind=kind.kind)

    def create(self, obj: dict[str, Any]) -> dict[str, Any]:
        kind, key = kind_of(obj), key_of(obj)
        self._check("create", kind, key)
        if (kind, key) in self.objects:
            raise ClusterError(f"{kind.kind} {key.name} already exists", kind=kind.kind)
        return self.add(obj)

    def update(self, obj: dict[str, Any]) -> dict[str, Any]:
        kind, key = kind_of(obj), key_of(obj)
        self._check("update", kind, key)
        if (kind, key) not in self.objects:
            raise NotFoundError(f"{kind.kind} {key.name} not found", kind=kind.kind)
        return self.add(obj)

    def delete(self, obj: dict[str, Any]) -> None:
        kind, key = kind_of(obj), key_of(obj)
        self._check("delete", kind, key)
        if self.objects.pop((kind, key), None) is None:
            raise NotFoundError(f"{kind.kind} {key.name} not found", kind=kind.kind)

    def is_registered(self, kind: ResourceKind) -> bool:
        return kind not in self.unregistered


@pytest.fixture
def cluster() -> FakeClusterClient:
    return FakeClusterClient()


@pytest.fixture
def capabilities() -> CapabilityCache:
    return CapabilityCache()


@pytest.fixture
def keycloak_cr() -> Keycloak:
    """A managed instance with defaults."""
    return Keycloak(name="sso", namespace="identity")


@pytest.fixture
def exposed_keycloak_cr() -> Keycloak:
    """A managed instance with external access enabled."""
    return Keycloak.model_validate(
        {
            "name": "sso",
            "namespace": "identity",
            "external_access": {"enabled": True, "host": "sso.example.com"},
        }
    )


@pytest.fixture
def realm_cr() -> KeycloakRealm:
    return KeycloakRealm.model_validate(
        {
            "name": "demo",
            "namespace": "identity",
            "realm": {
                "realm": "demo",
                "enabled": True,
                "users": [
                    {
                        "username": "alice",
                        "credentials": [{"type": "password", "value": "s3cret"}],
                    },
                    {"username": "bob"},
                ],
            },
        }
    )
