"""Capability flags for optional cluster resource kinds."""

import threading
from typing import Any

import structlog
from cachetools import Cache, TTLCache

from keycloak_operator.cluster.base import (
    GRAFANA_DASHBOARD,
    PROMETHEUS_RULE,
    ROUTE,
    SERVICE_MONITOR,
    ClusterClient,
    ResourceKind,
)

logger = structlog.get_logger()

# Subsystem for flags that describe the cluster flavour rather than one controller
CLUSTER_SUBSYSTEM = "cluster"

MONITORING_KINDS: tuple[ResourceKind, ...] = (PROMETHEUS_RULE, SERVICE_MONITOR, GRAFANA_DASHBOARD)


def capability_key(subsystem: str, kind: str) -> str:
    """Build the composite key for a capability flag."""
    return f"{subsystem}/{kind}"


ROUTE_CAPABILITY = capability_key(CLUSTER_SUBSYSTEM, ROUTE.kind)


class CapabilityCache:
    """Process-wide store of "is this resource kind installed" flags.

    Thread-safe. A missing key means unknown and reads as ``False``, so
    callers that observe a flag before discovery ran treat the kind as
    unsupported.
    """

    def __init__(self, ttl_seconds: int | None = None, maxsize: int = 256):
        """Initialize the cache.

        Args:
            ttl_seconds: Optional time-to-live; expired flags read as unknown
            maxsize: Maximum number of flags
        """
        self._flags: Cache = (
            TTLCache(maxsize=maxsize, ttl=ttl_seconds)
            if ttl_seconds
            else Cache(maxsize=maxsize)
        )
        self._lock = threading.RLock()

    def get(self, key: str) -> bool:
        with self._lock:
            return bool(self._flags.get(key, False))

    def has(self, key: str) -> bool:
        """Check whether a flag is known (set and not expired)."""
        with self._lock:
            return key in self._flags

    def set(self, key: str, value: bool) -> None:
        with self._lock:
            self._flags[key] = bool(value)
        logger.debug("Capability set", key=key, value=bool(value))

    def clear(self) -> None:
        with self._lock:
            self._flags.clear()

    @property
    def snapshot(self) -> dict[str, Any]:
        """Copy of all known flags."""
        with self._lock:
            return dict(self._flags.items())


def discover_capabilities(
    cluster: ClusterClient,
    cache: CapabilityCache,
    controller_name: str,
) -> dict[str, bool]:
    """Probe the optional kinds and record whether the cluster serves them.

    Monitoring kinds are keyed per controller, the route kind per cluster.
    """
    probes = [(capability_key(controller_name, kind.kind), kind) for kind in MONITORING_KINDS]
    probes.append((ROUTE_CAPABILITY, ROUTE))

    found: dict[str, bool] = {}
    for key, kind in probes:
        supported = cluster.is_registered(kind)
        cache.set(key, supported)
        found[key] = supported

    logger.info("Capabilities discovered", **found)
    return found
