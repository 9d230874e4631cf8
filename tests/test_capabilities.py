import time

from keycloak_operator.capabilities import (
    ROUTE_CAPABILITY,
    CapabilityCache,
    capability_key,
    discover_capabilities,
)
from keycloak_operator.cluster.base import GRAFANA_DASHBOARD, ROUTE

from conftest import FakeClusterClient


def test_unknown_flag_reads_false():
    cache = CapabilityCache()
    assert cache.get("keycloak/PrometheusRule") is False
    assert cache.has("keycloak/PrometheusRule") is False


def test_set_replaces_value():
    cache = CapabilityCache()
    cache.set("cluster/Route", True)
    assert cache.get("cluster/Route") is True
    cache.set("cluster/Route", False)
    assert cache.get("cluster/Route") is False
    assert cache.snapshot == {"cluster/Route": False}


def test_ttl_expires_flags():
    cache = CapabilityCache(ttl_seconds=1)
    cache.set("cluster/Route", True)
    assert cache.has("cluster/Route")
    time.sleep(1.1)
    assert cache.get("cluster/Route") is False
    assert not cache.has("cluster/Route")


def test_discover_records_served_kinds():
    cluster = FakeClusterClient(unregistered={GRAFANA_DASHBOARD, ROUTE})
    cache = CapabilityCache()

    found = discover_capabilities(cluster, cache, "keycloak")

    assert found == {
        "keycloak/PrometheusRule": True,
        "keycloak/ServiceMonitor": True,
        "keycloak/GrafanaDashboard": False,
        ROUTE_CAPABILITY: False,
    }
    assert cache.get(capability_key("keycloak", "ServiceMonitor")) is True
    assert cache.get(ROUTE_CAPABILITY) is False


def test_monitoring_flags_are_per_controller():
    cache = CapabilityCache()
    discover_capabilities(FakeClusterClient(), cache, "other")
    assert cache.get("other/PrometheusRule") is True
    assert cache.get("keycloak/PrometheusRule") is False
