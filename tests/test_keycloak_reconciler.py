import base64

import pytest

from keycloak_operator import manifests
from keycloak_operator.actions import ActionRunner, CreateAction, UpdateAction
from keycloak_operator.capabilities import MONITORING_KINDS, ROUTE_CAPABILITY, capability_key
from keycloak_operator.reconcilers import KeycloakReconciler, update_status
from keycloak_operator.state import ClusterState, ClusterStateReader

MONITORING_MSGS = {
    "create keycloak prometheus rule",
    "create keycloak service monitor",
    "create keycloak grafana dashboard",
}


def _enable_monitoring(capabilities):
    for kind in MONITORING_KINDS:
        capabilities.set(capability_key("keycloak", kind.kind), True)


def _msgs(desired):
    return [a.msg for a in desired]


def test_no_flags_plans_no_monitoring_even_if_present(capabilities, keycloak_cr):
    state = ClusterState(
        prometheus_rule=manifests.prometheus_rule(keycloak_cr),
        service_monitor=manifests.service_monitor(keycloak_cr),
        grafana_dashboard=manifests.grafana_dashboard(keycloak_cr),
    )

    desired = KeycloakReconciler(capabilities).reconcile(state, keycloak_cr)

    assert not any("prometheus" in m or "monitor" in m or "grafana" in m for m in _msgs(desired))


def test_empty_snapshot_plans_default_order(capabilities, keycloak_cr):
    desired = KeycloakReconciler(capabilities).reconcile(ClusterState(), keycloak_cr)

    assert _msgs(desired) == [
        "create keycloak admin secret",
        "create database secret",
        "create keycloak probes",
        "create keycloak service",
        "create keycloak discovery service",
        "create keycloak statefulset",
    ]
    assert all(isinstance(a, CreateAction) for a in desired)


def test_flagged_monitoring_creates_then_updates(capabilities, keycloak_cr):
    _enable_monitoring(capabilities)
    reconciler = KeycloakReconciler(capabilities)

    desired = reconciler.reconcile(ClusterState(), keycloak_cr)
    assert _msgs(desired)[1:4] == [
        "create keycloak prometheus rule",
        "create keycloak service monitor",
        "create keycloak grafana dashboard",
    ]

    state = ClusterState(
        prometheus_rule=manifests.prometheus_rule(keycloak_cr),
        service_monitor=manifests.service_monitor(keycloak_cr),
        grafana_dashboard=manifests.grafana_dashboard(keycloak_cr),
    )
    desired = reconciler.reconcile(state, keycloak_cr)
    assert _msgs(desired)[1:4] == [
        "update keycloak prometheus rule",
        "update keycloak service monitor",
        "update keycloak grafana dashboard",
    ]


def test_external_access_with_route(capabilities, exposed_keycloak_cr):
    _enable_monitoring(capabilities)
    capabilities.set(ROUTE_CAPABILITY, True)

    desired = KeycloakReconciler(capabilities).reconcile(ClusterState(), exposed_keycloak_cr)

    assert _msgs(desired) == [
        "create keycloak admin secret",
        "create keycloak prometheus rule",
        "create keycloak service monitor",
        "create keycloak grafana dashboard",
        "create database secret",
        "create keycloak probes",
        "create keycloak service",
        "create keycloak discovery service",
        "create keycloak statefulset",
        "create keycloak route",
    ]


def test_external_access_without_route_uses_ingress(capabilities, exposed_keycloak_cr):
    desired = KeycloakReconciler(capabilities).reconcile(ClusterState(), exposed_keycloak_cr)
    assert _msgs(desired)[-1] == "create keycloak ingress"
    assert desired[-1].ref["kind"] == "Ingress"


def test_pdb_and_external_database_names(capabilities, keycloak_cr):
    keycloak_cr.pod_disruption_budget.enabled = True
    keycloak_cr.external_database.enabled = True

    desired = KeycloakReconciler(capabilities).reconcile(ClusterState(), keycloak_cr)

    msgs = _msgs(desired)
    assert "create external database secret" in msgs
    assert msgs[-1] == "create keycloak pod disruption budget"


def test_statefulset_uses_snapshot_database_secret(capabilities, keycloak_cr):
    keycloak_cr.external_database.enabled = True
    keycloak_cr.external_database.host = "db.example.com"
    db_secret = manifests.database_secret(keycloak_cr)

    desired = KeycloakReconciler(capabilities).reconcile(
        ClusterState(database_secret=db_secret), keycloak_cr
    )

    statefulset = next(a.ref for a in desired if a.msg == "create keycloak statefulset")
    env = {e["name"]: e.get("value") for e in statefulset["spec"]["template"]["spec"]["containers"][0]["env"]}
    assert env["DB_ADDR"] == "db.example.com"


def test_non_utf8_secret_values_do_not_break_planning(capabilities, keycloak_cr):
    binary = base64.b64encode(b"\xff\xfe\x00pw").decode()
    admin_secret = manifests.admin_secret(keycloak_cr)
    admin_secret["data"]["ADMIN_PASSWORD"] = binary
    db_secret = manifests.database_secret(keycloak_cr)
    db_secret["data"]["POSTGRES_EXTERNAL_PORT"] = binary

    desired = KeycloakReconciler(capabilities).reconcile(
        ClusterState(admin_secret=admin_secret, database_secret=db_secret), keycloak_cr
    )

    update = next(a for a in desired if a.msg == "update keycloak admin secret")
    assert isinstance(update, UpdateAction)
    assert update.ref["data"]["ADMIN_PASSWORD"] == binary
    assert "create keycloak statefulset" in _msgs(desired)


@pytest.mark.asyncio
async def test_replanning_converged_state_keeps_step_count(cluster, capabilities, exposed_keycloak_cr):
    _enable_monitoring(capabilities)
    capabilities.set(ROUTE_CAPABILITY, True)
    reader = ClusterStateReader(cluster, capabilities)
    reconciler = KeycloakReconciler(capabilities)

    first = reconciler.reconcile(reader.read(exposed_keycloak_cr), exposed_keycloak_cr)
    await ActionRunner(cluster).run(first)

    second = reconciler.reconcile(reader.read(exposed_keycloak_cr), exposed_keycloak_cr)

    assert len(second) == len(first)
    assert all(isinstance(a, UpdateAction) for a in second)
    assert [m.replace("create", "update", 1) for m in _msgs(first)] == _msgs(second)


def test_unmanaged_is_still_planned(capabilities, keycloak_cr):
    keycloak_cr.unmanaged = True
    desired = KeycloakReconciler(capabilities).reconcile(ClusterState(), keycloak_cr)
    assert len(desired) == 6


def test_update_status_fills_endpoints(keycloak_cr):
    state = ClusterState(
        ingress={"spec": {"rules": [{"host": "sso.example.com"}]}},
    )
    update_status(keycloak_cr, state, ready=True)

    assert keycloak_cr.status.ready
    assert keycloak_cr.status.phase == "reconciled"
    assert keycloak_cr.status.credential_secret == "credential-sso"
    assert keycloak_cr.status.internal_url == "https://keycloak.identity.svc:8443"
    assert keycloak_cr.status.external_url == "https://sso.example.com"

    update_status(keycloak_cr, ClusterState(), ready=False)
    assert keycloak_cr.status.phase == "reconciling"
    assert keycloak_cr.status.external_url == ""
