import base64

from keycloak_operator import manifests
from keycloak_operator.manifests.util import (
    merge_envs,
    sanitize_resource_name,
    secret_value,
)
from keycloak_operator.manifests.workload import database_port, keycloak_env, sanitize_replicas
from keycloak_operator.models import Keycloak


def _b64(value: str) -> str:
    return base64.b64encode(value.encode()).decode()


def test_admin_secret_is_generated(keycloak_cr):
    secret = manifests.admin_secret(keycloak_cr)
    assert secret["metadata"] == {
        "name": "credential-sso",
        "namespace": "identity",
        "labels": {"app": "keycloak"},
    }
    assert secret_value(secret, "ADMIN_USERNAME") == "admin"
    assert secret_value(secret, "ADMIN_PASSWORD")


def test_admin_secret_reconcile_keeps_existing_credentials(keycloak_cr):
    current = manifests.admin_secret(keycloak_cr)
    current["data"] = {"ADMIN_USERNAME": _b64("root"), "ADMIN_PASSWORD": _b64("kept")}

    reconciled = manifests.admin_secret_reconciled(keycloak_cr, current)

    assert reconciled["data"] == current["data"]
    assert reconciled is not current


def test_admin_secret_reconcile_keeps_binary_password(keycloak_cr):
    current = manifests.admin_secret(keycloak_cr)
    binary = base64.b64encode(b"\xff\xfe\x00pw").decode()
    current["data"] = {"ADMIN_USERNAME": _b64("root"), "ADMIN_PASSWORD": binary}

    reconciled = manifests.admin_secret_reconciled(keycloak_cr, current)

    assert reconciled["data"]["ADMIN_PASSWORD"] == binary


def test_secret_value_tolerates_non_utf8_and_malformed_data():
    secret = {"data": {"binary": base64.b64encode(b"\xffpw").decode(), "broken": "not base64!"}}

    assert secret_value(secret, "binary").endswith("pw")
    assert secret_value(secret, "broken") == ""


def test_admin_secret_reconcile_fills_empty_credentials(keycloak_cr):
    current = manifests.admin_secret(keycloak_cr)
    current["data"] = {"ADMIN_USERNAME": _b64("root"), "ADMIN_PASSWORD": ""}

    reconciled = manifests.admin_secret_reconciled(keycloak_cr, current)

    assert reconciled["data"]["ADMIN_USERNAME"] == _b64("root")
    assert secret_value(reconciled, "ADMIN_PASSWORD")
    assert current["data"]["ADMIN_PASSWORD"] == ""


def test_internal_database_secret_fills_missing_only(keycloak_cr):
    current = manifests.database_secret(keycloak_cr)
    password = current["data"]["POSTGRES_PASSWORD"]
    del current["data"]["POSTGRES_DATABASE"]

    reconciled = manifests.database_secret_reconciled(keycloak_cr, current)

    assert reconciled["data"]["POSTGRES_PASSWORD"] == password
    assert secret_value(reconciled, "POSTGRES_DATABASE") == "root"


def test_external_database_fields_win():
    cr = Keycloak.model_validate(
        {
            "external_database": {
                "enabled": True,
                "host": "db.example.com",
                "port": 6543,
                "username": "kc",
                "password": "new",
            }
        }
    )
    current = manifests.database_secret(cr)
    current["data"]["POSTGRES_PASSWORD"] = _b64("old")

    reconciled = manifests.database_secret_reconciled(cr, current)

    assert secret_value(reconciled, "POSTGRES_PASSWORD") == "new"
    assert secret_value(reconciled, "POSTGRES_EXTERNAL_ADDRESS") == "db.example.com"
    assert database_port(reconciled) == 6543


def test_database_port_defaults():
    assert database_port(None) == 5432


def test_env_overrides_win(keycloak_cr):
    keycloak_cr.deployment.env = {"PROXY_ADDRESS_FORWARDING": "false", "EXTRA": "1"}

    env = keycloak_env(keycloak_cr, None)

    by_name = {e["name"]: e for e in env}
    assert by_name["PROXY_ADDRESS_FORWARDING"]["value"] == "false"
    assert by_name["EXTRA"]["value"] == "1"
    assert by_name["DB_ADDR"]["value"] == "keycloak-postgresql.identity"
    assert by_name["KEYCLOAK_USER"]["valueFrom"]["secretKeyRef"]["name"] == "credential-sso"
    assert [e["name"] for e in env].count("PROXY_ADDRESS_FORWARDING") == 1


def test_merge_envs():
    merged = merge_envs([{"name": "A", "value": "x"}], [{"name": "A", "value": "y"}, {"name": "B", "value": "z"}])
    assert merged == [{"name": "A", "value": "x"}, {"name": "B", "value": "z"}]


def test_replicas():
    assert sanitize_replicas(0, is_create=True) == 1
    assert sanitize_replicas(0, is_create=False) == 0
    assert sanitize_replicas(3, is_create=True) == 3


def test_statefulset_extensions_init_container(keycloak_cr):
    keycloak_cr.extensions = ["https://example.com/a.jar", "https://example.com/b.jar"]

    statefulset = manifests.keycloak_statefulset(keycloak_cr, None)

    pod = statefulset["spec"]["template"]["spec"]
    assert pod["initContainers"][0]["env"] == [
        {"name": "KEYCLOAK_EXTENSIONS", "value": "https://example.com/a.jar,https://example.com/b.jar"}
    ]
    assert pod["containers"][0]["image"] == "quay.io/keycloak/keycloak:9.0.2"


def test_statefulset_reconcile_keeps_foreign_containers(keycloak_cr):
    current = manifests.keycloak_statefulset(keycloak_cr, None)
    current["spec"]["template"]["spec"]["containers"].append({"name": "sidecar", "image": "busybox"})
    current["status"] = {"replicas": 1}
    keycloak_cr.instances = 3
    keycloak_cr.deployment.image = "keycloak:custom"

    reconciled = manifests.keycloak_statefulset_reconciled(keycloak_cr, current, None)

    containers = reconciled["spec"]["template"]["spec"]["containers"]
    assert [c["name"] for c in containers] == ["keycloak", "sidecar"]
    assert containers[0]["image"] == "keycloak:custom"
    assert reconciled["spec"]["replicas"] == 3
    assert reconciled["status"] == {"replicas": 1}


def test_ingress_defaults_and_keeps_live_host(keycloak_cr):
    ingress = manifests.ingress(keycloak_cr)
    assert ingress["spec"]["rules"][0]["host"] == "keycloak.local"

    current = manifests.ingress(keycloak_cr)
    current["spec"]["rules"][0]["host"] = "live.example.com"
    current["spec"]["tls"] = [{"hosts": ["live.example.com"], "secretName": "live-tls"}]
    keycloak_cr.external_access.annotations = {"a": "b"}

    reconciled = manifests.ingress_reconciled(keycloak_cr, current)

    assert reconciled["spec"]["rules"][0]["host"] == "live.example.com"
    assert reconciled["spec"]["tls"] == current["spec"]["tls"]
    assert reconciled["metadata"]["annotations"] == {"a": "b"}


def test_route_points_at_service(exposed_keycloak_cr):
    route = manifests.route(exposed_keycloak_cr)
    assert route["spec"]["host"] == "sso.example.com"
    assert route["spec"]["to"] == {"kind": "Service", "name": "keycloak"}
    assert route["spec"]["tls"] == {"termination": "reencrypt"}


def test_discovery_service_keeps_cluster_ip(keycloak_cr):
    current = manifests.discovery_service(keycloak_cr)
    current["spec"]["clusterIP"] = "None"
    reconciled = manifests.discovery_service_reconciled(keycloak_cr, current)
    assert reconciled["spec"]["clusterIP"] == "None"
    assert reconciled["spec"]["publishNotReadyAddresses"] is True


def test_sanitize_resource_name():
    assert sanitize_resource_name("Credential-My_Realm-Bob@x") == "credential-my-realm-bobx"
