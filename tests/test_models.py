import pytest

from keycloak_operator.models import Keycloak, KeycloakAPIUser, KeycloakRealm, resolve_env


def test_resolve_env_with_defaults(monkeypatch):
    monkeypatch.setenv("KC_HOST", "sso.example.com")
    monkeypatch.delenv("KC_MISSING", raising=False)

    assert resolve_env("${KC_HOST}") == "sso.example.com"
    assert resolve_env("${KC_MISSING:-fallback}") == "fallback"
    assert resolve_env("${KC_MISSING}") == ""
    assert resolve_env({"a": ["${KC_HOST}", 1]}) == {"a": ["sso.example.com", 1]}


def test_keycloak_from_yaml(tmp_path, monkeypatch):
    monkeypatch.setenv("KC_DB_PASSWORD", "hunter2")
    path = tmp_path / "keycloak.yaml"
    path.write_text(
        """
name: sso
namespace: identity
instances: 2
external_database:
  enabled: true
  host: db.example.com
  password: ${KC_DB_PASSWORD}
"""
    )

    cr = Keycloak.from_yaml(path)

    assert cr.instances == 2
    assert cr.external_database.password == "hunter2"
    assert cr.external_database.port == 5432
    assert cr.status.secondary_resources == {}


def test_from_yaml_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        Keycloak.from_yaml(tmp_path / "missing.yaml")

    path = tmp_path / "list.yaml"
    path.write_text("- a\n- b\n")
    with pytest.raises(ValueError):
        Keycloak.from_yaml(path)


def test_realm_from_yaml_accepts_api_field_names(tmp_path):
    path = tmp_path / "realm.yaml"
    path.write_text(
        """
name: demo
realm:
  realm: demo
  displayName: Demo
  users:
    - username: alice
      firstName: Alice
  groups:
    - name: admins
      subGroups:
        - name: ops
realm_overrides:
  - identity_provider: corp
"""
    )

    cr = KeycloakRealm.from_yaml(path)

    assert cr.realm_name == "demo"
    assert cr.realm.display_name == "Demo"
    assert cr.realm.users[0].first_name == "Alice"
    assert cr.realm.groups[0].sub_groups[0].name == "ops"
    assert cr.realm_overrides[0].for_flow == "browser"
    assert not cr.is_deleting


def test_api_models_serialize_camel_case_and_keep_unknown_fields():
    user = KeycloakAPIUser.model_validate({"username": "alice", "emailVerified": True, "totp": False})
    payload = user.to_api()
    assert payload["emailVerified"] is True
    assert payload["totp"] is False
    assert "firstName" not in payload


def test_secondary_resources_are_deduplicated():
    cr = Keycloak()
    cr.update_status_secondary_resources("Secret", "a")
    cr.update_status_secondary_resources("Secret", "a")
    cr.update_status_secondary_resources("Service", "b")
    assert cr.status.secondary_resources == {"Secret": ["a"], "Service": ["b"]}
