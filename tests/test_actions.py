import pytest

from keycloak_operator import manifests
from keycloak_operator.actions import (
    ActionError,
    ActionRunner,
    ConfigureRealmAction,
    CreateAction,
    CreateRealmAction,
    DeleteAction,
    DeleteRealmAction,
    DesiredClusterState,
    PingAction,
    UpdateAction,
    UpdateRealmGroupsAction,
)
from keycloak_operator.cluster.base import SECRET, ClusterError, NotFoundError
from keycloak_operator.keycloak import KeycloakError
from keycloak_operator.models import RedirectorIdentityProviderOverride


class FakeKeycloak:
    """Records realm calls made by the runner."""

    def __init__(self, fail_on=None):
        self.calls = []
        self.fail_on = fail_on

    def _record(self, name, *args):
        self.calls.append((name, *args))
        if name == self.fail_on:
            raise KeycloakError(f"{name} failed")

    async def ping(self):
        self._record("ping")

    async def create_realm(self, realm):
        self._record("create_realm", realm.realm)
        return ""

    async def delete_realm(self, realm_name):
        self._record("delete_realm", realm_name)

    async def update_realm(self, realm):
        self._record("update_realm", realm.realm)

    async def update_realm_groups(self, realm):
        self._record("update_realm_groups", realm.realm)
        return []

    async def configure_browser_redirector(self, realm_name, identity_provider, flow_alias="browser"):
        self._record("configure_browser_redirector", realm_name, identity_provider, flow_alias)
        return ""


def test_desired_state_drops_none():
    desired = DesiredClusterState()
    desired.add_action(None).add_actions([PingAction(msg="a"), None, PingAction(msg="b")])
    assert [a.msg for a in desired] == ["a", "b"]
    assert "Actions planned: 2" in desired.summary()


@pytest.mark.asyncio
async def test_cluster_actions_are_applied_in_order(cluster, keycloak_cr):
    secret = manifests.admin_secret(keycloak_cr)
    updated = dict(secret, data={"ADMIN_USERNAME": "YWRtaW4="})

    result = await ActionRunner(cluster).run(
        [
            CreateAction(ref=secret, msg="create"),
            UpdateAction(ref=updated, msg="update"),
        ]
    )

    assert [a.msg for a in result.applied] == ["create", "update"]
    stored = cluster.get(SECRET, manifests.admin_secret_selector(keycloak_cr))
    assert stored["data"] == {"ADMIN_USERNAME": "YWRtaW4="}


@pytest.mark.asyncio
async def test_delete_of_missing_object_succeeds(cluster, keycloak_cr):
    result = await ActionRunner(cluster).run(
        [DeleteAction(ref=manifests.admin_secret(keycloak_cr), msg="delete")]
    )
    assert len(result.applied) == 1


@pytest.mark.asyncio
async def test_first_failure_stops_the_run(cluster, keycloak_cr):
    secret = manifests.admin_secret(keycloak_cr)
    actions = [
        UpdateAction(ref=secret, msg="update missing"),
        CreateAction(ref=secret, msg="never attempted"),
    ]

    with pytest.raises(ActionError) as e:
        await ActionRunner(cluster).run(actions)

    assert e.value.action is actions[0]
    assert isinstance(e.value.cause, NotFoundError)
    assert ("create", "Secret", "credential-sso") not in cluster.calls


@pytest.mark.asyncio
async def test_cluster_error_is_wrapped(cluster, keycloak_cr):
    cluster.fail_on["create"] = ClusterError("forbidden")
    with pytest.raises(ActionError) as e:
        await ActionRunner(cluster).run(
            [CreateAction(ref=manifests.admin_secret(keycloak_cr), msg="create admin secret")]
        )
    assert "create admin secret" in str(e.value)


@pytest.mark.asyncio
async def test_dry_run_has_no_side_effects(cluster, keycloak_cr):
    result = await ActionRunner(cluster, dry_run=True).run(
        [CreateAction(ref=manifests.admin_secret(keycloak_cr), msg="create")]
    )
    assert result.dry_run
    assert len(result.applied) == 1
    assert cluster.objects == {}
    assert result.summary().startswith("Would apply 1 actions")


@pytest.mark.asyncio
async def test_realm_actions_call_keycloak(cluster, realm_cr):
    realm_cr.realm_overrides = [
        RedirectorIdentityProviderOverride(identity_provider="corp"),
        RedirectorIdentityProviderOverride(identity_provider="partner", for_flow="partner-flow"),
    ]
    keycloak = FakeKeycloak()

    await ActionRunner(cluster, keycloak).run(
        [
            PingAction(msg="ping"),
            CreateRealmAction(ref=realm_cr, msg="create"),
            ConfigureRealmAction(ref=realm_cr, msg="configure"),
            UpdateRealmGroupsAction(ref=realm_cr, msg="groups"),
            DeleteRealmAction(ref=realm_cr, msg="delete"),
        ]
    )

    assert keycloak.calls == [
        ("ping",),
        ("create_realm", "demo"),
        ("configure_browser_redirector", "demo", "corp", "browser"),
        ("configure_browser_redirector", "demo", "partner", "partner-flow"),
        ("update_realm_groups", "demo"),
        ("delete_realm", "demo"),
    ]


@pytest.mark.asyncio
async def test_failed_ping_stops_realm_actions(cluster, realm_cr):
    keycloak = FakeKeycloak(fail_on="ping")
    with pytest.raises(ActionError):
        await ActionRunner(cluster, keycloak).run(
            [PingAction(msg="ping"), CreateRealmAction(ref=realm_cr, msg="create")]
        )
    assert keycloak.calls == [("ping",)]


@pytest.mark.asyncio
async def test_realm_action_without_client_fails(cluster, realm_cr):
    with pytest.raises(ActionError):
        await ActionRunner(cluster).run([CreateRealmAction(ref=realm_cr, msg="create")])
