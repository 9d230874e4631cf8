import json

import httpx
import pytest

from keycloak_operator.keycloak import KeycloakClient, KeycloakSettings, plan_group_changes
from keycloak_operator.models import KeycloakAPIRealm, KeycloakRealmGroup

BASE = "http://kc.test"
GROUPS = f"{BASE}/auth/admin/realms/demo/groups"


def _group(name, group_id=None, children=()):
    return KeycloakRealmGroup(name=name, id=group_id, sub_groups=[KeycloakRealmGroup(name=c) for c in children])


def test_plan_creates_missing_and_updates_matched():
    desired = [_group("A"), _group("B")]
    existing = [_group("A", group_id="a1"), _group("C", group_id="c1")]

    changes = plan_group_changes(desired, existing)

    assert [(c.group.name, c.is_create) for c in changes] == [("A", False), ("B", True)]
    assert changes[0].existing_id == "a1"
    # C is not declared and is left untouched
    assert all(c.group.name != "C" for c in changes)


def test_plan_adds_only_missing_sub_groups():
    desired = [_group("A", children=["x", "y"]), _group("B", children=["z"])]
    existing = [_group("A", group_id="a1", children=["x"])]

    changes = plan_group_changes(desired, existing)

    assert [c.name for c in changes[0].children] == ["y"]
    assert [c.name for c in changes[1].children] == ["z"]


@pytest.mark.asyncio
async def test_update_realm_groups_sends_merge_requests():
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        url = str(request.url)
        if url.endswith("/openid-connect/token"):
            return httpx.Response(200, json={"access_token": "tok"})
        if request.method == "GET" and url == GROUPS:
            return httpx.Response(
                200, json=[{"id": "a1", "name": "A", "subGroups": []}, {"id": "c1", "name": "C"}]
            )
        if request.method == "PUT" and url == f"{GROUPS}/a1":
            return httpx.Response(204)
        if request.method == "POST" and url == GROUPS:
            return httpx.Response(201, headers={"Location": f"{GROUPS}/b1"})
        if request.method == "POST" and url == f"{GROUPS}/b1/children":
            return httpx.Response(201, headers={"Location": f"{GROUPS}/b2"})
        return httpx.Response(500, text=f"unexpected {request.method} {url}")

    realm = KeycloakAPIRealm(realm="demo", groups=[_group("A"), _group("B", children=["B-child"])])
    settings = KeycloakSettings(base_url=BASE, admin_user="admin", admin_password="pw")

    async with KeycloakClient(settings, transport=httpx.MockTransport(handler)) as client:
        await client.login()
        changes = await client.update_realm_groups(realm)

    writes = [(r.method, str(r.url)) for r in requests if r.method in ("POST", "PUT")][1:]
    assert writes == [
        ("PUT", f"{GROUPS}/a1"),
        ("POST", GROUPS),
        ("POST", f"{GROUPS}/b1/children"),
    ]
    assert len(changes) == 2

    update_body = json.loads(requests[2].content)
    assert update_body["id"] == "a1"
    assert "subGroups" not in update_body
    # nothing touches C
    assert not any("c1" in str(r.url) for r in requests)
