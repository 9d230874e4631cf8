"""Admin, database and realm user credential secrets.

Reconciling a secret never replaces a credential that is already set; only
missing or empty entries are filled. The one exception is the database secret
of an external database, where the declared connection fields win.
"""

from __future__ import annotations

import copy
from typing import Any

from keycloak_operator.cluster.base import ObjectKey
from keycloak_operator.manifests import constants as c
from keycloak_operator.manifests.util import (
    encode_secret_data,
    generate_random_string,
    has_secret_value,
    labels,
    metadata,
    realm_user_secret_name,
    secret_value,
)
from keycloak_operator.models.api import KeycloakAPIUser
from keycloak_operator.models.keycloak import Keycloak
from keycloak_operator.models.realm import KeycloakRealm


def _secret(name: str, namespace: str, values: dict[str, str], **meta: Any) -> dict[str, Any]:
    return {
        "apiVersion": "v1",
        "kind": "Secret",
        "metadata": metadata(name, namespace, **meta),
        "type": "Opaque",
        "data": encode_secret_data(values),
    }


def _fill_missing(secret: dict[str, Any], defaults: dict[str, str]) -> dict[str, Any]:
    data = secret.setdefault("data", {}) or {}
    secret["data"] = data
    for key, value in defaults.items():
        if not has_secret_value(secret, key):
            data.update(encode_secret_data({key: value}))
    return secret


# -----------------------------------------------------------------------------
# Admin credentials
# -----------------------------------------------------------------------------


def admin_secret_name(cr: Keycloak) -> str:
    return f"{c.ADMIN_SECRET_PREFIX}{cr.name}"


def admin_secret(cr: Keycloak) -> dict[str, Any]:
    return _secret(
        admin_secret_name(cr),
        cr.namespace,
        {
            c.ADMIN_USERNAME_KEY: c.DEFAULT_ADMIN_USERNAME,
            c.ADMIN_PASSWORD_KEY: generate_random_string(10),
        },
        labels=labels(),
    )


def admin_secret_selector(cr: Keycloak) -> ObjectKey:
    return ObjectKey(admin_secret_name(cr), cr.namespace)


def admin_secret_reconciled(cr: Keycloak, current: dict[str, Any]) -> dict[str, Any]:
    """Keep existing admin credentials, generate only the missing ones."""
    return _fill_missing(
        copy.deepcopy(current),
        {
            c.ADMIN_USERNAME_KEY: c.DEFAULT_ADMIN_USERNAME,
            c.ADMIN_PASSWORD_KEY: generate_random_string(10),
        },
    )


# -----------------------------------------------------------------------------
# Database
# -----------------------------------------------------------------------------


def _external_database_values(cr: Keycloak) -> dict[str, str]:
    db = cr.external_database
    values = {
        c.DATABASE_USERNAME_KEY: db.username,
        c.DATABASE_PASSWORD_KEY: db.password,
        c.DATABASE_NAME_KEY: db.database,
        c.DATABASE_EXTERNAL_ADDRESS_KEY: db.host,
        c.DATABASE_EXTERNAL_PORT_KEY: str(db.port),
    }
    return {k: v for k, v in values.items() if v}


def database_secret(cr: Keycloak) -> dict[str, Any]:
    if cr.external_database.enabled:
        values = _external_database_values(cr)
    else:
        values = {
            c.DATABASE_USERNAME_KEY: "keycloak",
            c.DATABASE_PASSWORD_KEY: generate_random_string(10),
            c.DATABASE_NAME_KEY: c.POSTGRESQL_DATABASE,
        }
    return _secret(c.DATABASE_SECRET_NAME, cr.namespace, values, labels=labels())


def database_secret_selector(cr: Keycloak) -> ObjectKey:
    return ObjectKey(c.DATABASE_SECRET_NAME, cr.namespace)


def database_secret_reconciled(cr: Keycloak, current: dict[str, Any]) -> dict[str, Any]:
    reconciled = copy.deepcopy(current)
    if cr.external_database.enabled:
        data = reconciled.get("data") or {}
        data.update(encode_secret_data(_external_database_values(cr)))
        reconciled["data"] = data
        return reconciled

    return _fill_missing(
        reconciled,
        {
            c.DATABASE_USERNAME_KEY: "keycloak",
            c.DATABASE_PASSWORD_KEY: generate_random_string(10),
            c.DATABASE_NAME_KEY: c.POSTGRESQL_DATABASE,
        },
    )


# -----------------------------------------------------------------------------
# Realm users
# -----------------------------------------------------------------------------


def _declared_password(user: KeycloakAPIUser) -> str:
    for credential in user.credentials or []:
        if credential.type == "password" and credential.value:
            return credential.value
    return ""


def realm_credential_secret(
    realm: KeycloakRealm, user: KeycloakAPIUser, keycloak: Keycloak
) -> dict[str, Any]:
    """Secret holding a realm user's login, in the Keycloak instance namespace."""
    return _secret(
        realm_user_secret_name(keycloak.namespace, realm.realm_name, user.username),
        keycloak.namespace,
        {
            c.REALM_USER_USERNAME_KEY: user.username,
            c.REALM_USER_PASSWORD_KEY: _declared_password(user) or generate_random_string(10),
        },
        labels={"app": c.APPLICATION_NAME, "keycloak.org/realm": realm.realm_name},
    )


def realm_credential_secret_selector(
    realm: KeycloakRealm, user: KeycloakAPIUser, keycloak: Keycloak
) -> ObjectKey:
    return ObjectKey(
        realm_user_secret_name(keycloak.namespace, realm.realm_name, user.username),
        keycloak.namespace,
    )
