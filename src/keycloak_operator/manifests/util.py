"""Helpers shared by the manifest builders."""

from __future__ import annotations

import base64
import binascii
import re
import secrets
from typing import Any

from keycloak_operator.manifests.constants import APPLICATION_NAME

_INVALID_NAME_CHARS = re.compile(r"[^a-z0-9.\-]")


def generate_random_string(size: int = 32) -> str:
    """Return a URL-safe base64 encoding of ``size`` random bytes."""
    return base64.urlsafe_b64encode(secrets.token_bytes(size)).decode()


def sanitize_resource_name(name: str) -> str:
    """Lowercase ``name``, map ``_`` to ``-`` and drop anything else invalid."""
    return _INVALID_NAME_CHARS.sub("", name.lower().replace("_", "-"))


def realm_user_secret_name(namespace: str, realm_name: str, username: str) -> str:
    return sanitize_resource_name(f"credential-{realm_name}-{username}-{namespace}")


def encode_secret_data(values: dict[str, str]) -> dict[str, str]:
    """Encode plain values for a Secret's ``data`` field."""
    return {k: base64.b64encode(v.encode()).decode() for k, v in values.items()}


def has_secret_value(secret: dict[str, Any] | None, key: str) -> bool:
    """Check whether a Secret carries a non-empty ``data`` entry, without decoding it."""
    if not secret:
        return False
    return bool((secret.get("data") or {}).get(key))


def secret_value(secret: dict[str, Any] | None, key: str) -> str:
    """Decode one ``data`` entry of a Secret; missing, empty or malformed reads as "".

    Bytes that are not UTF-8 are replaced rather than rejected.
    """
    if not has_secret_value(secret, key):
        return ""
    try:
        raw = base64.b64decode(secret["data"][key], validate=True)
    except (binascii.Error, ValueError):
        return ""
    return raw.decode(errors="replace")


def labels(component: str | None = None) -> dict[str, str]:
    result = {"app": APPLICATION_NAME}
    if component:
        result["component"] = component
    return result


def metadata(name: str, namespace: str, **extra: Any) -> dict[str, Any]:
    meta: dict[str, Any] = {"name": name, "namespace": namespace}
    meta.update({k: v for k, v in extra.items() if v is not None})
    return meta


def merge_envs(
    overrides: list[dict[str, Any]], defaults: list[dict[str, Any]]
) -> list[dict[str, Any]]:
    """Merge container env lists by name; entries in ``overrides`` win."""
    merged = [dict(e) for e in overrides]
    names = {e["name"] for e in merged}
    merged.extend(dict(e) for e in defaults if e["name"] not in names)
    return merged
