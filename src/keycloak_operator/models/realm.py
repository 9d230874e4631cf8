"""KeycloakRealm specification.

Example YAML:
    name: demo
    namespace: identity
    realm:
      realm: demo
      enabled: true
      groups:
        - name: admins
    realm_overrides:
      - identity_provider: corporate-sso
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from keycloak_operator.models.api import KeycloakAPIRealm
from keycloak_operator.models.base import YamlModel


class RedirectorIdentityProviderOverride(BaseModel):
    """Send users of ``for_flow`` straight to ``identity_provider``."""

    identity_provider: str
    for_flow: str = "browser"


class KeycloakRealm(YamlModel):
    """Desired state of one realm."""

    name: str
    namespace: str = "keycloak"
    realm: KeycloakAPIRealm
    realm_overrides: list[RedirectorIdentityProviderOverride] = Field(default_factory=list)
    deletion_timestamp: datetime | None = Field(
        default=None,
        description="Tombstone; when set the realm is removed instead of converged",
    )

    @property
    def realm_name(self) -> str:
        return self.realm.realm

    @property
    def is_deleting(self) -> bool:
        return self.deletion_timestamp is not None
