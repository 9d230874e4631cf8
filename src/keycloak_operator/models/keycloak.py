"""Keycloak instance specification.

Example YAML:
    name: keycloak
    namespace: identity
    instances: 2
    extensions:
      - https://example.com/theme.jar
    external_access:
      enabled: true
      host: sso.example.com
    external_database:
      enabled: true
      host: db.example.com
      username: keycloak
      password: ${KEYCLOAK_DB_PASSWORD}
    pod_disruption_budget:
      enabled: true
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from keycloak_operator.models.base import YamlModel


class KeycloakExternalAccess(BaseModel):
    """How the instance is exposed outside the cluster (Route or Ingress)."""

    enabled: bool = False
    host: str = ""
    annotations: dict[str, str] = Field(default_factory=dict)
    tls_termination: str = Field(
        default="reencrypt",
        description="Route TLS termination (reencrypt, edge or passthrough)",
    )


class KeycloakExternalDatabase(BaseModel):
    """Connection to a database that is not run by the operator."""

    enabled: bool = False
    host: str = ""
    port: int = 5432
    database: str = "root"
    username: str = ""
    password: str = ""


class KeycloakExternal(BaseModel):
    """An already running Keycloak the operator only configures."""

    enabled: bool = False
    url: str = ""


class KeycloakPodDisruptionBudget(BaseModel):
    enabled: bool = False
    max_unavailable: int = 1


class KeycloakDeploymentSpec(BaseModel):
    """Overrides for the Keycloak container and its extensions init container."""

    image: str = ""
    init_container_image: str = ""
    env: dict[str, str] = Field(
        default_factory=dict,
        description="Extra environment, wins over the generated variables",
    )
    resources: dict[str, dict[str, str]] = Field(
        default_factory=dict,
        description="Kubernetes resource requirements (requests/limits)",
    )


class KeycloakStatus(BaseModel):
    """Observed state, written by the operator."""

    phase: str = ""
    message: str = ""
    ready: bool = False
    secondary_resources: dict[str, list[str]] = Field(default_factory=dict)
    credential_secret: str = ""
    internal_url: str = ""
    external_url: str = ""
    version: str = ""


class Keycloak(YamlModel):
    """Desired state of one Keycloak instance."""

    name: str = "keycloak"
    namespace: str = "keycloak"
    instances: int = 1
    extensions: list[str] = Field(default_factory=list)
    unmanaged: bool = False
    external: KeycloakExternal = Field(default_factory=KeycloakExternal)
    external_access: KeycloakExternalAccess = Field(default_factory=KeycloakExternalAccess)
    external_database: KeycloakExternalDatabase = Field(default_factory=KeycloakExternalDatabase)
    pod_disruption_budget: KeycloakPodDisruptionBudget = Field(
        default_factory=KeycloakPodDisruptionBudget
    )
    deployment: KeycloakDeploymentSpec = Field(default_factory=KeycloakDeploymentSpec)
    status: KeycloakStatus = Field(default_factory=KeycloakStatus)

    def update_status_secondary_resources(self, kind: str, name: str) -> None:
        """Record that a secondary resource of ``kind`` named ``name`` exists."""
        names = self.status.secondary_resources.setdefault(kind, [])
        if name not in names:
            names.append(name)
