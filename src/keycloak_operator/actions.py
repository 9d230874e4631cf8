"""Planned actions and their executor.

The planners emit a ``DesiredClusterState``: an ordered list drawn from a
closed set of action types. ``ActionRunner`` applies them one at a time,
sending object actions to the cluster and realm actions to the Keycloak
admin API. The first failure stops the run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Union

import structlog

from keycloak_operator.cluster.base import ClusterClient, ClusterError, NotFoundError
from keycloak_operator.keycloak.client import KeycloakClient
from keycloak_operator.keycloak.errors import KeycloakError
from keycloak_operator.models.realm import KeycloakRealm

logger = structlog.get_logger()


@dataclass(frozen=True)
class CreateAction:
    """Create a cluster object."""
    ref: dict[str, Any]
    msg: str


@dataclass(frozen=True)
class UpdateAction:
    """Replace a cluster object with its reconciled version."""
    ref: dict[str, Any]
    msg: str
    current: dict[str, Any] | None = None


@dataclass(frozen=True)
class DeleteAction:
    ref: dict[str, Any]
    msg: str


@dataclass(frozen=True)
class PingAction:
    """Check that Keycloak answers before talking to it."""
    msg: str


@dataclass(frozen=True)
class CreateRealmAction:
    ref: KeycloakRealm
    msg: str


@dataclass(frozen=True)
class DeleteRealmAction:
    ref: KeycloakRealm
    msg: str


@dataclass(frozen=True)
class ConfigureRealmAction:
    """Point the browser flow redirector at the declared identity providers."""
    ref: KeycloakRealm
    msg: str


@dataclass(frozen=True)
class UpdateRealmGroupsAction:
    ref: KeycloakRealm
    msg: str


@dataclass(frozen=True)
class UpdateRealmAction:
    ref: KeycloakRealm
    msg: str


Action = Union[
    CreateAction,
    UpdateAction,
    DeleteAction,
    PingAction,
    CreateRealmAction,
    DeleteRealmAction,
    ConfigureRealmAction,
    UpdateRealmGroupsAction,
    UpdateRealmAction,
]

REALM_ACTIONS = (
    CreateRealmAction,
    DeleteRealmAction,
    ConfigureRealmAction,
    UpdateRealmGroupsAction,
    UpdateRealmAction,
)


@dataclass
class DesiredClusterState:
    """Ordered actions for one reconciliation pass."""

    actions: list[Action] = field(default_factory=list)

    def add_action(self, action: Action | None) -> "DesiredClusterState":
        """Append ``action``; None is dropped."""
        if action is not None:
            self.actions.append(action)
        return self

    def add_actions(self, actions: Iterable[Action | None]) -> "DesiredClusterState":
        for action in actions:
            self.add_action(action)
        return self

    def __iter__(self) -> Iterator[Action]:
        return iter(self.actions)

    def __len__(self) -> int:
        return len(self.actions)

    def __getitem__(self, index: int) -> Action:
        return self.actions[index]

    def summary(self) -> str:
        """Get a human-readable summary of the plan."""
        if not self.actions:
            return "No actions planned"
        lines = [f"Actions planned: {len(self.actions)}"]
        for i, action in enumerate(self.actions):
            lines.append(f"  {i:2d}. [{type(action).__name__}] {action.msg}")
        return "\n".join(lines)


class ActionError(Exception):
    """An action failed; later actions were not attempted."""

    def __init__(self, action: Action, cause: Exception):
        super().__init__(f"{action.msg}: {cause}")
        self.action = action
        self.cause = cause


@dataclass
class RunResult:
    """Actions applied (or, in dry-run mode, that would have been applied)."""

    applied: list[Action] = field(default_factory=list)
    dry_run: bool = False

    def summary(self) -> str:
        if not self.applied:
            return "No changes applied"
        verb = "Would apply" if self.dry_run else "Applied"
        lines = [f"{verb} {len(self.applied)} actions"]
        for action in self.applied:
            lines.append(f"  + {action.msg}")
        return "\n".join(lines)


class ActionRunner:
    """Execute actions sequentially against the cluster and Keycloak."""

    def __init__(
        self,
        cluster: ClusterClient,
        keycloak: KeycloakClient | None = None,
        dry_run: bool = False,
    ):
        self._cluster = cluster
        self._keycloak = keycloak
        self._dry_run = dry_run

    async def run(self, actions: Iterable[Action]) -> RunResult:
        result = RunResult(dry_run=self._dry_run)

        for action in actions:
            if self._dry_run:
                logger.info("[DRY RUN] Would apply action", action=type(action).__name__, msg=action.msg)
                result.applied.append(action)
                continue

            try:
                await self._apply(action)
            except (ClusterError, KeycloakError) as e:
                logger.error("Action failed", action=type(action).__name__, msg=action.msg, error=str(e))
                raise ActionError(action, e) from e

            logger.info("Action applied", action=type(action).__name__, msg=action.msg)
            result.applied.append(action)

        return result

    def _require_keycloak(self) -> KeycloakClient:
        if self._keycloak is None:
            raise KeycloakError("no Keycloak client configured for realm actions")
        return self._keycloak

    async def _apply(self, action: Action) -> None:
        if isinstance(action, CreateAction):
            self._cluster.create(action.ref)
        elif isinstance(action, UpdateAction):
            self._cluster.update(action.ref)
        elif isinstance(action, DeleteAction):
            try:
                self._cluster.delete(action.ref)
            except NotFoundError:
                logger.debug("Object already deleted", msg=action.msg)
        elif isinstance(action, PingAction):
            await self._require_keycloak().ping()
        elif isinstance(action, REALM_ACTIONS):
            await self._apply_realm_action(action)
        else:
            raise TypeError(f"unknown action type: {type(action).__name__}")

    async def _apply_realm_action(self, action: Action) -> None:
        keycloak = self._require_keycloak()
        realm = action.ref

        if isinstance(action, CreateRealmAction):
            await keycloak.create_realm(realm.realm)
        elif isinstance(action, DeleteRealmAction):
            await keycloak.delete_realm(realm.realm_name)
        elif isinstance(action, ConfigureRealmAction):
            for override in realm.realm_overrides:
                await keycloak.configure_browser_redirector(
                    realm.realm_name, override.identity_provider, override.for_flow
                )
        elif isinstance(action, UpdateRealmGroupsAction):
            await keycloak.update_realm_groups(realm.realm)
        elif isinstance(action, UpdateRealmAction):
            await keycloak.update_realm(realm.realm)
