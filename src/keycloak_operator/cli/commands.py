"""Operator CLI commands.

Commands:
    keycloak-operator plan <keycloak.yaml>
    keycloak-operator reconcile <keycloak.yaml>
    keycloak-operator realm <realm.yaml> --keycloak <keycloak.yaml>
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
import yaml

from keycloak_operator.actions import ActionError, ActionRunner, DesiredClusterState, RunResult
from keycloak_operator.capabilities import (
    MONITORING_KINDS,
    ROUTE_CAPABILITY,
    CapabilityCache,
    capability_key,
    discover_capabilities,
)
from keycloak_operator.cluster.base import ClusterClient, ClusterError
from keycloak_operator.cluster.kube import KubernetesClusterClient
from keycloak_operator.config import settings as operator_settings
from keycloak_operator.keycloak.errors import KeycloakAuthError, KeycloakError
from keycloak_operator.keycloak.factory import authenticated_client
from keycloak_operator.logs import configure_logging
from keycloak_operator.models.keycloak import Keycloak
from keycloak_operator.models.realm import KeycloakRealm
from keycloak_operator.reconcilers.keycloak import (
    KeycloakReconciler,
    set_status_endpoints,
    update_status,
)
from keycloak_operator.reconcilers.realm import KeycloakRealmReconciler
from keycloak_operator.state.cluster import ClusterState, ClusterStateReader, is_resources_ready
from keycloak_operator.state.realm import RealmStateReader

_LOAD_ERRORS = (OSError, ValueError, yaml.YAMLError)


def _configure_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    configure_logging("DEBUG" if verbose else None)
    # Quiet down httpx and the kubernetes client
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("kubernetes").setLevel(logging.WARNING)


def _load_keycloak(path: Path) -> Keycloak:
    try:
        return Keycloak.from_yaml(path)
    except _LOAD_ERRORS as e:
        typer.secho(f"Error loading config: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)


def _connect_cluster() -> ClusterClient:
    try:
        return KubernetesClusterClient.from_config()
    except ClusterError as e:
        typer.secho(f"Cluster error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)


def plan(
    keycloak_path: Path = typer.Argument(
        help="Path to Keycloak instance YAML file",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
    route: Annotated[
        bool,
        typer.Option("--route", help="Assume the cluster serves Route objects"),
    ] = False,
    monitoring: Annotated[
        bool,
        typer.Option("--monitoring", help="Assume the monitoring kinds are installed"),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose output"),
    ] = False,
) -> None:
    """Show the actions a first reconcile would take on an empty cluster.

    Nothing is read from or written to a cluster.

    Example:
        keycloak-operator plan keycloak.yaml --route --monitoring
    """
    _configure_logging(verbose)
    cr = _load_keycloak(keycloak_path)

    capabilities = CapabilityCache()
    capabilities.set(ROUTE_CAPABILITY, route)
    for kind in MONITORING_KINDS:
        capabilities.set(capability_key(operator_settings.controller_name, kind.kind), monitoring)

    reconciler = KeycloakReconciler(capabilities, operator_settings.controller_name)
    desired = reconciler.reconcile(ClusterState(), cr)

    typer.echo(desired.summary())


def reconcile(
    keycloak_path: Path = typer.Argument(
        help="Path to Keycloak instance YAML file",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run", "-n", help="Show what would be done without making changes"
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose output"),
    ] = False,
) -> None:
    """Run one reconcile pass for a Keycloak instance against the current cluster.

    Example:
        keycloak-operator reconcile keycloak.yaml --dry-run
    """
    _configure_logging(verbose)
    cr = _load_keycloak(keycloak_path)
    cluster = _connect_cluster()

    capabilities = CapabilityCache(ttl_seconds=operator_settings.capability_ttl_seconds)
    controller = operator_settings.controller_name

    try:
        discover_capabilities(cluster, capabilities, controller)
        state = ClusterStateReader(cluster, capabilities, controller).read(cr)
        desired = KeycloakReconciler(capabilities, controller).reconcile(state, cr)
        typer.echo(desired.summary())

        result = asyncio.run(_run(cluster, desired, dry_run))
    except ActionError as e:
        typer.secho(f"Reconcile failed: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)
    except ClusterError as e:
        typer.secho(f"Cluster error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)

    typer.echo("\n" + result.summary())

    ready = is_resources_ready(state, cr, capabilities)
    update_status(cr, state, ready)
    color = typer.colors.GREEN if ready else typer.colors.YELLOW
    typer.secho(f"Status: {cr.status.phase}", fg=color)
    if cr.status.external_url:
        typer.echo(f"External URL: {cr.status.external_url}")


async def _run(cluster: ClusterClient, desired: DesiredClusterState, dry_run: bool) -> RunResult:
    return await ActionRunner(cluster, dry_run=dry_run).run(desired)


def realm(
    realm_path: Path = typer.Argument(
        help="Path to realm YAML file",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
    keycloak_path: Annotated[
        Path,
        typer.Option(
            "--keycloak",
            "-k",
            help="Path to the YAML file of the Keycloak instance hosting the realm",
            exists=True,
            dir_okay=False,
            readable=True,
        ),
    ] = Path("./keycloak.yaml"),
    base_url: Annotated[
        Optional[str],
        typer.Option("--base-url", "-u", help="Keycloak base URL, overrides the in-cluster URL"),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run", "-n", help="Show what would be done without making changes"
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose output"),
    ] = False,
) -> None:
    """Reconcile a realm into a running Keycloak instance.

    Admin credentials are read from the instance's credential secret.

    Example:
        keycloak-operator realm realm.yaml --keycloak keycloak.yaml
        keycloak-operator realm realm.yaml -k keycloak.yaml -u http://localhost:8080
    """
    _configure_logging(verbose)
    cr = _load_keycloak(keycloak_path)
    try:
        realm_cr = KeycloakRealm.from_yaml(realm_path)
    except _LOAD_ERRORS as e:
        typer.secho(f"Error loading config: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)

    if not cr.external.enabled:
        set_status_endpoints(cr)

    cluster = _connect_cluster()
    typer.echo(f"Reconciling realm {realm_cr.realm_name} in {cr.namespace}/{cr.name}")

    try:
        result = asyncio.run(_async_realm(cluster, cr, realm_cr, base_url, dry_run))
    except KeycloakAuthError as e:
        typer.secho(f"Authentication failed: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)
    except ActionError as e:
        typer.secho(f"Reconcile failed: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)
    except KeycloakError as e:
        typer.secho(f"Keycloak error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)
    except ClusterError as e:
        typer.secho(f"Cluster error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)

    typer.echo("\n" + result.summary())


async def _async_realm(
    cluster: ClusterClient,
    cr: Keycloak,
    realm_cr: KeycloakRealm,
    base_url: str | None,
    dry_run: bool,
) -> RunResult:
    """Read the realm, plan it and apply the plan over one admin session."""
    async with authenticated_client(cr, cluster, base_url=base_url) as client:
        state = await RealmStateReader(client, cluster).read(realm_cr, cr)
        desired = KeycloakRealmReconciler(cr).reconcile(state, realm_cr)

        typer.echo(desired.summary())

        if dry_run:
            typer.secho("\n[DRY RUN] No changes applied", fg=typer.colors.YELLOW)

        return await ActionRunner(cluster, client, dry_run=dry_run).run(desired)
