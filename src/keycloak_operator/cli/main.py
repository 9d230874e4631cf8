"""Keycloak operator CLI - Main entrypoint.

Usage:
    keycloak-operator plan keycloak.yaml --route --monitoring
    keycloak-operator reconcile keycloak.yaml --dry-run
    keycloak-operator realm realm.yaml --keycloak keycloak.yaml
"""

from __future__ import annotations

import typer

from keycloak_operator.cli.commands import plan, realm, reconcile

app = typer.Typer(
    name="keycloak-operator",
    help="Keycloak operator reconcile tools",
    add_completion=True,
)

app.command("plan")(plan)
app.command("reconcile")(reconcile)
app.command("realm")(realm)


def create_app() -> None:
    """CLI entrypoint."""
    app()


if __name__ == "__main__":
    create_app()
