"""CLI command implementations."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Annotated

import typer

from lambdalabs_provisioner.cli import app
from lambdalabs_provisioner.cli.errors import handle_error

ConfigPath = Annotated[
    Path,
    typer.Option("--config", "-c", help="Path to the configuration file."),
]

NoColor = Annotated[
    bool,
    typer.Option("--no-color", help="Disable colored output."),
]

Address = Annotated[
    str,
    typer.Argument(help="Resource address, e.g. lambdalabs_instance.trainer."),
]

DEFAULT_CONFIG = Path("lambdalabs.yaml")


def _use_color(no_color: bool) -> bool:
    """Determine whether to use color output."""
    return not (no_color or os.environ.get("NO_COLOR"))


@app.command()
def create(
    address: Address,
    config: ConfigPath = DEFAULT_CONFIG,
    no_color: NoColor = False,
) -> None:
    """Create a declared resource and start tracking it."""
    from lambdalabs_provisioner.cli.formatting import format_instance, styler
    from lambdalabs_provisioner.config import create as create_fn
    from lambdalabs_provisioner.config import load

    color = _use_color(no_color)
    try:
        cfg = load(config)
        inst = create_fn(cfg, address)
    except Exception as exc:
        raise typer.Exit(handle_error(exc, color=color)) from exc

    typer.echo(format_instance(inst, color=color))
    typer.echo()
    typer.echo(styler(color)(f"{address}: Creation complete [id={inst.id}]", fg="green"))


@app.command()
def read(
    address: Address,
    config: ConfigPath = DEFAULT_CONFIG,
    no_color: NoColor = False,
) -> None:
    """Refresh one tracked resource from the live service."""
    from lambdalabs_provisioner.cli.formatting import format_instance, styler
    from lambdalabs_provisioner.config import load
    from lambdalabs_provisioner.config import read as read_fn

    color = _use_color(no_color)
    try:
        cfg = load(config)
        inst = read_fn(cfg, address)
    except Exception as exc:
        raise typer.Exit(handle_error(exc, color=color)) from exc

    if inst is None:
        typer.echo(
            styler(color)(f"{address} no longer exists; removed from state.", fg="yellow")
        )
        return
    typer.echo(format_instance(inst, color=color))


@app.command()
def update(
    address: Address,
    config: ConfigPath = DEFAULT_CONFIG,
    no_color: NoColor = False,
) -> None:
    """Record non-identity changes of a declared resource."""
    from lambdalabs_provisioner.cli.formatting import format_instance, styler
    from lambdalabs_provisioner.config import load
    from lambdalabs_provisioner.config import update as update_fn

    color = _use_color(no_color)
    try:
        cfg = load(config)
        inst = update_fn(cfg, address)
    except Exception as exc:
        raise typer.Exit(handle_error(exc, color=color)) from exc

    typer.echo(format_instance(inst, color=color))
    typer.echo()
    typer.echo(styler(color)(f"{address}: Update complete", fg="yellow"))


@app.command()
def delete(
    address: Address,
    config: ConfigPath = DEFAULT_CONFIG,
    auto_approve: Annotated[
        bool,
        typer.Option("--auto-approve", help="Skip interactive approval."),
    ] = False,
    no_color: NoColor = False,
) -> None:
    """Delete a tracked resource."""
    from lambdalabs_provisioner.cli.formatting import styler
    from lambdalabs_provisioner.config import delete as delete_fn
    from lambdalabs_provisioner.config import load
    from lambdalabs_provisioner.engine.types import Outcome

    color = _use_color(no_color)
    if not auto_approve:
        try:
            typer.confirm(f"Do you really want to delete {address}?", abort=True)
        except typer.Abort as e:
            typer.echo("Delete canceled.", err=True)
            raise typer.Exit(1) from e

    try:
        cfg = load(config)
        outcome = delete_fn(cfg, address)
    except Exception as exc:
        raise typer.Exit(handle_error(exc, color=color)) from exc

    if outcome is Outcome.ALREADY_GONE:
        typer.echo(f"{address}: already gone; removed from state.")
    else:
        typer.echo(styler(color)(f"{address}: Destroy complete", fg="red"))


@app.command(name="import")
def import_cmd(
    address: Address,
    resource_id: Annotated[str, typer.Argument(help="Identifier of the existing remote object.")],
    config: ConfigPath = DEFAULT_CONFIG,
    no_color: NoColor = False,
) -> None:
    """Start tracking an existing remote object."""
    from lambdalabs_provisioner.cli.formatting import format_instance, styler
    from lambdalabs_provisioner.config import import_resource, load

    color = _use_color(no_color)
    try:
        cfg = load(config)
        inst = import_resource(cfg, address, resource_id)
    except Exception as exc:
        raise typer.Exit(handle_error(exc, color=color)) from exc

    typer.echo(format_instance(inst, color=color))
    typer.echo()
    typer.echo(styler(color)(f"{address}: Import complete [id={inst.id}]", fg="green"))


@app.command(name="refresh")
def refresh_cmd(config: ConfigPath = DEFAULT_CONFIG, no_color: NoColor = False) -> None:
    """Refresh every tracked resource and update the state file."""
    from lambdalabs_provisioner.config import load
    from lambdalabs_provisioner.config import refresh as refresh_fn

    color = _use_color(no_color)
    try:
        cfg = load(config)
        state, removed = refresh_fn(cfg)
    except Exception as exc:
        raise typer.Exit(handle_error(exc, color=color)) from exc

    for address in removed:
        typer.echo(f"{address} no longer exists; removed from state.")
    count = len(state.resources)
    typer.echo(f"State refreshed. {count} resource{'s' if count != 1 else ''} tracked.")


@app.command()
def drift(config: ConfigPath = DEFAULT_CONFIG, no_color: NoColor = False) -> None:
    """Show drift between state and the live service."""
    from lambdalabs_provisioner.cli.formatting import format_drift
    from lambdalabs_provisioner.config import drift as drift_fn
    from lambdalabs_provisioner.config import load

    color = _use_color(no_color)
    try:
        cfg = load(config)
        changes = drift_fn(cfg)
    except Exception as exc:
        raise typer.Exit(handle_error(exc, color=color)) from exc

    if not changes:
        typer.echo("No drift detected. State is up-to-date.")
        raise typer.Exit(0)

    typer.echo("Drift detected:\n")
    typer.echo(format_drift(changes, color=color))
    raise typer.Exit(2)


@app.command()
def show(
    address: Annotated[str | None, typer.Argument(help="Only show this resource.")] = None,
    config: ConfigPath = DEFAULT_CONFIG,
    no_color: NoColor = False,
) -> None:
    """Show tracked resources from the state file (no API calls)."""
    from lambdalabs_provisioner.cli.formatting import format_instance
    from lambdalabs_provisioner.config import load, load_state
    from lambdalabs_provisioner.engine.errors import ConfigError

    color = _use_color(no_color)
    try:
        cfg = load(config)
        state = load_state(cfg)
        if address is not None and address not in state.resources:
            raise ConfigError(f"{address} is not tracked in the state file")
    except Exception as exc:
        raise typer.Exit(handle_error(exc, color=color)) from exc

    instances = [state.resources[address]] if address else list(state.resources.values())
    if not instances:
        typer.echo("No resources tracked.")
        return
    typer.echo("\n\n".join(format_instance(i, color=color) for i in instances))


@app.command()
def schema(no_color: NoColor = False) -> None:
    """Describe the attributes of each resource type."""
    from rich.console import Console

    from lambdalabs_provisioner.cli.formatting import schema_table
    from lambdalabs_provisioner.resources.schema import SCHEMAS

    console = Console(no_color=not _use_color(no_color))
    for resource_type in SCHEMAS:
        console.print(schema_table(resource_type))


@app.command()
def validate(
    config: ConfigPath = DEFAULT_CONFIG,
    no_color: NoColor = False,
) -> None:
    """Validate the configuration file (no API calls)."""
    from lambdalabs_provisioner.cli.formatting import styler
    from lambdalabs_provisioner.config import load
    from lambdalabs_provisioner.config import validate as validate_fn
    from lambdalabs_provisioner.engine.errors import ValidationError

    color = _use_color(no_color)
    try:
        cfg = load(config)
        errors = validate_fn(cfg)
        if errors:
            raise ValidationError(errors)
    except Exception as exc:
        raise typer.Exit(handle_error(exc, color=color)) from exc

    typer.echo(styler(color)("Configuration is valid.", fg="green"))
