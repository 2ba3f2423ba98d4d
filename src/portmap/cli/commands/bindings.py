"""Binding management commands: bind, unbind, list."""

import json
from typing import Annotated

import typer
from rich.table import Table

from portmap.cli import client
from portmap.cli.output import console, print_error, print_success


def bind(
    port: Annotated[int, typer.Argument(help="Local port to listen on")],
    target: Annotated[
        str | None,
        typer.Option("--target", "-t", help="Upstream address as host:port"),
    ] = None,
    local_port: Annotated[
        int | None,
        typer.Option(
            "--local-port",
            "-l",
            help="Upstream port on this machine's address (used without --target)",
        ),
    ] = None,
):
    """Forward PORT to a target, or retarget an existing forward."""
    if target is None and local_port is None:
        print_error("Either --target or --local-port is required.")
        raise typer.Exit(1)

    try:
        client.bind(port, target_addr=target, local_port=local_port)
    except client.APIError as e:
        print_error(str(e))
        raise typer.Exit(1)

    shown = target or f"<this host>:{local_port}"
    print_success(f"Port [cyan]{port}[/cyan] → [yellow]{shown}[/yellow]")


def unbind(
    port: Annotated[int, typer.Argument(help="Local port to release")],
):
    """Stop forwarding PORT."""
    try:
        client.unbind(port)
    except client.APIError as e:
        if e.status_code == 404:
            print_error(f"Port {port} is not bound.")
        else:
            print_error(str(e))
        raise typer.Exit(1)

    print_success(f"Port [cyan]{port}[/cyan] unbound")


def list_cmd(
    as_json: Annotated[
        bool, typer.Option("--json", help="Print raw JSON instead of a table")
    ] = False,
):
    """List active forwards."""
    try:
        bindings = client.list_bindings()
    except client.APIError as e:
        print_error(str(e))
        raise typer.Exit(1)

    if as_json:
        console.print_json(json.dumps(bindings))
        return

    if not bindings:
        console.print("[dim]No active bindings.[/dim]")
        return

    table = Table(title="Active Bindings", show_header=True)
    table.add_column("Port", style="cyan", justify="right")
    table.add_column("Target", style="yellow")
    table.add_column("Last Active", style="dim")

    for b in sorted(bindings, key=lambda b: b["port"]):
        table.add_row(str(b["port"]), b["target"], str(b["last_active"]))

    console.print(table)
