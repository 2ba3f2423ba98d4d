"""Service commands: run the forwarder, run a diagnostic echo server."""

import asyncio
from typing import Annotated

import typer

from portmap.cli.output import console
from portmap.config import config
from portmap.models.enums import LogLevel
from portmap.utils.logger import configure_logging


def serve(
    port: Annotated[
        int,
        typer.Option("--port", "-p", help="Management port", envvar="PORTMAP_PORT"),
    ] = 8181,
    bind_ip: Annotated[
        str,
        typer.Option(
            "--bind-ip", help="Management bind address", envvar="PORTMAP_BIND_IP"
        ),
    ] = "0.0.0.0",
    listen_ip: Annotated[
        str,
        typer.Option(
            "--listen-ip",
            help="Address forwarded ports listen on (hostnames are resolved per bind)",
            envvar="PORTMAP_LISTEN_IP",
        ),
    ] = "0.0.0.0",
    show_data: Annotated[
        bool,
        typer.Option(
            "--show-data", help="Log relayed payloads", envvar="PORTMAP_SHOW_DATA"
        ),
    ] = False,
    dial_timeout: Annotated[
        float,
        typer.Option(
            "--dial-timeout",
            help="Upstream connect timeout in seconds (0 = OS default)",
            envvar="PORTMAP_DIAL_TIMEOUT",
        ),
    ] = 0,
    no_derived_target: Annotated[
        bool,
        typer.Option(
            "--no-derived-target",
            help="Reject bind requests without an explicit target_addr",
        ),
    ] = False,
    bindings_file: Annotated[
        str | None,
        typer.Option(
            "--bindings-file",
            "-b",
            help="File of '<port> <target>' lines to bind at startup",
            envvar="PORTMAP_BINDINGS_FILE",
        ),
    ] = None,
    log_level: Annotated[
        LogLevel,
        typer.Option("--log-level", help="Log verbosity", envvar="PORTMAP_LOG_LEVEL"),
    ] = LogLevel.INFO,
    log_file: Annotated[
        str | None,
        typer.Option("--log-file", help="Also log to this file"),
    ] = None,
):
    """Run the forwarding service and its control plane."""
    from portmap.control.app import run

    config.MANAGEMENT_PORT = port
    config.BIND_IP = bind_ip
    config.LISTEN_IP = listen_ip
    config.SHOW_DATA = show_data
    config.DIAL_TIMEOUT = dial_timeout
    config.ALLOW_DERIVED_TARGET = not no_derived_target
    config.BINDINGS_FILE = bindings_file or ""
    config.LOG_LEVEL = log_level
    config.LOG_FILE = log_file or ""

    run(config)


def echo(
    port: Annotated[int, typer.Argument(help="Port to listen on")],
    host: Annotated[
        str, typer.Option("--host", help="Address to listen on")
    ] = "127.0.0.1",
):
    """Run a TCP echo server for testing forwards."""
    from portmap.forward.echo import serve_echo

    configure_logging(LogLevel.DEBUG)
    console.print(f"[bold green]Echoing[/bold green] on [cyan]{host}:{port}[/cyan]")
    console.print("[dim]Press Ctrl+C to stop.[/dim]")
    try:
        asyncio.run(serve_echo(host, port))
    except KeyboardInterrupt:
        console.print("\n[dim]Stopped.[/dim]")
