"""
portmap CLI entry point.

Usage:
    portmap [OPTIONS] COMMAND [ARGS]...

Commands:
    serve     Run the forwarding service
    bind      Create or retarget a forward
    unbind    Remove a forward
    list      List active forwards
    echo      Run a TCP echo server
    version   Show version information
"""

from typing import Annotated

import typer

from portmap.cli import config as cli_config
from portmap.cli.commands import bindings, service
from portmap.cli.output import console

app = typer.Typer(
    name="portmap",
    help="Dynamic TCP port forwarding",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.command("serve")(service.serve)
app.command("echo")(service.echo)
app.command("bind")(bindings.bind)
app.command("unbind")(bindings.unbind)
app.command("list")(bindings.list_cmd)


@app.callback()
def main(
    host: Annotated[
        str | None,
        typer.Option("--host", "-H", help="Service address for client commands"),
    ] = None,
    mgmt_port: Annotated[
        int | None,
        typer.Option("--mgmt-port", "-P", help="Service management port"),
    ] = None,
):
    """
    portmap: forward TCP ports to remote targets, reconfigurable at runtime.
    """
    if host:
        cli_config.MGMT_HOST = host
    if mgmt_port:
        cli_config.MGMT_PORT = mgmt_port


@app.command("version")
def version():
    """Show version information."""
    from portmap import __version__

    console.print(f"portmap v{__version__}")


def run():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    run()
