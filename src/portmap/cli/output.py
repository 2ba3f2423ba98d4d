"""Rich console helpers shared by CLI commands."""

from rich.console import Console

console = Console()
err_console = Console(stderr=True)


def print_error(message: str):
    err_console.print(f"[bold red]Error:[/bold red] {message}")


def print_success(message: str):
    console.print(f"[bold green]✓[/bold green] {message}")
