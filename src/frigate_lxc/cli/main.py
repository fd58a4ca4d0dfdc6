"""Main CLI implementation using Typer."""

import asyncio
from pathlib import Path
from typing import Any, Callable, Optional

import typer
from rich.console import Console

from frigate_lxc.cli.commands import install, probe_hardware, update
from frigate_lxc.errors import FrigateLxcError


# Create Typer app
app = typer.Typer(
    name="frigate-lxc",
    help="Frigate NVR on Proxmox VE - install and update Frigate in an LXC container",
    add_completion=False,
)

# Console for rich output
console = Console()


def _run_cli_command(handler: Callable[..., Any], **kwargs: Any):
    """Helper to run an async command with error handling."""
    try:
        asyncio.run(handler(**kwargs))
    except FrigateLxcError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled[/yellow]")
        raise typer.Exit(1)


@app.command("install")
def install_command(
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Show what would be done without making changes"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Defaults file (YAML)"
    ),
):
    """Create a new LXC container running Frigate."""
    _run_cli_command(install, config_path=config, dry_run=dry_run, verbose=verbose)


@app.command("update")
def update_command(
    container_id: Optional[int] = typer.Option(
        None, "--id", min=100, max=999, help="Container ID to update"
    ),
    version: Optional[str] = typer.Option(
        None, "--version", help="Image tag, 'latest' or 'beta'"
    ),
    snapshot: bool = typer.Option(
        False, "--snapshot", help="Snapshot the container before updating"
    ),
    snapshot_name: Optional[str] = typer.Option(
        None, "--snapshot-name", help="Snapshot label (implies --snapshot)"
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Show what would be done without making changes"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Defaults file (YAML)"
    ),
):
    """Update Frigate in an existing container."""
    _run_cli_command(
        update,
        container_id=container_id,
        version=version,
        snapshot=snapshot,
        snapshot_name=snapshot_name,
        config_path=config,
        dry_run=dry_run,
        verbose=verbose,
    )


@app.command("probe")
def probe_command(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Defaults file (YAML)"
    ),
):
    """Show the detected CPU, GPU and Coral hardware."""
    _run_cli_command(probe_hardware, config_path=config, verbose=verbose)


def main():
    """Main entry point for CLI."""
    app()
