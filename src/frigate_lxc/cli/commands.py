"""Command implementations for CLI."""

import logging
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from frigate_lxc.errors import InputValidationError, ProvisionError
from frigate_lxc.installer.collector import ConfigurationCollector, parse_container_id
from frigate_lxc.installer.config import ConfigManager
from frigate_lxc.installer.preflight import check_proxmox, check_resources, check_root, check_terminal
from frigate_lxc.installer.renderer import render
from frigate_lxc.installer.sequencer import ProvisioningSequencer
from frigate_lxc.installer.updater import UpdateSequencer
from frigate_lxc.models.config import InstallerConfig
from frigate_lxc.models.deployment import DeploymentHandle, ProvisionStage, UpdateResult
from frigate_lxc.models.hardware import HardwareProfile
from frigate_lxc.models.settings import DeploymentSettings
from frigate_lxc.models.update import UpdateRequest
from frigate_lxc.providers.container import ContainerProvider
from frigate_lxc.providers.hardware import HardwareProber
from frigate_lxc.providers.releases import ReleaseIndex
from frigate_lxc.utils.logging import log_file_path, setup_logging
from frigate_lxc.utils.prompts import Prompter


logger = logging.getLogger(__name__)

console = Console()


async def _load_config(config_path: Optional[Path], command: str, verbose: bool) -> InstallerConfig:
    """Load configuration and start logging for this run."""
    config = await ConfigManager(config_path).load()
    level = "DEBUG" if verbose else config.logging.level
    log_file = log_file_path(config.logging.log_dir, command)
    setup_logging(level, log_file)
    logger.info(f"Logging to {log_file}")
    return config


def _release_index(config: InstallerConfig) -> ReleaseIndex:
    return ReleaseIndex(config.releases.url, timeout=config.releases.timeout)


def profile_table(profile: HardwareProfile) -> Table:
    """Format a hardware profile."""
    table = Table(title="Detected Hardware", show_header=False)
    table.add_column("Component", style="cyan")
    table.add_column("Value")

    table.add_row("CPU", profile.cpu_model)
    table.add_row("GPU", profile.gpu_description)
    table.add_row("Accelerator", profile.accelerator_class.value)
    table.add_row("Coral TPU", profile.coral_class.value)
    if profile.nvidia_uvm_major is not None:
        table.add_row("nvidia-uvm major", str(profile.nvidia_uvm_major))
    return table


def _print_stage(stage: ProvisionStage):
    console.print(f"[bold blue]==>[/bold blue] {stage.value.replace('_', ' ')}")


def _print_install_summary(handle: DeploymentHandle, settings: DeploymentSettings):
    if handle.dry_run:
        console.print(Panel("[yellow]Dry run complete. No changes were made.[/yellow]"))
        return

    address = handle.ip_address or "<container-ip>"
    lines = [
        "[green]Frigate installation complete![/green]",
        "",
        f"Container ID: {handle.container_id}",
        f"Hostname:     {handle.hostname}",
        f"Web UI:       http://{address}:{handle.web_port}",
    ]
    if settings.ssh.enabled:
        lines.append(f"SSH:          ssh {settings.ssh.username}@{address}")
    if settings.samba.enabled:
        lines.append(f"Samba:        \\\\{address}\\Frigate (user: root)")
    lines += [
        "",
        f"View logs:    pct exec {handle.container_id} -- docker logs frigate",
        f"Restart:      pct exec {handle.container_id} -- bash -c "
        f"'cd {settings.install_dir} && docker compose restart'",
    ]
    if not handle.ip_address:
        lines.append("[yellow]Could not determine the container IP address[/yellow]")
    console.print(Panel("\n".join(lines), title="Summary"))


def _print_update_summary(result: UpdateResult):
    if result.dry_run:
        console.print(Panel(f"[yellow]Dry run complete. Would update to {result.version}.[/yellow]"))
        return

    lines = [f"[green]Container {result.container_id} updated to {result.version}[/green]"]
    if result.snapshot_name:
        lines.append(f"Snapshot: {result.snapshot_name}")
        lines.append(f"Rollback: pct rollback {result.container_id} {result.snapshot_name}")
    console.print(Panel("\n".join(lines), title="Update"))


async def probe_hardware(config_path: Optional[Path] = None, verbose: bool = False):
    """Print the detected hardware profile."""
    await _load_config(config_path, "probe", verbose)
    profile = await HardwareProber().probe()
    console.print(profile_table(profile))


async def install(
    config_path: Optional[Path] = None,
    dry_run: bool = False,
    verbose: bool = False,
    prompter: Optional[Prompter] = None,
):
    """Interactive installation of a new Frigate container."""
    config = await _load_config(config_path, "install", verbose)
    prompter = prompter or Prompter(console)

    if dry_run:
        console.print("[yellow]DRY-RUN MODE: No changes will be made[/yellow]")

    check_root()
    check_terminal()
    await check_proxmox()
    check_resources(config.host)

    profile = await HardwareProber().probe()
    console.print(profile_table(profile))

    provider = ContainerProvider(config.host.lxc_config_dir, dry_run=dry_run)
    collector = ConfigurationCollector(provider, _release_index(config), config, prompter)
    settings = await collector.collect(profile)
    if not collector.confirm(settings, profile, dry_run=dry_run):
        console.print("[yellow]Installation cancelled[/yellow]")
        raise typer.Exit(1)

    artifacts = render(settings, profile)
    sequencer = ProvisioningSequencer(provider, config)
    try:
        handle = await sequencer.provision(settings, artifacts, on_stage=_print_stage)
    except ProvisionError as e:
        console.print(f"[red]Error:[/red] {e}")
        if e.container_created and not dry_run:
            if prompter.confirm(f"Destroy partially created container {settings.container_id}?", default=True):
                removed, error = await sequencer.teardown(settings.container_id)
                if not removed:
                    console.print(f"[yellow]Teardown incomplete:[/yellow] {error}")
        raise typer.Exit(1) from e

    _print_install_summary(handle, settings)
    return handle


def _ask_container_id(prompter: Prompter) -> int:
    while True:
        try:
            return parse_container_id(prompter.ask("Enter Container ID"))
        except InputValidationError as e:
            console.print(f"[red]{e}[/red]")


async def update(
    container_id: Optional[int] = None,
    version: Optional[str] = None,
    snapshot: bool = False,
    snapshot_name: Optional[str] = None,
    config_path: Optional[Path] = None,
    dry_run: bool = False,
    verbose: bool = False,
    prompter: Optional[Prompter] = None,
):
    """Update the Frigate image of an existing container."""
    config = await _load_config(config_path, "update", verbose)
    interactive = sys.stdin.isatty()
    if prompter is None and interactive:
        prompter = Prompter(console)

    if dry_run:
        console.print("[yellow]DRY-RUN MODE: No changes will be made[/yellow]")

    check_root()
    await check_proxmox()

    if container_id is None:
        if prompter is None:
            console.print("[red]Error:[/red] --id is required without a terminal")
            raise typer.Exit(1)
        container_id = _ask_container_id(prompter)

    request = UpdateRequest(
        container_id=container_id,
        target_version=version,
        snapshot=snapshot or bool(snapshot_name),
        snapshot_label=snapshot_name,
    )
    provider = ContainerProvider(config.host.lxc_config_dir, dry_run=dry_run)
    updater = UpdateSequencer(provider, _release_index(config), config, prompter=prompter)
    result = await updater.update(request)

    _print_update_summary(result)
    return result
