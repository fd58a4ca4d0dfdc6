"""Container provider for managing Proxmox LXC containers through pct."""

import asyncio
import logging
import shlex
import subprocess
from enum import Enum
from pathlib import Path
from typing import List, Optional

from frigate_lxc.errors import ExternalToolError, ResourceError
from frigate_lxc.models.settings import DeploymentSettings, NetworkMode
from frigate_lxc.utils.process import CommandResult, run_command


logger = logging.getLogger(__name__)


class ContainerState(Enum):
    """Container status as reported by ``pct status``."""
    RUNNING = "running"
    STOPPED = "stopped"
    ABSENT = "absent"
    UNKNOWN = "unknown"


class ContainerProvider:
    """Provider for managing LXC containers on a Proxmox VE host.

    Every mutating call goes through ``_run(..., mutating=True)``; with
    ``dry_run`` set those calls are logged and skipped while read-only
    queries still reach the host.
    """

    def __init__(self, lxc_config_dir: str = "/etc/pve/lxc", dry_run: bool = False):
        """Initialize container provider."""
        self.lxc_config_dir = Path(lxc_config_dir)
        self.dry_run = dry_run

    async def _run(
        self,
        cmd: List[str],
        mutating: bool = True,
        check: bool = True,
        input: Optional[str] = None,
    ) -> CommandResult:
        """Run a host command, honouring dry-run for mutating calls."""
        if mutating and self.dry_run:
            logger.info(f"[DRY-RUN] Would execute: {shlex.join(cmd)}")
            return CommandResult(returncode=0)

        try:
            return await run_command(cmd, check=check, input=input)
        except subprocess.CalledProcessError as e:
            logger.error(f"Command failed: {shlex.join(cmd)}. Stderr: {e.stderr}")
            raise ExternalToolError(cmd, e.returncode, e.stdout or "", e.stderr or "") from e

    async def next_id(self) -> int:
        """Ask the cluster for the next free guest ID."""
        result = await self._run(["pvesh", "get", "/cluster/nextid"], mutating=False)
        answer = result.stdout.strip().strip('"')
        if not answer.isdigit():
            raise ResourceError(f"Unexpected answer from pvesh for the next free ID: '{answer}'.")
        return int(answer)

    async def status(self, container_id: int) -> ContainerState:
        """Check the current state of a container."""
        try:
            result = await self._run(
                ["pct", "status", str(container_id)],
                mutating=False,
                check=False,
            )
        except OSError as e:
            logger.error(f"Error checking container {container_id}: {e}")
            return ContainerState.UNKNOWN

        if result.returncode != 0:
            return ContainerState.ABSENT

        for state in (ContainerState.RUNNING, ContainerState.STOPPED):
            if f"status: {state.value}" in result.stdout:
                return state
        return ContainerState.UNKNOWN

    async def exists(self, container_id: int) -> bool:
        """Check if a container with this ID exists."""
        return await self.status(container_id) != ContainerState.ABSENT

    async def template_available(self, storage: str, template: str) -> bool:
        """Check if an OS template is already in the template storage."""
        result = await self._run(["pveam", "list", storage], mutating=False, check=False)
        return result.returncode == 0 and template in result.stdout

    async def download_template(self, storage: str, template: str) -> None:
        """Download an OS template."""
        logger.info(f"Downloading template {template} to {storage}")
        await self._run(["pveam", "download", storage, template])

    async def create(self, settings: DeploymentSettings, template_volume: str) -> None:
        """Create a privileged container with nesting enabled."""
        logger.info(f"Creating container {settings.container_id}")
        cmd = [
            "pct", "create", str(settings.container_id), template_volume,
            "--hostname", settings.hostname,
            "--cores", str(settings.cpu_cores),
            "--memory", str(settings.memory_mb),
            "--swap", str(settings.swap_mb),
            "--rootfs", f"{settings.storage}:{settings.disk_gb}",
            "--net0", settings.network.net0(settings.bridge),
            "--unprivileged", "0",
            "--features", "nesting=1",
            "--onboot", "1",
            "--start", "0",
        ]
        if settings.network.mode == NetworkMode.STATIC and settings.network.dns:
            cmd.extend(["--nameserver", settings.network.dns])
        await self._run(cmd)

    async def append_config(self, container_id: int, text: str) -> None:
        """Append raw lines to the container's LXC configuration file."""
        conf_file = self.lxc_config_dir / f"{container_id}.conf"
        if self.dry_run:
            logger.info(f"[DRY-RUN] Would append {len(text.splitlines())} lines to {conf_file}")
            return

        def _append():
            with conf_file.open("a", encoding="utf-8") as handle:
                handle.write(text)

        await asyncio.to_thread(_append)
        logger.debug(f"Appended passthrough configuration to {conf_file}")

    async def start(self, container_id: int) -> None:
        """Start the container."""
        logger.info(f"Starting container {container_id}")
        await self._run(["pct", "start", str(container_id)])

    async def stop(self, container_id: int) -> None:
        """Stop the container."""
        logger.info(f"Stopping container {container_id}")
        await self._run(["pct", "stop", str(container_id)])

    async def destroy(self, container_id: int) -> None:
        """Destroy the container and its volumes."""
        logger.info(f"Destroying container {container_id}")
        await self._run(["pct", "destroy", str(container_id)])

    async def snapshot(self, container_id: int, name: str, description: str = "") -> None:
        """Take a snapshot of the container."""
        logger.info(f"Creating snapshot {name} of container {container_id}")
        cmd = ["pct", "snapshot", str(container_id), name]
        if description:
            cmd.extend(["--description", description])
        await self._run(cmd)

    async def execute(
        self,
        container_id: int,
        command: str,
        input: Optional[str] = None,
        mutating: bool = True,
    ) -> CommandResult:
        """Execute a shell command line inside the container."""
        cmd = ["pct", "exec", str(container_id), "--", "bash", "-c", command]
        return await self._run(cmd, mutating=mutating, input=input)

    async def query(self, container_id: int, command: str) -> CommandResult:
        """Execute a read-only shell command inside the container."""
        return await self.execute(container_id, command, mutating=False)

    async def write_file(self, container_id: int, path: str, content: str) -> None:
        """Write ``content`` to ``path`` inside the container."""
        await self.execute(container_id, f"cat > {shlex.quote(path)}", input=content)
        logger.debug(f"Wrote {path} in container {container_id}")

    async def read_file(self, container_id: int, path: str) -> str:
        """Read a file from inside the container."""
        result = await self.query(container_id, f"cat {shlex.quote(path)}")
        return result.stdout

    async def ip_address(self, container_id: int) -> Optional[str]:
        """Return the first IPv4 address of eth0, if any."""
        result = await self._run(
            ["pct", "exec", str(container_id), "--", "ip", "-4", "-o", "addr", "show", "eth0"],
            mutating=False,
            check=False,
        )
        for line in result.stdout.splitlines():
            parts = line.split()
            if "inet" in parts:
                return parts[parts.index("inet") + 1].split("/")[0]
        return None

    async def wait_for_network(self, container_id: int, timeout: int = 30, interval: float = 1.0) -> bool:
        """Wait for eth0 to obtain an IPv4 address."""
        if self.dry_run:
            return True

        waited = 0.0
        while waited < timeout:
            if await self.ip_address(container_id):
                logger.debug(f"Container {container_id} network is up")
                return True
            await asyncio.sleep(interval)
            waited += interval

        logger.warning(f"Container {container_id} has no network after {timeout}s")
        return False
