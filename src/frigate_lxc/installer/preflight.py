"""Host checks run before anything is created."""

import logging
import os
import shutil
import sys

from frigate_lxc.errors import HostEnvironmentError, ResourceError
from frigate_lxc.models.config import HostConfig
from frigate_lxc.utils.process import run_command


logger = logging.getLogger(__name__)

GIB = 1024 ** 3


async def check_proxmox() -> str:
    """Ensure this is a Proxmox VE host and return its version."""
    if not shutil.which("pveversion"):
        raise HostEnvironmentError("This tool must be run on a Proxmox VE host")

    result = await run_command(["pveversion"], check=False)
    version = "unknown"
    for line in result.stdout.splitlines():
        # pve-manager/8.2.4/faa83925c9641325 (running kernel: ...)
        if line.startswith("pve-manager/"):
            version = line.split("/")[1].split("-")[0]
    logger.info(f"Running on Proxmox VE {version}")
    return version


def check_root() -> None:
    """Ensure the process runs as root."""
    if os.geteuid() != 0:
        raise HostEnvironmentError("This tool must be run as root")
    logger.debug("Running as root")


def check_terminal() -> None:
    """Interactive installs need a TTY on stdin."""
    if not sys.stdin.isatty():
        raise HostEnvironmentError("An interactive terminal is required")


def check_resources(host: HostConfig) -> int:
    """Check free space in the template directory; returns free GiB."""
    try:
        usage = shutil.disk_usage(host.template_dir)
    except OSError as e:
        logger.warning(f"Cannot check free space in {host.template_dir}: {e}")
        return 0

    free_gb = usage.free // GIB
    if free_gb < host.required_free_gb:
        raise ResourceError(
            f"Only {free_gb}GB free in {host.template_dir}, need at least {host.required_free_gb}GB"
        )
    if free_gb < host.recommended_free_gb:
        logger.warning(f"Only {free_gb}GB available. Recommended: {host.recommended_free_gb}GB+")
    else:
        logger.info(f"Available disk space: {free_gb}GB")
    return free_gb
