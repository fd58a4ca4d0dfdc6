"""
Frigate LXC - Frigate NVR installer for Proxmox VE.

Provisions a privileged LXC container with Docker and Frigate, passing
through GPU and Coral devices detected on the host, and updates existing
installs to a new Frigate release.
"""

__version__ = "1.0.0"

# Re-export key components for easier access
from frigate_lxc.models.config import InstallerConfig
from frigate_lxc.models.hardware import HardwareProfile
from frigate_lxc.models.settings import DeploymentSettings
from frigate_lxc.models.update import UpdateRequest

__all__ = [
    "DeploymentSettings",
    "HardwareProfile",
    "InstallerConfig",
    "UpdateRequest",
]
