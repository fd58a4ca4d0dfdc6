"""Adapters for the external tools frigate-lxc drives."""

from frigate_lxc.providers.container import ContainerProvider, ContainerState
from frigate_lxc.providers.hardware import HardwareProber
from frigate_lxc.providers.releases import ReleaseIndex, pick_release

__all__ = ["ContainerProvider", "ContainerState", "HardwareProber", "ReleaseIndex", "pick_release"]
