"""Host hardware detection."""

import asyncio
import logging
import re
import shutil
from pathlib import Path
from typing import List, Optional

from frigate_lxc.models.hardware import AcceleratorClass, CoralClass, HardwareProfile
from frigate_lxc.utils.process import run_command


logger = logging.getLogger(__name__)

RENDER_NODE = "/dev/dri/renderD128"
CPUINFO = "/proc/cpuinfo"
PROC_DEVICES = "/proc/devices"

GPU_LINE = re.compile(r"VGA compatible controller|Display controller|3D controller", re.IGNORECASE)
# Edge TPU before (1a6e:089a) and after (18d1:9302) its firmware is loaded
CORAL_USB = re.compile(r"\bID (?:18d1:9302|1a6e:089a)\b|Google Inc\. Digital Enlightenment", re.IGNORECASE)
CORAL_PCIE = re.compile(r"Global Unichip Corp", re.IGNORECASE)


class HardwareProber:
    """Classifies CPU, GPU and Coral accelerator of the host.

    Probing never raises: a missing tool or device is a valid "none" answer.
    """

    def __init__(
        self,
        render_node: str = RENDER_NODE,
        cpuinfo: str = CPUINFO,
        proc_devices: str = PROC_DEVICES,
    ):
        self.render_node = Path(render_node)
        self.cpuinfo = Path(cpuinfo)
        self.proc_devices = Path(proc_devices)

    async def probe(self) -> HardwareProfile:
        """Detect hardware and return a profile."""
        cpu_model = await self._detect_cpu()
        pci_listing = await self._query(["lspci"])
        usb_listing = await self._query(["lsusb"])

        accelerator_class, gpu_description = self._classify_gpu(pci_listing)
        coral_class = self._classify_coral(usb_listing, pci_listing)

        uvm_major = None
        if accelerator_class == AcceleratorClass.NVIDIA:
            uvm_major = await self._device_major("nvidia-uvm")

        profile = HardwareProfile(
            cpu_model=cpu_model,
            accelerator_class=accelerator_class,
            coral_class=coral_class,
            gpu_description=gpu_description,
            nvidia_uvm_major=uvm_major,
        )
        logger.info(
            f"Detected CPU: {profile.cpu_model}, GPU: {profile.gpu_description}, "
            f"Coral: {profile.coral_class.value}"
        )
        return profile

    async def _query(self, cmd: List[str]) -> str:
        """Run a read-only query and return stdout, or "" on any failure."""
        try:
            result = await run_command(cmd, check=False)
        except OSError as e:
            logger.debug(f"{cmd[0]} unavailable: {e}")
            return ""
        return result.stdout if result.returncode == 0 else ""

    async def _detect_cpu(self) -> str:
        for line in (await self._query(["lscpu"])).splitlines():
            if line.startswith("Model name"):
                return line.split(":", 1)[1].strip()

        try:
            content = await asyncio.to_thread(self.cpuinfo.read_text)
        except OSError:
            return "unknown"
        for line in content.splitlines():
            if line.lower().startswith("model name"):
                return line.split(":", 1)[1].strip()
        return "unknown"

    async def _device_major(self, name: str) -> Optional[int]:
        """Look up a character device major number in /proc/devices."""
        try:
            content = await asyncio.to_thread(self.proc_devices.read_text)
        except OSError:
            return None
        for line in content.splitlines():
            parts = line.split()
            if len(parts) == 2 and parts[1] == name and parts[0].isdigit():
                return int(parts[0])
        return None

    def _classify_gpu(self, pci_listing: str):
        """Pick the accelerator class from the render node and lspci output."""
        if self.render_node.exists():
            gpu_lines = "\n".join(
                line for line in pci_listing.splitlines() if GPU_LINE.search(line)
            ).lower()
            if "intel" in gpu_lines:
                return AcceleratorClass.INTEL_VAAPI, "Intel iGPU"
            if "amd" in gpu_lines or "ati " in gpu_lines or "radeon" in gpu_lines:
                return AcceleratorClass.AMD_VAAPI, "AMD GPU"
            return AcceleratorClass.GENERIC_VAAPI, "Generic VAAPI (Intel/AMD)"

        if shutil.which("nvidia-smi"):
            return AcceleratorClass.NVIDIA, "NVIDIA GPU"

        return AcceleratorClass.NONE, "none"

    def _classify_coral(self, usb_listing: str, pci_listing: str) -> CoralClass:
        # USB enumeration wins over PCIe
        if CORAL_USB.search(usb_listing):
            return CoralClass.USB
        if CORAL_PCIE.search(pci_listing):
            return CoralClass.PCIE
        return CoralClass.NONE
