"""Renders the deployment manifest, Frigate config and host-side files.

Everything here is a pure function of ``DeploymentSettings`` and
``HardwareProfile``: no I/O, no clock, no randomness. Invalid settings are
rejected earlier by the models and the collector.
"""

from typing import List, NamedTuple, Optional

from frigate_lxc.installer.templates import (
    APP_CONFIG_TEMPLATE,
    MANIFEST_TEMPLATE,
    PASSTHROUGH_TEMPLATE,
    SAMBA_SHARE_OPTIONS,
    SAMBA_TEMPLATE,
)
from frigate_lxc.models.deployment import RenderedArtifacts
from frigate_lxc.models.hardware import AcceleratorClass, CoralClass, HardwareProfile
from frigate_lxc.models.settings import DeploymentSettings
from frigate_lxc.utils.templates import render_template


RENDER_NODE = "/dev/dri/renderD128"
CORAL_PCIE_NODE = "/dev/apex_0"
NVIDIA_NODES = ["/dev/nvidia0", "/dev/nvidiactl", "/dev/nvidia-uvm", "/dev/nvidia-uvm-tools"]


class Detector(NamedTuple):
    """Frigate object detector stanza."""
    name: str
    type: str
    device: str


class Share(NamedTuple):
    name: str
    path: str
    comment: str


def gpu_passthrough_active(settings: DeploymentSettings, profile: HardwareProfile) -> bool:
    """GPU devices are exposed only when acceleration is on and a GPU exists."""
    return settings.accel_enabled and profile.has_accelerator


def manifest_devices(settings: DeploymentSettings, profile: HardwareProfile) -> List[str]:
    """Device nodes mapped into the Frigate service."""
    devices = []
    if gpu_passthrough_active(settings, profile) and profile.is_vaapi:
        devices.append(RENDER_NODE)
    # USB Coral is enumerated by the container on its own
    if profile.coral_class == CoralClass.PCIE:
        devices.append(CORAL_PCIE_NODE)
    return devices


def hwaccel_preset(settings: DeploymentSettings, profile: HardwareProfile) -> Optional[str]:
    """FFmpeg hardware acceleration preset, if any."""
    if not gpu_passthrough_active(settings, profile):
        return None
    if profile.accelerator_class == AcceleratorClass.NVIDIA:
        return "preset-nvidia"
    return "preset-vaapi"


def select_detector(settings: DeploymentSettings, profile: HardwareProfile) -> Detector:
    """Coral beats OpenVINO on the iGPU, which beats OpenVINO on the CPU."""
    if profile.coral_class == CoralClass.USB:
        return Detector("coral", "edgetpu", "usb")
    if profile.coral_class == CoralClass.PCIE:
        return Detector("coral", "edgetpu", "pci")
    if (gpu_passthrough_active(settings, profile)
            and profile.accelerator_class == AcceleratorClass.INTEL_VAAPI):
        return Detector("ov", "openvino", "GPU")
    return Detector("ov", "openvino", "CPU")


def render_manifest(settings: DeploymentSettings, profile: HardwareProfile) -> str:
    """Render docker-compose.yml."""
    nvidia = (gpu_passthrough_active(settings, profile)
              and profile.accelerator_class == AcceleratorClass.NVIDIA)
    return render_template(
        MANIFEST_TEMPLATE,
        image=settings.image,
        web_port=settings.web_port,
        devices=manifest_devices(settings, profile),
        nvidia=nvidia,
        rtsp_password=settings.rtsp_password,
    )


def render_app_config(settings: DeploymentSettings, profile: HardwareProfile) -> str:
    """Render Frigate's config.yml."""
    return render_template(
        APP_CONFIG_TEMPLATE,
        reolink=settings.extra_profile_flag,
        hwaccel_preset=hwaccel_preset(settings, profile),
        detector=select_detector(settings, profile),
    )


def render_passthrough(settings: DeploymentSettings, profile: HardwareProfile) -> str:
    """Render LXC config lines exposing host devices to the container.

    Returns an empty string when there is nothing to pass through.
    """
    cgroup_rules = []
    mount_entries = []

    if gpu_passthrough_active(settings, profile):
        if profile.is_vaapi:
            cgroup_rules += ["c 226:0 rwm", "c 226:128 rwm"]
            mount_entries.append(f"{RENDER_NODE} dev/dri/renderD128 none bind,optional,create=file")
        elif profile.accelerator_class == AcceleratorClass.NVIDIA:
            cgroup_rules.append("c 195:* rwm")
            if profile.nvidia_uvm_major is not None:
                cgroup_rules.append(f"c {profile.nvidia_uvm_major}:* rwm")
            mount_entries += [
                f"{node} {node.lstrip('/')} none bind,optional,create=file" for node in NVIDIA_NODES
            ]

    if profile.coral_class == CoralClass.PCIE:
        cgroup_rules.append("c 120:* rwm")
        mount_entries.append(f"{CORAL_PCIE_NODE} dev/apex_0 none bind,optional,create=file")
    elif profile.coral_class == CoralClass.USB:
        cgroup_rules.append("c 189:* rwm")
        mount_entries.append("/dev/bus/usb dev/bus/usb none bind,optional,create=dir")

    if not cgroup_rules:
        return ""
    return render_template(
        PASSTHROUGH_TEMPLATE,
        cgroup_rules=cgroup_rules,
        mount_entries=mount_entries,
    )


def render_samba_config(settings: DeploymentSettings) -> str:
    """Render smb.conf with shares over the install directory."""
    base = settings.install_dir.rstrip("/")
    shares = [
        Share("Frigate", base, "Frigate installation directory"),
        Share("Config", f"{base}/config", "Frigate configuration"),
        Share("Media", f"{base}/storage", "Frigate recordings and media"),
    ]
    return render_template(
        SAMBA_TEMPLATE,
        netbios_name=settings.hostname.upper()[:15],
        shares=shares,
        share_options=SAMBA_SHARE_OPTIONS,
    )


def render(settings: DeploymentSettings, profile: HardwareProfile) -> RenderedArtifacts:
    """Render every artifact for one deployment."""
    return RenderedArtifacts(
        manifest_text=render_manifest(settings, profile),
        app_config_text=render_app_config(settings, profile),
        passthrough_text=render_passthrough(settings, profile),
        samba_config_text=render_samba_config(settings) if settings.samba.enabled else "",
    )
