"""Shared fixtures."""

import pytest
from pydantic import SecretStr

from frigate_lxc.models.hardware import AcceleratorClass, CoralClass, HardwareProfile
from frigate_lxc.models.settings import DeploymentSettings, SambaSettings, SshSettings


@pytest.fixture
def make_settings():
    """Factory for deployment settings with sensible test defaults."""
    def _make(**overrides):
        values = {
            "container_id": 105,
            "hostname": "frigate",
            "root_credential": SecretStr("rootpw"),
        }
        values.update(overrides)
        return DeploymentSettings(**values)
    return _make


@pytest.fixture
def full_settings(make_settings):
    """Settings with acceleration, SSH and Samba enabled."""
    return make_settings(
        accel_enabled=True,
        ssh=SshSettings(enabled=True, username="frigate", credential=SecretStr("rootpw")),
        samba=SambaSettings(enabled=True),
    )


@pytest.fixture
def intel_profile():
    return HardwareProfile(
        cpu_model="Intel(R) Core(TM) i5-8500T",
        accelerator_class=AcceleratorClass.INTEL_VAAPI,
        gpu_description="Intel iGPU",
    )


@pytest.fixture
def nvidia_usb_coral_profile():
    return HardwareProfile(
        cpu_model="AMD Ryzen 5 5600",
        accelerator_class=AcceleratorClass.NVIDIA,
        coral_class=CoralClass.USB,
        gpu_description="NVIDIA GPU",
        nvidia_uvm_major=508,
    )


@pytest.fixture
def bare_profile():
    return HardwareProfile(cpu_model="QEMU Virtual CPU")
