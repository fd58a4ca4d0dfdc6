"""Deployment settings collected from the operator."""

import ipaddress
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator, model_validator


HOSTNAME_PATTERN = r"^[A-Za-z0-9]([A-Za-z0-9-]{0,61}[A-Za-z0-9])?$"
USERNAME_PATTERN = r"^[a-z_][a-z0-9_-]{0,31}$"
IMAGE_TAG_PATTERN = r"^[A-Za-z0-9_][A-Za-z0-9_.-]{0,127}$"


def _has_secret(value: Optional[SecretStr]) -> bool:
    return value is not None and bool(value.get_secret_value())


class NetworkMode(str, Enum):
    """Container network addressing."""
    DHCP = "dhcp"
    STATIC = "static"


class NetworkSettings(BaseModel):
    """Container network configuration."""
    model_config = ConfigDict(frozen=True)

    mode: NetworkMode = Field(default=NetworkMode.DHCP)
    address: Optional[str] = Field(None, description="IPv4/IPv6 address with CIDR prefix")
    gateway: Optional[str] = None
    dns: str = Field(default="8.8.8.8")

    @field_validator("address")
    @classmethod
    def validate_address(cls, v: Optional[str]) -> Optional[str]:
        """Require an interface address with an explicit prefix length."""
        if v is None:
            return v
        if "/" not in v:
            raise ValueError(f"address must include a prefix length: {v}")
        ipaddress.ip_interface(v)
        return v

    @field_validator("gateway", "dns")
    @classmethod
    def validate_ip(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        ipaddress.ip_address(v)
        return v

    @model_validator(mode="after")
    def validate_static(self) -> "NetworkSettings":
        if self.mode == NetworkMode.STATIC and (not self.address or not self.gateway):
            raise ValueError("static networking requires both address and gateway")
        return self

    def net0(self, bridge: str) -> str:
        """Render the ``pct --net0`` option value."""
        if self.mode == NetworkMode.STATIC:
            return f"name=eth0,bridge={bridge},ip={self.address},gw={self.gateway}"
        return f"name=eth0,bridge={bridge},ip=dhcp"


class SshSettings(BaseModel):
    """SSH access inside the container."""
    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    username: str = Field(default="frigate", pattern=USERNAME_PATTERN)
    credential: Optional[SecretStr] = None

    @model_validator(mode="after")
    def validate_credential(self) -> "SshSettings":
        if self.enabled and not _has_secret(self.credential):
            raise ValueError("SSH access requires a credential")
        return self


class SambaSettings(BaseModel):
    """Samba shares inside the container."""
    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    credential: Optional[SecretStr] = None


class DeploymentSettings(BaseModel):
    """Everything needed to provision one Frigate container.

    Built once by the collector and passed unchanged to every later stage.
    """
    model_config = ConfigDict(frozen=True)

    container_id: int = Field(..., ge=100, le=999)
    hostname: str = Field(default="frigate", pattern=HOSTNAME_PATTERN)
    cpu_cores: int = Field(default=4, gt=0)
    memory_mb: int = Field(default=2048, gt=0)
    swap_mb: int = Field(default=512, ge=0)
    disk_gb: int = Field(default=10, gt=0)
    storage: str = Field(default="local-lvm", min_length=1)
    bridge: str = Field(default="vmbr0", min_length=1)
    network: NetworkSettings = Field(default_factory=NetworkSettings)
    accel_enabled: bool = False
    web_port: int = Field(default=5000, ge=1, le=65535)
    image_repository: str = Field(default="ghcr.io/blakeblackshear/frigate", min_length=1)
    image_tag: str = Field(default="stable", pattern=IMAGE_TAG_PATTERN)
    extra_profile_flag: bool = Field(default=False, description="Emit Reolink camera examples")
    install_dir: str = Field(default="/opt/frigate", pattern=r"^/")
    rtsp_password: str = Field(default="password")
    root_credential: SecretStr
    ssh: SshSettings = Field(default_factory=SshSettings)
    samba: SambaSettings = Field(default_factory=SambaSettings)

    @field_validator("root_credential")
    @classmethod
    def validate_root_credential(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value():
            raise ValueError("root credential cannot be empty")
        return v

    @model_validator(mode="after")
    def validate_samba_credential(self) -> "DeploymentSettings":
        """Samba without SSH needs its own credential."""
        if self.samba.enabled and not self.ssh.enabled and not _has_secret(self.samba.credential):
            raise ValueError("samba without SSH requires a dedicated samba credential")
        return self

    @property
    def image(self) -> str:
        return f"{self.image_repository}:{self.image_tag}"
