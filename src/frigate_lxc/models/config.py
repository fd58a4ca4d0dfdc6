"""Configuration models."""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ContainerDefaults(BaseModel):
    """Defaults for the LXC container."""
    template: str = Field(default="debian-12-standard_12.12-1_amd64.tar.zst")
    template_storage: str = Field(default="local")
    storage: str = Field(default="local-lvm")
    bridge: str = Field(default="vmbr0")
    hostname: str = Field(default="frigate")
    cores: int = Field(default=4, gt=0)
    memory_mb: int = Field(default=2048, gt=0)
    swap_mb: int = Field(default=512, ge=0)
    disk_gb: int = Field(default=10, gt=0)
    dns: str = Field(default="8.8.8.8")


class FrigateDefaults(BaseModel):
    """Defaults for the Frigate deployment."""
    image_repository: str = Field(default="ghcr.io/blakeblackshear/frigate")
    image_tag: str = Field(default="stable")
    web_port: int = Field(default=5000, ge=1, le=65535)
    install_dir: str = Field(default="/opt/frigate")
    rtsp_password: str = Field(default="password")

    @property
    def manifest_path(self) -> str:
        return f"{self.install_dir.rstrip('/')}/docker-compose.yml"

    @property
    def app_config_path(self) -> str:
        return f"{self.install_dir.rstrip('/')}/config/config.yml"


class ReleaseIndexConfig(BaseModel):
    """Release index endpoint."""
    url: str = Field(default="https://api.github.com/repos/blakeblackshear/frigate/releases")
    timeout: float = Field(default=10.0, gt=0)
    menu_size: int = Field(default=10, ge=1)


class HostConfig(BaseModel):
    """Proxmox host paths and limits."""
    lxc_config_dir: str = Field(default="/etc/pve/lxc")
    template_dir: str = Field(default="/var/lib/vz")
    recommended_free_gb: int = Field(default=30, ge=0)
    required_free_gb: int = Field(default=2, ge=0)
    network_timeout: int = Field(default=30, ge=0)
    network_poll_interval: float = Field(default=1.0, gt=0)


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = Field(default="INFO")
    log_dir: str = Field(default="/tmp")

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}")
        return v.upper()


class InstallerConfig(BaseModel):
    """Main configuration model."""
    model_config = ConfigDict(extra="ignore")

    container: ContainerDefaults = Field(default_factory=ContainerDefaults)
    frigate: FrigateDefaults = Field(default_factory=FrigateDefaults)
    releases: ReleaseIndexConfig = Field(default_factory=ReleaseIndexConfig)
    host: HostConfig = Field(default_factory=HostConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
