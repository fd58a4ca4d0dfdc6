"""Pydantic models for configuration and validation."""

from frigate_lxc.models.config import (
    ContainerDefaults,
    FrigateDefaults,
    HostConfig,
    InstallerConfig,
    LoggingConfig,
    ReleaseIndexConfig,
)
from frigate_lxc.models.deployment import (
    DeploymentHandle,
    ProvisionStage,
    RenderedArtifacts,
    UpdateResult,
    UpdateStage,
)
from frigate_lxc.models.hardware import AcceleratorClass, CoralClass, HardwareProfile
from frigate_lxc.models.settings import (
    DeploymentSettings,
    NetworkMode,
    NetworkSettings,
    SambaSettings,
    SshSettings,
)
from frigate_lxc.models.update import Release, UpdateRequest, VersionAlias

__all__ = [
    "AcceleratorClass",
    "ContainerDefaults",
    "CoralClass",
    "DeploymentHandle",
    "DeploymentSettings",
    "FrigateDefaults",
    "HardwareProfile",
    "HostConfig",
    "InstallerConfig",
    "LoggingConfig",
    "NetworkMode",
    "NetworkSettings",
    "ProvisionStage",
    "Release",
    "ReleaseIndexConfig",
    "RenderedArtifacts",
    "SambaSettings",
    "SshSettings",
    "UpdateRequest",
    "UpdateResult",
    "UpdateStage",
    "VersionAlias",
]
