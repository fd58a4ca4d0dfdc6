"""Provisioning and update outcome models."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ProvisionStage(str, Enum):
    """Provisioning stages, in execution order."""
    TEMPLATE_READY = "template_ready"
    CREATED = "created"
    PASSTHROUGH_CONFIGURED = "passthrough_configured"
    STARTED = "started"
    RUNTIME_INSTALLED = "runtime_installed"
    DIRS_READY = "dirs_ready"
    MANIFEST_WRITTEN = "manifest_written"
    CONFIG_WRITTEN = "config_written"
    ROOT_CREDENTIAL_SET = "root_credential_set"
    SSH_CONFIGURED = "ssh_configured"
    SAMBA_CONFIGURED = "samba_configured"
    APP_STARTED = "app_started"
    DONE = "done"


class UpdateStage(str, Enum):
    """Update stages, in execution order."""
    VERIFY_CONTAINER = "verify_container"
    RESOLVE_VERSION = "resolve_version"
    SNAPSHOT = "snapshot"
    REWRITE_MANIFEST = "rewrite_manifest"
    PULL = "pull"
    RECREATE = "recreate"
    DONE = "done"


class RenderedArtifacts(BaseModel):
    """Text artifacts derived from settings and hardware profile."""
    model_config = ConfigDict(frozen=True)

    manifest_text: str
    app_config_text: str
    passthrough_text: str = ""
    samba_config_text: str = ""


class DeploymentHandle(BaseModel):
    """A provisioned deployment."""
    container_id: int
    hostname: str
    web_port: int
    ip_address: Optional[str] = None
    dry_run: bool = False
    completed: List[ProvisionStage] = Field(default_factory=list)

    @property
    def web_url(self) -> Optional[str]:
        if not self.ip_address:
            return None
        return f"http://{self.ip_address}:{self.web_port}"


class UpdateResult(BaseModel):
    """Outcome of an update."""
    container_id: int
    version: str
    snapshot_name: Optional[str] = None
    dry_run: bool = False
    completed: List[UpdateStage] = Field(default_factory=list)
