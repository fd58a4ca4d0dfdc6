"""Update request and release index models."""

from datetime import datetime
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class VersionAlias(str, Enum):
    """Symbolic update targets resolved through the release index."""
    LATEST = "latest"
    BETA = "beta"


class Release(BaseModel):
    """One entry of the release index."""
    model_config = ConfigDict(extra="ignore")

    tag_name: str
    prerelease: bool = False
    draft: bool = False
    published_at: Optional[datetime] = None

    @property
    def version(self) -> str:
        """Tag without the leading ``v``, as used for image tags."""
        return self.tag_name[1:] if self.tag_name[:1] in ("v", "V") else self.tag_name


class UpdateRequest(BaseModel):
    """Update of an existing deployment.

    ``target_version`` of ``None`` means the operator picks from a menu.
    """
    model_config = ConfigDict(frozen=True)

    container_id: int = Field(..., ge=100, le=999)
    target_version: Optional[Union[VersionAlias, str]] = None
    snapshot: bool = False
    snapshot_label: Optional[str] = None

    @field_validator("target_version", mode="before")
    @classmethod
    def parse_alias(cls, v):
        if isinstance(v, str):
            v = v.strip()
            if not v:
                return None
            if v.lower() in (alias.value for alias in VersionAlias):
                return VersionAlias(v.lower())
        return v
