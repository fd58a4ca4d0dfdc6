"""Host hardware classification models."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AcceleratorClass(str, Enum):
    """Video acceleration available on the host."""
    NONE = "none"
    INTEL_VAAPI = "intel-vaapi"
    AMD_VAAPI = "amd-vaapi"
    GENERIC_VAAPI = "generic-vaapi"
    NVIDIA = "nvidia"


class CoralClass(str, Enum):
    """Google Coral accelerator attachment."""
    NONE = "none"
    USB = "usb"
    PCIE = "pcie"


VAAPI_CLASSES = frozenset({
    AcceleratorClass.INTEL_VAAPI,
    AcceleratorClass.AMD_VAAPI,
    AcceleratorClass.GENERIC_VAAPI,
})


class HardwareProfile(BaseModel):
    """Result of probing the host."""
    model_config = ConfigDict(frozen=True)

    cpu_model: str = Field(default="unknown")
    accelerator_class: AcceleratorClass = Field(default=AcceleratorClass.NONE)
    coral_class: CoralClass = Field(default=CoralClass.NONE)
    gpu_description: str = Field(default="none", description="Human readable GPU label")
    nvidia_uvm_major: Optional[int] = Field(None, description="Dynamic major number of nvidia-uvm")

    @property
    def has_accelerator(self) -> bool:
        return self.accelerator_class != AcceleratorClass.NONE

    @property
    def is_vaapi(self) -> bool:
        return self.accelerator_class in VAAPI_CLASSES
