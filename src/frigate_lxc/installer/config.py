"""Configuration management for the installer."""

import asyncio
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from frigate_lxc.errors import ConfigurationError
from frigate_lxc.models.config import InstallerConfig


logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "FRIGATE_LXC_CONFIG"
DEFAULT_CONFIG_PATH = Path("/etc/frigate-lxc/config.yaml")


class ConfigManager:
    """Locates and loads the optional defaults file."""

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize configuration manager."""
        self.explicit_path = Path(config_path) if config_path else None
        self.yaml = YAML(typ="safe")
        self.config: Optional[InstallerConfig] = None
        self.source: Optional[Path] = None

    def locate(self) -> Optional[Path]:
        """Pick the file to load: explicit path, environment, then system default."""
        if self.explicit_path:
            if not self.explicit_path.exists():
                raise ConfigurationError(f"Config file not found: {self.explicit_path}")
            return self.explicit_path

        env_path = os.environ.get(CONFIG_ENV_VAR)
        if env_path:
            path = Path(env_path)
            if not path.exists():
                raise ConfigurationError(f"Config file from ${CONFIG_ENV_VAR} not found: {path}")
            return path

        if DEFAULT_CONFIG_PATH.exists():
            return DEFAULT_CONFIG_PATH
        return None

    async def load(self) -> InstallerConfig:
        """Load configuration, falling back to built-in defaults."""
        self.source = self.locate()
        if self.source is None:
            logger.debug("No config file found, using built-in defaults")
            self.config = InstallerConfig()
            return self.config

        logger.info(f"Loading configuration from {self.source}")
        data = await self._read_yaml(self.source)
        try:
            self.config = InstallerConfig(**data)
        except ValidationError as e:
            logger.error(f"Invalid config {self.source}: {e}")
            raise ConfigurationError(f"Invalid config {self.source}: {e}") from e

        return self.config

    async def _read_yaml(self, file_path: Path) -> Dict[str, Any]:
        """Read and parse YAML file."""
        try:
            content = await asyncio.to_thread(file_path.read_text)
            data = self.yaml.load(content)
        except (OSError, YAMLError) as e:
            raise ConfigurationError(f"Cannot read {file_path}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"{file_path} must contain a mapping at top level")
        return data
