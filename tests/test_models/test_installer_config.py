"""Tests for configuration models."""

import pytest
from pydantic import ValidationError

from frigate_lxc.models.config import ContainerDefaults, FrigateDefaults, InstallerConfig, LoggingConfig


class TestContainerDefaults:
    """Test ContainerDefaults model."""

    def test_default_values(self):
        defaults = ContainerDefaults()

        assert defaults.template.startswith("debian-12-standard")
        assert defaults.template_storage == "local"
        assert defaults.cores == 4
        assert defaults.dns == "8.8.8.8"

    def test_positive_values(self):
        with pytest.raises(ValidationError) as exc_info:
            ContainerDefaults(cores=0)

        assert "cores" in str(exc_info.value)


class TestFrigateDefaults:
    """Test FrigateDefaults model."""

    def test_paths(self):
        defaults = FrigateDefaults(install_dir="/srv/frigate/")

        assert defaults.manifest_path == "/srv/frigate/docker-compose.yml"
        assert defaults.app_config_path == "/srv/frigate/config/config.yml"


class TestLoggingConfig:
    """Test LoggingConfig model."""

    def test_log_level_validation(self):
        for level in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            assert LoggingConfig(level=level).level == level

        assert LoggingConfig(level="debug").level == "DEBUG"

        with pytest.raises(ValidationError) as exc_info:
            LoggingConfig(level="INVALID")

        assert "level" in str(exc_info.value)


class TestInstallerConfig:
    """Test InstallerConfig model."""

    def test_defaults(self):
        config = InstallerConfig()

        assert config.releases.url == "https://api.github.com/repos/blakeblackshear/frigate/releases"
        assert config.releases.menu_size == 10
        assert config.host.lxc_config_dir == "/etc/pve/lxc"
        assert config.host.network_timeout == 30

    def test_partial_sections_and_unknown_keys(self):
        config = InstallerConfig(**{
            "container": {"storage": "zfs-pool", "memory_mb": 4096},
            "frigate": {"web_port": 8971},
            "unknown_section": {"key": "value"},
        })

        assert config.container.storage == "zfs-pool"
        assert config.container.memory_mb == 4096
        assert config.container.cores == 4
        assert config.frigate.web_port == 8971
