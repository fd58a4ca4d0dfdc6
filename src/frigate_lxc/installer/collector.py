"""Interactive collection of deployment settings.

Prompting goes through a ``Prompter``; the parser functions below own the
validation rules and raise ``InputValidationError`` so the collector can ask
again.
"""

import ipaddress
import logging
import re
from typing import Callable, Optional, TypeVar

from pydantic import SecretStr, ValidationError
from rich.table import Table

from frigate_lxc.errors import ConfigurationError, InputValidationError, ResourceError
from frigate_lxc.models.config import InstallerConfig
from frigate_lxc.models.hardware import HardwareProfile
from frigate_lxc.models.settings import (
    HOSTNAME_PATTERN,
    IMAGE_TAG_PATTERN,
    USERNAME_PATTERN,
    DeploymentSettings,
    NetworkMode,
    NetworkSettings,
    SambaSettings,
    SshSettings,
)
from frigate_lxc.models.update import VersionAlias
from frigate_lxc.providers.container import ContainerProvider
from frigate_lxc.providers.releases import ReleaseIndex
from frigate_lxc.utils.prompts import Prompter


logger = logging.getLogger(__name__)

T = TypeVar("T")

MIN_CONTAINER_ID = 100
MAX_CONTAINER_ID = 999


def parse_container_id(text: str) -> int:
    """Parse a container ID in the 100-999 range."""
    if not text.isdigit() or not MIN_CONTAINER_ID <= int(text) <= MAX_CONTAINER_ID:
        raise InputValidationError(
            f"Invalid Container ID. Must be between {MIN_CONTAINER_ID}-{MAX_CONTAINER_ID}."
        )
    return int(text)


def parse_positive_int(text: str, label: str = "Value") -> int:
    if not text.isdigit() or int(text) <= 0:
        raise InputValidationError(f"{label} must be a positive integer, got '{text}'")
    return int(text)


def parse_port(text: str) -> int:
    if not text.isdigit() or not 1 <= int(text) <= 65535:
        raise InputValidationError(f"Port must be between 1 and 65535, got '{text}'")
    return int(text)


def parse_hostname(text: str) -> str:
    if not re.match(HOSTNAME_PATTERN, text):
        raise InputValidationError(f"Invalid hostname '{text}'")
    return text


def parse_username(text: str) -> str:
    if not re.match(USERNAME_PATTERN, text):
        raise InputValidationError(f"Invalid username '{text}'")
    return text


def parse_image_tag(text: str) -> str:
    if not re.match(IMAGE_TAG_PATTERN, text):
        raise InputValidationError(f"Invalid image tag '{text}'")
    return text


def parse_cidr(text: str) -> str:
    """Parse an interface address such as 192.168.1.100/24."""
    try:
        if "/" not in text:
            raise ValueError("missing prefix length")
        ipaddress.ip_interface(text)
    except ValueError as e:
        raise InputValidationError(f"Invalid address '{text}': {e}") from e
    return text


def parse_ip(text: str) -> str:
    try:
        ipaddress.ip_address(text)
    except ValueError as e:
        raise InputValidationError(f"Invalid IP address '{text}'") from e
    return text


class ConfigurationCollector:
    """Builds ``DeploymentSettings`` from operator answers."""

    def __init__(
        self,
        provider: ContainerProvider,
        release_index: ReleaseIndex,
        config: InstallerConfig,
        prompter: Optional[Prompter] = None,
    ):
        self.provider = provider
        self.release_index = release_index
        self.config = config
        self.prompter = prompter or Prompter()

    def _reject(self, error: InputValidationError) -> None:
        logger.error(str(error))

    def _ask_until_valid(self, message: str, parser: Callable[[str], T], default: Optional[str] = None) -> T:
        """Ask until ``parser`` accepts the answer."""
        while True:
            answer = self.prompter.ask(message, default=default)
            try:
                return parser(answer)
            except InputValidationError as e:
                self._reject(e)

    def _ask_secret_pair(self, label: str) -> SecretStr:
        """Ask for a non-empty secret twice until both entries match."""
        while True:
            secret = self.prompter.ask(f"{label}", password=True)
            if not secret:
                self._reject(InputValidationError("Password cannot be empty!"))
                continue
            confirmation = self.prompter.ask(f"Confirm {label}", password=True)
            if secret == confirmation:
                return SecretStr(secret)
            self._reject(InputValidationError("Passwords do not match! Please try again."))

    async def _ask_container_id(self) -> int:
        while True:
            answer = self.prompter.ask(
                f"Container ID [{MIN_CONTAINER_ID}-{MAX_CONTAINER_ID}]", default="auto"
            )
            if answer in ("", "auto"):
                try:
                    container_id = parse_container_id(str(await self.provider.next_id()))
                except (InputValidationError, ResourceError) as e:
                    self._reject(InputValidationError(f"No usable free Container ID: {e} Enter one manually."))
                    continue
                logger.info(f"Auto-selected Container ID: {container_id}")
                return container_id
            try:
                container_id = parse_container_id(answer)
            except InputValidationError as e:
                self._reject(e)
                continue
            if await self.provider.exists(container_id):
                self._reject(InputValidationError(f"Container ID {container_id} already exists!"))
                continue
            return container_id

    def _ask_network(self) -> NetworkSettings:
        defaults = self.config.container
        choice = self.prompter.choose(
            "Select network type", ["DHCP (automatic)", "Static IP"], default=0
        )
        if choice != 1:
            return NetworkSettings(mode=NetworkMode.DHCP, dns=defaults.dns)

        address = self._ask_until_valid("IP address with CIDR (e.g. 192.168.1.100/24)", parse_cidr)
        gateway = self._ask_until_valid("Gateway (e.g. 192.168.1.1)", parse_ip)
        dns = self._ask_until_valid("DNS server", parse_ip, default=defaults.dns)
        return NetworkSettings(mode=NetworkMode.STATIC, address=address, gateway=gateway, dns=dns)

    def _ask_acceleration(self, profile: HardwareProfile) -> bool:
        if not profile.has_accelerator:
            logger.warning("Hardware acceleration will be disabled (no compatible GPU detected).")
            return False
        return self.prompter.confirm(
            f"Enable hardware acceleration using {profile.gpu_description}?", default=True
        )

    async def _ask_image_tag(self) -> str:
        choice = self.prompter.choose(
            "Select Frigate version",
            [f"{self.config.frigate.image_tag} (recommended)", "beta", "Custom tag"],
            default=0,
        )
        if choice == 1:
            tag = await self.release_index.resolve(VersionAlias.BETA)
            self.prompter.info(f"Latest beta version: {tag}")
            return tag
        if choice == 2:
            return self._ask_until_valid("Custom tag (e.g. 0.14.1)", parse_image_tag)
        return self.config.frigate.image_tag

    def _ask_samba(self, ssh: SshSettings) -> SambaSettings:
        if not self.prompter.confirm("Enable Samba file sharing?", default=True):
            return SambaSettings(enabled=False)
        if ssh.enabled:
            return SambaSettings(enabled=True)

        logger.warning("Samba enabled but SSH disabled. You need to set a Samba password.")
        return SambaSettings(enabled=True, credential=self._ask_secret_pair("Samba password"))

    async def collect(self, profile: HardwareProfile) -> DeploymentSettings:
        """Ask every question and return validated settings."""
        defaults = self.config.container
        frigate = self.config.frigate

        container_id = await self._ask_container_id()
        hostname = self._ask_until_valid("Hostname", parse_hostname, default=defaults.hostname)
        cores = self._ask_until_valid(
            "CPU cores", lambda text: parse_positive_int(text, "CPU cores"), default=str(defaults.cores)
        )
        memory = self._ask_until_valid(
            "RAM in MB", lambda text: parse_positive_int(text, "RAM"), default=str(defaults.memory_mb)
        )
        disk = self._ask_until_valid(
            "Disk size in GB", lambda text: parse_positive_int(text, "Disk size"), default=str(defaults.disk_gb)
        )
        network = self._ask_network()
        accel_enabled = self._ask_acceleration(profile)
        web_port = self._ask_until_valid("Frigate web port", parse_port, default=str(frigate.web_port))
        image_tag = await self._ask_image_tag()
        reolink = self.prompter.confirm("Do you have Reolink cameras?", default=False)

        self.prompter.info("Set the root password for the container (required for console access):")
        root_credential = self._ask_secret_pair("Root password")

        if self.prompter.confirm("Enable SSH access?", default=True):
            username = self._ask_until_valid("SSH username", parse_username, default="frigate")
            logger.info("SSH password will match the root password.")
            ssh = SshSettings(enabled=True, username=username, credential=root_credential)
        else:
            ssh = SshSettings(enabled=False)

        samba = self._ask_samba(ssh)

        try:
            return DeploymentSettings(
                container_id=container_id,
                hostname=hostname,
                cpu_cores=cores,
                memory_mb=memory,
                swap_mb=defaults.swap_mb,
                disk_gb=disk,
                storage=defaults.storage,
                bridge=defaults.bridge,
                network=network,
                accel_enabled=accel_enabled,
                web_port=web_port,
                image_repository=frigate.image_repository,
                image_tag=image_tag,
                extra_profile_flag=reolink,
                install_dir=frigate.install_dir,
                rtsp_password=frigate.rtsp_password,
                root_credential=root_credential,
                ssh=ssh,
                samba=samba,
            )
        except ValidationError as e:
            raise ConfigurationError(f"Collected settings are inconsistent: {e}") from e

    def confirm(self, settings: DeploymentSettings, profile: HardwareProfile, dry_run: bool = False) -> bool:
        """Show a summary and ask the operator to proceed."""
        table = Table(title="Configuration Summary", show_header=False)
        table.add_column("Setting", style="cyan")
        table.add_column("Value")

        table.add_row("Container ID", str(settings.container_id))
        table.add_row("Hostname", settings.hostname)
        table.add_row("Type", "Privileged LXC")
        table.add_row("CPU Cores", str(settings.cpu_cores))
        table.add_row("RAM", f"{settings.memory_mb}MB")
        table.add_row("Disk", f"{settings.disk_gb}GB")
        table.add_row("Storage", settings.storage)
        table.add_row("Network Bridge", settings.bridge)
        table.add_row("Network Type", settings.network.mode.value)
        if settings.network.mode == NetworkMode.STATIC:
            table.add_row("IP Address", settings.network.address)
            table.add_row("Gateway", settings.network.gateway)
            table.add_row("DNS", settings.network.dns)
        table.add_row("Docker Image", settings.image)
        accel = "yes" if settings.accel_enabled else "no"
        table.add_row("HW Accel", f"{accel} ({profile.gpu_description})")
        table.add_row("Coral", profile.coral_class.value)
        table.add_row("Reolink Support", "yes" if settings.extra_profile_flag else "no")
        table.add_row("Web Port", str(settings.web_port))
        if settings.ssh.enabled:
            table.add_row("SSH User", settings.ssh.username)
        if settings.samba.enabled:
            table.add_row("Samba", "Enabled (3 shares)")

        self.prompter.console.print(table)
        if dry_run:
            logger.warning("DRY-RUN MODE: No actual changes will be made")

        return self.prompter.confirm("Proceed with installation?", default=True)
