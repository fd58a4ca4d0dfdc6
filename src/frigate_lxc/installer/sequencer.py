"""Provisioning pipeline: container creation through a running Frigate."""

import logging
import shlex
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

from pydantic import SecretStr

from frigate_lxc.errors import ConfigurationError, ExternalToolError, ProvisionError, ResourceError
from frigate_lxc.models.config import InstallerConfig
from frigate_lxc.models.deployment import DeploymentHandle, ProvisionStage, RenderedArtifacts
from frigate_lxc.models.settings import DeploymentSettings
from frigate_lxc.providers.container import ContainerProvider


logger = logging.getLogger(__name__)

StageCallback = Callable[[ProvisionStage], None]

APT_INSTALL = "DEBIAN_FRONTEND=noninteractive apt-get install -y"

DOCKER_INSTALL_COMMANDS = [
    "apt-get update",
    f"{APT_INSTALL} ca-certificates curl",
    "install -m 0755 -d /etc/apt/keyrings",
    "curl -fsSL https://download.docker.com/linux/debian/gpg -o /etc/apt/keyrings/docker.asc",
    "chmod a+r /etc/apt/keyrings/docker.asc",
    'echo "deb [arch=$(dpkg --print-architecture) signed-by=/etc/apt/keyrings/docker.asc] '
    'https://download.docker.com/linux/debian $(. /etc/os-release && echo "$VERSION_CODENAME") stable" '
    "> /etc/apt/sources.list.d/docker.list",
    "apt-get update",
    f"{APT_INSTALL} docker-ce docker-ce-cli containerd.io docker-buildx-plugin docker-compose-plugin",
    "systemctl enable docker",
    "systemctl start docker",
]

SMB_CONF = "/etc/samba/smb.conf"


def resolve_samba_credential(settings: DeploymentSettings) -> SecretStr:
    """Samba reuses the SSH credential, else its own."""
    if settings.ssh.enabled and settings.ssh.credential is not None:
        return settings.ssh.credential
    if settings.samba.credential is not None and settings.samba.credential.get_secret_value():
        return settings.samba.credential
    raise ConfigurationError("No credential available for Samba setup")


class ProvisioningSequencer:
    """Runs the provisioning stages in order, exactly once each."""

    def __init__(self, provider: ContainerProvider, config: InstallerConfig):
        self.provider = provider
        self.config = config

    def plan(self, settings: DeploymentSettings) -> List[ProvisionStage]:
        """Stages that will run for these settings."""
        stages = []
        for stage in ProvisionStage:
            if stage == ProvisionStage.SSH_CONFIGURED and not settings.ssh.enabled:
                continue
            if stage == ProvisionStage.SAMBA_CONFIGURED and not settings.samba.enabled:
                continue
            stages.append(stage)
        return stages

    async def provision(
        self,
        settings: DeploymentSettings,
        artifacts: RenderedArtifacts,
        on_stage: Optional[StageCallback] = None,
    ) -> DeploymentHandle:
        """Provision a deployment.

        Any stage failure stops the pipeline and raises ``ProvisionError``
        carrying the failed stage and whether the container already exists.
        """
        handle = DeploymentHandle(
            container_id=settings.container_id,
            hostname=settings.hostname,
            web_port=settings.web_port,
            dry_run=self.provider.dry_run,
        )
        actions = self._actions(settings, artifacts, handle)
        container_created = False

        for stage in self.plan(settings):
            if on_stage:
                on_stage(stage)
            logger.info(f"Stage: {stage.value}")
            try:
                await actions[stage]()
            except (ExternalToolError, ResourceError, ConfigurationError, OSError) as e:
                logger.error(f"Stage {stage.value} failed: {e}")
                raise ProvisionError(stage, e, container_created=container_created) from e

            if stage == ProvisionStage.CREATED:
                container_created = True
            handle.completed.append(stage)

        logger.info(f"Container {settings.container_id} provisioned")
        return handle

    def _actions(
        self,
        settings: DeploymentSettings,
        artifacts: RenderedArtifacts,
        handle: DeploymentHandle,
    ) -> Dict[ProvisionStage, Callable[[], Awaitable[None]]]:
        async def done():
            if not self.provider.dry_run:
                handle.ip_address = await self.provider.ip_address(settings.container_id)

        return {
            ProvisionStage.TEMPLATE_READY: self._ensure_template,
            ProvisionStage.CREATED: lambda: self._create(settings),
            ProvisionStage.PASSTHROUGH_CONFIGURED: lambda: self._configure_passthrough(settings, artifacts),
            ProvisionStage.STARTED: lambda: self._start(settings),
            ProvisionStage.RUNTIME_INSTALLED: lambda: self._install_runtime(settings),
            ProvisionStage.DIRS_READY: lambda: self._make_dirs(settings),
            ProvisionStage.MANIFEST_WRITTEN: lambda: self._write(
                settings, self._manifest_path(settings), artifacts.manifest_text),
            ProvisionStage.CONFIG_WRITTEN: lambda: self._write(
                settings, self._app_config_path(settings), artifacts.app_config_text),
            ProvisionStage.ROOT_CREDENTIAL_SET: lambda: self._set_credential(
                settings.container_id, "root", settings.root_credential),
            ProvisionStage.SSH_CONFIGURED: lambda: self._setup_ssh(settings),
            ProvisionStage.SAMBA_CONFIGURED: lambda: self._setup_samba(settings, artifacts),
            ProvisionStage.APP_STARTED: lambda: self._start_app(settings),
            ProvisionStage.DONE: done,
        }

    def _manifest_path(self, settings: DeploymentSettings) -> str:
        return f"{settings.install_dir.rstrip('/')}/docker-compose.yml"

    def _app_config_path(self, settings: DeploymentSettings) -> str:
        return f"{settings.install_dir.rstrip('/')}/config/config.yml"

    async def _ensure_template(self) -> None:
        defaults = self.config.container
        if await self.provider.template_available(defaults.template_storage, defaults.template):
            logger.info("Debian template already available")
            return
        await self.provider.download_template(defaults.template_storage, defaults.template)

    def _template_volume(self) -> str:
        defaults = self.config.container
        return f"{defaults.template_storage}:vztmpl/{defaults.template}"

    async def _create(self, settings: DeploymentSettings) -> None:
        if await self.provider.exists(settings.container_id):
            raise ResourceError(f"Container ID {settings.container_id} already exists")
        await self.provider.create(settings, self._template_volume())

    async def _configure_passthrough(self, settings: DeploymentSettings, artifacts: RenderedArtifacts) -> None:
        if not artifacts.passthrough_text:
            logger.info("No device passthrough required")
            return
        await self.provider.append_config(settings.container_id, artifacts.passthrough_text)

    async def _start(self, settings: DeploymentSettings) -> None:
        host = self.config.host
        await self.provider.start(settings.container_id)
        await self.provider.wait_for_network(
            settings.container_id,
            timeout=host.network_timeout,
            interval=host.network_poll_interval,
        )

    async def _run_all(self, container_id: int, commands: List[str]) -> None:
        for command in commands:
            await self.provider.execute(container_id, command)

    async def _install_runtime(self, settings: DeploymentSettings) -> None:
        logger.info("Installing Docker")
        await self._run_all(settings.container_id, DOCKER_INSTALL_COMMANDS)

    async def _make_dirs(self, settings: DeploymentSettings) -> None:
        base = settings.install_dir.rstrip("/")
        await self._run_all(settings.container_id, [
            f"mkdir -p {shlex.quote(f'{base}/config')}",
            f"mkdir -p {shlex.quote(f'{base}/storage')}",
        ])

    async def _write(self, settings: DeploymentSettings, path: str, content: str) -> None:
        await self.provider.write_file(settings.container_id, path, content)
        logger.info(f"Wrote {path}")

    async def _set_credential(self, container_id: int, user: str, credential: SecretStr) -> None:
        # chpasswd reads from stdin so the secret never appears in argv
        await self.provider.execute(
            container_id, "chpasswd", input=f"{user}:{credential.get_secret_value()}\n"
        )
        logger.info(f"Password set for {user}")

    async def _setup_ssh(self, settings: DeploymentSettings) -> None:
        ssh = settings.ssh
        container_id = settings.container_id
        user = shlex.quote(ssh.username)
        sudoers = shlex.quote(f"/etc/sudoers.d/{ssh.username}")

        await self._run_all(container_id, [f"{APT_INSTALL} openssh-server sudo"])
        if ssh.username != "root":
            await self._run_all(container_id, [f"id -u {user} >/dev/null 2>&1 || useradd -m -s /bin/bash {user}"])
            await self._set_credential(container_id, ssh.username, ssh.credential)
            await self._run_all(container_id, [
                "mkdir -p /etc/sudoers.d",
                f"echo {shlex.quote(f'{ssh.username} ALL=(ALL) NOPASSWD:ALL')} > {sudoers}",
                f"chmod 0440 {sudoers}",
            ])
        else:
            await self._set_credential(container_id, "root", ssh.credential)
        await self._run_all(container_id, ["systemctl enable ssh", "systemctl start ssh"])
        logger.info(f"SSH configured for user {ssh.username}")

    async def _setup_samba(self, settings: DeploymentSettings, artifacts: RenderedArtifacts) -> None:
        credential = resolve_samba_credential(settings)
        container_id = settings.container_id

        await self._run_all(container_id, [
            f"{APT_INSTALL} samba",
            f"cp {SMB_CONF} {SMB_CONF}.bak",
        ])
        await self.provider.write_file(container_id, SMB_CONF, artifacts.samba_config_text)
        secret = credential.get_secret_value()
        await self.provider.execute(container_id, "smbpasswd -a -s root", input=f"{secret}\n{secret}\n")
        await self._run_all(container_id, ["systemctl restart smbd", "systemctl enable smbd"])
        logger.info("Samba configured with shares: Frigate, Config, Media")

    async def _start_app(self, settings: DeploymentSettings) -> None:
        logger.info("Starting Frigate")
        await self.provider.execute(
            settings.container_id,
            f"cd {shlex.quote(settings.install_dir)} && docker compose up -d",
        )

    async def teardown(self, container_id: int) -> Tuple[bool, Optional[str]]:
        """Stop and destroy a partially provisioned container.

        Returns whether the container is gone and the last error, if any.
        """
        error = None
        try:
            await self.provider.stop(container_id)
        except (ExternalToolError, OSError) as e:
            # Already stopped is fine; destroy decides the outcome
            logger.debug(f"Stop before teardown failed: {e}")

        try:
            await self.provider.destroy(container_id)
        except (ExternalToolError, OSError) as e:
            logger.error(f"Failed to destroy container {container_id}: {e}")
            error = str(e)
        else:
            logger.info(f"Container {container_id} destroyed")
        return error is None, error
