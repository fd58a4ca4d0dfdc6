"""Update pipeline for an existing Frigate container."""

import logging
import re
import shlex
from datetime import datetime
from typing import Callable, List, Optional

from frigate_lxc.errors import ExternalToolError, InputValidationError, NetworkFetchError, UpdateError
from frigate_lxc.installer.collector import parse_image_tag
from frigate_lxc.models.config import InstallerConfig
from frigate_lxc.models.deployment import UpdateResult, UpdateStage
from frigate_lxc.models.update import Release, UpdateRequest, VersionAlias
from frigate_lxc.providers.container import ContainerProvider, ContainerState
from frigate_lxc.providers.releases import ReleaseIndex, pick_release
from frigate_lxc.utils.prompts import Prompter


logger = logging.getLogger(__name__)

# Proxmox snapshot names: a letter first, at most 40 characters
SNAPSHOT_NAME_MAX = 40
DEFAULT_SNAPSHOT_LABEL = "frigate"
SCHEMA_VERSION_LINE = re.compile(r"^version:[^\n]*\n?", re.MULTILINE)


def sanitize_snapshot_label(label: Optional[str]) -> str:
    """Reduce a label to letters, digits, hyphen and underscore."""
    cleaned = re.sub(r"[^A-Za-z0-9_-]", "", label or "")
    if not cleaned:
        return DEFAULT_SNAPSHOT_LABEL
    if not cleaned[0].isalpha():
        cleaned = f"s{cleaned}"
    return cleaned


def snapshot_name(label: Optional[str], now: datetime) -> str:
    """Build a unique snapshot name from a label and a timestamp."""
    suffix = now.strftime("-%Y%m%d-%H%M%S")
    base = sanitize_snapshot_label(label)[:SNAPSHOT_NAME_MAX - len(suffix)]
    return f"{base}{suffix}"


def rewrite_image_tag(text: str, repository: str, version: str) -> str:
    """Replace the tag of ``repository`` on its ``image:`` line.

    Nothing else in the manifest changes, line endings included. A pinned
    ``@sha256:...`` digest is dropped, since it would win over the new tag.
    Raises ``UpdateError`` when no such image line exists.
    """
    pattern = re.compile(
        r"^(?P<prefix>[ \t]*image:[ \t]*[\"']?)" + re.escape(repository)
        + r"(?::[^\s\"'@]+)?(?:@[^\s\"']+)?(?P<suffix>[\"']?[ \t]*(?:#[^\r\n]*)?\r?)$",
        re.MULTILINE,
    )
    rewritten, count = pattern.subn(
        lambda match: f"{match.group('prefix')}{repository}:{version}{match.group('suffix')}",
        text,
    )
    if count == 0:
        raise UpdateError(f"No image line for {repository} found in manifest")
    return rewritten


def strip_schema_version(text: str) -> str:
    """Drop the obsolete top-level ``version:`` key."""
    return SCHEMA_VERSION_LINE.sub("", text)


class UpdateSequencer:
    """Moves a running deployment to another Frigate version.

    The snapshot, when requested, is taken before anything in the
    container changes; a failed snapshot aborts the update.
    """

    def __init__(
        self,
        provider: ContainerProvider,
        release_index: ReleaseIndex,
        config: InstallerConfig,
        prompter: Optional[Prompter] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.provider = provider
        self.release_index = release_index
        self.config = config
        self.prompter = prompter
        self.clock = clock

    @property
    def manifest_path(self) -> str:
        return self.config.frigate.manifest_path

    async def update(self, request: UpdateRequest) -> UpdateResult:
        """Run the update pipeline."""
        completed: List[UpdateStage] = []

        await self._stage(UpdateStage.VERIFY_CONTAINER, self._verify_container(request.container_id))
        completed.append(UpdateStage.VERIFY_CONTAINER)

        version = await self._stage(UpdateStage.RESOLVE_VERSION, self.resolve_version(request.target_version))
        completed.append(UpdateStage.RESOLVE_VERSION)
        logger.info(f"Updating container {request.container_id} to {version}")

        name = None
        if request.snapshot:
            name = snapshot_name(request.snapshot_label, self.clock())
            await self._stage(
                UpdateStage.SNAPSHOT,
                self.provider.snapshot(
                    request.container_id, name, description=f"Before Frigate update to {version}"
                ),
            )
            completed.append(UpdateStage.SNAPSHOT)

        await self._stage(UpdateStage.REWRITE_MANIFEST, self._rewrite_manifest(request.container_id, version))
        completed.append(UpdateStage.REWRITE_MANIFEST)

        compose = f"docker compose -f {shlex.quote(self.manifest_path)}"
        await self._stage(UpdateStage.PULL, self.provider.execute(request.container_id, f"{compose} pull"))
        completed.append(UpdateStage.PULL)

        await self._stage(UpdateStage.RECREATE, self.provider.execute(request.container_id, f"{compose} up -d"))
        completed.append(UpdateStage.RECREATE)
        completed.append(UpdateStage.DONE)

        logger.info(f"Container {request.container_id} updated to {version}")
        return UpdateResult(
            container_id=request.container_id,
            version=version,
            snapshot_name=name,
            dry_run=self.provider.dry_run,
            completed=completed,
        )

    async def _stage(self, stage: UpdateStage, action):
        """Await ``action`` and convert failures into ``UpdateError``."""
        logger.debug(f"Stage: {stage.value}")
        try:
            return await action
        except UpdateError as e:
            if e.stage is None:
                raise UpdateError(str(e), stage=stage, cause=e.cause) from e
            raise
        except (ExternalToolError, NetworkFetchError, InputValidationError, OSError) as e:
            logger.error(f"Stage {stage.value} failed: {e}")
            raise UpdateError(str(e), stage=stage, cause=e) from e

    async def _verify_container(self, container_id: int) -> None:
        state = await self.provider.status(container_id)
        if state != ContainerState.RUNNING:
            raise UpdateError(f"Container {container_id} is not running ({state.value})")

    async def resolve_version(self, target) -> str:
        """Turn a literal tag, an alias or ``None`` (menu) into an image tag."""
        if isinstance(target, VersionAlias):
            return await self.release_index.resolve(target)
        if target is not None:
            return parse_image_tag(target)
        return await self._choose_version()

    async def _choose_version(self) -> str:
        if self.prompter is None:
            raise UpdateError("No target version given and no terminal to choose one")

        try:
            releases = await self.release_index.fetch()
        except NetworkFetchError as e:
            logger.warning(f"Could not fetch available versions: {e}")
            return self._ask_custom_tag()

        menu: List[Release] = releases[:self.config.releases.menu_size]
        options = [f"{release.version}{' (beta)' if release.prerelease else ''}" for release in menu]
        options.append("Custom")

        self.prompter.info("Available versions:")
        choice = self.prompter.choose("Select a version (enter for latest stable)", options)
        if choice is None:
            return pick_release(releases, VersionAlias.LATEST)
        if choice == len(menu):
            return self._ask_custom_tag()
        return menu[choice].version

    def _ask_custom_tag(self) -> str:
        while True:
            answer = self.prompter.ask("Enter version tag")
            try:
                return parse_image_tag(answer)
            except InputValidationError as e:
                logger.error(str(e))

    async def _rewrite_manifest(self, container_id: int, version: str) -> None:
        current = await self.provider.read_file(container_id, self.manifest_path)
        rewritten = strip_schema_version(
            rewrite_image_tag(current, self.config.frigate.image_repository, version)
        )
        if rewritten == current:
            logger.info(f"Manifest already references {version}")
            return
        await self.provider.write_file(container_id, self.manifest_path, rewritten)
        logger.info(f"Manifest {self.manifest_path} now uses {version}")
