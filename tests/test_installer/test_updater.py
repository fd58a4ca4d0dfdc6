"""Tests for the update sequencer."""

from datetime import datetime

import pytest
from unittest.mock import AsyncMock, MagicMock

from frigate_lxc.errors import ExternalToolError, NetworkFetchError, UpdateError
from frigate_lxc.installer.updater import (
    UpdateSequencer,
    rewrite_image_tag,
    sanitize_snapshot_label,
    snapshot_name,
    strip_schema_version,
)
from frigate_lxc.models.config import InstallerConfig
from frigate_lxc.models.deployment import UpdateStage
from frigate_lxc.models.update import Release, UpdateRequest, VersionAlias
from frigate_lxc.providers.container import ContainerProvider, ContainerState
from frigate_lxc.providers.releases import ReleaseIndex
from frigate_lxc.utils.prompts import Prompter


REPO = "ghcr.io/blakeblackshear/frigate"
NOW = datetime(2026, 10, 17, 9, 30, 0)

MANIFEST = """\
version: "3.9"
services:
  frigate:
    container_name: frigate
    image: ghcr.io/blakeblackshear/frigate:stable
    shm_size: "256mb"
    ports:
      - "5000:5000"
  mosquitto:
    image: eclipse-mosquitto:2
"""


@pytest.fixture
def provider():
    provider = AsyncMock(spec=ContainerProvider)
    provider.dry_run = False
    provider.status.return_value = ContainerState.RUNNING
    provider.read_file.return_value = MANIFEST
    return provider


@pytest.fixture
def release_index():
    index = AsyncMock(spec=ReleaseIndex)
    index.fetch.return_value = [
        Release(tag_name="v0.15.0-beta2", prerelease=True),
        Release(tag_name="v0.14.1"),
        Release(tag_name="v0.14.0"),
    ]
    return index


@pytest.fixture
def prompter():
    return MagicMock(spec=Prompter)


@pytest.fixture
def updater(provider, release_index, prompter):
    return UpdateSequencer(provider, release_index, InstallerConfig(), prompter=prompter, clock=lambda: NOW)


class TestSnapshotNames:
    """Test snapshot naming."""

    def test_sanitize_drops_invalid_characters(self):
        assert sanitize_snapshot_label("pre update!") == "preupdate"
        assert sanitize_snapshot_label("before_0.14-x") == "before_014-x"

    def test_sanitize_defaults_and_prefix(self):
        assert sanitize_snapshot_label(None) == "frigate"
        assert sanitize_snapshot_label("!!!") == "frigate"
        assert sanitize_snapshot_label("2024") == "s2024"

    def test_timestamp_suffix(self):
        assert snapshot_name("pre", NOW) == "pre-20261017-093000"

    def test_length_limit(self):
        name = snapshot_name("x" * 60, NOW)

        assert len(name) == 40
        assert name.endswith("-20261017-093000")


class TestManifestRewrite:
    """Test the image tag substitution."""

    def test_only_image_tag_changes(self):
        rewritten = rewrite_image_tag(MANIFEST, REPO, "0.14.1")

        before = MANIFEST.splitlines()
        after = rewritten.splitlines()
        changed = [(old, new) for old, new in zip(before, after) if old != new]
        assert len(before) == len(after)
        assert changed == [(
            "    image: ghcr.io/blakeblackshear/frigate:stable",
            "    image: ghcr.io/blakeblackshear/frigate:0.14.1",
        )]

    def test_other_images_untouched(self):
        rewritten = rewrite_image_tag(MANIFEST, REPO, "0.14.1")

        assert "    image: eclipse-mosquitto:2\n" in rewritten

    def test_quoted_image_with_comment(self):
        text = 'services:\n  frigate:\n    image: "ghcr.io/blakeblackshear/frigate:0.13.2"  # pinned\n'

        rewritten = rewrite_image_tag(text, REPO, "0.14.1")

        assert rewritten == 'services:\n  frigate:\n    image: "ghcr.io/blakeblackshear/frigate:0.14.1"  # pinned\n'

    def test_untagged_image(self):
        text = "    image: ghcr.io/blakeblackshear/frigate\n"

        assert rewrite_image_tag(text, REPO, "0.14.1") == "    image: ghcr.io/blakeblackshear/frigate:0.14.1\n"

    def test_pinned_digest_dropped(self):
        text = "    image: ghcr.io/blakeblackshear/frigate:0.13.2@sha256:0123abcd  # pinned\n"

        rewritten = rewrite_image_tag(text, REPO, "0.14.1")

        assert rewritten == "    image: ghcr.io/blakeblackshear/frigate:0.14.1  # pinned\n"

    def test_crlf_line_endings_kept(self):
        text = "services:\r\n  frigate:\r\n    image: ghcr.io/blakeblackshear/frigate:stable\r\n    privileged: true\r\n"

        rewritten = rewrite_image_tag(text, REPO, "0.14.1")

        assert rewritten == text.replace(":stable", ":0.14.1")

    def test_missing_image_line(self):
        with pytest.raises(UpdateError):
            rewrite_image_tag("services:\n  web:\n    image: nginx:1\n", REPO, "0.14.1")

    def test_strip_schema_version(self):
        stripped = strip_schema_version(MANIFEST)

        assert not stripped.startswith("version")
        assert stripped == MANIFEST.split("\n", 1)[1]

    def test_nested_version_kept(self):
        text = "services:\n  frigate:\n    labels:\n      version: 1\n"

        assert strip_schema_version(text) == text


@pytest.mark.asyncio
class TestUpdate:
    """Test the update pipeline."""

    async def test_literal_version_with_snapshot(self, updater, provider, release_index):
        request = UpdateRequest(container_id=105, target_version="0.14.1", snapshot=True, snapshot_label="pre")

        result = await updater.update(request)

        assert result.version == "0.14.1"
        assert result.snapshot_name == "pre-20261017-093000"
        assert result.completed == list(UpdateStage)
        release_index.fetch.assert_not_called()
        release_index.resolve.assert_not_called()

        names = [call[0] for call in provider.mock_calls]
        assert names == ["status", "snapshot", "read_file", "write_file", "execute", "execute"]
        provider.snapshot.assert_awaited_once_with(
            105, "pre-20261017-093000", description="Before Frigate update to 0.14.1"
        )

        written = provider.write_file.call_args.args[2]
        assert "image: ghcr.io/blakeblackshear/frigate:0.14.1" in written
        assert not written.startswith("version:")

        commands = [call.args[1] for call in provider.execute.call_args_list]
        assert commands == [
            "docker compose -f /opt/frigate/docker-compose.yml pull",
            "docker compose -f /opt/frigate/docker-compose.yml up -d",
        ]

    async def test_snapshot_failure_aborts_before_mutation(self, updater, provider):
        provider.snapshot.side_effect = ExternalToolError(["pct", "snapshot"], 255, stderr="snapshot feature is not available")
        request = UpdateRequest(container_id=105, target_version="0.14.1", snapshot=True)

        with pytest.raises(UpdateError) as exc_info:
            await updater.update(request)

        assert exc_info.value.stage == UpdateStage.SNAPSHOT
        provider.read_file.assert_not_called()
        provider.write_file.assert_not_called()
        provider.execute.assert_not_called()

    async def test_no_snapshot_by_default(self, updater, provider):
        result = await updater.update(UpdateRequest(container_id=105, target_version="0.14.1"))

        provider.snapshot.assert_not_called()
        assert result.snapshot_name is None
        assert UpdateStage.SNAPSHOT not in result.completed

    async def test_container_must_be_running(self, updater, provider):
        provider.status.return_value = ContainerState.STOPPED

        with pytest.raises(UpdateError) as exc_info:
            await updater.update(UpdateRequest(container_id=105, target_version="0.14.1"))

        assert exc_info.value.stage == UpdateStage.VERIFY_CONTAINER
        provider.read_file.assert_not_called()

    async def test_alias_resolved_through_index(self, updater, release_index):
        release_index.resolve.return_value = "0.14.1"

        result = await updater.update(UpdateRequest(container_id=105, target_version="latest"))

        release_index.resolve.assert_awaited_once_with(VersionAlias.LATEST)
        assert result.version == "0.14.1"

    async def test_fetch_failure_has_no_fallback(self, updater, provider, release_index):
        release_index.resolve.side_effect = NetworkFetchError("Release index unreachable")

        with pytest.raises(UpdateError) as exc_info:
            await updater.update(UpdateRequest(container_id=105, target_version="beta"))

        assert exc_info.value.stage == UpdateStage.RESOLVE_VERSION
        provider.write_file.assert_not_called()

    async def test_invalid_literal_tag(self, updater):
        with pytest.raises(UpdateError) as exc_info:
            await updater.update(UpdateRequest(container_id=105, target_version="bad tag!"))

        assert exc_info.value.stage == UpdateStage.RESOLVE_VERSION

    async def test_unchanged_manifest_not_rewritten(self, updater, provider):
        provider.read_file.return_value = "services:\n  frigate:\n    image: ghcr.io/blakeblackshear/frigate:0.14.1\n"

        await updater.update(UpdateRequest(container_id=105, target_version="0.14.1"))

        provider.write_file.assert_not_called()
        assert provider.execute.await_count == 2

    async def test_pull_failure(self, updater, provider):
        provider.execute.side_effect = ExternalToolError(["pct", "exec"], 1, stderr="manifest unknown")

        with pytest.raises(UpdateError) as exc_info:
            await updater.update(UpdateRequest(container_id=105, target_version="9.9.9"))

        assert exc_info.value.stage == UpdateStage.PULL
        assert "manifest unknown" in str(exc_info.value)


@pytest.mark.asyncio
class TestVersionMenu:
    """Test interactive version selection."""

    async def test_empty_selection_is_newest_stable(self, updater, prompter):
        prompter.choose.return_value = None

        assert await updater.resolve_version(None) == "0.14.1"

        options = prompter.choose.call_args.args[1]
        assert options == ["0.15.0-beta2 (beta)", "0.14.1", "0.14.0", "Custom"]

    async def test_pick_from_menu(self, updater, prompter):
        prompter.choose.return_value = 2

        assert await updater.resolve_version(None) == "0.14.0"

    async def test_custom_tag(self, updater, prompter):
        prompter.choose.return_value = 3
        prompter.ask.side_effect = ["not valid!", "0.13.2"]

        assert await updater.resolve_version(None) == "0.13.2"
        assert prompter.ask.call_count == 2

    async def test_menu_size_limit(self, provider, release_index, prompter):
        config = InstallerConfig(releases={"menu_size": 1})
        updater = UpdateSequencer(provider, release_index, config, prompter=prompter)
        prompter.choose.return_value = None

        await updater.resolve_version(None)

        assert prompter.choose.call_args.args[1] == ["0.15.0-beta2 (beta)", "Custom"]

    async def test_fetch_failure_falls_back_to_manual_entry(self, updater, release_index, prompter):
        release_index.fetch.side_effect = NetworkFetchError("Release index unreachable")
        prompter.ask.return_value = "0.14.1"

        assert await updater.resolve_version(None) == "0.14.1"
        prompter.choose.assert_not_called()

    async def test_no_terminal(self, provider, release_index):
        updater = UpdateSequencer(provider, release_index, InstallerConfig())

        with pytest.raises(UpdateError):
            await updater.resolve_version(None)
