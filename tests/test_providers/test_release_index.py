"""Tests for the release index client."""

import httpx
import pytest

from frigate_lxc.errors import NetworkFetchError
from frigate_lxc.models.update import Release, VersionAlias
from frigate_lxc.providers.releases import ReleaseIndex, pick_release


URL = "https://api.github.com/repos/blakeblackshear/frigate/releases"

RELEASES = [
    {"tag_name": "v0.14.0", "prerelease": False, "draft": False, "published_at": "2024-08-01T10:00:00Z"},
    {"tag_name": "v0.15.0-beta2", "prerelease": True, "draft": False, "published_at": "2024-10-20T10:00:00Z"},
    {"tag_name": "v0.14.1", "prerelease": False, "draft": False, "published_at": "2024-09-01T10:00:00Z"},
    {"tag_name": "v0.16.0-dev", "prerelease": True, "draft": True, "published_at": "2024-11-01T10:00:00Z"},
]


def make_index(handler):
    return ReleaseIndex(URL, transport=httpx.MockTransport(handler))


def serve(payload, status_code=200):
    def handler(request):
        return httpx.Response(status_code, json=payload)
    return handler


@pytest.mark.asyncio
class TestReleaseIndex:
    """Test fetching and resolving releases."""

    async def test_latest_is_newest_stable(self):
        assert await make_index(serve(RELEASES)).resolve(VersionAlias.LATEST) == "0.14.1"

    async def test_latest_skips_release_candidate(self):
        payload = [
            {"tag_name": "v0.17.0", "prerelease": False},
            {"tag_name": "v0.17.0-rc1", "prerelease": True},
        ]

        assert await make_index(serve(payload)).resolve(VersionAlias.LATEST) == "0.17.0"

    async def test_beta_is_newest_prerelease(self):
        assert await make_index(serve(RELEASES)).resolve(VersionAlias.BETA) == "0.15.0-beta2"

    async def test_drafts_filtered_and_sorted(self):
        releases = await make_index(serve(RELEASES)).fetch()

        assert [release.tag_name for release in releases] == ["v0.15.0-beta2", "v0.14.1", "v0.14.0"]

    async def test_index_order_without_dates(self):
        payload = [{"tag_name": "v0.13.0"}, {"tag_name": "v0.14.0"}]

        releases = await make_index(serve(payload)).fetch()

        assert [release.version for release in releases] == ["0.13.0", "0.14.0"]

    async def test_request_parameters(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=[])

        await make_index(handler).fetch(limit=10)

        assert seen[0].url.params["per_page"] == "10"
        assert seen[0].headers["Accept"] == "application/vnd.github+json"

    async def test_http_error(self):
        with pytest.raises(NetworkFetchError, match="HTTP 403"):
            await make_index(serve({"message": "rate limited"}, status_code=403)).fetch()

    async def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("Name or service not known", request=request)

        with pytest.raises(NetworkFetchError, match="unreachable"):
            await make_index(handler).fetch()

    async def test_invalid_json(self):
        def handler(request):
            return httpx.Response(200, text="<html>")

        with pytest.raises(NetworkFetchError):
            await make_index(handler).fetch()

    async def test_unexpected_document(self):
        with pytest.raises(NetworkFetchError):
            await make_index(serve({"tag_name": "v0.14.1"})).fetch()

    async def test_no_candidates(self):
        with pytest.raises(NetworkFetchError):
            await make_index(serve([])).resolve(VersionAlias.LATEST)


class TestPickRelease:
    """Test alias resolution over a fetched list."""

    def test_deterministic(self):
        releases = [Release(tag_name="v0.14.1"), Release(tag_name="0.14.0")]

        assert pick_release(releases, VersionAlias.LATEST) == pick_release(releases, VersionAlias.LATEST)

    def test_only_prereleases_for_latest(self):
        with pytest.raises(NetworkFetchError):
            pick_release([Release(tag_name="v0.15.0-beta1", prerelease=True)], VersionAlias.LATEST)

    def test_prefix_stripped_for_both(self):
        releases = [Release(tag_name="V0.15.0-rc1", prerelease=True), Release(tag_name="0.14.1")]

        assert pick_release(releases, VersionAlias.BETA) == "0.15.0-rc1"
        assert pick_release(releases, VersionAlias.LATEST) == "0.14.1"
