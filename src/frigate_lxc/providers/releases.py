"""Release index client for published Frigate versions."""

import logging
from typing import List, Optional

import httpx
from pydantic import ValidationError

from frigate_lxc.errors import NetworkFetchError
from frigate_lxc.models.update import Release, VersionAlias


logger = logging.getLogger(__name__)


class ReleaseIndex:
    """Reads the GitHub releases endpoint.

    Releases are returned newest first. When every entry carries a publish
    date they are sorted by it; otherwise the index order is trusted.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.timeout = timeout
        self.transport = transport

    async def fetch(self, limit: int = 30) -> List[Release]:
        """Fetch published (non-draft) releases, newest first."""
        headers = {"Accept": "application/vnd.github+json"}
        try:
            async with httpx.AsyncClient(transport=self.transport, timeout=self.timeout) as client:
                response = await client.get(self.url, params={"per_page": limit}, headers=headers)
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as e:
            raise NetworkFetchError(
                f"Release index returned HTTP {e.response.status_code}"
            ) from e
        except httpx.RequestError as e:
            raise NetworkFetchError(f"Release index unreachable: {e}") from e
        except ValueError as e:
            raise NetworkFetchError(f"Release index returned invalid JSON: {e}") from e

        if not isinstance(payload, list):
            raise NetworkFetchError("Release index returned an unexpected document")

        try:
            releases = [Release.model_validate(item) for item in payload]
        except ValidationError as e:
            raise NetworkFetchError(f"Release index entry malformed: {e}") from e

        releases = [release for release in releases if not release.draft]
        if releases and all(release.published_at for release in releases):
            releases.sort(key=lambda release: release.published_at, reverse=True)

        logger.debug(f"Fetched {len(releases)} releases from {self.url}")
        return releases

    async def resolve(self, alias: VersionAlias) -> str:
        """Resolve ``latest`` or ``beta`` to a concrete image tag."""
        releases = await self.fetch()
        return pick_release(releases, alias)


def pick_release(releases: List[Release], alias: VersionAlias) -> str:
    """Pick the newest release matching ``alias`` and return its version."""
    want_prerelease = alias == VersionAlias.BETA
    for release in releases:
        if release.prerelease == want_prerelease:
            logger.info(f"Resolved {alias.value} to {release.version}")
            return release.version

    raise NetworkFetchError(f"Release index has no {alias.value} release")
