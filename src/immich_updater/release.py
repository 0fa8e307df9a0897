"""Latest-release lookup against the GitHub releases API."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any

import httpx

from immich_updater.constants import FETCH_ATTEMPTS, FETCH_RETRY_DELAY, HTTP_TIMEOUT
from immich_updater.errors import UpstreamUnavailable
from immich_updater.logging import get_logger
from immich_updater.retry import retry_async
from immich_updater.version import normalize

log = get_logger("immich_updater.release")


@dataclass(frozen=True)
class ReleaseInfo:
    """Information about a GitHub release."""

    tag: str
    version: str  # normalised, no 'v' prefix
    body: str
    published_at: date
    html_url: str

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> ReleaseInfo:
        """Build from a ``/releases/latest`` payload.

        Raises:
            ValueError: ``tag_name`` or ``published_at`` is missing or malformed.
        """
        tag = str(data.get("tag_name") or "").strip()
        if not tag:
            raise ValueError("release payload has no tag_name")
        published = str(data.get("published_at") or "")
        return cls(
            tag=tag,
            version=normalize(tag),
            body=str(data.get("body") or ""),
            published_at=date.fromisoformat(published.split("T", 1)[0]),
            html_url=str(data.get("html_url") or ""),
        )


async def fetch_latest_release(
    url: str,
    timeout: float = HTTP_TIMEOUT,
    *,
    attempts: int = FETCH_ATTEMPTS,
    delay: float = FETCH_RETRY_DELAY,
) -> ReleaseInfo:
    """Fetch and parse the latest release, retrying empty or bad answers.

    Raises:
        UpstreamUnavailable: no usable response after *attempts* tries.
    """
    headers = {"Accept": "application/vnd.github+json"}

    def _on_retry(attempt: int, total: int) -> None:
        log.warning(f"⚠️ GitHub API request failed, retrying ({attempt}/{total})...")

    async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:

        async def _fetch() -> ReleaseInfo | None:
            resp = await client.get(url, headers=headers)
            if not 200 <= resp.status_code < 300:
                log.debug("Release API error", status=resp.status_code)
                return None
            data = resp.json()
            if not isinstance(data, dict):
                return None
            return ReleaseInfo.from_api(data)

        release = await retry_async(
            _fetch,
            attempts=attempts,
            delay=delay,
            accept=lambda result: result is not None,
            on_retry=_on_retry,
        )

    if release is None:
        raise UpstreamUnavailable(
            "Failed to fetch latest Immich release info after multiple attempts"
        )
    return release
