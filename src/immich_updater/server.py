"""Running-version lookup and readiness polling against the Immich server."""

from __future__ import annotations

import asyncio

import httpx

from immich_updater.constants import (
    FETCH_ATTEMPTS,
    FETCH_RETRY_DELAY,
    HTTP_TIMEOUT,
    READY_MAX_WAIT,
    READY_POLL_INTERVAL,
    READY_REQUEST_TIMEOUT,
    SERVER_ABOUT_PATH,
)
from immich_updater.errors import ServiceUnreachable
from immich_updater.logging import get_logger
from immich_updater.retry import retry_async
from immich_updater.version import normalize

log = get_logger("immich_updater.server")


def about_url(host: str) -> str:
    """Return the server-about URL for a ``host:port`` (scheme optional)."""
    host = host.rstrip("/")
    if not host.startswith(("http://", "https://")):
        host = f"http://{host}"
    return f"{host}{SERVER_ABOUT_PATH}"


def _headers(api_key: str) -> dict[str, str]:
    return {"Accept": "application/json", "x-api-key": api_key}


async def fetch_running_version(
    host: str,
    api_key: str,
    timeout: float = HTTP_TIMEOUT,
    *,
    attempts: int = FETCH_ATTEMPTS,
    delay: float = FETCH_RETRY_DELAY,
) -> str:
    """Return the version the server reports, without a leading ``v``.

    Raises:
        ServiceUnreachable: no usable response after *attempts* tries.
    """
    url = about_url(host)

    def _on_retry(attempt: int, total: int) -> None:
        log.warning(f"⚠️ Immich API request failed, retrying ({attempt}/{total})...")

    async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:

        async def _fetch() -> str | None:
            resp = await client.get(url, headers=_headers(api_key))
            if not 200 <= resp.status_code < 300:
                log.debug("Server API error", status=resp.status_code)
                return None
            data = resp.json()
            if not isinstance(data, dict) or not data.get("version"):
                return None
            return normalize(str(data["version"]))

        version = await retry_async(
            _fetch,
            attempts=attempts,
            delay=delay,
            accept=bool,
            on_retry=_on_retry,
        )

    if version is None:
        raise ServiceUnreachable(
            "Failed to fetch Immich current version after multiple attempts. "
            "Ensure Immich is running and API key is valid."
        )
    return version


async def wait_until_ready(
    host: str,
    api_key: str,
    *,
    max_wait: int = READY_MAX_WAIT,
    interval: int = READY_POLL_INTERVAL,
    timeout: float = READY_REQUEST_TIMEOUT,
) -> bool:
    """Poll the server until it answers 2xx or *max_wait* seconds pass."""
    url = about_url(host)
    waited = 0

    log.info("⏳ Waiting for Immich to be ready after update...")
    async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
        while waited < max_wait:
            try:
                resp = await client.get(url, headers=_headers(api_key))
                if 200 <= resp.status_code < 300:
                    log.info("✅ Immich is ready and responding.")
                    return True
            except httpx.HTTPError as exc:
                log.debug("Readiness probe failed", error=str(exc))

            await asyncio.sleep(interval)
            waited += interval
            log.info(f"⏳ Still waiting for Immich... ({waited}s/{max_wait}s)")

    log.warning(f"⚠️ Immich did not respond within {max_wait} seconds.")
    return False
