"""docker compose update steps for the Immich stack.

Lifecycle:
1. ``docker compose pull`` in the deployment directory
2. ``docker compose up -d`` to recreate changed containers
3. Poll the server until it answers again
4. Prune images older than 24h (best effort)

Command output is streamed line by line into the log.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from immich_updater.config import Settings, find_docker
from immich_updater.constants import (
    PRUNE_FILTER,
    PRUNE_TIMEOUT,
    PULL_TIMEOUT,
    READY_MAX_WAIT,
    READY_POLL_INTERVAL,
    UP_TIMEOUT,
)
from immich_updater.errors import PruneFailed, ReadinessTimeout, UpdateCommandFailed
from immich_updater.logging import get_logger
from immich_updater.server import wait_until_ready

log = get_logger("immich_updater.compose")


class ComposeUpdater:
    """Pulls and restarts the compose stack found in ``project_dir``."""

    def __init__(
        self,
        docker: str,
        project_dir: str,
        host: str,
        api_key: str,
        *,
        ready_max_wait: int = READY_MAX_WAIT,
        ready_interval: int = READY_POLL_INTERVAL,
        pull_timeout: float = PULL_TIMEOUT,
        up_timeout: float = UP_TIMEOUT,
    ) -> None:
        self._docker = docker
        self._project_dir = project_dir
        self._host = host
        self._api_key = api_key
        self._ready_max_wait = ready_max_wait
        self._ready_interval = ready_interval
        self._pull_timeout = pull_timeout
        self._up_timeout = up_timeout

    @classmethod
    def from_settings(cls, settings: Settings, docker: str | None = None) -> ComposeUpdater:
        return cls(
            docker=docker or find_docker(),
            project_dir=str(Path(settings.immich_path).expanduser()),
            host=settings.immich_localhost,
            api_key=settings.immich_api_key.get_secret_value(),
        )

    @property
    def project_dir(self) -> str:
        return self._project_dir

    async def apply(self) -> None:
        """Pull new images and recreate the stack.

        Raises:
            UpdateCommandFailed: the directory is missing or a command fails.
        """
        if not Path(self._project_dir).is_dir():
            raise UpdateCommandFailed(f"Deployment directory not found: {self._project_dir}")

        for step, args, timeout in (
            ("pull", ("compose", "pull"), self._pull_timeout),
            ("up", ("compose", "up", "-d"), self._up_timeout),
        ):
            returncode = await self._run(args, timeout=timeout)
            if returncode != 0:
                raise UpdateCommandFailed(f"docker compose {step} failed (rc={returncode})")

    async def verify_ready(self) -> None:
        """Wait for the restarted server.

        Raises:
            ReadinessTimeout: no 2xx answer within the wait budget.
        """
        ready = await wait_until_ready(
            self._host,
            self._api_key,
            max_wait=self._ready_max_wait,
            interval=self._ready_interval,
        )
        if not ready:
            raise ReadinessTimeout(
                f"Immich did not respond within {self._ready_max_wait} seconds"
            )

    async def prune_images(self) -> None:
        """Remove dangling images older than 24h.

        Raises:
            PruneFailed: the prune command failed or could not be started.
        """
        log.info("🧹 Cleaning up old Docker images...")
        try:
            returncode = await self._run(
                ("image", "prune", "-f", "--filter", PRUNE_FILTER),
                timeout=PRUNE_TIMEOUT,
                stream=False,
            )
        except UpdateCommandFailed as exc:
            raise PruneFailed(str(exc)) from exc
        if returncode != 0:
            raise PruneFailed(f"docker image prune failed (rc={returncode})")
        log.info("✅ Old Docker images cleaned up successfully.")

    async def _run(self, args: tuple[str, ...], timeout: float, stream: bool = True) -> int:
        """Run ``docker *args`` in the project directory and return its exit code."""
        cmd = " ".join((self._docker, *args))
        try:
            proc = await asyncio.create_subprocess_exec(
                self._docker,
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
                cwd=self._project_dir,
            )
        except OSError as exc:
            raise UpdateCommandFailed(f"Command error: {cmd}: {exc}") from exc

        try:
            await asyncio.wait_for(self._drain(proc, stream), timeout=timeout)
        except TimeoutError as exc:
            proc.kill()
            await proc.wait()
            raise UpdateCommandFailed(f"Command timed out ({timeout}s): {cmd}") from exc

        if proc.returncode != 0:
            log.warning("Command failed", cmd=cmd, returncode=proc.returncode)
        return proc.returncode if proc.returncode is not None else -1

    @staticmethod
    async def _drain(proc: asyncio.subprocess.Process, stream: bool) -> None:
        if proc.stdout is not None:
            while raw := await proc.stdout.readline():
                line = raw.decode(errors="replace").rstrip()
                if stream and line:
                    log.info(line)
        await proc.wait()
