"""PID lock file guarding against overlapping scheduled runs.

The lock is advisory: liveness of the recorded PID is checked, then the
current PID is written. There is a small window between the two steps,
which is acceptable for a job that cron starts once a day.
"""

from __future__ import annotations

import contextlib
import os
import signal
from collections.abc import Iterator
from pathlib import Path
from types import FrameType, TracebackType

from immich_updater.errors import AlreadyRunning
from immich_updater.logging import get_logger

log = get_logger("immich_updater.lock")

TERMINATION_SIGNALS = (signal.SIGTERM, signal.SIGINT, signal.SIGHUP)


def pid_alive(pid: int) -> bool:
    """Return True if a process with *pid* exists."""
    if pid <= 0:
        return False
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        # Exists but belongs to another user
        return True
    return True


class LockFile:
    """Context manager that holds a PID marker for the duration of a run."""

    def __init__(self, path: Path, pid: int | None = None) -> None:
        self._path = path
        self._pid = pid if pid is not None else os.getpid()
        self._held = False

    def read_pid(self) -> int | None:
        """Return the PID recorded in the marker, or None if absent/unreadable."""
        try:
            return int(self._path.read_text(encoding="utf-8").strip())
        except (FileNotFoundError, ValueError):
            return None

    def acquire(self) -> None:
        """Write the marker, clearing a stale one first.

        Raises:
            AlreadyRunning: the marker names a live process other than us.
        """
        if self._path.exists():
            owner = self.read_pid()
            if owner is not None and owner != self._pid and pid_alive(owner):
                raise AlreadyRunning(owner)
            log.info("Removing stale lock file", path=str(self._path), pid=owner)
            self._path.unlink(missing_ok=True)

        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._held = True
        try:
            self._path.write_text(f"{self._pid}\n", encoding="utf-8")
        except BaseException:
            # Interrupted or failed mid-write: leave no marker behind
            self._held = False
            self._path.unlink(missing_ok=True)
            raise

    def release(self) -> None:
        """Remove the marker if it still belongs to this process."""
        if not self._held:
            return
        self._held = False
        if self.read_pid() == self._pid:
            self._path.unlink(missing_ok=True)

    def __enter__(self) -> LockFile:
        self.acquire()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()


@contextlib.contextmanager
def handle_termination() -> Iterator[None]:
    """Turn SIGTERM/SIGINT/SIGHUP into ``SystemExit`` inside the block.

    Raising from the handler unwinds the stack, so enclosing ``with``
    blocks (notably ``LockFile``) run their exit path.
    """

    def _raise_exit(signum: int, _frame: FrameType | None) -> None:
        log.warning("⚠️ Received termination signal", signal=signal.Signals(signum).name)
        raise SystemExit(128 + signum)

    previous = {}
    for signum in TERMINATION_SIGNALS:
        previous[signum] = signal.signal(signum, _raise_exit)
    try:
        yield
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)
