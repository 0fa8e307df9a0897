"""Error types raised by the updater pipeline."""


class UpdaterError(Exception):
    """Base class for all updater failures."""

    exit_code = 1


class ConfigMissing(UpdaterError):
    """Raised when the settings file does not exist."""


class ConfigInvalid(UpdaterError):
    """Raised when required settings are unset, blank or unrecognised."""


class AlreadyRunning(UpdaterError):
    """Raised when another live run holds the lock file."""

    def __init__(self, pid: int) -> None:
        super().__init__(f"Update script is already running (PID: {pid})")
        self.pid = pid


class UpstreamUnavailable(UpdaterError):
    """Raised when the release API gave no usable answer after all retries."""


class ServiceUnreachable(UpdaterError):
    """Raised when the local server status endpoint could not be read."""


class BlockedBreakingChange(UpdaterError):
    """Raised when release notes require a manual review before updating."""


class UpdateCommandFailed(UpdaterError):
    """Raised when a docker compose pull/up step fails."""


class SoftFailure(UpdaterError):
    """A failure that is logged and reported but never fails the run."""

    exit_code = 0


class ReadinessTimeout(SoftFailure):
    """The server did not answer within the readiness budget after restart."""


class NotificationFailed(SoftFailure):
    """A notification transport rejected or dropped a message."""


class PruneFailed(SoftFailure):
    """Old image cleanup did not complete."""
