"""Safe auto-updater for self-hosted Immich deployments.

Checks GitHub for a newer Immich release, waits out a safety window,
scans the release notes for breaking changes and, when clear, pulls
and restarts the docker compose stack.
"""

__version__ = "0.2.0"
