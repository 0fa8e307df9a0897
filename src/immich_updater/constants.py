"""Centralized constants for the Immich updater."""

# Release source
DEFAULT_RELEASE_URL = "https://api.github.com/repos/immich-app/immich/releases/latest"

# Default file locations (relative to the user's home directory)
DEFAULT_CONFIG_PATH = "~/immich-app/.immich.conf"
DEFAULT_LOG_FILENAME = "update_log.txt"
DEFAULT_LOCK_FILENAME = "update.lock"

# Safety window
MIN_DAYS_SINCE_RELEASE = 7

# HTTP (seconds)
HTTP_TIMEOUT = 30
FETCH_ATTEMPTS = 3
FETCH_RETRY_DELAY = 5

# Readiness poll after restart (seconds)
READY_MAX_WAIT = 300
READY_POLL_INTERVAL = 10
READY_REQUEST_TIMEOUT = 10

# docker executable when it is not on PATH
DEFAULT_DOCKER_PATH = "/usr/bin/docker"

# docker compose commands (seconds)
PULL_TIMEOUT = 1200
UP_TIMEOUT = 300
PRUNE_TIMEOUT = 120
PRUNE_FILTER = "until=24h"

# Notification priorities
PRIORITY_SUCCESS = 5
PRIORITY_WARNING = 6
PRIORITY_FAILURE = 8

# Server status endpoint
SERVER_ABOUT_PATH = "/api/server/about"
