"""The update check pipeline.

fetch release → fetch running version → decide → compose pull/up →
readiness poll → prune → notify. Every step runs sequentially on one
event loop; hard failures are notified at high priority and produce a
nonzero exit code, soft failures are logged and notified as warnings.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

from immich_updater.compose import ComposeUpdater
from immich_updater.config import Settings
from immich_updater.constants import PRIORITY_FAILURE, PRIORITY_SUCCESS, PRIORITY_WARNING
from immich_updater.decision import (
    LEGACY_RISK_KEYWORDS,
    RISK_KEYWORDS,
    Decision,
    days_since_release,
    decide,
    find_risk_keywords,
)
from immich_updater.errors import (
    BlockedBreakingChange,
    PruneFailed,
    ReadinessTimeout,
    ServiceUnreachable,
    UpdateCommandFailed,
    UpdaterError,
    UpstreamUnavailable,
)
from immich_updater.logging import get_logger
from immich_updater.notifier import Notifier
from immich_updater.release import fetch_latest_release
from immich_updater.server import fetch_running_version

log = get_logger("immich_updater.runner")

FAILURE_TITLE = "❌ Immich Update Failed"


@dataclass
class RunOutcome:
    """Result of one update check."""

    exit_code: int = 0
    decision: Decision | None = None
    current_version: str | None = None
    latest_version: str | None = None
    release_url: str | None = None
    ready: bool | None = None
    error: str | None = None


async def _hard_failure(
    notifier: Notifier,
    outcome: RunOutcome,
    exc: UpdaterError,
    title: str,
    message: str,
) -> RunOutcome:
    outcome.exit_code = exc.exit_code
    outcome.error = str(exc)
    await notifier.notify(title, message, PRIORITY_FAILURE)
    return outcome


async def run_update_check(
    settings: Settings,
    *,
    now: date | datetime | None = None,
    notifier: Notifier | None = None,
    updater: ComposeUpdater | None = None,
    docker: str | None = None,
) -> RunOutcome:
    """Run one update check against the configured deployment."""
    notifier = notifier or Notifier(settings, timeout=settings.http_timeout)
    updater = updater or ComposeUpdater.from_settings(settings, docker=docker)
    today = now or datetime.now().date()
    outcome = RunOutcome()

    try:
        release = await fetch_latest_release(settings.release_url, settings.http_timeout)
    except UpstreamUnavailable as exc:
        log.error(f"❌ {exc}. Exiting.")
        return await _hard_failure(
            notifier,
            outcome,
            exc,
            FAILURE_TITLE,
            "Could not fetch latest release information from GitHub",
        )
    outcome.latest_version = release.version
    outcome.release_url = release.html_url

    try:
        current = await fetch_running_version(
            settings.immich_localhost,
            settings.immich_api_key.get_secret_value(),
            settings.http_timeout,
        )
    except ServiceUnreachable as exc:
        log.error(f"❌ {exc}")
        return await _hard_failure(
            notifier,
            outcome,
            exc,
            FAILURE_TITLE,
            "Could not connect to Immich server to check version",
        )
    outcome.current_version = current
    latest = release.version

    log.info(f"📊 Current version: v{current}, Latest version: v{latest}")

    keywords = RISK_KEYWORDS
    if settings.legacy_keyword_scan:
        keywords = LEGACY_RISK_KEYWORDS
        log.warning(
            "⚠️ LEGACY_KEYWORD_SCAN is set: only 'breaking change' is checked. "
            "This narrower scan is superseded and misses important notes and warnings."
        )

    outcome.decision = decide(
        latest,
        current,
        release.published_at,
        today,
        release.body,
        settings.min_days_since_release,
        keywords,
    )

    if outcome.decision is Decision.SKIP_TOO_RECENT:
        age = days_since_release(release.published_at, today)
        log.info(
            f"⏳ Skipping update: Immich v{latest} was released only {age} days ago "
            f"(waiting for {settings.min_days_since_release} days)."
        )
        return outcome

    if outcome.decision is Decision.BLOCKED_BREAKING_CHANGE:
        matched = find_risk_keywords(release.body, keywords)
        log.error(
            f"🚨 Breaking Changes or important notes detected in Immich update (v{latest}). "
            "Manual review required.",
            keywords=", ".join(matched),
        )
        return await _hard_failure(
            notifier,
            outcome,
            BlockedBreakingChange(f"Release v{latest} needs manual review ({', '.join(matched)})"),
            "🚨 Immich Update Warning!",
            f"Breaking changes detected in v{latest}. Manual update required.\n\n"
            f"See: {release.html_url}",
        )

    if outcome.decision is Decision.UP_TO_DATE:
        log.info(f"✅ Immich is already up-to-date (v{current}).")
        return outcome

    log.info(f"🚀 Updating Immich from v{current} to v{latest}...")
    try:
        await updater.apply()
    except UpdateCommandFailed as exc:
        log.error("❌ Update failed! Please check the logs.", error=str(exc))
        return await _hard_failure(
            notifier,
            outcome,
            exc,
            FAILURE_TITLE,
            f"Error occurred while updating from v{current} to v{latest}",
        )

    try:
        await updater.verify_ready()
    except ReadinessTimeout as exc:
        outcome.ready = False
        log.warning(
            "⚠️ Immich update completed but service may not be fully ready.", error=str(exc)
        )
        await notifier.notify(
            "⚠️ Immich Update Warning",
            "Update completed but service verification failed",
            PRIORITY_WARNING,
        )
        return outcome

    outcome.ready = True
    log.info(f"✅ Immich updated successfully to v{latest}.")

    if settings.prune_images:
        try:
            await updater.prune_images()
        except PruneFailed as exc:
            log.warning("⚠️ Failed to clean up old Docker images.", error=str(exc))

    await notifier.notify(
        "✅ Immich Updated!",
        f"Successfully updated from v{current} to v{latest}",
        PRIORITY_SUCCESS,
    )
    return outcome
