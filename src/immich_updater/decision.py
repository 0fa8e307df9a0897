"""Update policy: release age, release-note risk scan and version order."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime
from enum import StrEnum

from immich_updater.version import is_newer

# Phrases in release notes that require a manual review.
RISK_KEYWORDS: tuple[str, ...] = (
    "breaking change",
    "important note",
    "caution",
    "warning",
)

# Superseded single-phrase scan. Only used when LEGACY_KEYWORD_SCAN is set.
LEGACY_RISK_KEYWORDS: tuple[str, ...] = ("breaking change",)


class Decision(StrEnum):
    """Outcome of the update policy."""

    SKIP_TOO_RECENT = "skip_too_recent"
    BLOCKED_BREAKING_CHANGE = "blocked_breaking_change"
    UPDATE = "update"
    UP_TO_DATE = "up_to_date"


def _as_date(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def days_since_release(published_at: date | datetime, now: date | datetime) -> int:
    """Whole calendar days between publication and *now*; time of day is ignored."""
    return (_as_date(now) - _as_date(published_at)).days


def find_risk_keywords(notes: str, keywords: Iterable[str] = RISK_KEYWORDS) -> list[str]:
    """Return the keywords found in *notes*, case-insensitively."""
    haystack = notes.lower()
    return [keyword for keyword in keywords if keyword.lower() in haystack]


def decide(
    latest: str,
    current: str,
    published_at: date | datetime,
    now: date | datetime,
    release_notes: str,
    min_days: int,
    keywords: Iterable[str] = RISK_KEYWORDS,
) -> Decision:
    """Decide what to do about *latest* given the running *current* version.

    The checks run in a fixed order: a release younger than *min_days* is
    skipped outright, then risky release notes block the update (even if
    the versions already match), and only then are versions compared.
    """
    if days_since_release(published_at, now) < min_days:
        return Decision.SKIP_TOO_RECENT
    if find_risk_keywords(release_notes, keywords):
        return Decision.BLOCKED_BREAKING_CHANGE
    if is_newer(latest, current):
        return Decision.UPDATE
    return Decision.UP_TO_DATE
