"""Version-aware ordering of release tags.

Versions compare segment by segment with digit runs taken as numbers,
the way ``sort -V`` orders them, so ``1.10.0`` sorts after ``1.9.0``.
"""

from __future__ import annotations

import re

_TOKEN_RE = re.compile(r"\d+|[A-Za-z]+")


def normalize(version: str) -> str:
    """Strip whitespace and a single leading ``v``."""
    version = version.strip()
    if version[:1] in ("v", "V"):
        version = version[1:]
    return version


def version_key(version: str) -> tuple[tuple[int, int | str], ...]:
    """Return a sortable key for *version*.

    Numeric tokens sort before alphabetic ones at the same position, so
    ``1.2.0`` < ``1.2.0a`` < ``1.2.1``.
    """
    key: list[tuple[int, int | str]] = []
    for token in _TOKEN_RE.findall(normalize(version)):
        if token.isdigit():
            key.append((0, int(token)))
        else:
            key.append((1, token.lower()))
    return tuple(key)


def compare(a: str, b: str) -> int:
    """Return -1, 0 or 1 as *a* sorts before, equal to, or after *b*."""
    ka, kb = version_key(a), version_key(b)
    return (ka > kb) - (ka < kb)


def is_newer(candidate: str, current: str) -> bool:
    """Return True if *candidate* is strictly newer than *current*."""
    return compare(candidate, current) > 0
