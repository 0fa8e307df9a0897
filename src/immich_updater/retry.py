"""Bounded retry helper shared by the release and status fetchers."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

import httpx

T = TypeVar("T")

DEFAULT_RETRY_ON: tuple[type[Exception], ...] = (httpx.HTTPError, ValueError)


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    *,
    attempts: int = 3,
    delay: float = 5.0,
    accept: Callable[[T], bool] = bool,
    on_retry: Callable[[int, int], None] | None = None,
    retry_on: tuple[type[Exception], ...] = DEFAULT_RETRY_ON,
) -> T | None:
    """Await *operation* until *accept* approves its result.

    Exceptions listed in *retry_on* count as an unacceptable result. The
    helper sleeps *delay* seconds between attempts (never after the last
    one) and calls ``on_retry(attempt, attempts)`` after each failure.

    Returns:
        The first accepted result, or None once *attempts* are used up.
    """
    if attempts < 1:
        raise ValueError("attempts must be >= 1")

    for attempt in range(1, attempts + 1):
        try:
            result = await operation()
        except retry_on:
            result = None
        else:
            if accept(result):
                return result

        if on_retry is not None:
            on_retry(attempt, attempts)
        if attempt < attempts:
            await asyncio.sleep(delay)

    return None
