"""
Bounded retry with a fixed pause, for whole collection attempts.
"""
from __future__ import annotations

import logging
from typing import Awaitable, Callable, TypeVar

import backoff

log = logging.getLogger(__name__)

T = TypeVar("T")


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    *,
    max_attempts: int = 3,
    delay: float = 1.0,
) -> T:
    """
    Await ``operation()`` up to ``max_attempts`` times, sleeping ``delay``
    seconds between attempts. The last exception is re-raised.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")

    def _on_backoff(details) -> None:
        log.warning(
            "[Retry] Retry [%d/%d]: %s",
            details["tries"],
            max_attempts,
            details.get("exception"),
        )

    def _on_giveup(details) -> None:
        _on_backoff(details)
        log.error(
            "[Retry] Giving up after %d attempts: %s",
            details["tries"],
            details.get("exception"),
        )

    @backoff.on_exception(
        backoff.constant,
        Exception,
        max_tries=max_attempts,
        interval=delay,
        jitter=None,
        on_backoff=_on_backoff,
        on_giveup=_on_giveup,
        logger=None,
    )
    async def _attempt() -> T:
        return await operation()

    return await _attempt()
