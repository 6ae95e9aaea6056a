"""Retry/backoff semantics for calls that may fail transiently."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Tuple, Type, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


class RetryConfig:
    def __init__(self, *, attempts: int = 3, backoff_seconds: float = 1.0) -> None:
        if attempts < 1:
            raise ValueError("Retry attempts must be at least 1.")
        self.attempts = attempts
        self.backoff_seconds = backoff_seconds


async def call_with_retry(
    func: Callable[..., Awaitable[T]],
    *args,
    retry_on: Tuple[Type[BaseException], ...],
    retry_config: RetryConfig | None = None,
    **kwargs,
) -> T:
    """Await ``func`` and retry on ``retry_on`` errors within the attempt budget.

    The last error is re-raised once the budget is exhausted; any other error
    propagates immediately.
    """
    config = retry_config or RetryConfig()
    attempt = 0

    while True:
        try:
            return await func(*args, **kwargs)
        except retry_on as exc:
            attempt += 1
            if attempt >= config.attempts:
                raise
            delay = config.backoff_seconds * attempt
            logger.info(
                "Attempt %s/%s failed (%s); retrying in %.1fs",
                attempt,
                config.attempts,
                exc,
                delay,
            )
            await asyncio.sleep(delay)


__all__ = ["RetryConfig", "call_with_retry"]
