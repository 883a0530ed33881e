"""Bounded exponential-backoff retry for async remote calls."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from ..errors import NonRetryableError, TerminalCallError
from ..metrics import RETRY_ATTEMPTS

LOGGER = logging.getLogger("vaultscribe.retry")

T = TypeVar("T")


class RetryPolicy:
    """Retry ``fn`` up to ``max_attempts`` times, sleeping
    ``base_delay * 2 ** (attempt - 1)`` seconds after each failed attempt.

    No jitter. ``NonRetryableError`` is re-raised immediately; anything else is
    treated as transient. When the budget runs out a ``TerminalCallError``
    carrying the attempt count and the last failure's message is raised.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        *,
        context: str = "Operation",
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.context = context
        self._sleep = sleep

    def delay_for(self, attempt: int) -> float:
        return self.base_delay * (2 ** (attempt - 1))

    def with_context(self, context: str) -> "RetryPolicy":
        return RetryPolicy(self.max_attempts, self.base_delay, context=context, sleep=self._sleep)

    async def call(self, fn: Callable[[], Awaitable[T]]) -> T:
        last_error: BaseException | None = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await fn()
            except NonRetryableError:
                raise
            except Exception as exc:
                last_error = exc
                if attempt < self.max_attempts:
                    delay = self.delay_for(attempt)
                    RETRY_ATTEMPTS.labels(context=self.context).inc()
                    LOGGER.warning(
                        "%s failed (attempt %d/%d): %s. Retrying in %.2fs...",
                        self.context,
                        attempt,
                        self.max_attempts,
                        exc,
                        delay,
                    )
                    await self._sleep(delay)
        raise TerminalCallError(
            f"{self.context} failed after {self.max_attempts} attempts: {last_error}",
            attempts=self.max_attempts,
            last_error=last_error,
        ) from last_error


async def with_retry(
    fn: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    base_delay: float = 1.0,
    context: str = "Operation",
) -> T:
    return await RetryPolicy(max_attempts, base_delay, context=context).call(fn)


__all__ = ["RetryPolicy", "with_retry"]
