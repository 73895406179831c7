"""Retry policies composed around client operations.

The requester performs exactly one attempt per call. Retrying belongs here:
each retried attempt asks the balancer again, so a transport failure on one
node is retried against the next one in rotation.

Retry schedule: base, 2*base, 4*base, ... between attempts.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from hbase_rest.errors import InvalidArgumentError, NoAvailableEndpointError, TransportError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryPolicy:
    """Exponential backoff retry on transport failures and pool exhaustion.

    Args:
        max_attempts: Total attempts, including the first one.
        backoff_base_seconds: Delay before the second attempt; doubles after.
        sleep: Awaitable sleep, replaceable in tests.
    """

    retryable: tuple[type[Exception], ...] = (TransportError, NoAvailableEndpointError)

    def __init__(
        self,
        max_attempts: int = 3,
        backoff_base_seconds: float = 0.5,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if max_attempts < 1:
            raise InvalidArgumentError(f"max_attempts must be >= 1, got {max_attempts}")
        if backoff_base_seconds < 0:
            raise InvalidArgumentError(
                f"backoff_base_seconds must be >= 0, got {backoff_base_seconds}"
            )
        self._max_attempts = max_attempts
        self._backoff_base = backoff_base_seconds
        self._sleep = sleep

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    async def execute(self, operation: Callable[[], Awaitable[T]], description: str = "request") -> T:
        """Run *operation* until it succeeds or attempts are exhausted.

        Non-retryable errors propagate immediately; the last retryable error
        is re-raised once every attempt has failed.
        """
        attempt = 0
        while True:
            try:
                return await operation()
            except self.retryable as exc:
                attempt += 1
                if attempt >= self._max_attempts:
                    if self._max_attempts > 1:
                        logger.error(
                            "%s failed after %d attempts",
                            description,
                            attempt,
                            extra={"attempt": attempt, "error_reason": str(exc)},
                        )
                    raise
                backoff = self._backoff_base * 2 ** (attempt - 1)
                logger.warning(
                    "%s failed (attempt %d/%d), retrying in %.2fs",
                    description,
                    attempt,
                    self._max_attempts,
                    backoff,
                    extra={"attempt": attempt, "error_reason": str(exc)},
                )
                await self._sleep(backoff)


class NoRetryPolicy(RetryPolicy):
    """A single attempt; errors propagate unchanged."""

    def __init__(self) -> None:
        super().__init__(max_attempts=1, backoff_base_seconds=0.0)
