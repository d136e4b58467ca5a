"""Reusable retry-with-backoff policy for Gemini calls.

Each attempt is raced against a hard deadline via ``asyncio.timeout``. Losing
the race cancels the local coroutine only; the remote request may still run
to completion server-side. Retries are delegated to tenacity.

The policy returns a RetryOutcome instead of raising, so callers can choose
between falling back (transient errors) and propagating (fatal errors)
without wrapping every call site in try/except.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from google.genai.errors import ClientError, ServerError
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_retryable(error: BaseException) -> bool:
    """Determine if a Gemini API error is transient and worth retrying.

    Returns True for server errors (5xx: unavailable, overloaded, deadline
    exceeded), rate limits (429) and client-side attempt timeouts.
    Returns False for permanent client errors (400, 401, 403).
    """
    if isinstance(error, (ServerError, TimeoutError)):
        return True
    if isinstance(error, ClientError) and error.code == 429:
        return True
    return False


@dataclass
class RetryOutcome(Generic[T]):
    """Result of a policy run: either ``value`` or the last ``error``."""

    value: T | None = None
    error: BaseException | None = None
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def transient(self) -> bool:
        """True when the run failed only on retryable errors."""
        return self.error is not None and is_retryable(self.error)


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retries with exponential backoff and a per-attempt deadline.

    Attributes:
        max_attempts: Total attempts including the first call.
        base_delay: First backoff in seconds; doubles on each retry.
        max_delay: Upper bound for a single backoff.
        timeout_seconds: Hard wall-clock limit per attempt.
        retryable: Predicate deciding which errors are retried.
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 8.0
    timeout_seconds: float = 10.0
    retryable: Callable[[BaseException], bool] = is_retryable

    @property
    def worst_case_seconds(self) -> float:
        """Longest wall-clock time one run can take: every attempt times out."""
        backoff = sum(
            min(self.base_delay * 2 ** (retry - 1), self.max_delay)
            for retry in range(1, self.max_attempts)
        )
        return self.max_attempts * self.timeout_seconds + backoff

    async def run(self, call: Callable[[], Awaitable[T]], operation: str = "gemini") -> RetryOutcome[T]:
        """Run ``call`` under the policy and capture the outcome.

        Args:
            call: Zero-argument coroutine factory; invoked once per attempt.
            operation: Label for logs (e.g. "extract", "summary").
        """
        attempts = 0
        retrying = AsyncRetrying(
            retry=retry_if_exception(self.retryable),
            wait=wait_exponential(multiplier=self.base_delay, max=self.max_delay),
            stop=stop_after_attempt(self.max_attempts),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    attempts += 1
                    async with asyncio.timeout(self.timeout_seconds):
                        value = await call()
        except Exception as exc:
            logger.warning(
                "Gemini %s failed after %d attempt(s): %s",
                operation,
                attempts,
                type(exc).__name__,
            )
            return RetryOutcome(error=exc, attempts=attempts)
        return RetryOutcome(value=value, attempts=attempts)
