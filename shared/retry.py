"""
Bounded retry policies for resilient remote calls.

The terminology gateway does not retry on transport failures. It retries a
request only when the response itself says the retry can succeed (an
expired session), so policies here are driven by a predicate over results
rather than by exceptions.
"""

import asyncio
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

from shared.logging import get_logger


T = TypeVar("T")


class RetryConfig:
    """Configuration for retry behavior."""

    def __init__(self,
                 max_attempts: int = 2,
                 base_delay: float = 0.0,
                 max_delay: float = 10.0,
                 exponential_base: float = 2.0,
                 backoff_strategy: str = "fixed"):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.exponential_base = exponential_base
        self.backoff_strategy = backoff_strategy


def _calculate_delay(attempt: int, config: RetryConfig) -> float:
    """Calculate delay between retry attempts."""
    if config.backoff_strategy == "exponential":
        delay = config.base_delay * (config.exponential_base ** (attempt - 1))
    elif config.backoff_strategy == "linear":
        delay = config.base_delay * attempt
    else:
        delay = config.base_delay

    return max(0.0, min(delay, config.max_delay))


class RetryPolicy(Generic[T]):
    """Re-run an operation while its result satisfies ``should_retry``.

    ``operation`` receives the 1-based attempt number. Before each new
    attempt ``before_retry`` is awaited with the rejected result; it owns
    that result (closing it, refreshing credentials, ...). The result of the
    last permitted attempt is returned whatever it is.
    """

    def __init__(self,
                 should_retry: Callable[[T], bool],
                 config: Optional[RetryConfig] = None,
                 name: str = "default"):
        self.should_retry = should_retry
        self.config = config or RetryConfig()
        self.name = name
        self.logger = get_logger(f"retry.{name}")

    async def run(self,
                  operation: Callable[[int], Awaitable[T]],
                  before_retry: Optional[Callable[[T], Awaitable[Any]]] = None) -> T:
        attempt = 1
        while True:
            result = await operation(attempt)

            if attempt >= self.config.max_attempts or not self.should_retry(result):
                if attempt > 1:
                    self.logger.info("Retry finished", attempt=attempt, policy=self.name)
                return result

            self.logger.warning(
                "Retryable result, retrying",
                attempt=attempt,
                max_attempts=self.config.max_attempts,
                policy=self.name
            )

            if before_retry is not None:
                await before_retry(result)

            delay = _calculate_delay(attempt, self.config)
            if delay > 0:
                await asyncio.sleep(delay)

            attempt += 1
