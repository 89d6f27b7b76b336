"""
Retry policy for idempotent requests.

Retries use pure exponential backoff: the delay starts at BASE_BACKOFF and
doubles after every attempt, with no jitter and no ceiling.
"""

from __future__ import annotations

from collections.abc import Collection
from dataclasses import dataclass

from waterfalls_client.constants import BASE_BACKOFF, RETRYABLE_ERROR_CODES


def should_retry(
    attempt: int,
    max_retries: int,
    status: int,
    retryable: Collection[int] = RETRYABLE_ERROR_CODES,
) -> bool:
    """Whether a response with `status` on attempt number `attempt` earns another try."""
    return attempt < max_retries and status in retryable


def next_delay(current: float) -> float:
    return current * 2


@dataclass(frozen=True)
class RetryState:
    attempts: int = 0
    delay: float = BASE_BACKOFF

    def advance(self) -> RetryState:
        return RetryState(attempts=self.attempts + 1, delay=next_delay(self.delay))
