"""
Bounded retry with exponential backoff for version conflicts.

Only compare-and-swap conflicts are retried locally; every other failure
surfaces to the caller immediately.

Backoff formula: base_delay * (2^attempt) +/- jitter, capped at max_delay
"""

import asyncio
import random
from dataclasses import dataclass

MAX_ATTEMPTS = 5
BASE_DELAY_SECONDS = 0.05
MAX_DELAY_SECONDS = 1.0
JITTER_FACTOR = 0.25  # +/- 25% jitter


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry policy configuration.

    Attributes:
        max_attempts: Total attempts including the first one
        base_delay_seconds: Delay after the first conflict
        max_delay_seconds: Maximum delay cap
        jitter_factor: Random jitter factor (0.25 = +/- 25%)
    """

    max_attempts: int = MAX_ATTEMPTS
    base_delay_seconds: float = BASE_DELAY_SECONDS
    max_delay_seconds: float = MAX_DELAY_SECONDS
    jitter_factor: float = JITTER_FACTOR

    def delay_for(self, attempt: int) -> float:
        """Delay before the retry following a conflict on attempt (0-based)"""
        delay = min(self.base_delay_seconds * (2**attempt), self.max_delay_seconds)
        jitter = delay * self.jitter_factor * (2 * random.random() - 1)
        return max(0.0, delay + jitter)

    async def backoff(self, attempt: int) -> None:
        delay = self.delay_for(attempt)
        if delay > 0:
            await asyncio.sleep(delay)
