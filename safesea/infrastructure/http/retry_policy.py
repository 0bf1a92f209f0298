"""
Retry policy value object: how many attempts, and how long to wait between them.
"""

from __future__ import annotations

from typing import Callable

from safesea.utils.config import DEFAULT_BACKOFF_SECONDS, DEFAULT_MAX_ATTEMPTS


def linear_backoff(step_seconds: float = DEFAULT_BACKOFF_SECONDS) -> Callable[[int], float]:
    """Backoff of `step_seconds × attempt` (1s, 2s, 3s, ... by default)."""

    def _delay(attempt: int) -> float:
        return step_seconds * attempt

    return _delay


class RetryPolicy:
    """
    Bounded retry schedule. Attempts are numbered from 1.

    `backoff(n)` is the pause after failed attempt n, before attempt n + 1.
    The policy never sleeps itself; callers pass the delay to an injected
    sleep function so tests can run on a virtual clock.
    """

    def __init__(
        self,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        backoff: Callable[[int], float] | None = None,
    ) -> None:
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
        self.max_attempts = max_attempts
        self.backoff = backoff or linear_backoff()

    def should_retry(self, attempt: int) -> bool:
        """True when another attempt is allowed after failed attempt `attempt`."""
        return attempt < self.max_attempts

    def delay(self, attempt: int) -> float:
        return max(0.0, float(self.backoff(attempt)))

    def __repr__(self) -> str:
        return f"RetryPolicy(max_attempts={self.max_attempts})"
