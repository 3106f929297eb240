"""Retry strategies for file access under contention.

The synchronizer asks its strategy two things after a failed attempt: may it
try again, and how long to wait first. Shared branch files use a fixed count
and a fixed delay (``ConstantBackoff``); a peer's lock on the file is held for
roughly the same short time every save, so growing the delay buys nothing.

Example:
    >>> strategy = ConstantBackoff(max_retries=4, delay=0.2)
    >>> [strategy.should_retry(attempt) for attempt in range(5)]
    [True, True, True, True, False]
    >>> strategy.next_delay(3)
    0.2
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from sheetsync.core.settings import SheetSyncSettings


class RetryStrategy(ABC):
    """Abstract base for retry strategies."""

    @abstractmethod
    def next_delay(self, attempt: int) -> float:
        """Calculate delay before next retry attempt.

        Args:
            attempt: Zero-based attempt number (0 = first retry)

        Returns:
            Delay in seconds before next attempt
        """
        ...

    @abstractmethod
    def should_retry(self, attempt: int, error: Exception | None = None) -> bool:
        """Determine if another retry should be attempted.

        Args:
            attempt: Zero-based number of the attempt that just failed
            error: The exception that caused the failure
        """
        ...


@dataclass
class ConstantBackoff(RetryStrategy):
    """Constant delay between retries."""

    max_retries: int = 4
    delay: float = 0.2

    @classmethod
    def from_settings(cls, settings: SheetSyncSettings) -> ConstantBackoff:
        # retry_count counts attempts, the first one included
        return cls(max_retries=settings.retry_count - 1, delay=settings.retry_delay_seconds)

    def next_delay(self, attempt: int) -> float:
        """Return constant delay."""
        return self.delay

    def should_retry(self, attempt: int, error: Exception | None = None) -> bool:
        """Check if retry should be attempted."""
        return attempt < self.max_retries


__all__ = ["RetryStrategy", "ConstantBackoff"]
