"""Retry decisions for failed API attempts."""

from __future__ import annotations

from dataclasses import dataclass

from .errors import NetworkError, PeerCatError, RateLimitError, RequestTimeoutError


@dataclass(frozen=True)
class RetryDecision:
    retry: bool
    delay: float = 0.0


@dataclass(frozen=True)
class RetryPolicy:
    """Stateless policy: every call to ``decide`` depends only on its arguments.

    ``max_retries`` counts retries after the first attempt. Delays are in seconds.
    """

    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 10.0

    def is_retryable(self, error: PeerCatError) -> bool:
        if isinstance(error, (NetworkError, RequestTimeoutError, RateLimitError)):
            return True
        return not 400 <= error.status < 500

    def backoff(self, attempt: int, error: PeerCatError) -> float:
        if isinstance(error, RateLimitError) and error.retry_after:
            return max(0.0, float(error.retry_after))
        return min(self.base_delay * (2 ** attempt), self.max_delay)

    def decide(self, error: PeerCatError, attempt: int) -> RetryDecision:
        """Decide what follows the failed attempt number ``attempt`` (zero based)."""
        if not self.is_retryable(error) or attempt >= self.max_retries:
            return RetryDecision(retry=False)
        return RetryDecision(retry=True, delay=self.backoff(attempt, error))


__all__ = ["RetryDecision", "RetryPolicy"]
