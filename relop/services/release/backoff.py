"""Exponential backoff for publish retries and visibility polling."""

from __future__ import annotations

from dataclasses import dataclass

from relop.core.config import PublishConfig


@dataclass(frozen=True, slots=True)
class BackoffPolicy:
    """Exponential backoff with an upper bound."""

    base_seconds: float
    cap_seconds: float

    def delay(self, attempt: int) -> float:
        """Delay before the retry that follows the given 1-based attempt."""
        n = max(attempt, 1)
        delay = self.base_seconds * (2 ** (n - 1))
        return float(min(delay, self.cap_seconds))


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    max_attempts: int
    backoff: BackoffPolicy
    visibility_timeout_seconds: float
    visibility_poll: BackoffPolicy

    @classmethod
    def from_config(cls, cfg: PublishConfig) -> RetryPolicy:
        return cls(
            max_attempts=max(1, cfg.max_attempts),
            backoff=BackoffPolicy(cfg.backoff_base_seconds, cfg.backoff_cap_seconds),
            visibility_timeout_seconds=cfg.visibility_timeout_seconds,
            visibility_poll=BackoffPolicy(
                cfg.visibility_poll_seconds, cfg.visibility_poll_cap_seconds
            ),
        )
