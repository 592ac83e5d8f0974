"""Rate limiter interfaces."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum


class Decision(str, Enum):
    """Outcome of an admission check."""

    ADMIT = "admit"
    REJECT = "reject"


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a single admission check.

    Attributes:
        decision: Whether the request is admitted or rejected.
        limit: Max admitted requests per trailing window.
        remaining: Admissions left in the current window (0 when rejected).
        retry_after_ms: Milliseconds until the oldest tracked request leaves
            the window; only set on rejection.
    """

    decision: Decision
    limit: int
    remaining: int
    retry_after_ms: int | None = None

    @property
    def allowed(self) -> bool:
        return self.decision is Decision.ADMIT


class AbstractRateLimiter(ABC):
    """Interface for per-client admission gates."""

    @abstractmethod
    def check(self, key: str, now: int | None = None) -> RateLimitResult:
        """Decide whether a request from ``key`` at ``now`` is admitted.

        Args:
            key: Client identity the quota is enforced under.
            now: Current time in epoch milliseconds; the limiter clock is
                used when omitted.

        Returns:
            RateLimitResult describing the decision.
        """
        raise NotImplementedError
