"""In-memory sliding-window-log rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: the read-filter-write sequence of ``check`` runs under a lock,
  so two concurrent requests from one client cannot both take the last slot.
- Keys whose history has fully expired are swept at most once per window.
"""

from __future__ import annotations

import threading
import time
from typing import Callable

from users_api.adapters.rate_limit.base import (
    AbstractRateLimiter,
    Decision,
    RateLimitResult,
)
from users_api.core.errors import ConfigurationAppError


def current_time_ms() -> int:
    """Wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


class SlidingWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter keeping the exact timestamps of admitted requests.

    A request is admitted while fewer than ``max_requests`` earlier admissions
    from the same key are younger than ``window_ms``. A timestamp exactly
    ``window_ms`` old has already expired. Rejected requests are not recorded,
    so a client hammering at the ceiling does not extend its own lockout.
    """

    def __init__(
        self,
        *,
        window_ms: int,
        max_requests: int,
        clock: Callable[[], int] = current_time_ms,
    ) -> None:
        """Initialize the limiter.

        Args:
            window_ms: Trailing window length in milliseconds.
            max_requests: Maximum admitted requests per key per window.
            clock: Time source returning epoch milliseconds.

        Raises:
            ConfigurationAppError: If window_ms or max_requests is not positive.
        """
        if window_ms < 1:
            raise ConfigurationAppError(
                code="invalid_rate_limit_window",
                message="window_ms must be >= 1",
                details={"setting": "RATE_LIMIT_WINDOW_MS", "actual_value": window_ms},
            )
        if max_requests < 1:
            raise ConfigurationAppError(
                code="invalid_rate_limit_max_requests",
                message="max_requests must be >= 1",
                details={"setting": "RATE_LIMIT_MAX_REQUESTS", "actual_value": max_requests},
            )

        self._window_ms = window_ms
        self._max_requests = max_requests
        self._clock = clock
        self._lock = threading.RLock()
        self._log: dict[str, list[int]] = {}
        self._last_sweep: int | None = None

    @property
    def window_ms(self) -> int:
        return self._window_ms

    @property
    def max_requests(self) -> int:
        return self._max_requests

    def _prune(self, timestamps: list[int], now: int) -> list[int]:
        return [t for t in timestamps if now - t < self._window_ms]

    def check(self, key: str, now: int | None = None) -> RateLimitResult:
        """Admit or reject a request from ``key`` and update its history.

        Expired timestamps are dropped in both outcomes; ``now`` is appended
        only when the request is admitted.
        """
        if now is None:
            now = self._clock()

        with self._lock:
            self._maybe_sweep(now)

            valid = self._prune(self._log.get(key, ()), now)

            if len(valid) >= self._max_requests:
                self._log[key] = valid
                retry_after = self._window_ms - (now - valid[0])
                return RateLimitResult(
                    decision=Decision.REJECT,
                    limit=self._max_requests,
                    remaining=0,
                    retry_after_ms=max(0, retry_after),
                )

            valid.append(now)
            self._log[key] = valid
            return RateLimitResult(
                decision=Decision.ADMIT,
                limit=self._max_requests,
                remaining=self._max_requests - len(valid),
            )

    def sweep(self, now: int | None = None) -> int:
        """Forget keys with no timestamp left inside the window.

        Returns:
            Number of keys removed.
        """
        if now is None:
            now = self._clock()

        with self._lock:
            self._last_sweep = now
            stale = [k for k, ts in self._log.items() if not self._prune(ts, now)]
            for key in stale:
                del self._log[key]
            return len(stale)

    def _maybe_sweep(self, now: int) -> None:
        if self._last_sweep is None:
            self._last_sweep = now
        elif now - self._last_sweep >= self._window_ms:
            self.sweep(now)

    def history(self, key: str) -> list[int]:
        """Return a copy of the stored timestamps for ``key``."""
        with self._lock:
            return list(self._log.get(key, ()))

    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._log)
