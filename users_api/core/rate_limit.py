"""Rate limiting middleware.

Wires the rate limiter adapter into the HTTP layer as the first request
stage, ahead of CORS handling and routing.

Design goals:
- Explicit ownership: the limiter is built once by the app factory and
  injected here, so each app (and each test) gets its own request log.
- Swap-friendly: the middleware only depends on ``AbstractRateLimiter``.

Client identity:
- The configured trusted client header (first comma-separated value), else
- the transport peer address, else
- the literal ``"unknown"``, shared by every unresolvable client.
"""

from __future__ import annotations

import hashlib
import logging
import math
from typing import Awaitable, Callable

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse

from users_api.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from users_api.adapters.rate_limit.sliding_window import SlidingWindowRateLimiter
from users_api.core.config import RateLimitSettings

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"
RATE_LIMIT_MESSAGE = "Too many requests, please try again later."

CallNext = Callable[[Request], Awaitable[Response]]


def build_rate_limiter(rate_limit_settings: RateLimitSettings) -> SlidingWindowRateLimiter:
    """Create the process-wide limiter from configuration."""

    return SlidingWindowRateLimiter(
        window_ms=rate_limit_settings.window_ms,
        max_requests=rate_limit_settings.max_requests,
    )


def resolve_client_key(request: Request, trusted_header: str | None = None) -> str:
    """Derive the rate limit key for a request.

    Args:
        request: Incoming request.
        trusted_header: Header set by a trusted proxy, if any.

    Returns:
        str: Client address, or ``"unknown"`` when none is resolvable.
    """

    if trusted_header:
        forwarded = request.headers.get(trusted_header)
        if forwarded:
            first = forwarded.split(",")[0].strip()
            if first:
                return first

    if request.client and request.client.host:
        return request.client.host

    return UNKNOWN_CLIENT


def _hash_client_key(key: str) -> str:
    """Hash the client key for logging without exposing addresses."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


def rejection_response(result: RateLimitResult, *, include_headers: bool = False) -> JSONResponse:
    """Build the 429 response for a rejected request."""

    headers: dict[str, str] = {}
    if include_headers:
        retry_after_s = math.ceil((result.retry_after_ms or 0) / 1000)
        headers["Retry-After"] = str(retry_after_s)
        headers["X-RateLimit-Limit"] = str(result.limit)
        headers["X-RateLimit-Remaining"] = str(result.remaining)

    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={"message": RATE_LIMIT_MESSAGE},
        headers=headers or None,
    )


def rate_limit_middleware(
    limiter: AbstractRateLimiter,
    *,
    trusted_header: str | None = None,
    include_headers: bool = False,
) -> Callable[[Request, CallNext], Awaitable[Response]]:
    """Build the HTTP middleware enforcing ``limiter`` on every request.

    Usage:
        app.middleware("http")(rate_limit_middleware(limiter))

    Args:
        limiter: Admission gate shared by all requests of the app.
        trusted_header: Header carrying the client address behind a proxy.
        include_headers: Add Retry-After and X-RateLimit-* headers to 429s.

    Returns:
        An ``async (request, call_next)`` middleware function.
    """

    async def middleware(request: Request, call_next: CallNext) -> Response:
        key = resolve_client_key(request, trusted_header)
        result = limiter.check(key)

        if result.allowed:
            logger.debug(
                "rate_limit.admitted",
                extra={
                    "key_hash": _hash_client_key(key),
                    "limit": result.limit,
                    "remaining": result.remaining,
                },
            )
            return await call_next(request)

        logger.warning(
            "rate_limit.exceeded",
            extra={
                "key_hash": _hash_client_key(key),
                "limit": result.limit,
                "retry_after_ms": result.retry_after_ms,
                "request_path": request.url.path,
                "request_method": request.method,
            },
        )
        return rejection_response(result, include_headers=include_headers)

    return middleware
