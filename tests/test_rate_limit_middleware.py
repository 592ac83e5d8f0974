"""Tests for the rate limiting middleware and its place in the pipeline."""

from __future__ import annotations

import asyncio
from unittest.mock import Mock

from fastapi import FastAPI
from fastapi.testclient import TestClient
from starlette.requests import Request

from users_api.adapters.rate_limit.sliding_window import SlidingWindowRateLimiter
from users_api.adapters.users.in_memory import InMemoryUserRepository
from users_api.core.app_factory import create_app
from users_api.core.config import RateLimitSettings, ServerSettings, Settings
from users_api.core.rate_limit import (
    RATE_LIMIT_MESSAGE,
    UNKNOWN_CLIENT,
    rate_limit_middleware,
    resolve_client_key,
)


def _request(headers: dict[str, str] | None = None, client: tuple[str, int] | None = None) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": client,
    }
    return Request(scope)


def _build(limiter: SlidingWindowRateLimiter, **server_kwargs) -> TestClient:
    config = Settings(server=ServerSettings(**server_kwargs))
    app = create_app(
        config=config,
        rate_limiter=limiter,
        user_repository=InMemoryUserRepository(),
    )
    return TestClient(app)


class TestResolveClientKey:
    def test_uses_peer_address(self) -> None:
        assert resolve_client_key(_request(client=("10.0.0.7", 5123))) == "10.0.0.7"

    def test_trusted_header_takes_precedence(self) -> None:
        request = _request(
            headers={"X-Forwarded-For": "203.0.113.9, 10.0.0.1"},
            client=("10.0.0.1", 5123),
        )
        assert resolve_client_key(request, "X-Forwarded-For") == "203.0.113.9"

    def test_header_ignored_when_not_trusted(self) -> None:
        request = _request(headers={"X-Forwarded-For": "203.0.113.9"}, client=("10.0.0.1", 1))
        assert resolve_client_key(request) == "10.0.0.1"

    def test_blank_trusted_header_falls_back_to_peer(self) -> None:
        request = _request(headers={"X-Forwarded-For": " "}, client=("10.0.0.1", 1))
        assert resolve_client_key(request, "X-Forwarded-For") == "10.0.0.1"

    def test_unknown_when_no_address(self) -> None:
        assert resolve_client_key(_request()) == UNKNOWN_CLIENT
        assert resolve_client_key(_request(), "X-Forwarded-For") == UNKNOWN_CLIENT


def test_rejects_with_429_and_fixed_body(clock: Mock) -> None:
    limiter = SlidingWindowRateLimiter(window_ms=1000, max_requests=2, clock=clock)
    client = _build(limiter)

    assert client.get("/health").status_code == 200
    assert client.get("/health").status_code == 200

    resp = client.get("/health")

    assert resp.status_code == 429
    assert resp.json() == {"message": RATE_LIMIT_MESSAGE}
    assert resp.headers["content-type"].startswith("application/json")
    assert "Retry-After" not in resp.headers


def test_admits_again_after_window(clock: Mock) -> None:
    limiter = SlidingWindowRateLimiter(window_ms=1000, max_requests=1, clock=clock)
    client = _build(limiter)

    assert client.get("/health").status_code == 200
    assert client.get("/health").status_code == 429

    clock.return_value += 1000
    assert client.get("/health").status_code == 200


def test_rejected_request_never_reaches_route(clock: Mock) -> None:
    limiter = SlidingWindowRateLimiter(window_ms=1000, max_requests=1, clock=clock)
    repository = InMemoryUserRepository()
    app = create_app(rate_limiter=limiter, user_repository=repository)
    client = TestClient(app)

    payload = {"name": "Ada", "email": "ada@example.com"}
    assert client.post("/api/users", json=payload).status_code == 201
    resp = client.post("/api/users", json={"name": "Bob", "email": "bob@example.com"})

    assert resp.status_code == 429
    assert [u.email for u in repository.list_all()] == ["ada@example.com"]


def test_all_routes_share_one_quota(clock: Mock) -> None:
    limiter = SlidingWindowRateLimiter(window_ms=1000, max_requests=2, clock=clock)
    client = _build(limiter)

    assert client.get("/health").status_code == 200
    assert client.get("/api/users").status_code == 200
    assert client.get("/api/users").status_code == 429
    assert client.get("/health").status_code == 429


def test_trusted_header_separates_clients(clock: Mock) -> None:
    limiter = SlidingWindowRateLimiter(window_ms=1000, max_requests=1, clock=clock)
    client = _build(limiter, trusted_client_header="X-Forwarded-For")

    assert client.get("/health", headers={"X-Forwarded-For": "198.51.100.1"}).status_code == 200
    assert client.get("/health", headers={"X-Forwarded-For": "198.51.100.1"}).status_code == 429
    assert client.get("/health", headers={"X-Forwarded-For": "198.51.100.2"}).status_code == 200


def test_unknown_clients_share_a_bucket(clock: Mock) -> None:
    limiter = SlidingWindowRateLimiter(window_ms=1000, max_requests=1, clock=clock)

    async def call_next(request: Request):
        return Mock(status_code=200)

    middleware = rate_limit_middleware(limiter)

    first = asyncio.run(middleware(_request(), call_next))
    second = asyncio.run(middleware(_request(), call_next))

    assert first.status_code == 200
    assert second.status_code == 429
    assert limiter.history(UNKNOWN_CLIENT) == [clock.return_value]


def test_rejection_happens_before_cors(clock: Mock) -> None:
    limiter = SlidingWindowRateLimiter(window_ms=1000, max_requests=1, clock=clock)
    client = _build(limiter, cors_origin="http://frontend.test")
    headers = {"Origin": "http://frontend.test"}

    admitted = client.get("/health", headers=headers)
    rejected = client.get("/health", headers=headers)

    assert admitted.headers["access-control-allow-origin"] == "http://frontend.test"
    assert admitted.headers["access-control-allow-credentials"] == "true"
    assert rejected.status_code == 429
    assert "access-control-allow-origin" not in rejected.headers


def test_rejection_carries_request_id(clock: Mock) -> None:
    limiter = SlidingWindowRateLimiter(window_ms=1000, max_requests=1, clock=clock)
    client = _build(limiter)
    client.get("/health")

    resp = client.get("/health", headers={"X-Request-ID": "req-429"})

    assert resp.status_code == 429
    assert resp.headers["X-Request-ID"] == "req-429"


def test_optional_rate_limit_headers(clock: Mock) -> None:
    limiter = SlidingWindowRateLimiter(window_ms=10_000, max_requests=1, clock=clock)
    config = Settings(rate_limit=RateLimitSettings(include_headers=True))
    client = TestClient(
        create_app(config=config, rate_limiter=limiter, user_repository=InMemoryUserRepository())
    )
    client.get("/health")
    clock.return_value += 2_500

    resp = client.get("/health")

    assert resp.status_code == 429
    assert resp.headers["Retry-After"] == "8"
    assert resp.headers["X-RateLimit-Limit"] == "1"
    assert resp.headers["X-RateLimit-Remaining"] == "0"


def test_disabled_rate_limit_admits_everything() -> None:
    config = Settings(rate_limit=RateLimitSettings(enabled=False, max_requests=1))
    app = create_app(config=config, user_repository=InMemoryUserRepository())
    client = TestClient(app)

    assert all(client.get("/health").status_code == 200 for _ in range(5))
    assert not hasattr(app.state, "rate_limiter")


def test_app_builds_limiter_from_settings() -> None:
    config = Settings(rate_limit=RateLimitSettings(window_ms=1234, max_requests=7))
    app: FastAPI = create_app(config=config, user_repository=InMemoryUserRepository())

    limiter = app.state.rate_limiter
    assert limiter.window_ms == 1234
    assert limiter.max_requests == 7


def test_each_app_owns_its_request_log() -> None:
    config = Settings(rate_limit=RateLimitSettings(max_requests=1))
    first = TestClient(create_app(config=config, user_repository=InMemoryUserRepository()))
    second = TestClient(create_app(config=config, user_repository=InMemoryUserRepository()))

    assert first.get("/health").status_code == 200
    assert first.get("/health").status_code == 429
    assert second.get("/health").status_code == 200
