"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before any ``users_api`` import so the global
settings object is built from test values.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("LOG_FORMAT", "json")

from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from users_api.adapters.rate_limit.sliding_window import SlidingWindowRateLimiter
from users_api.adapters.users.in_memory import InMemoryUserRepository
from users_api.core.app_factory import create_app


@pytest.fixture
def clock() -> Mock:
    """Controllable millisecond clock for limiter tests."""
    return Mock(return_value=1_000_000)


@pytest.fixture
def user_repository() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def client(user_repository: InMemoryUserRepository) -> TestClient:
    """Client for an app with a generous limiter and in-memory storage."""
    limiter = SlidingWindowRateLimiter(window_ms=60_000, max_requests=1_000)
    app = create_app(rate_limiter=limiter, user_repository=user_repository)
    return TestClient(app)
