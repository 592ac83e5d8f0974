from __future__ import annotations

"""Application factory for the FastAPI app.

Centralizes app construction (middleware, handlers, routers, collaborators)
so tests can build isolated apps with their own limiter and repository.

Request pipeline, outermost first:
    request id -> rate limiter -> CORS -> routing
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from users_api.adapters.rate_limit.base import AbstractRateLimiter
from users_api.adapters.users.base import AbstractUserRepository
from users_api.adapters.users.mongo import MongoUserRepository
from users_api.api.routes import health_router, users_router
from users_api.core.config import Settings, settings as default_settings
from users_api.core.database import Database
from users_api.core.exception_handlers import setup_exception_handlers
from users_api.core.logging import configure_logging
from users_api.core.middleware import request_id_middleware
from users_api.core.rate_limit import build_rate_limiter, rate_limit_middleware

logger = logging.getLogger(__name__)


def _database_lifespan(database: Database):
    """Connect to MongoDB on startup and close the client on shutdown."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        database.connect()
        app.state.user_repository = MongoUserRepository(lambda: database.users)
        try:
            yield
        finally:
            database.close()

    return lifespan


def create_app(
    *,
    config: Settings | None = None,
    rate_limiter: AbstractRateLimiter | None = None,
    user_repository: AbstractUserRepository | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        config: Settings to build from; the global settings when omitted.
        rate_limiter: Limiter to enforce; built from ``config.rate_limit``
            when omitted.
        user_repository: Repository to serve users from. When omitted the app
            connects to MongoDB during startup.

    Returns:
        Configured FastAPI app.

    Raises:
        ConfigurationAppError: If the rate limit configuration is invalid.
    """
    cfg = config or default_settings

    # Logging first so subsequent init logs are formatted as desired
    configure_logging(cfg.log)

    lifespan = None
    if user_repository is None:
        lifespan = _database_lifespan(Database(cfg.mongo))

    app = FastAPI(title="Users API", version="0.1.0", lifespan=lifespan)

    if user_repository is not None:
        app.state.user_repository = user_repository

    # Middleware: the last registered runs first
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[cfg.server.cors_origin],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if cfg.rate_limit.enabled:
        limiter = rate_limiter or build_rate_limiter(cfg.rate_limit)
        app.state.rate_limiter = limiter
        app.middleware("http")(
            rate_limit_middleware(
                limiter,
                trusted_header=cfg.server.trusted_client_header,
                include_headers=cfg.rate_limit.include_headers,
            )
        )
        logger.info(
            "rate_limit.configured",
            extra={
                "window_ms": cfg.rate_limit.window_ms,
                "max_requests": cfg.rate_limit.max_requests,
            },
        )

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(users_router, prefix="/api")
    app.include_router(health_router)

    return app
