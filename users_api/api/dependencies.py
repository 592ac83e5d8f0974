"""FastAPI dependencies shared by routes."""

from __future__ import annotations

from fastapi import Request

from users_api.adapters.users.base import AbstractUserRepository
from users_api.services.user_service import UserService


def get_user_repository(request: Request) -> AbstractUserRepository:
    """Return the repository attached to the app at startup."""
    return request.app.state.user_repository


def get_user_service(request: Request) -> UserService:
    return UserService(get_user_repository(request))
