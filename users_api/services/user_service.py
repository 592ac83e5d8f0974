"""User service: maps API schemas onto the repository and logs changes."""

from __future__ import annotations

import logging

from users_api.adapters.users.base import AbstractUserRepository, UserRecord
from users_api.core.errors import ValidationAppError
from users_api.schemas.user import UserCreate, UserResponse, UserUpdate

logger = logging.getLogger(__name__)


def to_response(user: UserRecord) -> UserResponse:
    return UserResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


class UserService:
    """Business operations on users.

    Args:
        repository: Storage backend for user documents.
    """

    def __init__(self, repository: AbstractUserRepository) -> None:
        self._repository = repository

    def list_users(self) -> list[UserResponse]:
        return [to_response(u) for u in self._repository.list_all()]

    def get_user(self, user_id: str) -> UserResponse:
        return to_response(self._repository.get(user_id))

    def create_user(self, payload: UserCreate) -> UserResponse:
        user = self._repository.create(name=payload.name, email=payload.email)
        logger.info("user.created", extra={"user_id": user.id})
        return to_response(user)

    def update_user(self, user_id: str, payload: UserUpdate) -> UserResponse:
        """Apply a partial update.

        Raises:
            ValidationAppError: If the payload carries no field to change.
        """
        changes = payload.changes()
        if not changes:
            raise ValidationAppError(
                code="empty_update",
                message="Provide at least one of: name, email",
            )
        user = self._repository.update(user_id, changes)
        logger.info("user.updated", extra={"user_id": user.id, "fields": sorted(changes)})
        return to_response(user)

    def delete_user(self, user_id: str) -> None:
        self._repository.delete(user_id)
        logger.info("user.deleted", extra={"user_id": user_id})
