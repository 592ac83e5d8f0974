"""In-memory user repository.

Used by the test suite and for running the API without a database. Same
semantics as the MongoDB repository, including the unique e-mail constraint.
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import replace
from datetime import datetime, timezone

from users_api.adapters.users.base import AbstractUserRepository, UserRecord
from users_api.core.errors import ConflictAppError, NotFoundAppError


def _now() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryUserRepository(AbstractUserRepository):
    """Thread-safe dict-backed repository preserving insertion order."""

    def __init__(self) -> None:
        self._users: dict[str, UserRecord] = {}
        self._lock = threading.RLock()

    def list_all(self) -> list[UserRecord]:
        with self._lock:
            return list(self._users.values())

    def get(self, user_id: str) -> UserRecord:
        with self._lock:
            user = self._users.get(user_id)
        if user is None:
            raise NotFoundAppError(
                code="user_not_found",
                message="User not found",
                details={"user_id": user_id},
            )
        return user

    def create(self, *, name: str, email: str) -> UserRecord:
        with self._lock:
            self._ensure_email_free(email)
            timestamp = _now()
            user = UserRecord(
                id=uuid.uuid4().hex,
                name=name,
                email=email,
                created_at=timestamp,
                updated_at=timestamp,
            )
            self._users[user.id] = user
            return user

    def update(self, user_id: str, changes: dict[str, str]) -> UserRecord:
        with self._lock:
            user = self.get(user_id)
            if "email" in changes:
                self._ensure_email_free(changes["email"], exclude_id=user_id)
            updated = replace(user, **changes, updated_at=_now())
            self._users[user_id] = updated
            return updated

    def delete(self, user_id: str) -> None:
        with self._lock:
            self.get(user_id)
            del self._users[user_id]

    def _ensure_email_free(self, email: str, *, exclude_id: str | None = None) -> None:
        for user in self._users.values():
            if user.email == email and user.id != exclude_id:
                raise ConflictAppError(
                    code="email_already_exists",
                    message="A user with this email already exists",
                )
