"""User repository interface.

Routes and services depend on this abstraction so the MongoDB collection can
be replaced (in tests, by the in-memory repository) without changes upstream.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class UserRecord:
    """A stored user document."""

    id: str
    name: str
    email: str
    created_at: datetime
    updated_at: datetime


class AbstractUserRepository(ABC):
    """CRUD operations over user documents.

    Implementations raise ``NotFoundAppError`` for unknown ids,
    ``ConflictAppError`` for duplicate e-mails and ``DatabaseAppError`` when
    the store itself fails.
    """

    @abstractmethod
    def list_all(self) -> list[UserRecord]:
        raise NotImplementedError

    @abstractmethod
    def get(self, user_id: str) -> UserRecord:
        raise NotImplementedError

    @abstractmethod
    def create(self, *, name: str, email: str) -> UserRecord:
        raise NotImplementedError

    @abstractmethod
    def update(self, user_id: str, changes: dict[str, str]) -> UserRecord:
        """Apply ``changes`` (a subset of name/email) to the user."""
        raise NotImplementedError

    @abstractmethod
    def delete(self, user_id: str) -> None:
        raise NotImplementedError
