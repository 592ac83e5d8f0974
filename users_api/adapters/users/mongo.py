"""MongoDB-backed user repository (pymongo)."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Mapping

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ReturnDocument
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError, PyMongoError

from users_api.adapters.users.base import AbstractUserRepository, UserRecord
from users_api.core.errors import ConflictAppError, DatabaseAppError, NotFoundAppError

logger = logging.getLogger(__name__)


def _to_record(doc: Mapping[str, Any]) -> UserRecord:
    return UserRecord(
        id=str(doc["_id"]),
        name=doc["name"],
        email=doc["email"],
        created_at=doc["created_at"],
        updated_at=doc["updated_at"],
    )


def _not_found(user_id: str) -> NotFoundAppError:
    return NotFoundAppError(
        code="user_not_found",
        message="User not found",
        details={"user_id": user_id},
    )


def _duplicate_email() -> ConflictAppError:
    return ConflictAppError(
        code="email_already_exists",
        message="A user with this email already exists",
    )


def _database_error(operation: str, exc: PyMongoError) -> DatabaseAppError:
    logger.error(
        "database.operation_failed",
        extra={"operation": operation, "error_type": type(exc).__name__},
    )
    return DatabaseAppError(
        code="database_unavailable",
        message="The database is currently unavailable",
        details={"context": {"operation": operation}},
    )


class MongoUserRepository(AbstractUserRepository):
    """Stores users in a MongoDB collection with a unique index on email.

    Args:
        collection: Returns the users collection. Called per operation so a
            database that was unreachable at startup is picked up later; it
            raises ``DatabaseAppError`` while no client can be created.
    """

    def __init__(self, collection: Callable[[], Collection]) -> None:
        self._get_collection = collection

    @property
    def _collection(self) -> Collection:
        return self._get_collection()

    @staticmethod
    def _object_id(user_id: str) -> ObjectId:
        try:
            return ObjectId(user_id)
        except (InvalidId, TypeError) as exc:
            raise _not_found(user_id) from exc

    def list_all(self) -> list[UserRecord]:
        try:
            return [_to_record(doc) for doc in self._collection.find().sort("created_at", 1)]
        except PyMongoError as exc:
            raise _database_error("list", exc) from exc

    def get(self, user_id: str) -> UserRecord:
        oid = self._object_id(user_id)
        try:
            doc = self._collection.find_one({"_id": oid})
        except PyMongoError as exc:
            raise _database_error("get", exc) from exc
        if doc is None:
            raise _not_found(user_id)
        return _to_record(doc)

    def create(self, *, name: str, email: str) -> UserRecord:
        now = datetime.now(timezone.utc)
        doc = {"name": name, "email": email, "created_at": now, "updated_at": now}
        try:
            result = self._collection.insert_one(doc)
        except DuplicateKeyError as exc:
            raise _duplicate_email() from exc
        except PyMongoError as exc:
            raise _database_error("create", exc) from exc
        doc["_id"] = result.inserted_id
        return _to_record(doc)

    def update(self, user_id: str, changes: dict[str, str]) -> UserRecord:
        oid = self._object_id(user_id)
        update = {**changes, "updated_at": datetime.now(timezone.utc)}
        try:
            doc = self._collection.find_one_and_update(
                {"_id": oid},
                {"$set": update},
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError as exc:
            raise _duplicate_email() from exc
        except PyMongoError as exc:
            raise _database_error("update", exc) from exc
        if doc is None:
            raise _not_found(user_id)
        return _to_record(doc)

    def delete(self, user_id: str) -> None:
        oid = self._object_id(user_id)
        try:
            result = self._collection.delete_one({"_id": oid})
        except PyMongoError as exc:
            raise _database_error("delete", exc) from exc
        if result.deleted_count == 0:
            raise _not_found(user_id)
