"""MongoDB connection lifecycle.

The connection is opened once at startup and closed at shutdown. Startup
never fails because of the database: a bad URI, a failed SRV lookup or an
unanswered ping is logged as ``database.connection_failed`` and the server
keeps running. Until a client exists, each access to a collection retries
creating it and raises ``DatabaseAppError`` (503) when that fails; after that
pymongo keeps retrying server selection on its own.
The rate limiter never touches the database.
"""

from __future__ import annotations

import logging

from pymongo import ASCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from users_api.core.config import MongoSettings
from users_api.core.errors import DatabaseAppError

logger = logging.getLogger(__name__)

USERS_COLLECTION = "users"


class Database:
    """Owns the MongoClient and exposes the collections the API uses."""

    def __init__(self, mongo_settings: MongoSettings) -> None:
        self._settings = mongo_settings
        self._client: MongoClient | None = None

    @property
    def connected(self) -> bool:
        return self._client is not None

    def _log_failure(self, exc: PyMongoError) -> None:
        logger.error(
            "database.connection_failed",
            extra={
                "database": self._settings.database,
                "error_type": type(exc).__name__,
                "error_msg": str(exc),
            },
        )

    def _create_client(self) -> MongoClient:
        # ConfigurationError (malformed URI, SRV lookup) is raised right here
        return MongoClient(
            self._settings.uri,
            serverSelectionTimeoutMS=self._settings.timeout_ms,
            tz_aware=True,
        )

    def connect(self) -> bool:
        """Create the client, ping the server and ensure indexes.

        Returns:
            True if the server answered the ping, False otherwise.
        """
        try:
            self._client = self._create_client()
            self._client.admin.command("ping")
            self.users.create_index([("email", ASCENDING)], unique=True)
        except PyMongoError as exc:
            self._log_failure(exc)
            return False

        logger.info("database.connected", extra={"database": self._settings.database})
        return True

    @property
    def users(self) -> Collection:
        """The users collection, creating the client on first use if needed.

        Raises:
            DatabaseAppError: If no client can be created.
        """
        if self._client is None:
            try:
                self._client = self._create_client()
            except PyMongoError as exc:
                self._log_failure(exc)
                raise DatabaseAppError(
                    code="database_unavailable",
                    message="The database is currently unavailable",
                ) from exc
        return self._client[self._settings.database][USERS_COLLECTION]

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
            logger.info("database.closed")
