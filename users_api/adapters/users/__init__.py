"""User storage adapters - abstracts over the document store."""

from users_api.adapters.users.base import AbstractUserRepository, UserRecord
from users_api.adapters.users.in_memory import InMemoryUserRepository
from users_api.adapters.users.mongo import MongoUserRepository

__all__ = [
    "AbstractUserRepository",
    "InMemoryUserRepository",
    "MongoUserRepository",
    "UserRecord",
]
