"""Pydantic schemas for the users resource."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, Field

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


def normalize_email(value: str) -> str:
    """Trim and lower-case an e-mail address."""
    return value.strip().lower()


def _strip(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


def _normalize(value: Any) -> Any:
    return normalize_email(value) if isinstance(value, str) else value


# Normalization runs before the length/pattern checks
UserName = Annotated[str, BeforeValidator(_strip), Field(min_length=1, max_length=200)]
Email = Annotated[
    str,
    BeforeValidator(_normalize),
    Field(max_length=320, pattern=EMAIL_PATTERN),
]


class UserCreate(BaseModel):
    """Payload for creating a user."""

    name: UserName = Field(..., description="Display name.")
    email: Email = Field(..., description="Unique e-mail address (stored lower-cased).")


class UserUpdate(BaseModel):
    """Partial update payload; omitted fields are left unchanged."""

    name: UserName | None = None
    email: Email | None = None

    def changes(self) -> dict[str, str]:
        """Fields explicitly provided by the client."""
        return self.model_dump(exclude_none=True)


class UserResponse(BaseModel):
    """User document as returned by the API."""

    id: str = Field(..., description="Document identifier.")
    name: str
    email: str
    created_at: datetime
    updated_at: datetime
