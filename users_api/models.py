"""Domain record and input payloads for the users service."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


@dataclass(frozen=True)
class User:
    """Represents a user record held by the in-memory store."""

    id: UUID
    first_name: str
    last_name: str
    email: str
    created_at: datetime


class CreateUserRequest(BaseModel):
    """Payload accepted by ``POST /users``.

    Every field is optional at the parsing layer so that missing values are
    reported by the validator with a readable message instead of a schema
    error.
    """

    model_config = ConfigDict(extra="ignore")

    first_name: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("firstName", "FirstName", "first_name")
    )
    last_name: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("lastName", "LastName", "last_name")
    )
    email: Optional[str] = Field(default=None, validation_alias=AliasChoices("email", "Email"))


class UpdateUserRequest(CreateUserRequest):
    """Payload accepted by ``PUT /users/{id}``; ``None`` means "no change"."""


__all__ = ["CreateUserRequest", "UpdateUserRequest", "User"]
