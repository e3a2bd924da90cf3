"""Pydantic schemas for users.

Separate "Create"/"Update" schemas (input) from "Read" schemas (output).
UserRead has no password field, so hashes never leave the service.
"""

import re
import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

EMAIL_RE = re.compile(
    r"^[-a-z0-9%S_+]+(\.[-a-z0-9%S_+]+)*@(?:[a-z0-9-]{1,63}\.){1,125}[a-z]{2,63}$",
    re.IGNORECASE,
)
USERNAME_PATTERN = r"^[A-Za-z0-9_.-]+$"

# Path segments under /users that a username would shadow.
RESERVED_USERNAMES = {"me"}


def _check_email(value: str) -> str:
    value = value.strip().lower()
    if not EMAIL_RE.match(value):
        raise ValueError(f"{value} is not a valid email")
    return value


def _check_username(value: str) -> str:
    if value.lower() in RESERVED_USERNAMES:
        raise ValueError(f"'{value}' is a reserved username")
    return value


class UserCreate(BaseModel):
    username: str = Field(..., min_length=1, max_length=50, pattern=USERNAME_PATTERN)
    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=8, max_length=128)
    firstname: Optional[str] = Field(None, max_length=100)
    lastname: Optional[str] = Field(None, max_length=100)

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        return _check_email(value)

    @field_validator("username")
    @classmethod
    def validate_username(cls, value: str) -> str:
        return _check_username(value)


class UserUpdate(BaseModel):
    """Partial update of the caller's own account. Role is not editable."""

    username: Optional[str] = Field(
        None, min_length=1, max_length=50, pattern=USERNAME_PATTERN
    )
    email: Optional[str] = Field(None, max_length=255)
    password: Optional[str] = Field(None, min_length=8, max_length=128)
    firstname: Optional[str] = Field(None, max_length=100)
    lastname: Optional[str] = Field(None, max_length=100)

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: Optional[str]) -> Optional[str]:
        return None if value is None else _check_email(value)

    @field_validator("username")
    @classmethod
    def validate_username(cls, value: Optional[str]) -> Optional[str]:
        return None if value is None else _check_username(value)


class UserRead(BaseModel):
    id: uuid.UUID
    username: str
    email: str
    firstname: Optional[str] = None
    lastname: Optional[str] = None
    role: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
