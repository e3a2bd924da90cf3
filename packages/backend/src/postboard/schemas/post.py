"""Pydantic schemas for posts."""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class PostCreate(BaseModel):
    text: str = Field(..., min_length=1, max_length=5000)


class Author(BaseModel):
    id: uuid.UUID
    username: str

    model_config = {"from_attributes": True}


class PostRead(BaseModel):
    id: uuid.UUID
    text: str
    user: Author
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
