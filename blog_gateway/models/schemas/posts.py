"""
Pydantic schemas for post management.
"""
import math
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict, computed_field, field_validator

from ..db.enums import PostStatus

TITLE_MAX_LENGTH = 255
EXCERPT_MAX_LENGTH = 500
WORDS_PER_MINUTE = 200

class PostPayload(BaseModel):
    """
    Body of ``POST /admin/posts`` and ``PUT /admin/posts/{id}``.

    title/content default to None and are validated anyway so that a missing
    field yields the same message as a blank one. ``status`` omitted means
    "draft" on create and "unchanged" on update.
    """
    title: Optional[str] = Field(None, validate_default=True)
    content: Optional[str] = Field(None, validate_default=True)
    excerpt: Optional[str] = Field(None, max_length=EXCERPT_MAX_LENGTH)
    status: Optional[PostStatus] = None

    @field_validator('title')
    @classmethod
    def validate_title(cls, v):
        if v is None or not v.strip():
            raise ValueError('Title is required')
        if len(v) > TITLE_MAX_LENGTH:
            raise ValueError(f'Title must not exceed {TITLE_MAX_LENGTH} characters')
        return v.strip()

    @field_validator('content')
    @classmethod
    def validate_content(cls, v):
        if v is None or not v.strip():
            raise ValueError('Content is required')
        return v

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "title": "Spring campaign launch",
            "content": "We are happy to announce ...",
            "excerpt": None,
            "status": "draft"
        }
    })

class AuthorRead(BaseModel):
    id: int
    name: str
    email: str

    model_config = ConfigDict(from_attributes=True)

class PostRead(BaseModel):
    id: int
    title: str
    content: str
    excerpt: Optional[str]
    status: PostStatus
    published_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime
    user_id: Optional[int]
    author: Optional[AuthorRead] = None

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def is_published(self) -> bool:
        return self.status == PostStatus.PUBLISHED

    @computed_field
    @property
    def reading_time_minutes(self) -> int:
        return max(1, math.ceil(len(self.content.split()) / WORDS_PER_MINUTE))
