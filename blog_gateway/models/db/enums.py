"""Central Enum definitions for post state.

Used by the DB model, request/response schemas and the handlers so the
literal strings "draft"/"published" appear in one place only.
"""
from __future__ import annotations
import enum


class PostStatus(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


class StatusFilter(str, enum.Enum):
    """Admin listing filter; ALL disables status filtering."""
    DRAFT = "draft"
    PUBLISHED = "published"
    ALL = "all"


__all__ = [
    "PostStatus",
    "StatusFilter",
]
