"""Post publish-state and excerpt rules.

published_at is set exactly once, on the first transition into "published",
and is cleared whenever the post leaves that state.
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from blog_gateway.models.db.enums import PostStatus

EXCERPT_LENGTH = 100


def derive_excerpt(content: str, excerpt: Optional[str] = None) -> str:
    """Use the supplied excerpt, else the first 100 characters of content."""
    if excerpt is not None and excerpt.strip():
        return excerpt
    if len(content) <= EXCERPT_LENGTH:
        return content
    return content[:EXCERPT_LENGTH] + "..."


def resolve_published_at(
    current_status: Optional[PostStatus],
    current_published_at: Optional[datetime],
    new_status: PostStatus,
    now: datetime,
) -> Optional[datetime]:
    """published_at to store when a post moves from ``current_status`` to ``new_status``.

    ``current_status`` is None for a post being created.
    """
    if new_status != PostStatus.PUBLISHED:
        return None
    if current_status == PostStatus.PUBLISHED and current_published_at is not None:
        return current_published_at
    return now


__all__ = ["derive_excerpt", "resolve_published_at", "EXCERPT_LENGTH"]
