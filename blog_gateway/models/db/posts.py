from __future__ import annotations
"""SQLAlchemy model for blog posts."""
from datetime import datetime
from typing import TYPE_CHECKING
from sqlalchemy import Integer, String, Text, ForeignKey, DateTime, Enum, CheckConstraint
from sqlalchemy.orm import relationship, Mapped, mapped_column

if TYPE_CHECKING:  # pragma: no cover
    from .users import User
from blog_gateway.database import Base
from blog_gateway.utils.time import utc_now
from .enums import PostStatus

class Post(Base):
    __tablename__ = "posts"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    title: Mapped[str] = mapped_column(String(255))
    content: Mapped[str] = mapped_column(Text)
    excerpt: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Stored by value ("draft"/"published") so the table stays readable by other clients
    status: Mapped[PostStatus] = mapped_column(
        Enum(PostStatus, native_enum=False, length=20, values_callable=lambda e: [m.value for m in e]),
        default=PostStatus.DRAFT,
        index=True,
    )
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    user_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    author: Mapped["User | None"] = relationship("User", back_populates="posts")

    __table_args__ = (
        CheckConstraint(
            "(status = 'published' AND published_at IS NOT NULL) "
            "OR (status <> 'published' AND published_at IS NULL)",
            name="published_at_matches_status",
        ),
    )
