"""Post and author persistence.

Repositories wrap one request-scoped Session. Every SQLAlchemyError is rolled
back, logged, and re-raised as StorageError so handlers never leak driver
messages to clients.
"""
from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, selectinload

from blog_gateway.errors import StorageError
from blog_gateway.models.db import Post, PostStatus, User
from blog_gateway.utils import get_logger

logger = get_logger(__name__)

LIKE_ESCAPE = "\\"


def like_pattern(term: str) -> str:
    """Substring pattern with LIKE wildcards in ``term`` matched literally."""
    escaped = (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"


class _Repository:
    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _guard(self, operation: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                "Storage operation failed",
                operation=operation,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            raise StorageError() from e


class PostRepository(_Repository):
    def _filtered(self, status: Optional[PostStatus], search: Optional[str]) -> Query:
        query = self.db.query(Post)
        if status is not None:
            query = query.filter(Post.status == status)
        if search:
            pattern = like_pattern(search)
            query = query.filter(
                or_(
                    Post.title.ilike(pattern, escape=LIKE_ESCAPE),
                    Post.content.ilike(pattern, escape=LIKE_ESCAPE),
                )
            )
        return query

    def list_posts(
        self,
        *,
        page: int,
        limit: int,
        status: Optional[PostStatus] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[Post], int]:
        """One page of posts, newest first, plus the total matching count."""
        with self._guard("list_posts"):
            query = self._filtered(status, search)
            total = query.count()
            posts = (
                query.options(selectinload(Post.author))
                .order_by(Post.created_at.desc(), Post.id.desc())
                .offset((page - 1) * limit)
                .limit(limit)
                .all()
            )
        return posts, total

    def get_post(self, post_id: int, status: Optional[PostStatus] = None) -> Optional[Post]:
        with self._guard("get_post"):
            query = self.db.query(Post).options(selectinload(Post.author)).filter(Post.id == post_id)
            if status is not None:
                query = query.filter(Post.status == status)
            return query.first()

    def create_post(
        self,
        *,
        title: str,
        content: str,
        excerpt: Optional[str],
        status: PostStatus,
        published_at: Optional[datetime],
        author: Optional[User],
        created_at: Optional[datetime] = None,
    ) -> Post:
        with self._guard("create_post"):
            post = Post(
                title=title,
                content=content,
                excerpt=excerpt,
                status=status,
                published_at=published_at,
                author=author,
            )
            if created_at is not None:
                post.created_at = created_at
                post.updated_at = created_at
            self.db.add(post)
            self.db.commit()
            self.db.refresh(post)
        return post

    def update_post(
        self,
        post: Post,
        *,
        title: str,
        content: str,
        excerpt: Optional[str],
        status: PostStatus,
        published_at: Optional[datetime],
    ) -> Post:
        with self._guard("update_post"):
            post.title = title
            post.content = content
            post.excerpt = excerpt
            post.status = status
            post.published_at = published_at
            self.db.commit()
            self.db.refresh(post)
        return post

    def delete_post(self, post_id: int) -> int:
        """Delete by id; returns the number of rows removed (0 or 1)."""
        with self._guard("delete_post"):
            deleted = self.db.query(Post).filter(Post.id == post_id).delete(synchronize_session=False)
            self.db.commit()
        return deleted


class UserRepository(_Repository):
    def get_by_email(self, email: str) -> Optional[User]:
        with self._guard("get_user_by_email"):
            return self.db.query(User).filter(User.email == email).first()

    def get_or_create(self, email: str, name: Optional[str] = None) -> Tuple[User, bool]:
        """Author row for ``email``, created on first sight. Returns ``(user, created)``."""
        existing = self.get_by_email(email)
        if existing is not None:
            return existing, False
        with self._guard("create_user"):
            user = User(email=email, name=name or email.split("@", 1)[0])
            self.db.add(user)
            self.db.commit()
            self.db.refresh(user)
        logger.info("Author record created", user_id=user.id, email=email)
        return user, True


__all__ = ["PostRepository", "UserRepository", "like_pattern"]
