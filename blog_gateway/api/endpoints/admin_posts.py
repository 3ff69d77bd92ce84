"""
Admin post management. Every route here is registered with the auth
dependency, so handlers only run for authenticated callers.
"""
import time
from typing import Optional
from fastapi import Depends, Request
from fastapi.responses import JSONResponse

from blog_gateway.api.deps import (
    ListParams,
    get_list_params,
    get_parsed_path,
    get_post_repository,
    get_status_filter,
    get_user_repository,
    require_auth,
)
from blog_gateway.api.responses import envelope
from blog_gateway.errors import AuthError, GatewayError, NotFoundError, StorageError
from blog_gateway.models.db.enums import PostStatus
from blog_gateway.models.schemas.posts import PostPayload, PostRead
from blog_gateway.services.auth_validator import AuthContext
from blog_gateway.services.pagination import build_paginated_response
from blog_gateway.services.publishing import derive_excerpt, resolve_published_at
from blog_gateway.services.repositories import PostRepository, UserRepository
from blog_gateway.utils import get_logger, log_business_event, log_performance
from blog_gateway.utils.paths import ParsedPath
from blog_gateway.utils.time import utc_now

logger = get_logger(__name__)

async def list_posts(
    request: Request,
    params: ListParams = Depends(get_list_params),
    status: Optional[PostStatus] = Depends(get_status_filter),
    path: ParsedPath = Depends(get_parsed_path),
    auth: AuthContext = Depends(require_auth),
    posts: PostRepository = Depends(get_post_repository)
) -> JSONResponse:
    """All posts (any status unless filtered), newest first."""
    start_time = time.time()
    request_id = request.headers.get("X-Request-ID", "unknown")

    logger.info(
        "Admin post list requested",
        page=params.page,
        limit=params.limit,
        search=params.search,
        status=status.value if status else "all",
        identity_id=auth.user_id,
        request_id=request_id
    )

    try:
        items, total = posts.list_posts(
            page=params.page,
            limit=params.limit,
            status=status,
            search=params.search
        )
        payload = build_paginated_response(
            [PostRead.model_validate(p) for p in items],
            page=params.page,
            limit=params.limit,
            total=total,
            base_path=path.original_path,
            query=request.query_params
        )

        duration_ms = (time.time() - start_time) * 1000
        log_performance(
            operation="admin_list_posts",
            duration_ms=duration_ms,
            additional_data={"total": total, "returned": len(items)}
        )
        return envelope(data=payload)

    except GatewayError:
        raise
    except Exception as e:
        logger.error(
            "Failed to list posts",
            error=str(e),
            request_id=request_id,
            exc_info=True
        )
        raise StorageError("Failed to retrieve posts")

async def get_post(
    post_id: int,
    request: Request,
    posts: PostRepository = Depends(get_post_repository)
) -> JSONResponse:
    """A single post in any status."""
    post = posts.get_post(post_id)
    if post is None:
        logger.info(
            "Post not found",
            post_id=post_id,
            request_id=request.headers.get("X-Request-ID", "unknown")
        )
        raise NotFoundError("Post not found")
    return envelope(data=PostRead.model_validate(post))

async def create_post(
    payload: PostPayload,
    request: Request,
    auth: AuthContext = Depends(require_auth),
    posts: PostRepository = Depends(get_post_repository),
    users: UserRepository = Depends(get_user_repository)
) -> JSONResponse:
    """Create a post; drafts unless ``status`` says otherwise."""
    start_time = time.time()
    request_id = request.headers.get("X-Request-ID", "unknown")

    status = payload.status or PostStatus.DRAFT
    logger.info(
        "Post creation started",
        title=payload.title,
        status=status.value,
        identity_id=auth.user_id,
        request_id=request_id
    )

    if not auth.email:
        logger.warning("Authenticated identity has no email", identity_id=auth.user_id, request_id=request_id)
        raise AuthError("Authenticated identity has no email address")

    try:
        now = utc_now()
        author, author_created = users.get_or_create(email=auth.email, name=auth.name)
        post = posts.create_post(
            title=payload.title,
            content=payload.content,
            excerpt=derive_excerpt(payload.content, payload.excerpt),
            status=status,
            published_at=resolve_published_at(None, None, status, now),
            author=author,
            created_at=now
        )

        log_business_event(
            event_type="post_created",
            details={
                "post_id": post.id,
                "title": post.title,
                "status": post.status.value,
                "author_created": author_created
            },
            user_id=author.id,
            request_id=request_id
        )

        duration_ms = (time.time() - start_time) * 1000
        log_performance(
            operation="create_post",
            duration_ms=duration_ms,
            additional_data={"post_id": post.id}
        )

        return envelope(
            status_code=201,
            data=PostRead.model_validate(post),
            message="Post created successfully"
        )

    except GatewayError:
        raise
    except Exception as e:
        logger.error(
            "Post creation failed",
            error=str(e),
            title=payload.title,
            request_id=request_id,
            exc_info=True
        )
        raise StorageError("Failed to create post")

async def update_post(
    post_id: int,
    payload: PostPayload,
    request: Request,
    auth: AuthContext = Depends(require_auth),
    posts: PostRepository = Depends(get_post_repository)
) -> JSONResponse:
    """Replace title/content/excerpt; move between draft and published."""
    start_time = time.time()
    request_id = request.headers.get("X-Request-ID", "unknown")

    logger.info(
        "Post update started",
        post_id=post_id,
        requested_status=payload.status.value if payload.status else None,
        identity_id=auth.user_id,
        request_id=request_id
    )

    try:
        post = posts.get_post(post_id)
        if post is None:
            logger.warning("Post update failed: post not found", post_id=post_id, request_id=request_id)
            raise NotFoundError("Post not found")

        previous_status = post.status
        new_status = payload.status or previous_status
        published_at = resolve_published_at(previous_status, post.published_at, new_status, utc_now())

        post = posts.update_post(
            post,
            title=payload.title,
            content=payload.content,
            excerpt=derive_excerpt(payload.content, payload.excerpt),
            status=new_status,
            published_at=published_at
        )

        event_type = "post_updated"
        if previous_status != new_status:
            event_type = "post_published" if new_status == PostStatus.PUBLISHED else "post_unpublished"
        log_business_event(
            event_type=event_type,
            details={
                "post_id": post.id,
                "previous_status": previous_status.value,
                "status": new_status.value
            },
            user_id=post.user_id,
            request_id=request_id
        )

        duration_ms = (time.time() - start_time) * 1000
        log_performance(
            operation="update_post",
            duration_ms=duration_ms,
            additional_data={"post_id": post.id}
        )

        return envelope(data=PostRead.model_validate(post), message="Post updated successfully")

    except GatewayError:
        raise
    except Exception as e:
        logger.error(
            "Post update failed",
            error=str(e),
            post_id=post_id,
            request_id=request_id,
            exc_info=True
        )
        raise StorageError("Failed to update post")

async def delete_post(
    post_id: int,
    request: Request,
    auth: AuthContext = Depends(require_auth),
    posts: PostRepository = Depends(get_post_repository)
) -> JSONResponse:
    """Hard delete. A missing id is reported as deleted."""
    request_id = request.headers.get("X-Request-ID", "unknown")

    deleted = posts.delete_post(post_id)
    if not deleted:
        logger.warning(
            "Delete requested for missing post; reporting success",
            post_id=post_id,
            identity_id=auth.user_id,
            request_id=request_id
        )
    else:
        log_business_event(
            event_type="post_deleted",
            details={"post_id": post_id, "identity_id": auth.user_id},
            request_id=request_id
        )

    return envelope(message=f"Post {post_id} deleted successfully")
