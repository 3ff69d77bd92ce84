"""
Public post endpoints. Only published posts are visible here.
"""
import time
from fastapi import Depends, Request
from fastapi.responses import JSONResponse

from blog_gateway.api.deps import ListParams, get_list_params, get_parsed_path, get_post_repository
from blog_gateway.api.responses import envelope
from blog_gateway.errors import GatewayError, NotFoundError, StorageError
from blog_gateway.models.db.enums import PostStatus
from blog_gateway.models.schemas.posts import PostRead
from blog_gateway.services.pagination import build_paginated_response
from blog_gateway.services.repositories import PostRepository
from blog_gateway.utils import get_logger, log_performance
from blog_gateway.utils.paths import ParsedPath

logger = get_logger(__name__)

async def list_published_posts(
    request: Request,
    params: ListParams = Depends(get_list_params),
    path: ParsedPath = Depends(get_parsed_path),
    posts: PostRepository = Depends(get_post_repository)
) -> JSONResponse:
    """Published posts, newest first, with optional search."""
    start_time = time.time()
    request_id = request.headers.get("X-Request-ID", "unknown")

    logger.info(
        "Public post list requested",
        page=params.page,
        limit=params.limit,
        search=params.search,
        request_id=request_id
    )

    try:
        items, total = posts.list_posts(
            page=params.page,
            limit=params.limit,
            status=PostStatus.PUBLISHED,
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
            operation="list_published_posts",
            duration_ms=duration_ms,
            additional_data={"total": total, "returned": len(items)}
        )
        return envelope(data=payload)

    except GatewayError:
        raise
    except Exception as e:
        logger.error(
            "Failed to list published posts",
            error=str(e),
            request_id=request_id,
            exc_info=True
        )
        raise StorageError("Failed to retrieve posts")

async def get_published_post(
    post_id: int,
    request: Request,
    posts: PostRepository = Depends(get_post_repository)
) -> JSONResponse:
    """A single published post; drafts are reported as missing."""
    request_id = request.headers.get("X-Request-ID", "unknown")

    post = posts.get_post(post_id, status=PostStatus.PUBLISHED)
    if post is None:
        logger.info("Published post not found", post_id=post_id, request_id=request_id)
        raise NotFoundError("Post not found")

    return envelope(data=PostRead.model_validate(post))
