"""Pagination envelope builder.

Turns ``(page, limit, total)`` plus the request's base path and query string
into the ``{data, meta, links}`` payload. Pure; no I/O.
"""
from __future__ import annotations

import math
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple, TypeVar, Union
from urllib.parse import urlencode

from blog_gateway.models.schemas.pagination import PaginatedResponse, PaginationLinks, PaginationMeta

T = TypeVar("T")

QueryParams = Union[Mapping[str, str], Iterable[Tuple[str, str]]]


def last_page_for(total: int, limit: int) -> int:
    if total <= 0:
        return 0
    return math.ceil(total / limit)


def build_meta(page: int, limit: int, total: int) -> PaginationMeta:
    """``from``/``to`` are 1-based item positions, null when the page is empty."""
    offset = (page - 1) * limit
    has_items = total > 0 and offset < total
    return PaginationMeta(
        current_page=page,
        per_page=limit,
        total=total,
        last_page=last_page_for(total, limit),
        from_=offset + 1 if has_items else None,
        to=min(offset + limit, total) if has_items else None,
    )


def _query_items(query: Optional[QueryParams]) -> List[Tuple[str, str]]:
    if query is None:
        return []
    if hasattr(query, "multi_items"):
        return list(query.multi_items())
    if isinstance(query, Mapping):
        return [(k, str(v)) for k, v in query.items()]
    return [(k, str(v)) for k, v in query]


def page_url(base_path: str, query: Optional[QueryParams], page: int) -> str:
    """``base_path`` with every query parameter kept except ``page``, which is replaced."""
    items = [(k, v) for k, v in _query_items(query) if k != "page"]
    items.append(("page", str(page)))
    return f"{base_path}?{urlencode(items)}"


def build_links(
    page: int,
    limit: int,
    total: int,
    base_path: str,
    query: Optional[QueryParams] = None,
) -> PaginationLinks:
    last_page = last_page_for(total, limit)
    return PaginationLinks(
        first=page_url(base_path, query, 1) if total > 0 else None,
        last=page_url(base_path, query, last_page) if total > 0 else None,
        prev=page_url(base_path, query, page - 1) if page > 1 else None,
        next=page_url(base_path, query, page + 1) if page < last_page else None,
    )


def build_paginated_response(
    items: Sequence[T],
    *,
    page: int,
    limit: int,
    total: int,
    base_path: str,
    query: Optional[QueryParams] = None,
) -> PaginatedResponse[T]:
    if page < 1 or limit < 1:
        raise ValueError("page and limit must be >= 1")
    return PaginatedResponse(
        data=list(items),
        meta=build_meta(page, limit, total),
        links=build_links(page, limit, total, base_path, query),
    )


__all__ = ["build_meta", "build_links", "build_paginated_response", "last_page_for", "page_url"]
