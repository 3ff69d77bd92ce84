from .base import ResponseBase
from .posts import PostPayload, PostRead, AuthorRead
from .users import LoginRequest, LoginResult, UserRead, IdentityRead, CsrfTokenRead
from .pagination import PaginatedResponse, PaginationMeta, PaginationLinks

__all__ = [
    # Base
    "ResponseBase",

    # Posts
    "PostPayload",
    "PostRead",
    "AuthorRead",

    # Users / sessions
    "LoginRequest",
    "LoginResult",
    "UserRead",
    "IdentityRead",
    "CsrfTokenRead",

    # Pagination
    "PaginatedResponse",
    "PaginationMeta",
    "PaginationLinks",
]
