"""
Domain services: identity, auth, persistence, pagination and CSRF.
"""
from .auth_validator import AuthContext, AuthValidator, extract_bearer_token
from .csrf import CsrfTokenService
from .identity import (
    IdentityProvider,
    IdentityProviderError,
    IdentitySession,
    IdentityUser,
    SupabaseIdentityProvider,
)
from .pagination import build_paginated_response
from .publishing import derive_excerpt, resolve_published_at
from .repositories import PostRepository, UserRepository

__all__ = [
    "AuthContext",
    "AuthValidator",
    "extract_bearer_token",
    "CsrfTokenService",
    "IdentityProvider",
    "IdentityProviderError",
    "IdentitySession",
    "IdentityUser",
    "SupabaseIdentityProvider",
    "build_paginated_response",
    "derive_excerpt",
    "resolve_published_at",
    "PostRepository",
    "UserRepository",
]
