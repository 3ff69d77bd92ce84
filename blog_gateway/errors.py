"""Typed gateway errors.

Handlers and services raise these; the application-level exception handler in
``blog_gateway.main`` renders them into the standard response envelope. The
message is always safe to show to API clients.
"""
from __future__ import annotations

from typing import Dict, List, Optional


class GatewayError(Exception):
    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, headers: Optional[Dict[str, str]] = None):
        self.message = message or self.default_message
        self.headers = headers or {}
        super().__init__(self.message)


class BadRequestError(GatewayError):
    """Malformed request (query parameters, JSON syntax)."""
    status_code = 400
    default_message = "Bad request"


class AuthError(GatewayError):
    """Missing, malformed or rejected credentials. Caller must re-authenticate."""
    status_code = 401
    default_message = "Unauthorized"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class ForbiddenError(GatewayError):
    status_code = 403
    default_message = "Forbidden"


class NotFoundError(GatewayError):
    status_code = 404
    default_message = "Not found"


class ValidationError(GatewayError):
    """Field-level validation failure; ``errors`` maps field name to messages."""
    status_code = 422
    default_message = "Validation failed"

    def __init__(self, errors: Dict[str, List[str]], message: Optional[str] = None):
        super().__init__(message)
        self.errors = errors


class RateLimitError(GatewayError):
    status_code = 429
    default_message = "Too Many Requests"


class StorageError(GatewayError):
    """Post store failure. Not retried; details go to the log, not the client."""
    status_code = 500
    default_message = "Database error"


__all__ = [
    "GatewayError",
    "BadRequestError",
    "AuthError",
    "ForbiddenError",
    "NotFoundError",
    "ValidationError",
    "RateLimitError",
    "StorageError",
]
