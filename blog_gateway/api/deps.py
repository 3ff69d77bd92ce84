"""
Dependencies for database sessions, gateway state, authentication and list parameters.
"""
from dataclasses import dataclass
from typing import Generator, Optional
from fastapi import Depends, Header, Query, Request
from sqlalchemy.orm import Session
from blog_gateway.config import PAGINATION_SETTINGS
from blog_gateway.database import SessionLocal
from blog_gateway.errors import BadRequestError, ForbiddenError
from blog_gateway.models.db.enums import PostStatus, StatusFilter
from blog_gateway.services.auth_validator import AuthContext, AuthValidator
from blog_gateway.services.identity import IdentityProvider
from blog_gateway.services.repositories import PostRepository, UserRepository
from blog_gateway.state import GatewayState
from blog_gateway.utils import get_logger
from blog_gateway.utils.paths import ParsedPath, parse_path

logger = get_logger(__name__)

def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.
    Ensures proper session lifecycle management with automatic cleanup.

    Yields:
        Session: SQLAlchemy database session
    """
    db = SessionLocal()
    try:
        yield db
    except Exception as e:
        logger.error("Database session error", error=str(e), exc_info=True)
        db.rollback()
        raise
    finally:
        db.close()

def get_gateway(request: Request) -> GatewayState:
    return request.app.state.gateway

def get_auth_validator(gateway: GatewayState = Depends(get_gateway)) -> AuthValidator:
    return gateway.auth_validator

def get_identity_provider(gateway: GatewayState = Depends(get_gateway)) -> IdentityProvider:
    return gateway.identity_provider

def get_parsed_path(request: Request) -> ParsedPath:
    """Path as parsed by the gateway middleware (mount prefix already stripped)."""
    parsed = getattr(request.state, "parsed_path", None)
    if parsed is None:
        parsed = parse_path(request.url.path, get_gateway(request).mount_prefix)
    return parsed

async def require_auth(
    request: Request,
    authorization: Optional[str] = Header(None),
    validator: AuthValidator = Depends(get_auth_validator),
) -> AuthContext:
    """
    Resolve the caller identity or fail with 401.

    Raises:
        AuthError: missing/malformed header, unknown token, or provider failure
    """
    context = await validator.validate(authorization, require_auth=True)
    request.state.auth = context
    logger.debug("Caller authenticated", user_id=context.user_id, source=context.source)
    return context

async def require_csrf(
    request: Request,
    gateway: GatewayState = Depends(get_gateway),
) -> None:
    """Enforce the CSRF header on mutating admin calls when protection is enabled."""
    csrf = gateway.csrf
    if not csrf.enabled:
        return
    token = request.headers.get(csrf.header_name)
    if not await csrf.verify(token):
        logger.warning(
            "CSRF token rejected",
            method=request.method,
            path=request.url.path,
            token_present=bool(token)
        )
        raise ForbiddenError("Invalid or missing CSRF token")

def get_post_repository(db: Session = Depends(get_db)) -> PostRepository:
    return PostRepository(db)

def get_user_repository(db: Session = Depends(get_db)) -> UserRepository:
    return UserRepository(db)

@dataclass(frozen=True)
class ListParams:
    page: int
    limit: int
    search: Optional[str] = None

def _parse_positive_int(name: str, raw: Optional[str], default: int) -> int:
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise BadRequestError(f"'{name}' must be an integer")
    if value < 1:
        raise BadRequestError(f"'{name}' must be >= 1")
    return value

def get_list_params(
    page: Optional[str] = Query(None, description="1-based page number"),
    limit: Optional[str] = Query(None, description="Page size, capped at the configured maximum"),
    search: Optional[str] = Query(None, description="Case-insensitive substring of title or content"),
) -> ListParams:
    """
    Validate and return pagination/search parameters.

    Raises:
        BadRequestError: non-integer or non-positive page/limit, or an over-long search term
    """
    page_value = _parse_positive_int("page", page, 1)
    limit_value = min(
        _parse_positive_int("limit", limit, PAGINATION_SETTINGS["default_limit"]),
        PAGINATION_SETTINGS["max_limit"],
    )

    term = search.strip() if search else None
    if term and len(term) > PAGINATION_SETTINGS["max_search_length"]:
        raise BadRequestError(
            f"'search' must not exceed {PAGINATION_SETTINGS['max_search_length']} characters"
        )

    return ListParams(page=page_value, limit=limit_value, search=term or None)

def get_status_filter(
    status: Optional[str] = Query(None, description="draft, published or all"),
) -> Optional[PostStatus]:
    """Admin listing filter; None means every status."""
    if status is None or status.strip() == "":
        return None
    try:
        selected = StatusFilter(status.strip().lower())
    except ValueError:
        raise BadRequestError("'status' must be one of: draft, published, all")
    if selected == StatusFilter.ALL:
        return None
    return PostStatus(selected.value)
