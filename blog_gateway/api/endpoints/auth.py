"""
Session endpoints: login, logout and current identity.

Credentials are checked by the identity provider; the gateway only keeps an
author row per email so posts can reference it.
"""
import time
from fastapi import Depends, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from blog_gateway.api.deps import get_identity_provider, get_user_repository, require_auth
from blog_gateway.api.responses import envelope
from blog_gateway.errors import AuthError, GatewayError, StorageError
from blog_gateway.models.schemas.users import IdentityRead, LoginRequest, LoginResult, UserRead
from blog_gateway.services.auth_validator import AuthContext
from blog_gateway.services.identity import IdentityProvider, IdentityProviderError
from blog_gateway.services.repositories import UserRepository
from blog_gateway.utils import get_logger, log_business_event, log_performance

logger = get_logger(__name__)

async def login(
    credentials: LoginRequest,
    request: Request,
    provider: IdentityProvider = Depends(get_identity_provider),
    users: UserRepository = Depends(get_user_repository)
) -> JSONResponse:
    """Exchange email/password for a provider access token."""
    start_time = time.time()
    request_id = request.headers.get("X-Request-ID", "unknown")

    logger.info("Login attempt", email=credentials.email, request_id=request_id)

    try:
        session = await run_in_threadpool(provider.sign_in, credentials.email, credentials.password)
    except IdentityProviderError as e:
        logger.warning(
            "Login failed",
            email=credentials.email,
            error=str(e),
            request_id=request_id
        )
        raise AuthError("Invalid credentials")

    try:
        user, created = users.get_or_create(
            email=session.user.email or credentials.email,
            name=session.user.name
        )

        log_business_event(
            event_type="user_logged_in",
            details={"email": user.email, "author_created": created},
            user_id=user.id,
            request_id=request_id
        )

        duration_ms = (time.time() - start_time) * 1000
        log_performance(operation="login", duration_ms=duration_ms)

        result = LoginResult(user=UserRead.model_validate(user), token=session.access_token)
        return envelope(data=result, message="Login successful")

    except GatewayError:
        raise
    except Exception as e:
        logger.error(
            "Login failed after provider sign-in",
            error=str(e),
            email=credentials.email,
            request_id=request_id,
            exc_info=True
        )
        raise StorageError("Failed to complete login")

async def logout(
    request: Request,
    auth: AuthContext = Depends(require_auth),
    provider: IdentityProvider = Depends(get_identity_provider)
) -> JSONResponse:
    """Revoke the caller's provider session."""
    request_id = request.headers.get("X-Request-ID", "unknown")

    if auth.source == "provider" and auth.token:
        try:
            await run_in_threadpool(provider.sign_out, auth.token)
        except IdentityProviderError as e:
            logger.warning(
                "Session revocation failed",
                user_id=auth.user_id,
                error=str(e),
                request_id=request_id
            )
            raise AuthError("Session revocation failed; please sign in again")

    log_business_event(
        event_type="user_logged_out",
        details={"identity_id": auth.user_id, "source": auth.source},
        request_id=request_id
    )
    return envelope(message="Logged out successfully")

async def current_user(auth: AuthContext = Depends(require_auth)) -> JSONResponse:
    """Identity attached to the bearer token."""
    return envelope(data=IdentityRead(id=auth.user_id, email=auth.email, name=auth.name))
