"""
CSRF token issuance.
"""
from fastapi import Depends, Request
from fastapi.responses import JSONResponse

from blog_gateway.api.deps import get_gateway
from blog_gateway.api.responses import envelope
from blog_gateway.models.schemas.users import CsrfTokenRead
from blog_gateway.state import GatewayState
from blog_gateway.utils import get_logger

logger = get_logger(__name__)

async def issue_csrf_token(
    request: Request,
    gateway: GatewayState = Depends(get_gateway)
) -> JSONResponse:
    """Issue a token for the ``X-CSRF-Token`` header of admin writes."""
    token = await gateway.csrf.issue()
    logger.debug(
        "CSRF token issued",
        ttl_seconds=gateway.csrf.ttl_seconds,
        request_id=request.headers.get("X-Request-ID", "unknown")
    )
    return envelope(data=CsrfTokenRead(token=token, expires_in=gateway.csrf.ttl_seconds))
