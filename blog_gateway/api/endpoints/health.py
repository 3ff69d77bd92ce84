"""
Liveness endpoint. Served before rate limiting and authentication.
"""
from fastapi import Depends
from fastapi.responses import JSONResponse

from blog_gateway.api.deps import get_gateway
from blog_gateway.api.responses import envelope
from blog_gateway.config import SERVICE_NAME, SERVICE_VERSION
from blog_gateway.state import GatewayState
from blog_gateway.utils.time import utc_timestamp

async def health_check(gateway: GatewayState = Depends(get_gateway)) -> JSONResponse:
    """Basic health check endpoint for load balancers."""
    return envelope(data={
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "store_backend": getattr(gateway.store, "backend", "custom"),
        "checked_at": utc_timestamp(),
    })
