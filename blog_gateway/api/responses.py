"""
Envelope rendering helpers shared by endpoints, middleware and exception handlers.
"""
from typing import Any, Dict, List, Mapping, Optional
from fastapi.responses import JSONResponse

from blog_gateway.models.schemas.base import ResponseBase

def envelope(
    status_code: int = 200,
    data: Any = None,
    message: Optional[str] = None,
    errors: Optional[Dict[str, List[str]]] = None,
    debug: Optional[Dict[str, Any]] = None,
    headers: Optional[Mapping[str, str]] = None,
) -> JSONResponse:
    """Render ``{data?, message?, errors?, debug?, timestamp}`` as a JSONResponse."""
    body = ResponseBase(data=data, message=message, errors=errors, debug=debug)
    return JSONResponse(status_code=status_code, content=body.to_content(), headers=dict(headers or {}))
