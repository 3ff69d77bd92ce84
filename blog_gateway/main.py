"""
FastAPI application main module.

``create_app`` wires the gateway: per-app state (CORS resolver, store, rate
limiters, auth validator, CSRF service), the declarative route table, the
gateway and request-context middleware, and the envelope exception handlers.
"""
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import time
import uuid
import os
from contextlib import asynccontextmanager
from typing import Callable, Dict, List, Optional

from blog_gateway import config
from blog_gateway.api import ROUTE_TABLE, register_routes
from blog_gateway.api.deps import require_auth, require_csrf
from blog_gateway.api.responses import envelope
from blog_gateway.database import Base, engine
from blog_gateway.errors import BadRequestError, GatewayError, RateLimitError, ValidationError
from blog_gateway.services.auth_validator import AuthValidator
from blog_gateway.services.csrf import CsrfTokenService
from blog_gateway.services.identity import IdentityProvider, SupabaseIdentityProvider
from blog_gateway.state import GatewayState
from blog_gateway.utils import setup_logging, get_logger
from blog_gateway.utils.cors import CorsResolver
from blog_gateway.utils.paths import parse_path
from blog_gateway.utils.ratelimiter import build_rate_limiters, resolve_category
from blog_gateway.utils.store import Store, create_store

# Setup logging before creating the app
setup_logging(
    log_level=os.getenv("LOG_LEVEL", "INFO"),
    log_file=os.getenv("LOG_FILE"),
    enable_console=True
)

logger = get_logger(__name__)

# Served before admission control
UNLIMITED_PATHS = frozenset({"/health"})

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    logger.info("Application startup initiated")
    try:
        logger.info("Creating database tables")
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created successfully")
        logger.info("Application startup completed successfully")
        yield
    except Exception as e:  # pragma: no cover
        logger.error("Application startup failed", error=str(e), exc_info=True)
        raise
    finally:
        logger.info("Application shutdown initiated")
        close = getattr(app.state.gateway.store, "close", None)
        if close is not None:
            await close()
        logger.info("Application shutdown completed")

def _field_errors(errors: List[dict]) -> Dict[str, List[str]]:
    """Pydantic error list -> ``{field: [messages]}``."""
    fields: Dict[str, List[str]] = {}
    for err in errors:
        loc = [str(part) for part in err.get("loc", ()) if part != "body"]
        field = ".".join(loc) or "body"
        message = str(err.get("msg", "Invalid value"))
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        fields.setdefault(field, []).append(message)
    return fields

def create_app(
    identity_provider: Optional[IdentityProvider] = None,
    clock: Callable[[], float] = time.time,
    store: Optional[Store] = None,
) -> FastAPI:
    """
    Build a gateway application.

    Settings are read from ``blog_gateway.config`` at call time, so tests may
    patch the settings dicts before calling this.

    Args:
        identity_provider: Token/sign-in backend; Supabase when omitted
        clock: Epoch-seconds clock shared by the store and rate limiters
        store: Shared counter/token store; built from STORE_SETTINGS when omitted
    """
    app = FastAPI(
        title="Blog Gateway",
        description="""
    API gateway for a blog/CMS backend.

    ## Authentication
    Admin routes require a provider access token obtained from `POST /login`:
    ```
    Authorization: Bearer <access token>
    ```

    ## Rate Limiting
    Fixed window per client IP. Standard headers:
    `X-RateLimit-Limit`, `X-RateLimit-Remaining`, `X-RateLimit-Reset`.
    Defaults: 100 requests / 15 min; `POST /login` 5 / min.
    """,
        version=config.SERVICE_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    if store is None:
        store = create_store(config.STORE_SETTINGS, clock=clock)
    if identity_provider is None:
        identity_provider = SupabaseIdentityProvider(config.SUPABASE_URL, config.SUPABASE_SERVICE_ROLE_KEY)

    app.state.gateway = GatewayState(
        cors=CorsResolver.from_settings(config.CORS_SETTINGS),
        store=store,
        rate_limiters=build_rate_limiters(store, config.RATE_LIMIT_SETTINGS, clock=clock),
        identity_provider=identity_provider,
        auth_validator=AuthValidator.from_settings(identity_provider, config.AUTH_SETTINGS),
        csrf=CsrfTokenService.from_settings(store, config.CSRF_SETTINGS),
        clock=clock,
        mount_prefix=config.API_MOUNT_PREFIX,
    )

    register_routes(app, ROUTE_TABLE)

    # Request ID and comprehensive logging middleware (inner)
    @app.middleware("http")
    async def add_request_context_and_logging(request: Request, call_next):
        """
        Add request ID, timing, and request/response logging.
        """
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        request.state.start_time = time.time()

        logger.info(
            "Request started",
            method=request.method,
            path=request.url.path,
            user_agent=request.headers.get("User-Agent"),
            remote_addr=request.client.host if request.client else "unknown",
            request_id=request_id
        )

        response = await call_next(request)

        process_time = time.time() - request.state.start_time
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = str(round(process_time * 1000, 2))
        response.headers["X-Content-Type-Options"] = "nosniff"

        logger.info(
            "Request completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            process_time_ms=round(process_time * 1000, 2),
            request_id=request_id
        )
        return response

    # Gateway middleware (outer): preflight, prefix stripping, admission, catch-all
    @app.middleware("http")
    async def gateway_middleware(request: Request, call_next):
        """
        Preflight -> admission -> routing/dispatch -> header merge.

        OPTIONS requests get a bare 204 with CORS headers. The mount prefix is
        stripped before routing. Every other path except /health is admitted
        by the fixed-window limiter of its category. Anything the handlers let
        escape becomes a generic 500; CORS and rate-limit headers are merged
        into every response, errors included.
        """
        gateway: GatewayState = request.app.state.gateway
        cors_headers = gateway.cors.resolve(request.headers.get("Origin"))

        if request.method == "OPTIONS":
            return Response(status_code=204, headers=cors_headers)

        parsed = parse_path(request.url.path, gateway.mount_prefix)
        request.scope["path"] = parsed.clean_path
        request.state.parsed_path = parsed

        rate_headers: Dict[str, str] = {}
        if parsed.clean_path not in UNLIMITED_PATHS:
            category = resolve_category(request.method, parsed.clean_path)
            decision = await gateway.limiter_for(category).check(request)
            rate_headers = decision.headers()
            if not decision.allowed:
                logger.warning(
                    "Rate limit exceeded",
                    category=decision.category,
                    limit=decision.limit,
                    reset_epoch=decision.reset_epoch,
                    method=request.method,
                    path=parsed.clean_path,
                    request_id=request.headers.get("X-Request-ID")
                )
                return envelope(
                    status_code=RateLimitError.status_code,
                    message=RateLimitError.default_message,
                    headers={
                        **cors_headers,
                        **rate_headers,
                        "Retry-After": str(decision.retry_after(gateway.clock())),
                    },
                )

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                "Unhandled exception",
                error=str(exc),
                error_type=type(exc).__name__,
                request_id=getattr(request.state, "request_id", "unknown"),
                path=parsed.clean_path,
                method=request.method,
                exc_info=True
            )
            response = envelope(status_code=500, message="Internal server error")

        for name, value in {**cors_headers, **rate_headers}.items():
            response.headers[name] = value
        return response

    # Custom exception handlers
    @app.exception_handler(GatewayError)
    async def gateway_error_handler(request: Request, exc: GatewayError):
        """Render typed gateway errors into the envelope."""
        return _render_gateway_error(request, exc)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Body validation -> 422 field map; bad JSON or bad path/query values -> 400.

        The request body is parsed before route dependencies run, so the auth
        and CSRF guards of the matched route are applied here first.
        """
        request_id = getattr(request.state, "request_id", "unknown")
        errors = exc.errors()

        logger.warning(
            "Request validation failed",
            errors=errors,
            request_id=request_id,
            path=request.url.path,
            method=request.method
        )

        try:
            await _run_route_guards(request)
            if any(err.get("type") == "json_invalid" for err in errors):
                raise BadRequestError("Malformed JSON body")

            body_errors = [err for err in errors if err.get("loc", ("",))[0] == "body"]
            if body_errors:
                raise ValidationError(_field_errors(body_errors))
        except GatewayError as e:
            return _render_gateway_error(request, e)

        return envelope(status_code=400, message="Invalid request parameters", errors=_field_errors(errors))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Unmatched path or method -> 404 with routing diagnostics."""
        request_id = getattr(request.state, "request_id", "unknown")

        if exc.status_code in (404, 405):
            parsed = getattr(request.state, "parsed_path", None)
            if parsed is None:
                parsed = parse_path(request.url.path, request.app.state.gateway.mount_prefix)
            logger.warning(
                "Route not found",
                method=request.method,
                path=parsed.clean_path,
                request_id=request_id
            )
            return envelope(status_code=404, message="Endpoint not found", debug=parsed.debug(request.method))

        logger.warning(
            "HTTP exception",
            status_code=exc.status_code,
            detail=exc.detail,
            request_id=request_id,
            path=request.url.path,
            method=request.method
        )
        return envelope(status_code=exc.status_code, message=str(exc.detail), headers=exc.headers)

    return app

async def _run_route_guards(request: Request) -> None:
    """Apply the matched route's auth and CSRF dependencies, in route order."""
    route = request.scope.get("route")
    if route is None:
        return
    gateway: GatewayState = request.app.state.gateway
    for dependency in getattr(route, "dependencies", ()):
        if dependency.dependency is require_auth:
            await require_auth(request, request.headers.get("Authorization"), gateway.auth_validator)
        elif dependency.dependency is require_csrf:
            await require_csrf(request, gateway)

def _render_gateway_error(request: Request, exc: GatewayError):
    request_id = getattr(request.state, "request_id", "unknown")
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "Request failed",
        status_code=exc.status_code,
        error_type=type(exc).__name__,
        detail=exc.message,
        request_id=request_id,
        path=request.url.path,
        method=request.method
    )
    return envelope(
        status_code=exc.status_code,
        message=exc.message,
        errors=getattr(exc, "errors", None),
        headers=exc.headers,
    )

app = create_app()

# Development server configuration
if __name__ == "__main__":
    import uvicorn

    logger.info("Starting development server")

    uvicorn.run(
        "blog_gateway.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=True,
        reload_dirs=["blog_gateway"],
        log_level="info",
        access_log=True
    )
