import asyncio
import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from soluly.config import settings
from soluly.core.exceptions import SolulyError, SessionError
from soluly.database.supabase_client import get_service_supabase
from soluly.modules.auth import routes as auth_routes
from soluly.modules.roles import routes as roles_routes
from soluly.modules.project_access import routes as project_access_routes
from soluly.modules.session.context import get_session_registry

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])
app = FastAPI(
    title=settings.app_name,
    description="Roles, permission matrices and project scope for Soluly organizations",
    debug=settings.debug,
    redirect_slashes=False,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(SolulyError)
async def soluly_error_handler(request: Request, exc: SolulyError):
    """Role store, matrix and session errors as {"detail", "code", "context"}"""
    if isinstance(exc, SessionError):
        logger.warning(f"Authentication degraded on {request.url.path}: {exc.message}")
    else:
        logger.info(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    content = {"detail": exc.message, "code": exc.code}
    if exc.detail:
        content["context"] = exc.detail
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    detail = "Internal server error" if settings.is_production else str(exc)
    return JSONResponse(status_code=500, content={"detail": detail})


class SecurityHeadersMiddleware:
    """Hardening headers; API responses carry permissions and must not be cached"""

    HEADERS = [
        (b"X-Content-Type-Options", b"nosniff"),
        (b"X-Frame-Options", b"DENY"),
        (b"Referrer-Policy", b"no-referrer"),
    ]

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        extra = list(self.HEADERS)
        if scope["path"].startswith("/api/"):
            extra.append((b"Cache-Control", b"no-store"))

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].extend(extra)
            await send(message)

        await self.app(scope, receive, send_with_headers)


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

app.include_router(auth_routes.router, prefix="/api/v1")
app.include_router(roles_routes.router, prefix="/api/v1")
app.include_router(project_access_routes.router, prefix="/api/v1")


@app.on_event("startup")
async def startup_event():
    logger.info(
        f"{settings.app_name} starting ({settings.environment}); "
        f"actor cache ttl={settings.actor_cache_ttl_seconds}s, lookup timeout={settings.auth_timeout_seconds}s"
    )


@app.on_event("shutdown")
async def shutdown_event():
    registry = get_session_registry()
    logger.info(f"Dropping {len(registry)} cached session(s)")
    registry.clear()


def _ping_supabase() -> None:
    get_service_supabase().table("roles").select("id").limit(1).execute()


@app.get("/")
async def root():
    return {"service": settings.app_name, "status": "healthy"}


@app.get("/health")
@limiter.exempt
async def health():
    return {"status": "healthy"}


@app.get("/ready")
@limiter.exempt
async def ready():
    """Ready once the roles table answers within the actor lookup timeout."""
    try:
        await asyncio.wait_for(asyncio.to_thread(_ping_supabase), timeout=settings.auth_timeout_seconds)
    except Exception as e:
        logger.warning(f"Readiness check failed: {e}")
        return JSONResponse(status_code=503, content={"status": "unavailable"})
    return {"status": "ready"}
