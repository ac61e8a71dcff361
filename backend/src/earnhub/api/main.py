"""Main FastAPI application for EarnHub."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware

from earnhub.api.account import router as account_router
from earnhub.api.admin import router as admin_router
from earnhub.api.auth import router as auth_router
from earnhub.api.deps import PACKAGE_DIR, templates
from earnhub.api.pages import router as pages_router
from earnhub.api.rate_limit import configure_limiter
from earnhub.auth.local import LocalAuthService
from earnhub.auth.middleware import AuthRedirect
from earnhub.errors import EarnHubError
from earnhub.logging_config import configure_logging, get_logger
from earnhub.settings import Settings, check_production_secrets, settings as default_settings
from earnhub.storage.db import Database

logger = get_logger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses.

    These headers protect against common web vulnerabilities:
    - Clickjacking
    - MIME sniffing
    - Information disclosure
    """

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        # Prevent clickjacking - don't allow embedding in iframes
        response.headers["X-Frame-Options"] = "DENY"

        # Prevent MIME type sniffing
        response.headers["X-Content-Type-Options"] = "nosniff"

        # Referrer Policy - don't leak URLs to other sites
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        # Content Security Policy - pages are server-rendered from our own assets
        response.headers["Content-Security-Policy"] = (
            "default-src 'self'; "
            "script-src 'self'; "
            "style-src 'self' 'unsafe-inline'; "
            "img-src 'self' data:; "
            "form-action 'self'"
        )

        # Permissions Policy - disable unnecessary browser features
        response.headers["Permissions-Policy"] = (
            "accelerometer=(), "
            "camera=(), "
            "geolocation=(), "
            "microphone=(), "
            "usb=()"
        )

        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    logger.info("app_starting", env=app.state.settings.env)

    app.state.db.create_tables()

    yield

    # Shutdown
    app.state.db.dispose()
    logger.info("app_shutting_down")


def _error_response(request: Request, exc: EarnHubError):
    if exc.as_json:
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})
    return templates.TemplateResponse(
        request,
        "error.html",
        {"message": exc.message},
        status_code=exc.status_code,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Map the error taxonomy onto HTTP responses."""

    @app.exception_handler(AuthRedirect)
    async def auth_redirect_handler(request: Request, exc: AuthRedirect):
        return RedirectResponse(url=exc.url, status_code=302)

    @app.exception_handler(EarnHubError)
    async def earnhub_error_handler(request: Request, exc: EarnHubError):
        if exc.status_code >= 500:
            logger.error("request_failed", path=request.url.path, error=exc.message)
        else:
            logger.info("request_rejected", path=request.url.path, error=type(exc).__name__)
        return _error_response(request, exc)

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError):
        logger.error("unhandled_database_error", path=request.url.path, error=str(exc), exc_info=exc)
        return templates.TemplateResponse(
            request,
            "error.html",
            {"message": "Internal server error"},
            status_code=500,
        )

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        return JSONResponse(
            status_code=429,
            content={"error": "Too many requests. Please try again later."},
        )


def create_app(settings: Settings | None = None, database: Database | None = None) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        settings: Configuration (defaults to the environment)
        database: Database handle (defaults to one built from ``settings.database_url``)

    Returns:
        Configured FastAPI app
    """
    settings = settings or default_settings
    check_production_secrets(settings)
    configure_logging(settings)

    # Hide API docs in production
    is_production = settings.is_production

    app = FastAPI(
        title="EarnHub",
        description="Balance, referral bonuses, daily rewards and withdrawals",
        version="1.0.0",
        docs_url=None if is_production else "/api/docs",
        redoc_url=None if is_production else "/api/redoc",
        openapi_url=None if is_production else "/api/openapi.json",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.db = database or Database(settings.database_url)
    app.state.auth_service = LocalAuthService(settings)

    app.add_middleware(SecurityHeadersMiddleware)

    app.state.limiter = configure_limiter(settings)

    register_exception_handlers(app)

    app.mount("/static", StaticFiles(directory=str(PACKAGE_DIR / "static")), name="static")

    app.include_router(pages_router)
    app.include_router(auth_router)
    app.include_router(account_router)
    app.include_router(admin_router)

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "version": "1.0.0",
            "env": settings.env,
        }

    return app
