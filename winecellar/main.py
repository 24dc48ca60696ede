"""FastAPI application entry point for WineCellar."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from winecellar import __version__
from winecellar.config import Settings, get_settings
from winecellar.database import close_db, init_db
from winecellar.errors import CellarError
from winecellar.routers.wines import router as wines_router
from winecellar.routers.wines._common import render, templates

logger = logging.getLogger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware to add security headers to all responses."""

    def __init__(self, app, enforce_https: bool = False) -> None:
        super().__init__(app)
        self.enforce_https = enforce_https

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        # Bootstrap and htmx come from jsDelivr; thumbnails are inlined as data: URIs.
        response.headers["Content-Security-Policy"] = (
            "default-src 'self'; "
            "script-src 'self' https://cdn.jsdelivr.net; "
            "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
            "img-src 'self' data:; "
            "frame-ancestors 'none'; "
            "form-action 'self'; "
            "base-uri 'self'; "
            "object-src 'none';"
        )

        if self.enforce_https:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response


def _error_fragment(request: Request, message: str, status_code: int, css_class: str) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "error.html",
        {"message": message, "css_class": css_class},
        status_code=status_code,
    )


async def cellar_error_handler(request: Request, exc: CellarError) -> HTMLResponse:
    """User-caused failures: the message is safe to show."""
    logger.warning("%s %s: %s", request.method, request.url.path, exc.message)
    return _error_fragment(request, exc.message, exc.status_code, "text-bg-warning")


async def validation_error_handler(request: Request, exc: RequestValidationError) -> HTMLResponse:
    """Missing or mistyped form fields."""
    problems = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ())[1:]) or "request"
        problems.append(f"{field}: {error.get('msg', 'invalid value')}")
    message = "Invalid input - " + "; ".join(problems)
    logger.warning("%s %s: %s", request.method, request.url.path, message)
    return _error_fragment(request, message, 400, "text-bg-warning")


async def internal_error_handler(request: Request, exc: Exception) -> HTMLResponse:
    """Anything else: log the details, show a generic message."""
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return _error_fragment(request, "Internal Error", 500, "text-bg-danger")


def configure_logging(debug: bool = False) -> None:
    """Send application logs to stderr alongside uvicorn's."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Open the database at startup and close it at shutdown.

    A missing database URL raises ConfigurationError here, which stops the server.
    """
    app_settings: Settings = app.state.settings
    configure_logging(app_settings.debug)

    app.state.db = await init_db(app_settings.database_url, echo=app_settings.database_echo)
    logger.info("%s %s started", app_settings.app_name, __version__)

    yield

    await close_db(app.state.db)
    app.state.db = None
    logger.info("Shutting down")


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Build the application.

    Args:
        app_settings: Settings to run with. Defaults to the global settings.
    """
    app_settings = app_settings or get_settings()

    app = FastAPI(
        title=app_settings.app_name,
        description="Wine cellar inventory with bottle ledger and label photos",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = app_settings
    app.state.db = None

    app.add_exception_handler(CellarError, cellar_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, internal_error_handler)

    app.add_middleware(SecurityHeadersMiddleware, enforce_https=app_settings.enforce_https)

    @app.get("/", tags=["Root"], response_class=HTMLResponse)
    async def index(request: Request) -> HTMLResponse:
        """Page shell; the wine table is loaded into it by htmx."""
        return render(request, "index.html")

    @app.get("/health", tags=["Health"])
    async def health_check() -> JSONResponse:
        """Health check endpoint."""
        return JSONResponse(
            content={
                "status": "healthy",
                "version": __version__,
                "app_name": app_settings.app_name,
            }
        )

    app.include_router(wines_router, tags=["Wines"])

    return app


app = create_app()
