"""FastAPI entrypoint for the QR table ordering service."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from qrorder.api.api import api_router
from qrorder.api.responses import error_response
from qrorder.core.config import Settings, settings as default_settings
from qrorder.core.errors import AppError
from qrorder.db.base import Base
from qrorder.db.session import build_engine, build_session_factory
from qrorder.services.identity import IdentityProvider

logger = logging.getLogger(__name__)

DEFAULT_JWT_SECRET = "dev-only-change-me-to-a-long-random-secret"
DEFAULT_SESSION_SECRET = "dev-session-secret-change-me"


def _log_startup_warnings(settings: Settings) -> None:
    if settings.is_production and settings.jwt_secret_key == DEFAULT_JWT_SECRET:
        logger.warning("[BOOTSTRAP] JWT_SECRET_KEY not set in production; using development fallback secret.")
    if settings.is_production and settings.session_secret == DEFAULT_SESSION_SECRET:
        logger.warning("[BOOTSTRAP] SESSION_SECRET not set in production; using development fallback secret.")
    if settings.role_override_private_network:
        logger.warning("[AUTH] Role overrides are accepted from loopback and private-network peers.")
    if not settings.is_production:
        logger.warning("[AUTH] Non-production mode: role override headers and query parameters are honoured.")


def create_app(settings: Settings | None = None, engine: Engine | None = None) -> FastAPI:
    """Build the application with its own settings, engine and identity provider."""
    settings = settings or default_settings
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    engine = engine or build_engine(settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        _log_startup_warnings(settings)
        if settings.auto_create_schema:
            Base.metadata.create_all(bind=engine)
        yield

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.identity = IdentityProvider(settings)

    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret,
        same_site="lax",
        https_only=settings.is_production,
        max_age=60 * 60 * 24 * 7,
    )
    app.include_router(api_router, prefix="/api")

    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return error_response(exc.message, exc.status_code)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return error_response(str(exc.detail), exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        message = "Invalid request"
        if errors:
            location = ".".join(str(part) for part in errors[0].get("loc", ()) if part != "body")
            message = f"Invalid request: {location} {errors[0].get('msg', '')}".strip()
        return error_response(message, 400)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return error_response("Internal server error", 500)

    return app


app = create_app()
