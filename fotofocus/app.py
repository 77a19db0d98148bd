"""FotoFocus HTTP application."""
from __future__ import annotations

from contextlib import asynccontextmanager
import logging
import os

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware

from fotofocus.core.config import Settings, get_settings
from fotofocus.core.errors import AppError, StorageError, ValidationError
from fotofocus.core.mailer import Mailer
from fotofocus.core.storage import LocalBlobStorage
from fotofocus.db.session import Database
from fotofocus.repositories.account_repository import AccountRepository
from fotofocus.repositories.content_repository import ContentRepository
from fotofocus.repositories.feed_repository import FeedRepository
from fotofocus.repositories.follow_repository import FollowRepository
from fotofocus.routers import auth as auth_router
from fotofocus.routers import challenges as challenges_router
from fotofocus.routers import photos as photos_router
from fotofocus.routers import posts as posts_router
from fotofocus.routers import users as users_router
from fotofocus.services.auth_service import AuthService
from fotofocus.services.cascade_service import CascadeDeletionEngine
from fotofocus.services.content_service import ContentService
from fotofocus.services.feed_service import FeedService
from fotofocus.services.follow_service import FollowService
from fotofocus.services.profile_service import ProfileService
from fotofocus.services.registration_service import RegistrationService
from fotofocus.services.token_service import TokenService

logger = logging.getLogger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Baseline security headers for a JSON API."""

    def __init__(self, app, *, enforce_hsts: bool) -> None:
        super().__init__(app)
        self._enforce_hsts = enforce_hsts

    async def dispatch(self, request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        if self._enforce_hsts:
            response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
        return response


def _error_body(error: AppError) -> dict:
    return {"error": error.kind, "message": error.message}


async def _app_error_handler(request: Request, exc: AppError):
    return JSONResponse(_error_body(exc), status_code=exc.status_code)


async def _request_validation_handler(request: Request, exc: RequestValidationError):
    first = (exc.errors() or [{}])[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    error = ValidationError(f"{location}: {message}" if location else message)
    return JSONResponse(_error_body(error), status_code=error.status_code)


async def _storage_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Unhandled storage failure on %s %s", request.method, request.url.path)
    error = StorageError()
    return JSONResponse(_error_body(error), status_code=error.status_code)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _wire_services(app: FastAPI, settings: Settings, database: Database, mailer, storage) -> None:
    accounts = AccountRepository(database)
    content = ContentRepository(database)
    feed = FeedRepository(database)
    follows = FollowRepository(database)
    tokens = TokenService(settings.jwt_secret, settings.token_ttl_seconds)

    state = app.state
    state.settings = settings
    state.database = database
    state.storage = storage
    state.tokens = tokens
    state.accounts = accounts
    state.registration = RegistrationService(accounts, tokens, mailer, settings)
    state.auth = AuthService(accounts, tokens, mailer, settings)
    state.content = ContentService(content, storage)
    state.feed = FeedService(feed, storage)
    state.follows = FollowService(follows, accounts)
    state.profiles = ProfileService(accounts, content, follows, storage)
    state.cascade = CascadeDeletionEngine(database, storage)


def create_app(
    settings: Settings | None = None,
    *,
    database: Database | None = None,
    mailer=None,
    storage=None,
) -> FastAPI:
    """Build the app; collaborators can be injected (tests pass fakes)."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    database = database or Database(settings.database_url)
    mailer = mailer or Mailer(settings)
    storage = storage or LocalBlobStorage(settings.uploads_dir)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        database.connect()
        database.create_all()
        logger.info("FotoFocus API started (env=%s, db=%s)", settings.app_env, database.dialect)
        try:
            yield
        finally:
            database.disconnect()

    app = FastAPI(title="FotoFocus API", lifespan=lifespan)
    _wire_services(app, settings, database, mailer, storage)

    allowed = set(settings.cors_origins)
    if not settings.is_production:
        allowed.update({"http://localhost:3000", "http://127.0.0.1:3000", "http://localhost:8080"})
    if allowed:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=sorted(allowed),
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            allow_headers=["*"],
        )
    app.add_middleware(SecurityHeadersMiddleware, enforce_hsts=settings.is_production)

    app.add_exception_handler(AppError, _app_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(SQLAlchemyError, _storage_error_handler)

    os.makedirs(settings.uploads_dir, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=settings.uploads_dir), name="uploads")

    @app.get("/health")
    def health():
        return {"ok": True}

    app.include_router(auth_router.router)
    app.include_router(users_router.router)
    app.include_router(challenges_router.router)
    app.include_router(photos_router.router)
    app.include_router(posts_router.router)
    return app
