"""FastAPI application entry point."""
import asyncio
import contextlib
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from api.routers import (
    admin,
    auth,
    collections,
    folders,
    health,
    photos,
    players,
    share,
    tags,
    teams,
    upload,
    users,
)
from core.config import get_settings
from core.storage import S3ObjectStorage, StorageError, set_storage
from core.user_cache import UserCache, set_user_cache
from db.session import get_auth_session_factory
from services.user_service import make_user_loader

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None]:
    """Manage application lifespan - startup and shutdown."""
    app_settings = get_settings()

    # Startup: object storage client, built once after settings validated
    set_storage(S3ObjectStorage.from_settings(app_settings))

    # Startup: user enrichment cache and its periodic sweep
    user_cache = UserCache(
        make_user_loader(get_auth_session_factory()),
        ttl_seconds=app_settings.user_cache_ttl_seconds,
    )
    set_user_cache(user_cache)
    sweeper = asyncio.create_task(user_cache.run_sweeper())

    yield

    # Shutdown: stop the sweeper, drop globals
    sweeper.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await sweeper
    set_user_cache(None)
    set_storage(None)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint,
    ) -> Response:
        """Process request and add security headers to response."""
        response = await call_next(request)
        # HSTS: enforce HTTPS for 1 year, including subdomains
        response.headers["Strict-Transport-Security"] = (
            "max-age=31536000; includeSubDomains"
        )
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        return response


app_settings = get_settings()

app = FastAPI(
    title="Team Photos API",
    description="Team photo archive with tagging, collections and public share links.",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Log database failures server-side; the client gets an opaque 500."""
    logger.error(
        "database_error method=%s path=%s",
        request.method,
        request.url.path,
        exc_info=exc,
    )
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.exception_handler(StorageError)
async def storage_exception_handler(request: Request, exc: StorageError) -> JSONResponse:
    """Log object storage failures server-side; the client gets an opaque 500."""
    logger.error(
        "storage_error method=%s path=%s operation=%s object=%s",
        request.method,
        request.url.path,
        exc.operation,
        exc.path,
        exc_info=exc,
    )
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# Security headers middleware (runs after CORS, adds headers to responses)
app.add_middleware(SecurityHeadersMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=app_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(upload.router)
app.include_router(photos.router)
app.include_router(tags.router)
app.include_router(tags.team_router)
app.include_router(collections.router)
app.include_router(share.router)
app.include_router(folders.router)
app.include_router(players.router)
app.include_router(teams.router)
app.include_router(admin.router)
