"""FastAPI dependencies for injection."""
from datetime import UTC, datetime

from fastapi import Request

from core.auth import SessionUser, get_current_user, require_admin
from core.config import get_settings
from core.request_context import RequestOrigin
from core.storage import ObjectStorage, get_storage
from core.user_cache import UserCache, get_user_cache
from db.session import get_async_session, get_auth_session


def get_now() -> datetime:
    """Current time (UTC). Overridden in tests to move the clock."""
    return datetime.now(UTC)


def get_request_origin(request: Request) -> RequestOrigin:
    """Client IP and user agent for audit entries."""
    return RequestOrigin.from_request(request)


__all__ = [
    "ObjectStorage",
    "SessionUser",
    "UserCache",
    "get_async_session",
    "get_auth_session",
    "get_current_user",
    "get_now",
    "get_request_origin",
    "get_settings",
    "get_storage",
    "get_user_cache",
    "require_admin",
]
