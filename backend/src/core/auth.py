"""Session authentication: signed JWT issue/validation and role checks."""
import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from core.config import Settings, get_settings
from core.request_context import AuditActor
from models.user import UserRole

logger = logging.getLogger(__name__)

SESSION_ALGORITHM = "HS256"
SESSION_ISSUER = "team-photos"

# HTTP Bearer token scheme
security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class SessionUser:
    """The authenticated caller, as carried in the session token."""

    id: UUID
    email: str
    name: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    @property
    def actor(self) -> AuditActor:
        """Audit snapshot of this user."""
        return AuditActor.from_user(self.id, self.name, self.role)


def create_session_token(
    user: SessionUser,
    settings: Settings,
    now: datetime | None = None,
) -> tuple[str, datetime]:
    """
    Sign a session token for a user.

    Returns:
        Tuple of (token, expires_at).
    """
    now = now or datetime.now(UTC)
    expires_at = now + timedelta(hours=settings.session_ttl_hours)
    payload = {
        "sub": str(user.id),
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "iss": SESSION_ISSUER,
        "iat": now,
        "exp": expires_at,
    }
    token = jwt.encode(payload, settings.session_secret, algorithm=SESSION_ALGORITHM)
    return token, expires_at


def decode_session_token(token: str, settings: Settings) -> SessionUser:
    """
    Decode and validate a session token.

    Raises:
        HTTPException: 401 if the token is invalid, expired, or incomplete.
    """
    try:
        payload = jwt.decode(
            token,
            settings.session_secret,
            algorithms=[SESSION_ALGORITHM],
            issuer=SESSION_ISSUER,
            options={"require": ["sub", "exp", "role"]},
        )
    except jwt.ExpiredSignatureError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Session has expired",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e
    except jwt.PyJWTError as e:
        # Log full details for debugging (server-side only)
        logger.warning("Session token validation failed: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    try:
        user_id = UUID(payload["sub"])
        role = UserRole(payload["role"]).value
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    return SessionUser(
        id=user_id,
        email=payload.get("email") or "",
        name=payload.get("name") or "",
        role=role,
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    settings: Settings = Depends(get_settings),
) -> SessionUser:
    """Dependency that validates the bearer session token and returns the caller."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return decode_session_token(credentials.credentials, settings)


async def require_admin(
    current_user: SessionUser = Depends(get_current_user),
) -> SessionUser:
    """Dependency that additionally requires the admin role (403 otherwise)."""
    if not current_user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return current_user
