"""Login and signup endpoints."""
import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import (
    get_async_session,
    get_auth_session,
    get_now,
    get_request_origin,
    get_settings,
)
from api.helpers import http_error
from core.auth import SessionUser, create_session_token
from core.config import Settings
from core.request_context import UNKNOWN_ACTOR, AuditActor, RequestOrigin
from models.audit_log import AuditAction, ResourceType
from schemas.user import (
    LoginRequest,
    LoginResponse,
    SessionUserResponse,
    SignupRequest,
    SignupResponse,
    UserResponse,
)
from services import user_service
from services.audit_service import audit_service
from services.exceptions import ServiceError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=LoginResponse)
async def login(
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_async_session),
    auth_db: AsyncSession = Depends(get_auth_session),
    settings: Settings = Depends(get_settings),
    now: datetime = Depends(get_now),
    origin: RequestOrigin = Depends(get_request_origin),
) -> LoginResponse:
    """
    Exchange email and password for a session token.

    Both outcomes are audited. Returns 401 for an unknown email or a wrong
    password without saying which.
    """
    email = credentials.email.strip()
    user = await user_service.get_user_by_email(auth_db, email)

    # Unknown emails still pay for one bcrypt check so timing does not reveal them
    stored_hash = user.password_hash if user is not None else None
    if not await user_service.verify_password(credentials.password, stored_hash):
        actor = (
            AuditActor.from_user(user.id, user.name, user.role) if user is not None
            else UNKNOWN_ACTOR
        )
        await audit_service.record(
            db,
            AuditAction.USER_LOGIN_FAILED,
            actor,
            ResourceType.USER,
            resource_id=user.id if user is not None else None,
            details={"email": email},
            origin=origin,
        )
        # The request fails, so keep the audit entry explicitly
        await db.commit()
        logger.info("login_failed email=%s", email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    await user_service.record_login(auth_db, user, now)
    session_user = SessionUser(id=user.id, email=user.email, name=user.name, role=user.role)
    token, expires_at = create_session_token(session_user, settings, now=now)

    await audit_service.record(
        db,
        AuditAction.USER_LOGIN,
        session_user.actor,
        ResourceType.USER,
        resource_id=user.id,
        details={"email": user.email},
        origin=origin,
    )
    return LoginResponse(
        access_token=token,
        expires_at=expires_at,
        user=SessionUserResponse.model_validate(session_user),
    )


@router.post("/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    data: SignupRequest,
    auth_db: AsyncSession = Depends(get_auth_session),
) -> SignupResponse:
    """
    Create a player account in the identity database.

    Returns 409 if the email is already registered. The new user still has
    to log in to get a session token.
    """
    try:
        user = await user_service.create_user(auth_db, data.email, data.name, data.password)
    except ServiceError as e:
        raise http_error(e) from e
    logger.info("user_signed_up user_id=%s", user.id)
    return SignupResponse(
        message="User created successfully",
        user=UserResponse.model_validate(user),
    )
