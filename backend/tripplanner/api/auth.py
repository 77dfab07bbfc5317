import time
from contextlib import asynccontextmanager

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from tripplanner.api.schemas import (
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    TokenIdentity,
    UserRead,
    UserResponse,
)
from tripplanner.core.rate_limit import limiter, login_limit, register_limit
from tripplanner.core.security import (
    clear_session_cookie,
    get_current_identity,
    get_settings,
    issue_session_token,
    set_session_cookie,
)
from tripplanner.core.settings import Settings
from tripplanner.db.session import get_session
from tripplanner.services.auth import AuthService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

# Performance timer
@asynccontextmanager
async def performance_timer(operation: str):
    """Context manager for timing operations"""
    start = time.time()
    try:
        yield
    finally:
        duration = time.time() - start
        logger.info("operation_completed", operation=operation, duration_seconds=round(duration, 2))


@router.post("/register",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        201: {"description": "User registered successfully"},
        400: {"description": "Missing or malformed fields"},
        409: {"description": "Email already registered"},
        429: {"description": "Too many requests"},
    },
    summary="User registration",
)
@limiter.limit(register_limit)
async def register(
    request: Request,
    user_data: RegisterRequest,
    session: AsyncSession = Depends(get_session),
):
    """Register a new user; no session is started"""
    async with performance_timer("user_registration"):
        user = await AuthService(session).register_user(
            user_data.name, user_data.email, user_data.password
        )
        logger.info(
            "user_registration_success",
            user_id=user.user_id,
            ip_address=request.client.host if request.client else None
        )
        return MessageResponse(message="User registered successfully.")


@router.post("/login",
    response_model=UserResponse,
    responses={
        200: {"description": "Authenticated; session cookie set"},
        400: {"description": "Missing fields"},
        401: {"description": "Invalid credentials"},
        429: {"description": "Too many requests"},
    },
    summary="User login",
)
@limiter.limit(login_limit)
async def login(
    request: Request,
    response: Response,
    credentials: LoginRequest,
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
):
    """Check credentials and deliver the session token as an http-only cookie"""
    async with performance_timer("user_login"):
        user = await AuthService(session).authenticate_user(credentials.email, credentials.password)
        token = issue_session_token(user.user_id, user.email, settings)
        set_session_cookie(response, token, settings)

        logger.info(
            "user_login_success",
            user_id=user.user_id,
            ip_address=request.client.host if request.client else None
        )
        return UserResponse(user=UserRead.model_validate(user))


@router.post("/logout", response_model=MessageResponse, summary="User logout")
async def logout(response: Response, settings: Settings = Depends(get_settings)):
    """Clear the session cookie; tokens are not tracked server side"""
    clear_session_cookie(response, settings)
    return MessageResponse(message="Logged out successfully.")


@router.get("/me",
    response_model=UserResponse,
    responses={401: {"description": "Missing, invalid or expired token"}},
    summary="Get current user",
)
async def get_current_user_info(
    identity: TokenIdentity = Depends(get_current_identity),
    session: AsyncSession = Depends(get_session),
):
    user = await AuthService(session).get_user(identity.user_id)
    return UserResponse(user=UserRead.model_validate(user))
