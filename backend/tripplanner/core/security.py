import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from fastapi import Depends, Request, Response
from fastapi.security import APIKeyCookie
from jose import JWTError, jwt
from passlib.context import CryptContext

from tripplanner.api.schemas import TokenIdentity
from tripplanner.core.errors import AuthError
from tripplanner.core.settings import Settings

logger = logging.getLogger(__name__)

AUTH_COOKIE_NAME = "token"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
cookie_scheme = APIKeyCookie(name=AUTH_COOKIE_NAME, auto_error=False)


def get_settings(request: Request) -> Settings:
    """FastAPI dependency: the settings the application was built with"""
    return request.app.state.settings


def verify_password(plain: str, hashed: str) -> bool:
    """Verify a password against its hash"""
    try:
        return pwd_context.verify(plain, hashed)
    except (ValueError, TypeError) as e:
        logger.error(f"Password verification error: {e}")
        return False


def get_password_hash(password: str) -> str:
    """Generate a salted password hash"""
    return pwd_context.hash(password)


def create_access_token(
    data: Dict[str, Any],
    settings: Settings,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create a signed JWT session token"""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire, "type": "access"})

    token = jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    logger.info("Access token created", extra={
        'user_id': data.get('sub'),
        'expires_in': settings.ACCESS_TOKEN_EXPIRE_MINUTES
    })
    return token


def decode_access_token(token: str, settings: Settings) -> TokenIdentity:
    """Verify signature, expiry and token type; raise AuthError otherwise"""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        logger.warning(f"JWT decode error: {e}")
        raise AuthError("Invalid token.")

    user_id = payload.get("sub")
    if not user_id or payload.get("type") != "access":
        logger.warning("Invalid token payload")
        raise AuthError("Invalid token.")

    try:
        return TokenIdentity(user_id=int(user_id), email=payload.get("email", ""))
    except ValueError:
        raise AuthError("Invalid token.")


def issue_session_token(user_id: int, email: str, settings: Settings) -> str:
    return create_access_token(
        {"sub": str(user_id), "user_id": user_id, "email": email},
        settings,
    )


def set_session_cookie(response: Response, token: str, settings: Settings) -> None:
    response.set_cookie(
        key=AUTH_COOKIE_NAME,
        value=token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="strict",
    )


def clear_session_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        key=AUTH_COOKIE_NAME,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="strict",
    )


async def get_current_identity(
    request: Request,
    token: Optional[str] = Depends(cookie_scheme),
    settings: Settings = Depends(get_settings),
) -> TokenIdentity:
    """Authenticate the request from the session cookie"""
    if not token:
        raise AuthError("No token provided.")

    identity = decode_access_token(token, settings)
    request.state.identity = identity
    return identity
