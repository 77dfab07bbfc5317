from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from tripplanner.core.errors import AuthError, ConflictError, PersistenceError
from tripplanner.core.security import get_password_hash, verify_password
from tripplanner.db import crud
from tripplanner.db.models import User

logger = structlog.get_logger(__name__)

INVALID_CREDENTIALS = "Invalid credentials."


class AuthService:
    """Registration and credential checks; token issuing lives in core.security"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def register_user(self, name: str, email: str, password: str) -> User:
        try:
            async with self.session.begin():
                if await crud.get_user_by_email(self.session, email):
                    raise ConflictError("Email already registered.")
                user = await crud.create_user(
                    self.session,
                    name=name,
                    email=email,
                    password_hash=get_password_hash(password),
                )
        except IntegrityError as e:
            # concurrent registration of the same email
            logger.warning("user_registration_conflict", email=email, error=str(e.orig))
            raise ConflictError("Email already registered.") from e
        except SQLAlchemyError as e:
            logger.error("user_registration_error", email=email, error=str(e), error_type=type(e).__name__)
            raise PersistenceError("Registration failed.") from e

        logger.info("user_registered", user_id=user.user_id, email=email)
        return user

    async def authenticate_user(self, email: str, password: str) -> User:
        """Return the user for valid credentials; the same AuthError for every failure"""
        try:
            async with self.session.begin():
                user = await crud.get_user_by_email(self.session, email)
        except SQLAlchemyError as e:
            logger.error("user_lookup_error", error=str(e), error_type=type(e).__name__)
            raise PersistenceError("Login failed.") from e

        if user is None:
            logger.warning("login_failed", reason="unknown_email")
            raise AuthError(INVALID_CREDENTIALS)
        if not verify_password(password, user.password_hash):
            logger.warning("login_failed", reason="password_mismatch", user_id=user.user_id)
            raise AuthError(INVALID_CREDENTIALS)

        logger.info("login_succeeded", user_id=user.user_id)
        return user

    async def get_user(self, user_id: int) -> User:
        try:
            async with self.session.begin():
                user = await crud.get_user_by_id(self.session, user_id)
        except SQLAlchemyError as e:
            logger.error("user_lookup_error", user_id=user_id, error=str(e))
            raise PersistenceError("Failed to load user.") from e

        if user is None:
            raise AuthError("Unauthorized")
        return user
