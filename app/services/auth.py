"""
Authentication service for registration, login and token management.
"""

from typing import Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from app.repositories.user import UserRepository
from app.models.user import User
from app.schemas.user import UserCreate
from app.utils.auth import (
    create_access_token,
    create_refresh_token,
    verify_token
)
from app.utils.exceptions import (
    BadRequestError,
    DuplicateResourceError,
    InactiveUserError,
    InvalidCredentialsError,
    InvalidTokenError,
    TokenExpiredError,
)
from jose import ExpiredSignatureError, JWTError
import uuid
import logging

logger = logging.getLogger(__name__)


class AuthService:
    """
    Authentication service for user accounts and JWT tokens.
    Roles and verification are always read back from the users table.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.user_repo = UserRepository(db_session)

    async def register(self, user_data: UserCreate) -> User:
        """
        Create a self-service account. Agents and sellers start unverified.

        Raises:
            DuplicateResourceError: If the email is already registered
        """
        existing = await self.user_repo.get_by_email(user_data.email)
        if existing:
            raise DuplicateResourceError("User", user_data.email)

        try:
            user = await self.user_repo.create_user({**user_data.model_dump(), "is_verified": False})
        except ValueError as e:
            raise BadRequestError(str(e))

        logger.info(f"Registered {user.role.value} account: {user.email}")
        return user

    async def authenticate_user(self, email: str, password: str) -> User:
        """
        Authenticate user with email and password.

        Raises:
            InvalidCredentialsError: If credentials are invalid
            InactiveUserError: If user account is inactive
        """
        user = await self.user_repo.get_by_email(email)
        if user and not user.is_active:
            raise InactiveUserError()

        user = await self.user_repo.authenticate_user(email, password)
        if not user:
            logger.warning(f"Failed authentication attempt for email: {email}")
            raise InvalidCredentialsError()

        return user

    def create_tokens(self, user: User) -> Tuple[str, str]:
        access_token = create_access_token(user_id=user.id, email=user.email, role=user.role)
        refresh_token = create_refresh_token(user_id=user.id, email=user.email)
        return access_token, refresh_token

    async def login(self, email: str, password: str) -> Tuple[User, str, str]:
        user = await self.authenticate_user(email, password)
        access_token, refresh_token = self.create_tokens(user)
        return user, access_token, refresh_token

    async def _user_from_token(self, token: str, token_type: str) -> User:
        try:
            payload = verify_token(token, token_type=token_type)
            user_id = uuid.UUID(payload.user_id)
        except ExpiredSignatureError:
            raise TokenExpiredError()
        except (JWTError, ValueError) as e:
            raise InvalidTokenError(f"Invalid token: {e}")

        user = await self.user_repo.get_by_id(user_id)
        if not user:
            raise InvalidTokenError("Token subject no longer exists")
        if not user.is_active:
            raise InactiveUserError()
        return user

    async def refresh_access_token(self, refresh_token: str) -> str:
        """
        Create new access token from refresh token.

        Raises:
            InvalidTokenError: If refresh token is invalid
            TokenExpiredError: If refresh token is expired
            InactiveUserError: If user account is inactive
        """
        user = await self._user_from_token(refresh_token, "refresh")
        return create_access_token(user_id=user.id, email=user.email, role=user.role)

    async def get_current_user(self, token: str) -> User:
        return await self._user_from_token(token, "access")

