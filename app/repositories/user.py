"""
User repository for authentication and user management operations.
Provides secure user operations with password handling and role-based access.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from app.repositories.base import BaseRepository
from app.models.user import User, UserRole
from typing import Optional, Dict, Any
import uuid
import logging

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    """
    Repository for user management with authentication and authorization support.
    The users table is the only place a role or verification flag is read from.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    async def create_user(self, user_data: Dict[str, Any]) -> User:
        """
        Create a new user with email validation and password hashing.

        Args:
            user_data: Must include email, password and full_name.
                       Optional: role (defaults to BUYER), phone, is_verified.

        Raises:
            ValueError: If validation fails or the email is taken
        """
        data = dict(user_data)
        email = User.validate_email_format(data["email"])

        existing_user = await self.get_by_email(email)
        if existing_user:
            raise ValueError(f"User with email {email} already exists")

        password = data.pop("password")
        create_data = {
            **data,
            "email": email,
            "hashed_password": User.hash_password(password),
            "role": data.get("role", UserRole.BUYER),
            "is_active": data.get("is_active", True),
            "is_verified": data.get("is_verified", False),
        }

        created_user = await self.create(create_data)
        logger.info(f"Created user: {created_user.email} (ID: {created_user.id})")
        return created_user

    async def get_by_email(self, email: str) -> Optional[User]:
        try:
            normalized_email = email.lower().strip()
            result = await self.db.execute(select(User).where(User.email == normalized_email))
            return result.scalar_one_or_none()
        except Exception as e:
            logger.error(f"Failed to get user by email {email}: {e}")
            raise

    async def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """
        Authenticate user with email and password.

        Returns:
            User instance if authentication successful, None otherwise
        """
        user = await self.get_by_email(email)

        if not user:
            logger.debug(f"Authentication failed: user {email} not found")
            return None

        if not user.is_active:
            logger.debug(f"Authentication failed: user {email} is inactive")
            return None

        if not user.verify_password(password):
            logger.debug(f"Authentication failed: invalid password for {email}")
            return None

        logger.info(f"User authenticated successfully: {email}")
        return user

    async def set_verified(self, user_id: uuid.UUID, is_verified: bool = True) -> Optional[User]:
        updated_user = await self.update(user_id, {"is_verified": is_verified})
        if updated_user:
            logger.info(f"User {user_id} verification set to {is_verified}")
        return updated_user

    async def count_by_role(self) -> Dict[str, int]:
        """User counts keyed by role value."""
        result = await self.db.execute(
            select(User.role, func.count(User.id)).group_by(User.role)
        )
        return {role.value: count for role, count in result.all()}
