"""
User model with authentication and role management.
The users table is the single source of truth for a caller's role and verification.
"""

from sqlalchemy import String, Boolean, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.database import Base
from passlib.context import CryptContext
from email_validator import validate_email, EmailNotValidError
import enum
import uuid
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from app.models.property import Property

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class UserRole(str, enum.Enum):
    """User role enumeration for role-based access control."""
    ADMIN = "admin"
    AGENT = "agent"
    SELLER = "seller"
    BUYER = "buyer"


LISTING_ROLES = (UserRole.AGENT, UserRole.SELLER)


class User(Base):
    """
    Marketplace user account.
    Agents and sellers may list properties once verified; admins moderate listings.
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
        comment="User email address - must be unique and valid"
    )

    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Bcrypt hashed password"
    )

    full_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False
    )

    phone: Mapped[Optional[str]] = mapped_column(
        String(32),
        nullable=True
    )

    role: Mapped[UserRole] = mapped_column(
        SQLEnum(UserRole, native_enum=False, length=16),
        nullable=False,
        default=UserRole.BUYER,
        index=True,
        comment="Authoritative user role"
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        index=True
    )

    is_verified: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        comment="Agents and sellers must be verified before listing"
    )

    properties: Mapped[List["Property"]] = relationship(
        "Property",
        back_populates="owner",
        foreign_keys="Property.owner_id",
        lazy="raise"
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"

    @classmethod
    def validate_email_format(cls, email: str) -> str:
        """
        Validate email format using email-validator.

        Raises:
            ValueError: If email format is invalid
        """
        try:
            valid_email = validate_email(email, check_deliverability=False)
            return valid_email.normalized.lower()
        except EmailNotValidError as e:
            raise ValueError(f"Invalid email format: {str(e)}")

    @classmethod
    def hash_password(cls, password: str) -> str:
        if not password or len(password) < 8:
            raise ValueError("Password must be at least 8 characters long")

        return pwd_context.hash(password)

    def verify_password(self, password: str) -> bool:
        return pwd_context.verify(password, self.hashed_password)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_agent(self) -> bool:
        return self.role == UserRole.AGENT

    @property
    def can_list_properties(self) -> bool:
        """Active admins, and active verified agents or sellers."""
        if not self.is_active:
            return False
        if self.is_admin:
            return True
        return self.role in LISTING_ROLES and self.is_verified

    def can_manage_property(self, owner_id: uuid.UUID) -> bool:
        """Admins manage everything; everybody else only what they own."""
        if self.is_admin:
            return True
        return self.id == owner_id
