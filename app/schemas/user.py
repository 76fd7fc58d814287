"""
Pydantic schemas for user accounts.
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import Optional, List
from datetime import datetime
import uuid

from app.models.user import UserRole

SELF_SERVICE_ROLES = (UserRole.BUYER, UserRole.AGENT, UserRole.SELLER)


class UserBase(BaseModel):
    """Base user schema with common fields."""

    email: EmailStr = Field(
        ...,
        description="User's email address",
        examples=["agent@example.com"]
    )
    full_name: str = Field(
        ...,
        min_length=2,
        max_length=255,
        description="User's full name",
        examples=["Ama Mensah"]
    )
    phone: Optional[str] = Field(
        None,
        max_length=32,
        description="Contact phone number",
        examples=["+233 24 000 0000"]
    )

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v):
        return v.lower().strip()

    @field_validator('full_name')
    @classmethod
    def validate_full_name(cls, v):
        """Validate and clean full name."""
        if not v.strip():
            raise ValueError("Full name cannot be empty")
        return " ".join(v.split())


class UserCreate(UserBase):
    """Self-service registration. Admin accounts cannot be created this way."""

    password: str = Field(
        ...,
        min_length=8,
        max_length=128,
        description="Password (minimum 8 characters)"
    )
    role: UserRole = Field(
        default=UserRole.BUYER,
        description="Account role: buyer, agent or seller"
    )

    @field_validator('role')
    @classmethod
    def validate_role(cls, v):
        if v not in SELF_SERVICE_ROLES:
            raise ValueError("Role must be one of: buyer, agent, seller")
        return v

    @field_validator('password')
    @classmethod
    def validate_password(cls, v):
        if not any(c.isalpha() for c in v) or not any(c.isdigit() for c in v):
            raise ValueError("Password must contain at least one letter and one number")
        return v


class UserResponse(BaseModel):
    """User response schema (excluding sensitive data)."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: EmailStr
    full_name: str
    phone: Optional[str] = None
    role: UserRole
    is_active: bool
    is_verified: bool
    created_at: datetime
    updated_at: datetime


class UserSummary(BaseModel):
    """Compact user reference embedded in property responses."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    full_name: str
    email: EmailStr
    phone: Optional[str] = None
    role: UserRole
    is_verified: bool


class CurrentUserResponse(UserResponse):
    """Current user with the actions their role allows."""

    permissions: List[str] = Field(default_factory=list)

    @classmethod
    def from_user(cls, user) -> "CurrentUserResponse":
        response = cls.model_validate(user)
        if user.is_admin:
            response.permissions = [
                "create_property",
                "update_any_property",
                "archive_any_property",
                "moderate_properties",
                "manage_users",
            ]
        elif user.can_list_properties:
            response.permissions = [
                "create_property",
                "update_own_property",
                "archive_own_property",
                "view_own_properties",
            ]
        return response
