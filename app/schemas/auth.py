"""
Pydantic schemas for authentication requests and responses.
Handles login, registration, token refresh, and user authentication data validation.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.schemas.user import CurrentUserResponse, UserCreate


class LoginRequest(BaseModel):
    """Login request schema."""

    email: EmailStr = Field(
        ...,
        description="User's email address",
        examples=["agent@example.com"]
    )
    password: str = Field(
        ...,
        min_length=8,
        max_length=128,
        description="User's password (minimum 8 characters)"
    )

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v):
        """Normalize email to lowercase."""
        return v.lower().strip()


class RegisterRequest(UserCreate):
    """Registration request schema."""


class RefreshTokenRequest(BaseModel):
    refresh_token: str = Field(..., description="Valid refresh token")


class AccessTokenResponse(BaseModel):
    """Access token response schema."""

    access_token: str = Field(..., description="New JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(..., description="Access token expiration time in seconds")


class TokenResponse(AccessTokenResponse):
    refresh_token: str = Field(..., description="JWT refresh token")


class LoginResponse(TokenResponse):
    """Complete login response schema."""

    user: CurrentUserResponse = Field(..., description="Authenticated user information")
