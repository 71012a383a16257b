"""
Authentication schemas for request/response validation
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
import re

from storefront.core.config import get_settings
from storefront.models.user import UserRole


class RegisterRequest(BaseModel):
    """New account details"""
    username: str = Field(..., min_length=3, max_length=50, examples=["alice"])
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator('username')
    @classmethod
    def validate_username(cls, v):
        if not re.match(r'^[A-Za-z0-9_.-]+$', v):
            raise ValueError("Username may only contain letters, digits, '.', '_' and '-'")
        return v

    @field_validator('password')
    @classmethod
    def validate_password(cls, v):
        min_length = get_settings().PASSWORD_MIN_LENGTH
        if len(v) < min_length:
            raise ValueError(f"Password must be at least {min_length} characters")
        return v


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=1, max_length=128)

    @field_validator('new_password')
    @classmethod
    def validate_new_password(cls, v):
        min_length = get_settings().PASSWORD_MIN_LENGTH
        if len(v) < min_length:
            raise ValueError(f"Password must be at least {min_length} characters")
        return v


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    """User data response"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    role: UserRole
    is_active: bool


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class AuthResponse(BaseModel):
    """Token plus the authenticated user"""
    user: UserResponse
    tokens: TokenResponse
    message: str


class MessageResponse(BaseModel):
    message: str
