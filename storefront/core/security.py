"""
Security utilities for authentication and authorization
Handles JWT tokens, password hashing, and permission checks
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from .config import get_settings
from .exceptions import UnauthorizedException, ForbiddenException

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Security scheme
security = HTTPBearer(auto_error=False)


class SecurityUtils:
    """Security utility functions"""

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        """Verify password against hash"""
        return pwd_context.verify(plain_password, hashed_password)

    @staticmethod
    def hash_password(password: str) -> str:
        """Hash password using bcrypt"""
        return pwd_context.hash(password)

    @staticmethod
    def create_access_token(data: Dict[str, Any], expires_minutes: Optional[int] = None) -> str:
        """Create JWT access token"""
        settings = get_settings()
        to_encode = data.copy()
        minutes = expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES
        expire = datetime.now(timezone.utc) + timedelta(minutes=minutes)
        to_encode.update({"exp": expire, "type": "access"})
        return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

    @staticmethod
    def decode_token(token: str) -> Dict[str, Any]:
        """Decode and validate JWT token"""
        settings = get_settings()
        try:
            return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        except JWTError:
            raise UnauthorizedException("Invalid authentication credentials")


# Dependency to get current user from token
async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Dict[str, Any]:
    """Extract and validate user from JWT token"""
    if credentials is None:
        raise UnauthorizedException("Not authenticated")

    payload = SecurityUtils.decode_token(credentials.credentials)

    if payload.get("type") != "access":
        raise UnauthorizedException("Invalid token type")

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise UnauthorizedException("Invalid token subject")

    return {
        "id": user_id,
        "role": payload.get("role", "user"),
    }


# Role-based access control
def require_role(allowed_roles: list[str]):
    """Dependency factory to check user role"""
    async def role_checker(current_user: dict = Depends(get_current_user)):
        if current_user.get("role") not in allowed_roles:
            raise ForbiddenException("Insufficient permissions")
        return current_user
    return role_checker


require_admin = require_role(["admin"])
