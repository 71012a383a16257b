"""
Authentication service
Handles registration and password login
"""

from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from sqlalchemy import select, or_
import logging

from storefront.models import User, UserRole, Cart
from storefront.core.config import get_settings
from storefront.core.security import SecurityUtils
from storefront.core.exceptions import (
    BadRequestException,
    UnauthorizedException,
    NotFoundException,
    DuplicateResourceException
)
from .schemas import RegisterRequest, TokenResponse

logger = logging.getLogger(__name__)


class AuthService:
    """Authentication service"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.settings = get_settings()

    async def register(self, request: RegisterRequest, role: UserRole = UserRole.USER) -> User:
        """
        Create a user together with their empty cart

        Raises:
            DuplicateResourceException: If username or email is taken
        """
        result = await self.db.execute(
            select(User).where(or_(User.username == request.username, User.email == request.email))
        )
        existing = result.scalars().first()
        if existing:
            if existing.username == request.username:
                raise DuplicateResourceException("User", "username", request.username)
            raise DuplicateResourceException("User", "email", request.email)

        user = User(
            username=request.username,
            email=request.email,
            hashed_password=SecurityUtils.hash_password(request.password),
            role=role,
            is_active=True
        )
        user.cart = Cart(total_amount=Decimal("0.00"), version=1)
        self.db.add(user)

        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise DuplicateResourceException("User", "username", request.username)

        logger.info(f"User registered: {user.username} ({user.id})")
        return user

    async def authenticate(self, username: str, password: str) -> User:
        """
        Check credentials

        Raises:
            UnauthorizedException: If credentials are wrong or the user is inactive
        """
        result = await self.db.execute(select(User).where(User.username == username))
        user = result.scalar_one_or_none()

        if not user or not SecurityUtils.verify_password(password, user.hashed_password):
            logger.info(f"Failed login for {username}")
            raise UnauthorizedException("Invalid username or password")

        if not user.is_active:
            raise UnauthorizedException("User account is inactive")

        return user

    async def get_user(self, user_id: int) -> User:
        """
        Load the user behind a token

        Raises:
            NotFoundException: If the account no longer exists
        """
        user = await self.db.get(User, user_id)
        if not user:
            raise NotFoundException("User not found")
        return user

    async def change_password(self, user_id: int, current_password: str, new_password: str) -> None:
        """
        Replace the password after checking the current one

        Raises:
            BadRequestException: If the current password is wrong
        """
        user = await self.get_user(user_id)
        if not SecurityUtils.verify_password(current_password, user.hashed_password):
            raise BadRequestException("Current password is incorrect")

        user.hashed_password = SecurityUtils.hash_password(new_password)
        await self.db.commit()
        logger.info(f"Password changed for user {user.username}")

    def generate_tokens(self, user: User) -> TokenResponse:
        """Generate access token for user"""
        access_token = SecurityUtils.create_access_token(
            data={"sub": str(user.id), "role": user.role.value}
        )
        return TokenResponse(
            access_token=access_token,
            token_type="bearer",
            expires_in=self.settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
        )
