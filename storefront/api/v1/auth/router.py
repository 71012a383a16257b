"""
Authentication API routes
"""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.database import get_db
from storefront.core.security import get_current_user
from .schemas import (
    RegisterRequest,
    LoginRequest,
    ChangePasswordRequest,
    AuthResponse,
    UserResponse,
    MessageResponse
)
from .services import AuthService

router = APIRouter()


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register new user",
    description="Create an account and its empty shopping cart"
)
async def register(
    payload: RegisterRequest,
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    """Register new user"""
    service = AuthService(db)
    user = await service.register(payload)

    request.app.state.notifier.notify(
        user.id,
        "user_registered",
        {"email": user.email, "username": user.username}
    )

    return AuthResponse(
        user=UserResponse.model_validate(user),
        tokens=service.generate_tokens(user),
        message="Registration successful"
    )


@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Login with username and password"
)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db)
):
    """Login user"""
    service = AuthService(db)
    user = await service.authenticate(payload.username, payload.password)
    return AuthResponse(
        user=UserResponse.model_validate(user),
        tokens=service.generate_tokens(user),
        message="Login successful"
    )


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get current user",
    description="Get currently authenticated user information"
)
async def get_me(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get current user information"""
    service = AuthService(db)
    user = await service.get_user(current_user["id"])
    return UserResponse.model_validate(user)


@router.put(
    "/change-password",
    response_model=MessageResponse,
    summary="Change password"
)
async def change_password(
    payload: ChangePasswordRequest,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Change the current user's password"""
    service = AuthService(db)
    await service.change_password(current_user["id"], payload.current_password, payload.new_password)
    return MessageResponse(message="Password changed")
