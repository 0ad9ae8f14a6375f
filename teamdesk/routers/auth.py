"""Authentication API endpoints.

Provides endpoints for user registration, login, logout, and profile access.
Uses JWT-based authentication for session management.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models.user import User
from ..schemas.common import MessageResponse
from ..schemas.user import CurrentUserResponse, UserCreate, UserResponse
from ..services.auth_service import (
    Token,
    authenticate_user,
    create_token_for_user,
    create_user,
    get_current_active_user,
    record_login,
)
from ..services.permission_service import PermissionService

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
    description="Create a new user account with email and password.",
    responses={
        201: {"description": "User created successfully"},
        400: {"description": "Email already registered or validation error"},
    },
)
async def register(
    user_data: UserCreate,
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    """
    Register a new user.

    - **email**: Valid email address (unique)
    - **password**: Minimum 8 characters, letters and digits
    - **name**: Optional display name

    New accounts always start with the `user` role.
    """
    user = await create_user(db, user_data)
    return user


@router.post(
    "/login",
    response_model=Token,
    summary="Login and get access token",
    description="Authenticate with email and password to receive a JWT access token.",
    responses={
        200: {"description": "Successfully authenticated"},
        401: {"description": "Invalid credentials"},
        403: {"description": "Account is inactive"},
    },
)
async def login(
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    db: AsyncSession = Depends(get_db),
) -> Token:
    """
    Login with email and password.

    Uses OAuth2 password flow with form data:
    - **username**: Email address (the OAuth2 form field is 'username')
    - **password**: User's password
    """
    user = await authenticate_user(db, form_data.username, form_data.password)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive",
        )

    await record_login(db, user)
    return Token(access_token=create_token_for_user(user))


@router.post(
    "/logout",
    response_model=MessageResponse,
    summary="Logout current user",
    description="Acknowledge a logout. Client should discard the token.",
    responses={
        200: {"description": "Successfully logged out"},
        401: {"description": "Not authenticated"},
    },
)
async def logout(
    current_user: Annotated[User, Depends(get_current_active_user)],
) -> MessageResponse:
    """
    Logout the current user.

    JWT tokens are stateless, so the client discards its token; this
    endpoint only confirms the session was valid.
    """
    return MessageResponse(message="Successfully logged out")


@router.get(
    "/me",
    response_model=CurrentUserResponse,
    summary="Get current user profile",
    description="Profile of the authenticated user with effective permissions.",
    responses={
        200: {"description": "User profile retrieved successfully"},
        401: {"description": "Not authenticated"},
    },
)
async def get_me(
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
) -> CurrentUserResponse:
    """Get the current authenticated user's profile and permission list."""
    permissions = await PermissionService(db).get_user_permissions(current_user)
    response = CurrentUserResponse.model_validate(current_user)
    response.permissions = permissions
    return response
