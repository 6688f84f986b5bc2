"""
Authentication-related API endpoints.
"""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.rate_limit import limiter, AUTH_LIMIT
from app.models.user import User
from app.services.audit_service import audit_service
from app.services.auth_service import auth_service, get_current_user
from app.schemas.auth import (
    RegisterResponse,
    UserLogin,
    UserRegister,
    UserResponse,
    TokenResponse
)
from app.utils.helpers import get_client_ip

router = APIRouter()


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(AUTH_LIMIT)
async def register(
    request: Request,
    user_data: UserRegister,
    db: AsyncSession = Depends(get_db)
):
    """
    Register a new user.

    With an organization code the account waits for approval by a super
    admin of that organization before it can log in.
    """
    user = await auth_service.register(
        email=user_data.email,
        password=user_data.password,
        full_name=user_data.full_name,
        db=db,
        org_code=user_data.org_code,
        ip_address=get_client_ip(request),
    )
    pending = user.approval_status == "pending"
    return RegisterResponse(
        user=UserResponse.model_validate(user),
        pending=pending,
        message="Your request to join the organization is awaiting approval." if pending else None,
    )


@router.post("/login", response_model=TokenResponse)
@limiter.limit(AUTH_LIMIT)
async def login(
    request: Request,
    user_data: UserLogin,
    db: AsyncSession = Depends(get_db)
):
    """Login user and return access token."""
    user, access_token = await auth_service.login(
        email=user_data.email,
        password=user_data.password,
        db=db,
        ip_address=get_client_ip(request),
    )
    return TokenResponse(
        access_token=access_token,
        token_type="bearer",
        user=UserResponse.model_validate(user)
    )


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(current_user: User = Depends(get_current_user)):
    """Get current user information."""
    return UserResponse.model_validate(current_user)


@router.post("/logout")
async def logout(
    request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Logout user (client should discard token)."""
    await audit_service.record(
        db,
        user_id=current_user.id,
        action="logout",
        resource_type="auth",
        org_id=current_user.org_id,
        ip_address=get_client_ip(request),
    )
    return {"message": "Successfully logged out"}
