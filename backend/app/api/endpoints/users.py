"""
User management API endpoints.
"""

from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.models.user import User
from app.services.access_service import AccessService, get_access_service
from app.services.auth_service import get_current_user, require_admin
from app.services.role_authority import Action, Resource
from app.services.user_service import user_service
from app.schemas.auth import UserResponse, PasswordChange
from app.schemas.common import PaginatedResponse, SuccessResponse
from app.schemas.user import ActiveChange, OrgChange, RoleChange, UserCreate, UserProfileUpdate

router = APIRouter()


@router.get("/", response_model=PaginatedResponse[UserResponse])
async def get_users(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    search: Optional[str] = None,
    current_user: User = Depends(require_admin),
    access: AccessService = Depends(get_access_service),
    db: AsyncSession = Depends(get_db)
):
    """
    Get paginated list of users (admin only).

    god sees every user; everyone else sees their own organization.
    """
    users, total = await user_service.list_users(current_user, access, db, page, page_size, search)
    return PaginatedResponse.create(
        items=[UserResponse.model_validate(u) for u in users],
        total=total,
        page=page,
        page_size=page_size
    )


@router.get("/pending", response_model=List[UserResponse])
async def get_pending_users(
    current_user: User = Depends(get_current_user),
    access: AccessService = Depends(get_access_service),
    db: AsyncSession = Depends(get_db)
):
    """Membership requests awaiting approval (super admin and above)."""
    users = await user_service.list_pending(current_user, access, db)
    return [UserResponse.model_validate(u) for u in users]


@router.post("/", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserCreate,
    current_user: User = Depends(require_admin),
    access: AccessService = Depends(get_access_service),
    db: AsyncSession = Depends(get_db)
):
    user = await user_service.create_user(current_user, user_data, access, db)
    return UserResponse.model_validate(user)


@router.put("/me/password", response_model=SuccessResponse)
async def change_password(
    password_data: PasswordChange,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Change current user's password."""
    await user_service.change_password(
        current_user,
        password_data.current_password,
        password_data.new_password,
        db,
    )
    return SuccessResponse(message="Password updated successfully")


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: UUID,
    current_user: User = Depends(get_current_user),
    access: AccessService = Depends(get_access_service),
    db: AsyncSession = Depends(get_db)
):
    if str(user_id) == str(current_user.id):
        return UserResponse.model_validate(current_user)

    user = await user_service.get_user(user_id, db)
    await access.require(current_user, Action.READ, Resource.USER, resource_org_id=user.org_id)
    return UserResponse.model_validate(user)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user_profile(
    user_id: UUID,
    profile: UserProfileUpdate,
    current_user: User = Depends(get_current_user),
    access: AccessService = Depends(get_access_service),
    db: AsyncSession = Depends(get_db)
):
    user = await user_service.update_profile(current_user, user_id, profile, access, db)
    return UserResponse.model_validate(user)


@router.put("/{user_id}/role", response_model=UserResponse)
async def change_user_role(
    user_id: UUID,
    role_change: RoleChange,
    current_user: User = Depends(get_current_user),
    access: AccessService = Depends(get_access_service),
    db: AsyncSession = Depends(get_db)
):
    user = await user_service.change_role(current_user, user_id, role_change.role, access, db)
    return UserResponse.model_validate(user)


@router.put("/{user_id}/organization", response_model=UserResponse)
async def change_user_organization(
    user_id: UUID,
    org_change: OrgChange,
    current_user: User = Depends(get_current_user),
    access: AccessService = Depends(get_access_service),
    db: AsyncSession = Depends(get_db)
):
    """Move a user between organizations (god only)."""
    user = await user_service.change_org(current_user, user_id, org_change.org_id, access, db)
    return UserResponse.model_validate(user)


@router.put("/{user_id}/active", response_model=UserResponse)
async def set_user_active(
    user_id: UUID,
    active_change: ActiveChange,
    current_user: User = Depends(require_admin),
    access: AccessService = Depends(get_access_service),
    db: AsyncSession = Depends(get_db)
):
    user = await user_service.set_active(current_user, user_id, active_change.is_active, access, db)
    return UserResponse.model_validate(user)


@router.post("/{user_id}/approve", response_model=UserResponse)
async def approve_user(
    user_id: UUID,
    current_user: User = Depends(get_current_user),
    access: AccessService = Depends(get_access_service),
    db: AsyncSession = Depends(get_db)
):
    user = await user_service.approve(current_user, user_id, access, db)
    return UserResponse.model_validate(user)


@router.post("/{user_id}/reject", response_model=UserResponse)
async def reject_user(
    user_id: UUID,
    current_user: User = Depends(get_current_user),
    access: AccessService = Depends(get_access_service),
    db: AsyncSession = Depends(get_db)
):
    user = await user_service.reject(current_user, user_id, access, db)
    return UserResponse.model_validate(user)


@router.delete("/{user_id}", response_model=SuccessResponse)
async def delete_user(
    user_id: UUID,
    current_user: User = Depends(require_admin),
    access: AccessService = Depends(get_access_service),
    db: AsyncSession = Depends(get_db)
):
    await user_service.delete_user(current_user, user_id, access, db)
    return SuccessResponse(message="User deleted successfully")
