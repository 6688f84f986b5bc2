"""
Organization (tenant) API endpoints.
"""

from typing import List
from uuid import UUID
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.models.user import User
from app.services.access_service import AccessService, get_access_service
from app.services.auth_service import get_current_user
from app.services.organization_service import organization_service
from app.schemas.common import SuccessResponse
from app.schemas.organization import (
    OrganizationCreate,
    OrganizationResponse,
    OrganizationStats,
    OrganizationUpdate,
)

router = APIRouter()


@router.get("/", response_model=List[OrganizationResponse])
async def list_organizations(
    current_user: User = Depends(get_current_user),
    access: AccessService = Depends(get_access_service),
    db: AsyncSession = Depends(get_db)
):
    orgs = await organization_service.list_organizations(current_user, access, db)
    return [OrganizationResponse.model_validate(o) for o in orgs]


@router.post("/", response_model=OrganizationResponse, status_code=status.HTTP_201_CREATED)
async def create_organization(
    org_data: OrganizationCreate,
    current_user: User = Depends(get_current_user),
    access: AccessService = Depends(get_access_service),
    db: AsyncSession = Depends(get_db)
):
    """Create an organization (god only). A registration code is generated when none is given."""
    org = await organization_service.create_organization(current_user, org_data, access, db)
    return OrganizationResponse.model_validate(org)


@router.get("/{org_id}", response_model=OrganizationResponse)
async def get_organization(
    org_id: UUID,
    current_user: User = Depends(get_current_user),
    access: AccessService = Depends(get_access_service),
    db: AsyncSession = Depends(get_db)
):
    org = await organization_service.get_organization(current_user, org_id, access, db)
    return OrganizationResponse.model_validate(org)


@router.put("/{org_id}", response_model=OrganizationResponse)
async def update_organization(
    org_id: UUID,
    org_data: OrganizationUpdate,
    current_user: User = Depends(get_current_user),
    access: AccessService = Depends(get_access_service),
    db: AsyncSession = Depends(get_db)
):
    org = await organization_service.update_organization(current_user, org_id, org_data, access, db)
    return OrganizationResponse.model_validate(org)


@router.post("/{org_id}/regenerate-code", response_model=OrganizationResponse)
async def regenerate_org_code(
    org_id: UUID,
    current_user: User = Depends(get_current_user),
    access: AccessService = Depends(get_access_service),
    db: AsyncSession = Depends(get_db)
):
    org = await organization_service.regenerate_code(current_user, org_id, access, db)
    return OrganizationResponse.model_validate(org)


@router.get("/{org_id}/stats", response_model=OrganizationStats)
async def get_organization_stats(
    org_id: UUID,
    current_user: User = Depends(get_current_user),
    access: AccessService = Depends(get_access_service),
    db: AsyncSession = Depends(get_db)
):
    return await organization_service.get_stats(current_user, org_id, access, db)


@router.delete("/{org_id}", response_model=SuccessResponse)
async def delete_organization(
    org_id: UUID,
    current_user: User = Depends(get_current_user),
    access: AccessService = Depends(get_access_service),
    db: AsyncSession = Depends(get_db)
):
    await organization_service.delete_organization(current_user, org_id, access, db)
    return SuccessResponse(message="Organization deleted successfully")
