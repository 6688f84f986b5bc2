"""
Admin API endpoints for system management.
"""

from datetime import datetime
from fastapi import APIRouter, Depends
from sqlalchemy import func, select, text
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger

from app.core.database import get_db
from app.models.organization import Organization
from app.models.user import User
from app.services.access_service import AccessService, get_access_service
from app.services.auth_service import require_admin
from app.services.organization_service import organization_service
from app.services.policy_gate import PolicyGate, get_policy_gate
from app.services.role_authority import Action, Resource, Role
from app.schemas.admin import AdminStatsResponse, HealthCheckResponse, HealthCheckServiceResponse

router = APIRouter()


@router.get("/stats", response_model=AdminStatsResponse)
async def get_system_stats(
    current_user: User = Depends(require_admin),
    access: AccessService = Depends(get_access_service),
    db: AsyncSession = Depends(get_db)
):
    """
    Dashboard counts.

    god gets global numbers across every organization; other admins get the
    numbers for their own organization.
    """
    await access.require(current_user, Action.ACCESS, Resource.ADMIN_PANEL, resource_org_id=current_user.org_id)

    if current_user.role == Role.GOD.value:
        counts = await organization_service.count_members_and_documents(db)
        org_count = (await db.execute(select(func.count(Organization.id)))).scalar() or 0
        org_id = None
    else:
        counts = await organization_service.count_members_and_documents(db, current_user.org_id)
        org_count = 1 if current_user.org_id else 0
        org_id = current_user.org_id

    return AdminStatsResponse(
        org_id=org_id,
        organization_count=org_count,
        user_count=counts.user_count,
        document_count=counts.document_count,
        pending_count=counts.pending_count,
        generated_at=datetime.utcnow(),
    )


@router.get("/health", response_model=HealthCheckResponse)
async def get_system_health(
    current_user: User = Depends(require_admin),
    gate: PolicyGate = Depends(get_policy_gate),
    db: AsyncSession = Depends(get_db)
):
    """Database connectivity and policy engine configuration."""
    services = {}
    overall = "healthy"

    try:
        await db.execute(text("SELECT 1"))
        services["database"] = HealthCheckServiceResponse(status="healthy", message="Connected successfully")
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        services["database"] = HealthCheckServiceResponse(status="unhealthy", error="Database unreachable")
        overall = "unhealthy"

    services["policy_engine"] = HealthCheckServiceResponse(
        status="enabled" if gate.enabled else "disabled",
        message=gate.base_url if gate.enabled else "Local role hierarchy only",
    )

    return HealthCheckResponse(
        timestamp=datetime.utcnow().isoformat(),
        overall_status=overall,
        services=services,
    )
