"""
Audit log endpoints.
"""

from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.models.user import User
from app.schemas.audit import AuditLogResponse
from app.services.access_service import AccessService, get_access_service
from app.services.audit_service import audit_service
from app.services.auth_service import require_admin
from app.services.role_authority import Action, Resource, Role

router = APIRouter()


@router.get("", response_model=List[AuditLogResponse])
async def list_audit_logs(
    org_id: Optional[UUID] = None,
    limit: int = Query(100, ge=1, le=audit_service.MAX_LIMIT),
    current_user: User = Depends(require_admin),
    access: AccessService = Depends(get_access_service),
    db: AsyncSession = Depends(get_db)
):
    """Newest entries first. Only god may look across organizations."""
    if current_user.role != Role.GOD.value:
        org_id = current_user.org_id
    await access.require(current_user, Action.READ, Resource.AUDIT_LOG, resource_org_id=org_id)

    # An unaffiliated admin has no organization to audit
    if org_id is None and current_user.role != Role.GOD.value:
        return []

    logs = await audit_service.list_logs(db, org_id=org_id, limit=limit)
    return [AuditLogResponse.model_validate(entry) for entry in logs]
