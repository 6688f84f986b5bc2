"""
Audit trail recording and retrieval.
"""

from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger

from app.models.audit_log import AuditLog


class AuditService:
    """Append-only audit log."""

    MAX_LIMIT = 500

    async def record(
        self,
        db: AsyncSession,
        *,
        user_id: Optional[UUID],
        action: str,
        resource_type: str,
        resource_id: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None,
        org_id: Optional[UUID] = None,
        ip_address: Optional[str] = None,
        commit: bool = True,
    ) -> AuditLog:
        """
        Append an audit entry.

        Pass ``commit=False`` to let the caller commit it together with the
        change being audited.
        """
        entry = AuditLog(
            user_id=user_id,
            action=action,
            resource_type=resource_type,
            resource_id=str(resource_id) if resource_id is not None else None,
            details=details or {},
            org_id=org_id,
            ip_address=ip_address,
        )
        db.add(entry)
        if commit:
            await db.commit()

        logger.debug(f"Audit: {action} {resource_type} {resource_id} by {user_id}")
        return entry

    async def list_logs(
        self,
        db: AsyncSession,
        org_id: Optional[UUID] = None,
        limit: int = 100,
    ) -> List[AuditLog]:
        """Newest first, optionally restricted to one organization."""
        limit = max(1, min(limit, self.MAX_LIMIT))
        query = select(AuditLog).order_by(AuditLog.created_at.desc()).limit(limit)
        if org_id is not None:
            query = query.where(AuditLog.org_id == org_id)
        result = await db.execute(query)
        return list(result.scalars().all())


audit_service = AuditService()
