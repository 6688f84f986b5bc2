"""
Pydantic schemas for audit log entries.
"""

from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID
from pydantic import BaseModel


class AuditLogResponse(BaseModel):
    id: UUID
    user_id: Optional[UUID]
    action: str
    resource_type: str
    resource_id: Optional[str]
    details: Optional[Dict[str, Any]]
    org_id: Optional[UUID]
    ip_address: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True
