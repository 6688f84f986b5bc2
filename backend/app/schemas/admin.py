"""
Admin-related Pydantic schemas.
"""

from datetime import datetime
from typing import Dict, Optional
from uuid import UUID
from pydantic import BaseModel


class HealthCheckServiceResponse(BaseModel):
    """Schema for individual service health status."""
    status: str
    message: Optional[str] = None
    error: Optional[str] = None


class HealthCheckResponse(BaseModel):
    """Schema for system health check response."""
    timestamp: str
    overall_status: str
    services: Dict[str, HealthCheckServiceResponse]


class AdminStatsResponse(BaseModel):
    """Counts for the admin dashboard; ``org_id`` is None for the global (god) view."""
    org_id: Optional[UUID] = None
    organization_count: int
    user_count: int
    document_count: int
    pending_count: int
    generated_at: datetime
