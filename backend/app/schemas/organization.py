"""
Pydantic schemas for organizations.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, Field


class OrganizationCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    slug: str = Field(..., min_length=1, max_length=100, pattern=r"^[A-Za-z0-9][A-Za-z0-9_-]*$")
    description: Optional[str] = Field(None, max_length=2000)
    org_code: Optional[str] = Field(None, max_length=32)


class OrganizationUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    logo_url: Optional[str] = Field(None, max_length=500)


class OrganizationResponse(BaseModel):
    id: UUID
    name: str
    slug: str
    description: Optional[str]
    logo_url: Optional[str]
    org_code: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class OrganizationStats(BaseModel):
    user_count: int
    document_count: int
    pending_count: int
