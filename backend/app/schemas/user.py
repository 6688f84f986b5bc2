"""
Pydantic schemas for user management.
"""

from typing import Optional
from uuid import UUID
from pydantic import BaseModel, EmailStr, Field

from app.services.role_authority import Role


class UserCreate(BaseModel):
    """Schema for an admin creating a user directly."""
    email: EmailStr
    full_name: str = Field(..., min_length=1, max_length=200)
    password: str = Field(..., min_length=8, max_length=200)
    role: Role = Role.USER
    org_id: Optional[UUID] = None


class UserProfileUpdate(BaseModel):
    """Profile fields a user may change; never the role."""
    full_name: Optional[str] = Field(None, min_length=1, max_length=200)
    avatar_url: Optional[str] = Field(None, max_length=500)


class RoleChange(BaseModel):
    role: Role


class OrgChange(BaseModel):
    org_id: Optional[UUID] = None


class ActiveChange(BaseModel):
    is_active: bool
