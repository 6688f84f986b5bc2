"""
Document-related Pydantic schemas.
"""

from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID
from pydantic import BaseModel, Field, computed_field

from app.utils.formatters import format_ref_number

Classification = Literal["general", "confidential", "internal", "public", "organization"]
AccessLevel = Literal["view_only", "comment", "edit", "full_access"]
Status = Literal["draft", "published", "archived", "under_review"]


class DocumentCreate(BaseModel):
    """Schema for creating a document."""
    title: str = Field(..., min_length=1, max_length=500)
    content: str = ""
    description: Optional[str] = None
    is_public: bool = False
    tags: List[str] = Field(default_factory=list)
    classification: Classification = "general"
    access_level: AccessLevel = "view_only"
    status: Status = "draft"


class DocumentUpdate(BaseModel):
    """Schema for updating a document; omitted fields are left unchanged."""
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    content: Optional[str] = None
    description: Optional[str] = None
    is_public: Optional[bool] = None
    tags: Optional[List[str]] = None
    classification: Optional[Classification] = None
    access_level: Optional[AccessLevel] = None
    status: Optional[Status] = None
    reviewers: Optional[List[UUID]] = None


class DocumentResponse(BaseModel):
    """Schema for document response."""
    id: UUID
    ref_number: int
    title: str
    content: Optional[str]
    description: Optional[str]
    file_type: Optional[str]
    file_size: Optional[int]
    owner_id: UUID
    org_id: UUID
    is_public: bool
    tags: Optional[List[str]]
    classification: str
    access_level: str
    is_password_protected: bool
    version: int
    status: str
    reviewers: Optional[List[str]]
    last_accessed_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    @computed_field
    @property
    def ref(self) -> Optional[str]:
        return format_ref_number(self.ref_number)

    class Config:
        from_attributes = True


class DocumentPasswordSet(BaseModel):
    password: str = Field(..., pattern=r"^\d{9}$", description="Exactly 9 digits")


class DocumentPasswordVerify(BaseModel):
    password: str = Field(..., min_length=1, max_length=32)


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=10000)
    parent_id: Optional[UUID] = None


class CommentResponse(BaseModel):
    id: UUID
    document_id: UUID
    user_id: UUID
    content: str
    parent_id: Optional[UUID]
    user_name: str = "Unknown"
    user_avatar: Optional[str] = None
    created_at: datetime
    updated_at: datetime
