"""
Response envelopes shared by the list and mutation endpoints.
"""

from typing import Generic, TypeVar, List
from pydantic import BaseModel, Field
from datetime import datetime

T = TypeVar('T')


class PaginatedResponse(BaseModel, Generic[T]):
    """One page of a listing together with the totals needed to page through it."""
    items: List[T]
    total: int = Field(..., ge=0, description="Total number of matching items")
    page: int = Field(..., ge=1, description="Current page number (1-indexed)")
    page_size: int = Field(..., ge=1, le=100)
    total_pages: int = Field(..., ge=0)

    @classmethod
    def create(cls, items: List[T], total: int, page: int, page_size: int) -> "PaginatedResponse[T]":
        total_pages = -(-total // page_size) if total > 0 else 0
        return cls(items=items, total=total, page=page, page_size=page_size, total_pages=total_pages)


class SuccessResponse(BaseModel):
    """Acknowledgement for mutations that return no resource."""
    success: bool = True
    message: str
    timestamp: datetime = Field(default_factory=datetime.utcnow)
