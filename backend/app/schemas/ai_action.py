"""
Pydantic schemas for AI-assisted document actions.
"""

from typing import Optional
from uuid import UUID
from pydantic import BaseModel, Field

from app.schemas.ai_key import ProviderName


class AiActionRequest(BaseModel):
    action: str = Field(..., min_length=1, max_length=50)
    provider: ProviderName = "groq"
    document_id: Optional[UUID] = None
    title: Optional[str] = Field(None, max_length=500)
    content: Optional[str] = None
    question: Optional[str] = Field(None, max_length=2000)


class AiActionResponse(BaseModel):
    success: bool = True
    action: str
    provider: str
    result: str
