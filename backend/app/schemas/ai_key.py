"""
Pydantic schemas for stored AI provider keys.

Responses carry metadata only; neither plaintext nor ciphertext is returned.
"""

from datetime import datetime
from typing import Literal, Optional
from uuid import UUID
from pydantic import BaseModel, Field

ProviderName = Literal["groq", "openai", "anthropic"]


class AiKeyCreate(BaseModel):
    provider: ProviderName
    api_key: str = Field(..., min_length=1, max_length=1000)
    label: Optional[str] = Field(None, max_length=100)


class AiKeyResponse(BaseModel):
    id: UUID
    user_id: UUID
    provider: str
    label: str
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class AiKeyCreatedResponse(AiKeyResponse):
    key_preview: str
