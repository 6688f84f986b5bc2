"""
AI provider key endpoints (per-user, encrypted at rest).
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.models.user import User
from app.schemas.ai_key import AiKeyCreate, AiKeyCreatedResponse, AiKeyResponse
from app.schemas.common import SuccessResponse
from app.services.access_service import AccessService, get_access_service
from app.services.ai_key_service import ai_key_service
from app.services.auth_service import get_current_user
from app.services.secret_cipher import SecretCipher, get_secret_cipher
from app.utils.formatters import mask_secret

router = APIRouter()


@router.get("", response_model=List[AiKeyResponse])
async def list_ai_keys(
    user_id: Optional[UUID] = None,
    current_user: User = Depends(get_current_user),
    access: AccessService = Depends(get_access_service),
    db: AsyncSession = Depends(get_db),
):
    keys = await ai_key_service.list_keys(current_user, access, db, user_id=user_id)
    return [AiKeyResponse.model_validate(k) for k in keys]


@router.post("", response_model=AiKeyCreatedResponse, status_code=status.HTTP_201_CREATED)
async def store_ai_key(
    payload: AiKeyCreate,
    current_user: User = Depends(get_current_user),
    cipher: SecretCipher = Depends(get_secret_cipher),
    db: AsyncSession = Depends(get_db),
):
    record = await ai_key_service.store_key(
        current_user,
        payload.provider,
        payload.api_key,
        cipher,
        db,
        label=payload.label,
    )
    return AiKeyCreatedResponse(
        id=record.id,
        user_id=record.user_id,
        provider=record.provider,
        label=record.label,
        is_active=record.is_active,
        created_at=record.created_at,
        updated_at=record.updated_at,
        key_preview=mask_secret(payload.api_key.strip()),
    )


@router.delete("/{key_id}", response_model=SuccessResponse)
async def delete_ai_key(
    key_id: UUID,
    current_user: User = Depends(get_current_user),
    access: AccessService = Depends(get_access_service),
    db: AsyncSession = Depends(get_db),
):
    await ai_key_service.delete_key(current_user, key_id, access, db)
    return SuccessResponse(message="API key deleted")
