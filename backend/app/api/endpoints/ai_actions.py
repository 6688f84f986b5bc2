"""
AI-assisted document actions.
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.rate_limit import limiter, AI_ACTION_LIMIT
from app.models.user import User
from app.schemas.ai_action import AiActionRequest, AiActionResponse
from app.services.access_service import AccessService, get_access_service
from app.services.ai_action_service import PROVIDERS, SUPPORTED_ACTIONS, ai_action_service
from app.services.auth_service import get_current_user
from app.services.secret_cipher import SecretCipher, get_secret_cipher

router = APIRouter()


@router.get("/actions")
async def list_actions(current_user: User = Depends(get_current_user)):
    """Actions and providers the service knows about."""
    return {
        "actions": list(SUPPORTED_ACTIONS),
        "providers": sorted(PROVIDERS),
    }


@router.post("/actions", response_model=AiActionResponse)
@limiter.limit(AI_ACTION_LIMIT)
async def run_action(
    request: Request,
    payload: AiActionRequest,
    current_user: User = Depends(get_current_user),
    cipher: SecretCipher = Depends(get_secret_cipher),
    access: AccessService = Depends(get_access_service),
    db: AsyncSession = Depends(get_db),
):
    """
    Run an AI action with the caller's own provider key.

    Returns 404 when no usable key is stored and 503 when the provider fails.
    """
    result = await ai_action_service.run(current_user, payload, cipher, access, db)
    return AiActionResponse(action=payload.action, provider=payload.provider, result=result)
