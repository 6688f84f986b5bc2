"""
Encrypted storage of per-user AI provider keys.

Each user has at most one active key per provider; storing a new key
supersedes the previous one. Plaintext only exists transiently inside
``get_usable_key``.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from loguru import logger
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.ai_key import AiApiKey, AiProvider
from app.models.user import User
from app.services.access_service import AccessService
from app.services.audit_service import audit_service
from app.services.role_authority import Action, Resource
from app.services.secret_cipher import SecretCipher
from app.utils.exceptions import NotFoundError, TamperError, ValidationError


class AiKeyService:
    """Service for storing and retrieving AI provider credentials."""

    async def store_key(
        self,
        user: User,
        provider: str,
        api_key: str,
        cipher: SecretCipher,
        db: AsyncSession,
        label: Optional[str] = None,
    ) -> AiApiKey:
        if provider not in AiProvider.ALL:
            raise ValidationError(f"Unsupported provider: {provider}", field="provider")
        if not api_key.strip():
            raise ValidationError("API key cannot be empty", field="api_key")

        secret = cipher.encrypt(api_key.strip())

        await db.execute(
            update(AiApiKey)
            .where(AiApiKey.user_id == user.id, AiApiKey.provider == provider, AiApiKey.is_active.is_(True))
            .values(is_active=False, updated_at=datetime.utcnow())
        )

        record = AiApiKey(
            user_id=user.id,
            provider=provider,
            encrypted_key=secret.ciphertext,
            iv=secret.iv,
            auth_tag=secret.auth_tag,
            label=label or f"{provider} key",
            is_active=True,
        )
        db.add(record)
        await db.flush()

        await audit_service.record(
            db,
            user_id=user.id,
            action="create",
            resource_type="ai_api_key",
            resource_id=record.id,
            details={"provider": provider},
            org_id=user.org_id,
            commit=False,
        )
        await db.commit()
        await db.refresh(record)

        logger.info(f"Stored {provider} key {record.id} for user {user.id}")
        return record

    async def list_keys(
        self,
        actor: User,
        access: AccessService,
        db: AsyncSession,
        user_id: Optional[UUID] = None,
    ) -> List[AiApiKey]:
        """Key metadata for ``actor`` or, with permission, for another user."""
        owner_id = user_id or actor.id
        if str(owner_id) != str(actor.id):
            owner = await db.get(User, owner_id)
            if owner is None:
                raise NotFoundError("User", str(owner_id))
            await access.require(actor, Action.READ, Resource.AI_KEY, owner_id=owner.id, resource_org_id=owner.org_id)

        result = await db.execute(
            select(AiApiKey).where(AiApiKey.user_id == owner_id).order_by(AiApiKey.created_at.desc())
        )
        return list(result.scalars().all())

    async def delete_key(self, actor: User, key_id: UUID, access: AccessService, db: AsyncSession) -> None:
        record = await db.get(AiApiKey, key_id)
        if record is None:
            raise NotFoundError("AI key", str(key_id))

        owner = await db.get(User, record.user_id)
        await access.require(
            actor,
            Action.DELETE,
            Resource.AI_KEY,
            owner_id=record.user_id,
            resource_org_id=owner.org_id if owner else None,
        )

        await audit_service.record(
            db,
            user_id=actor.id,
            action="delete",
            resource_type="ai_api_key",
            resource_id=record.id,
            details={"provider": record.provider, "owner_id": str(record.user_id)},
            org_id=owner.org_id if owner else None,
            commit=False,
        )
        await db.delete(record)
        await db.commit()

    async def get_active_key(self, user_id: UUID, provider: str, db: AsyncSession) -> Optional[AiApiKey]:
        result = await db.execute(
            select(AiApiKey)
            .where(AiApiKey.user_id == user_id, AiApiKey.provider == provider, AiApiKey.is_active.is_(True))
            .order_by(AiApiKey.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_usable_key(
        self,
        user_id: UUID,
        provider: str,
        cipher: SecretCipher,
        db: AsyncSession,
    ) -> Optional[str]:
        """
        Decrypted key for ``provider``, or None.

        A record that fails authentication is treated the same as a missing
        key: the user has to enter it again.
        """
        record = await self.get_active_key(user_id, provider, db)
        if record is None:
            return None

        try:
            return cipher.decrypt(record.to_encrypted_secret())
        except TamperError:
            logger.warning(f"Stored {provider} key {record.id} for user {user_id} failed authentication")
            return None


ai_key_service = AiKeyService()
