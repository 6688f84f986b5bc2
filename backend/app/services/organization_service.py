"""
Organization (tenant) management.
"""

import secrets
import string
from datetime import datetime
from typing import List, Optional

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.document import Document
from app.models.organization import Organization
from app.models.user import ApprovalStatus, User
from app.schemas.organization import OrganizationCreate, OrganizationStats, OrganizationUpdate
from app.services.access_service import AccessService
from app.services.audit_service import audit_service
from app.services.auth_service import ORG_CODE_RE
from app.services.role_authority import Action, Resource, Role
from app.utils.exceptions import ConflictError, NotFoundError, ValidationError

ORG_CODE_ALPHABET = string.ascii_uppercase + string.digits
ORG_CODE_LENGTH = 8
MAX_CODE_ATTEMPTS = 20


def generate_org_code(length: int = ORG_CODE_LENGTH) -> str:
    return "".join(secrets.choice(ORG_CODE_ALPHABET) for _ in range(length))


class OrganizationService:
    """Service for creating and maintaining organizations."""

    async def get(self, org_id, db: AsyncSession) -> Organization:
        org = await db.get(Organization, org_id)
        if org is None:
            raise NotFoundError("Organization", str(org_id))
        return org

    async def _code_taken(self, code: str, db: AsyncSession) -> bool:
        result = await db.execute(select(Organization.id).where(Organization.org_code == code))
        return result.first() is not None

    async def unique_org_code(self, db: AsyncSession) -> str:
        for _ in range(MAX_CODE_ATTEMPTS):
            code = generate_org_code()
            if not await self._code_taken(code, db):
                return code
        raise ConflictError("Could not generate a unique organization code")

    async def list_organizations(self, actor: User, access: AccessService, db: AsyncSession) -> List[Organization]:
        await access.require(actor, Action.READ, Resource.ORGANIZATION, resource_org_id=actor.org_id)
        if actor.role == Role.GOD.value:
            result = await db.execute(select(Organization).order_by(Organization.name))
            return list(result.scalars().all())

        if actor.org_id is None:
            return []
        return [await self.get(actor.org_id, db)]

    async def get_organization(self, actor: User, org_id, access: AccessService, db: AsyncSession) -> Organization:
        org = await self.get(org_id, db)
        await access.require(actor, Action.READ, Resource.ORGANIZATION, resource_org_id=org.id)
        return org

    async def create_organization(
        self,
        actor: User,
        data: OrganizationCreate,
        access: AccessService,
        db: AsyncSession,
    ) -> Organization:
        await access.require(actor, Action.ACCESS, Resource.GOD_PANEL)

        slug = data.slug.lower()
        existing = await db.execute(select(Organization.id).where(Organization.slug == slug))
        if existing.first() is not None:
            raise ConflictError(f"Organization slug '{slug}' is already in use")

        if data.org_code:
            code = data.org_code.strip().upper()
            if not ORG_CODE_RE.match(code):
                raise ValidationError("Organization code must be 4-16 alphanumeric characters", field="org_code")
            if await self._code_taken(code, db):
                raise ConflictError("Organization code is already in use")
        else:
            code = await self.unique_org_code(db)

        org = Organization(
            name=data.name.strip(),
            slug=slug,
            description=data.description,
            org_code=code,
        )
        db.add(org)
        await db.flush()
        await audit_service.record(
            db,
            user_id=actor.id,
            action="create",
            resource_type="organization",
            resource_id=org.id,
            details={"name": org.name, "slug": org.slug},
            org_id=org.id,
            commit=False,
        )
        await db.commit()
        await db.refresh(org)

        logger.info(f"Organization {org.slug} created by {actor.id}")
        return org

    async def update_organization(
        self,
        actor: User,
        org_id,
        data: OrganizationUpdate,
        access: AccessService,
        db: AsyncSession,
    ) -> Organization:
        org = await self.get(org_id, db)
        await access.require(actor, Action.UPDATE, Resource.ORGANIZATION, resource_org_id=org.id)

        changes = data.model_dump(exclude_unset=True)
        for field, value in changes.items():
            setattr(org, field, value)
        org.updated_at = datetime.utcnow()

        await audit_service.record(
            db,
            user_id=actor.id,
            action="update",
            resource_type="organization",
            resource_id=org.id,
            details={"fields": sorted(changes)},
            org_id=org.id,
            commit=False,
        )
        await db.commit()
        await db.refresh(org)
        return org

    async def regenerate_code(self, actor: User, org_id, access: AccessService, db: AsyncSession) -> Organization:
        """Issue a fresh registration code; the old one stops working at once."""
        org = await self.get(org_id, db)
        await access.require(actor, Action.UPDATE, Resource.ORGANIZATION, resource_org_id=org.id)

        org.org_code = await self.unique_org_code(db)
        org.updated_at = datetime.utcnow()
        await audit_service.record(
            db,
            user_id=actor.id,
            action="regenerate_org_code",
            resource_type="organization",
            resource_id=org.id,
            org_id=org.id,
            commit=False,
        )
        await db.commit()
        await db.refresh(org)
        return org

    async def delete_organization(self, actor: User, org_id, access: AccessService, db: AsyncSession) -> None:
        await access.require(actor, Action.ACCESS, Resource.GOD_PANEL)
        org = await self.get(org_id, db)

        await audit_service.record(
            db,
            user_id=actor.id,
            action="delete",
            resource_type="organization",
            resource_id=org.id,
            details={"name": org.name, "slug": org.slug},
            commit=False,
        )
        await db.delete(org)
        await db.commit()
        logger.info(f"Organization {org_id} deleted by {actor.id}")

    async def get_stats(
        self,
        actor: User,
        org_id,
        access: AccessService,
        db: AsyncSession,
    ) -> OrganizationStats:
        org = await self.get_organization(actor, org_id, access, db)
        return await self.count_members_and_documents(db, org.id)

    async def count_members_and_documents(self, db: AsyncSession, org_id: Optional[object] = None) -> OrganizationStats:
        """Counts for one organization, or across all of them when ``org_id`` is None."""
        users = select(func.count(User.id))
        pending = select(func.count(User.id)).where(User.approval_status == ApprovalStatus.PENDING)
        documents = select(func.count(Document.id))
        if org_id is not None:
            users = users.where(User.org_id == org_id)
            pending = pending.where(User.org_id == org_id)
            documents = documents.where(Document.org_id == org_id)

        return OrganizationStats(
            user_count=(await db.execute(users)).scalar() or 0,
            document_count=(await db.execute(documents)).scalar() or 0,
            pending_count=(await db.execute(pending)).scalar() or 0,
        )


organization_service = OrganizationService()
