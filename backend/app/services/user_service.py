"""
User management: listing, membership approval, roles and account lifecycle.

Every mutation is authorized through ``AccessService`` and written to the
audit log in the same transaction.
"""

from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from loguru import logger
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.organization import Organization
from app.models.user import ApprovalStatus, User
from app.schemas.user import UserCreate, UserProfileUpdate
from app.services.access_service import AccessService, context_for
from app.services.audit_service import audit_service
from app.services.auth_service import auth_service
from app.services.role_authority import Action, Resource, Role, evaluate_role_change, outranks
from app.utils.exceptions import NotFoundError, PermissionDeniedError, ValidationError


class UserService:
    """Service for managing users inside the tenant hierarchy."""

    async def get_user(self, user_id: UUID, db: AsyncSession) -> User:
        user = await auth_service.get_user_by_id(user_id, db)
        if user is None:
            raise NotFoundError("User", str(user_id))
        return user

    def _scoped(self, query, actor: User):
        # Everyone below god only ever sees their own organization
        if actor.role != Role.GOD.value:
            query = query.where(User.org_id == actor.org_id)
        return query

    async def list_users(
        self,
        actor: User,
        access: AccessService,
        db: AsyncSession,
        page: int = 1,
        page_size: int = 20,
        search: Optional[str] = None,
    ) -> Tuple[List[User], int]:
        await access.require(actor, Action.READ, Resource.USER, resource_org_id=actor.org_id)

        query = self._scoped(select(User), actor)
        if search:
            term = f"%{search}%"
            query = query.where(or_(User.email.ilike(term), User.full_name.ilike(term)))

        total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0
        result = await db.execute(
            query.order_by(User.created_at.desc()).offset((page - 1) * page_size).limit(page_size)
        )
        return list(result.scalars().all()), total

    async def list_pending(self, actor: User, access: AccessService, db: AsyncSession) -> List[User]:
        await access.require(actor, Action.APPROVE, Resource.USER, resource_org_id=actor.org_id)
        query = self._scoped(
            select(User).where(User.approval_status == ApprovalStatus.PENDING), actor
        ).order_by(User.created_at.asc())
        result = await db.execute(query)
        return list(result.scalars().all())

    async def _decide_membership(
        self,
        actor: User,
        user_id: UUID,
        approve: bool,
        access: AccessService,
        db: AsyncSession,
    ) -> User:
        target = await self.get_user(user_id, db)
        action = Action.APPROVE if approve else Action.REJECT
        await access.require(actor, action, Resource.USER, resource_org_id=target.org_id)

        if target.approval_status != ApprovalStatus.PENDING:
            raise ValidationError(f"User is not pending approval (status: {target.approval_status})")

        target.approval_status = ApprovalStatus.APPROVED if approve else ApprovalStatus.REJECTED
        target.updated_at = datetime.utcnow()
        await audit_service.record(
            db,
            user_id=actor.id,
            action="approve_membership" if approve else "reject_membership",
            resource_type="user",
            resource_id=target.id,
            details={"email": target.email},
            org_id=target.org_id,
            commit=False,
        )
        await db.commit()
        await db.refresh(target)

        logger.info(f"User {actor.id} {'approved' if approve else 'rejected'} membership of {target.id}")
        return target

    async def approve(self, actor: User, user_id: UUID, access: AccessService, db: AsyncSession) -> User:
        return await self._decide_membership(actor, user_id, True, access, db)

    async def reject(self, actor: User, user_id: UUID, access: AccessService, db: AsyncSession) -> User:
        return await self._decide_membership(actor, user_id, False, access, db)

    async def create_user(self, actor: User, data: UserCreate, access: AccessService, db: AsyncSession) -> User:
        """Admin-created account; the new user is approved immediately."""
        org_id = data.org_id if data.org_id is not None else actor.org_id
        await access.require(actor, Action.CREATE, Resource.USER, resource_org_id=org_id)

        if data.role is not Role.USER:
            decision = evaluate_role_change(actor.role, Role.USER, data.role, context_for(actor, None, org_id))
            if not decision.allowed:
                raise PermissionDeniedError(f"You cannot create a user with role '{data.role.value}'", rule=decision.rule)

        if org_id is not None and await db.get(Organization, org_id) is None:
            raise NotFoundError("Organization", str(org_id))

        user = await auth_service.create_user(
            email=data.email,
            password=data.password,
            full_name=data.full_name,
            db=db,
            role=data.role.value,
            org_id=org_id,
        )
        await audit_service.record(
            db,
            user_id=actor.id,
            action="create_user",
            resource_type="user",
            resource_id=user.id,
            details={"email": user.email, "role": user.role},
            org_id=org_id,
        )
        return user

    async def update_profile(
        self,
        actor: User,
        user_id: UUID,
        data: UserProfileUpdate,
        access: AccessService,
        db: AsyncSession,
    ) -> User:
        target = await self.get_user(user_id, db)
        await access.require(actor, Action.UPDATE, Resource.USER, owner_id=target.id, resource_org_id=target.org_id)

        changes = data.model_dump(exclude_unset=True)
        for field, value in changes.items():
            setattr(target, field, value)
        target.updated_at = datetime.utcnow()

        await audit_service.record(
            db,
            user_id=actor.id,
            action="update_profile",
            resource_type="user",
            resource_id=target.id,
            details={"fields": sorted(changes)},
            org_id=target.org_id,
            commit=False,
        )
        await db.commit()
        await db.refresh(target)
        return target

    async def change_role(
        self,
        actor: User,
        user_id: UUID,
        new_role: Role,
        access: AccessService,
        db: AsyncSession,
    ) -> User:
        target = await self.get_user(user_id, db)
        await access.require_role_change(actor, target, new_role.value)

        old_role = target.role
        target.role = new_role.value
        target.updated_at = datetime.utcnow()
        await audit_service.record(
            db,
            user_id=actor.id,
            action="update_role",
            resource_type="user",
            resource_id=target.id,
            details={"old_role": old_role, "new_role": new_role.value},
            org_id=target.org_id,
            commit=False,
        )
        await db.commit()
        await db.refresh(target)

        logger.info(f"User {actor.id} changed role of {target.id}: {old_role} -> {new_role.value}")
        return target

    async def change_org(
        self,
        actor: User,
        user_id: UUID,
        org_id: Optional[UUID],
        access: AccessService,
        db: AsyncSession,
    ) -> User:
        """Move a user to another organization (or none)."""
        await access.require(actor, Action.ACCESS, Resource.GOD_PANEL)
        target = await self.get_user(user_id, db)

        if org_id is not None and await db.get(Organization, org_id) is None:
            raise NotFoundError("Organization", str(org_id))

        old_org_id = target.org_id
        target.org_id = org_id
        target.updated_at = datetime.utcnow()
        await audit_service.record(
            db,
            user_id=actor.id,
            action="update_org",
            resource_type="user",
            resource_id=target.id,
            details={
                "old_org_id": str(old_org_id) if old_org_id else None,
                "new_org_id": str(org_id) if org_id else None,
            },
            org_id=org_id,
            commit=False,
        )
        await db.commit()
        await db.refresh(target)
        return target

    async def _require_outranks(self, actor: User, target: User, action: Action, access: AccessService):
        if str(actor.id) == str(target.id):
            raise PermissionDeniedError("You cannot perform this action on your own account", rule="self_action")
        await access.require(actor, action, Resource.USER, resource_org_id=target.org_id)
        if not outranks(actor.role, target.role):
            raise PermissionDeniedError(
                "You can only manage users ranked below you", rule="user_outranks_target"
            )

    async def set_active(
        self,
        actor: User,
        user_id: UUID,
        is_active: bool,
        access: AccessService,
        db: AsyncSession,
    ) -> User:
        target = await self.get_user(user_id, db)
        await self._require_outranks(actor, target, Action.UPDATE, access)

        target.is_active = is_active
        target.updated_at = datetime.utcnow()
        await audit_service.record(
            db,
            user_id=actor.id,
            action="activate_user" if is_active else "deactivate_user",
            resource_type="user",
            resource_id=target.id,
            org_id=target.org_id,
            commit=False,
        )
        await db.commit()
        await db.refresh(target)
        return target

    async def delete_user(self, actor: User, user_id: UUID, access: AccessService, db: AsyncSession) -> None:
        target = await self.get_user(user_id, db)
        await self._require_outranks(actor, target, Action.DELETE, access)

        await audit_service.record(
            db,
            user_id=actor.id,
            action="delete_user",
            resource_type="user",
            resource_id=target.id,
            details={"email": target.email, "role": target.role},
            org_id=target.org_id,
            commit=False,
        )
        await db.delete(target)
        await db.commit()
        logger.info(f"User {actor.id} deleted user {user_id}")

    async def change_password(
        self,
        user: User,
        current_password: str,
        new_password: str,
        db: AsyncSession,
    ) -> None:
        if not await auth_service.update_password(user, current_password, new_password, db):
            raise ValidationError("Current password is incorrect", field="current_password")
        await audit_service.record(
            db,
            user_id=user.id,
            action="change_password",
            resource_type="user",
            resource_id=user.id,
            org_id=user.org_id,
        )


user_service = UserService()
