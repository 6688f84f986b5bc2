"""
Authorization gate used by the route handlers.

Combines the local role hierarchy with the optional external policy engine and
turns a denial into ``PermissionDeniedError`` (HTTP 403).
"""

from typing import Any, Optional

from fastapi import Depends
from loguru import logger

from app.models.user import User
from app.services.policy_gate import PolicyGate, get_policy_gate
from app.services.role_authority import (
    Action,
    PermissionContext,
    PermissionDecision,
    Resource,
    Role,
    evaluate_document_delete,
    evaluate_permission,
    evaluate_role_change,
    outranks,
)
from app.utils.exceptions import PermissionDeniedError


DENIAL_MESSAGES = {
    "tenant_boundary": "This resource belongs to another organization",
    "god_panel_only": "Only the god role may access this area",
    "god_public_documents_only": "God can only delete public documents owned by others",
    "document_delete_outranks_owner": "You don't have permission to delete this document",
    "document_owner_unknown": "Cannot verify document owner. Deletion denied",
    "role_change_self": "You cannot change your own role",
    "role_change_outranks_target": "You can only change the role of users ranked below you",
    "role_change_grant_god": "Super admins cannot assign the god role",
    "policy_engine": "Denied by policy engine",
}


def context_for(user: User, owner_id: Optional[Any] = None, resource_org_id: Optional[Any] = None) -> PermissionContext:
    return PermissionContext(
        owner_id=owner_id,
        user_id=user.id,
        resource_org_id=resource_org_id,
        user_org_id=user.org_id,
    )


def unscoped_principal_denial(user: User, resource_org_id: Optional[Any]) -> Optional[PermissionDecision]:
    """Non-god principals without an organization never reach tenant-scoped resources."""
    if user.role != Role.GOD.value and user.org_id is None and resource_org_id is not None:
        return PermissionDecision(False, "tenant_boundary")
    return None


class AccessService:
    """Evaluates and enforces permissions for the current user."""

    def __init__(self, gate: Optional[PolicyGate] = None):
        self.gate = gate or PolicyGate()

    async def _enforce(
        self,
        user: User,
        decision: PermissionDecision,
        action: str,
        resource: str,
        resource_org_id: Optional[Any] = None,
    ) -> PermissionDecision:
        if not decision.allowed:
            logger.info(f"Denied {action}:{resource} for user {user.id} (rule={decision.rule})")
            raise PermissionDeniedError(
                DENIAL_MESSAGES.get(decision.rule, "You do not have permission to perform this action"),
                rule=decision.rule,
            )

        # The external engine can only narrow a local allow
        if not await self.gate.check(user.id, action, resource, tenant=resource_org_id or user.org_id):
            raise PermissionDeniedError(DENIAL_MESSAGES["policy_engine"], rule="policy_engine")

        return decision

    async def require(
        self,
        user: User,
        action: Action,
        resource: Resource,
        *,
        owner_id: Optional[Any] = None,
        resource_org_id: Optional[Any] = None,
    ) -> PermissionDecision:
        decision = unscoped_principal_denial(user, resource_org_id)
        if decision is None:
            decision = evaluate_permission(user.role, action, resource, context_for(user, owner_id, resource_org_id))
        return await self._enforce(user, decision, action.value, resource.value, resource_org_id)

    def allows(
        self,
        user: User,
        action: Action,
        resource: Resource,
        *,
        owner_id: Optional[Any] = None,
        resource_org_id: Optional[Any] = None,
    ) -> bool:
        """Local-only check for filtering and display decisions."""
        if unscoped_principal_denial(user, resource_org_id) is not None:
            return False
        return evaluate_permission(
            user.role, action, resource, context_for(user, owner_id, resource_org_id)
        ).allowed

    async def require_document_delete(self, user: User, document, owner_role: Optional[str]) -> PermissionDecision:
        decision = unscoped_principal_denial(user, document.org_id)
        if decision is None:
            decision = evaluate_document_delete(
                user.role,
                owner_role,
                document.is_public,
                context_for(user, document.owner_id, document.org_id),
            )
        return await self._enforce(user, decision, Action.DELETE.value, Resource.DOCUMENT.value, document.org_id)

    async def require_role_change(self, user: User, target: User, new_role: str) -> PermissionDecision:
        decision = evaluate_role_change(
            user.role,
            target.role,
            new_role,
            context_for(user, target.id, target.org_id),
        )
        denial = unscoped_principal_denial(user, target.org_id)
        if decision.allowed and denial is not None:
            decision = denial
        action = Action.PROMOTE if outranks(new_role, target.role) else Action.DEMOTE
        return await self._enforce(user, decision, action.value, Resource.USER.value, target.org_id)


def get_access_service(gate: PolicyGate = Depends(get_policy_gate)) -> AccessService:
    return AccessService(gate)
