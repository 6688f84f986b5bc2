"""
Role-based access control: the 4-tier role hierarchy and the permission matrix.

    god > super_admin > admin > user

Every function here is pure: decisions depend only on the arguments and the
fixed weight table, so they are safe to call from any request concurrently.
``has_permission`` never raises; unknown roles, actions or resources deny.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union


class Role(str, Enum):
    """Stored role values. Renaming any of these requires a data migration."""

    USER = "user"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"
    GOD = "god"


ROLE_WEIGHT = {
    Role.USER: 10,
    Role.ADMIN: 50,
    Role.SUPER_ADMIN: 75,
    Role.GOD: 100,
}


class Resource(str, Enum):
    DOCUMENT = "document"
    ORGANIZATION = "organization"
    USER = "user"
    AI_AGENT = "ai_agent"
    AI_ACTION = "ai_action"
    AI_KEY = "ai_key"
    ADMIN_PANEL = "admin_panel"
    GOD_PANEL = "god_panel"
    AUDIT_LOG = "audit_log"
    SYSTEM_SETTINGS = "system_settings"


class Action(str, Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    ACCESS = "access"
    APPROVE = "approve"
    REJECT = "reject"
    MANAGE = "manage"
    PROMOTE = "promote"
    DEMOTE = "demote"


RoleLike = Union[Role, str]


@dataclass(frozen=True)
class PermissionContext:
    """Ownership and tenancy facts about one request."""

    owner_id: Optional[Any] = None  # resource owner
    user_id: Optional[Any] = None  # requesting user
    resource_org_id: Optional[Any] = None
    user_org_id: Optional[Any] = None

    @property
    def is_owner(self) -> bool:
        return (
            self.user_id is not None
            and self.owner_id is not None
            and str(self.user_id) == str(self.owner_id)
        )

    @property
    def crosses_tenant(self) -> bool:
        return (
            self.resource_org_id is not None
            and self.user_org_id is not None
            and str(self.resource_org_id) != str(self.user_org_id)
        )


@dataclass(frozen=True)
class PermissionDecision:
    allowed: bool
    rule: str

    def __bool__(self) -> bool:
        return self.allowed


def _coerce(enum_cls, value):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return None


def weight(role: RoleLike) -> int:
    """Numeric weight of a role; unknown roles weigh 0."""
    parsed = _coerce(Role, role)
    return ROLE_WEIGHT[parsed] if parsed is not None else 0


def outranks(role_a: RoleLike, role_b: RoleLike) -> bool:
    """True if role_a is strictly more powerful than role_b."""
    return weight(role_a) > weight(role_b)


def is_at_least(role_a: RoleLike, role_b: RoleLike) -> bool:
    """True if role_a is at least as powerful as role_b."""
    return weight(role_a) >= weight(role_b)


def _at_least(role: Role, minimum: Role, rule: str) -> PermissionDecision:
    return PermissionDecision(is_at_least(role, minimum), rule)


def evaluate_permission(
    role: RoleLike,
    action: Union[Action, str],
    resource: Union[Resource, str],
    context: Optional[PermissionContext] = None,
) -> PermissionDecision:
    """
    Decide whether ``role`` may perform ``action`` on ``resource``.

    Returns the decision together with the name of the rule that fired, so
    callers can build a reason string without re-deriving the logic.
    """
    ctx = context or PermissionContext()
    role = _coerce(Role, role)
    action = _coerce(Action, action)
    resource = _coerce(Resource, resource)

    if role is None:
        return PermissionDecision(False, "unknown_role")
    if action is None or resource is None:
        return PermissionDecision(False, "default_deny")

    if role is Role.GOD:
        return PermissionDecision(True, "god")

    # The god panel is the one resource the hierarchy never extends downward to
    if resource is Resource.GOD_PANEL:
        return PermissionDecision(False, "god_panel_only")

    if ctx.crosses_tenant:
        return PermissionDecision(False, "tenant_boundary")

    if resource is Resource.ADMIN_PANEL:
        return _at_least(role, Role.ADMIN, "admin_panel")

    if resource is Resource.SYSTEM_SETTINGS:
        return _at_least(role, Role.SUPER_ADMIN, "system_settings")

    if resource is Resource.AUDIT_LOG:
        return _at_least(role, Role.ADMIN, "audit_log")

    if resource is Resource.ORGANIZATION:
        if action is Action.READ:
            return _at_least(role, Role.ADMIN, "organization_read")
        return _at_least(role, Role.SUPER_ADMIN, "organization_write")

    if resource is Resource.USER:
        if action in (Action.READ, Action.CREATE, Action.DELETE):
            return _at_least(role, Role.ADMIN, f"user_{action.value}")
        if action is Action.UPDATE:
            if ctx.is_owner:
                return PermissionDecision(True, "user_update_self")
            return _at_least(role, Role.ADMIN, "user_update")
        if action in (Action.PROMOTE, Action.DEMOTE):
            return _at_least(role, Role.SUPER_ADMIN, "user_role_change")
        if action in (Action.APPROVE, Action.REJECT):
            return _at_least(role, Role.SUPER_ADMIN, "user_membership")
        return PermissionDecision(False, "default_deny")

    if resource is Resource.DOCUMENT:
        if action in (Action.READ, Action.CREATE):
            return PermissionDecision(True, f"document_{action.value}")
        if action in (Action.UPDATE, Action.DELETE):
            if ctx.is_owner:
                return PermissionDecision(True, "document_owner")
            return _at_least(role, Role.ADMIN, f"document_{action.value}")
        return PermissionDecision(False, "default_deny")

    if resource is Resource.AI_AGENT:
        if action is Action.READ:
            return PermissionDecision(True, "ai_agent_read")
        return _at_least(role, Role.ADMIN, "ai_agent_manage")

    if resource is Resource.AI_ACTION:
        if action is Action.READ:
            return PermissionDecision(True, "ai_action_read")
        return _at_least(role, Role.ADMIN, "ai_action_review")

    if resource is Resource.AI_KEY:
        # One tier stricter than documents: plain admins never see other users' keys
        if ctx.is_owner:
            return PermissionDecision(True, "ai_key_owner")
        return _at_least(role, Role.SUPER_ADMIN, "ai_key")

    return PermissionDecision(False, "default_deny")


def has_permission(
    role: RoleLike,
    action: Union[Action, str],
    resource: Union[Resource, str],
    context: Optional[PermissionContext] = None,
) -> bool:
    """Boolean form of ``evaluate_permission``."""
    return evaluate_permission(role, action, resource, context).allowed


def evaluate_document_delete(
    role: RoleLike,
    owner_role: Optional[RoleLike],
    is_public: bool,
    context: PermissionContext,
) -> PermissionDecision:
    """
    Deletion of a document, which is stricter than ``document:delete``.

    The owner may always delete. ``god`` may delete someone else's document
    only when it is public. Anyone else must strictly outrank the owner.
    """
    role = _coerce(Role, role)
    if role is None:
        return PermissionDecision(False, "unknown_role")

    if role is not Role.GOD and context.crosses_tenant:
        return PermissionDecision(False, "tenant_boundary")

    if context.is_owner:
        return PermissionDecision(True, "document_owner")

    if owner_role is None:
        return PermissionDecision(False, "document_owner_unknown")

    if role is Role.GOD:
        return PermissionDecision(bool(is_public), "god_public_documents_only")

    return PermissionDecision(outranks(role, owner_role), "document_delete_outranks_owner")


def evaluate_role_change(
    actor_role: RoleLike,
    target_role: RoleLike,
    new_role: RoleLike,
    context: PermissionContext,
) -> PermissionDecision:
    """
    Decide whether an actor may move a target user from ``target_role`` to ``new_role``.

    ``context.owner_id`` is the target user, ``context.user_id`` the actor.
    """
    actor_role = _coerce(Role, actor_role)
    new_role = _coerce(Role, new_role)
    if actor_role is None or new_role is None or _coerce(Role, target_role) is None:
        return PermissionDecision(False, "unknown_role")

    if context.is_owner:
        return PermissionDecision(False, "role_change_self")

    if actor_role is not Role.GOD and context.crosses_tenant:
        return PermissionDecision(False, "tenant_boundary")

    if not is_at_least(actor_role, Role.SUPER_ADMIN):
        return PermissionDecision(False, "user_role_change")

    if not outranks(actor_role, target_role):
        return PermissionDecision(False, "role_change_outranks_target")

    if actor_role is Role.SUPER_ADMIN and new_role is Role.GOD:
        return PermissionDecision(False, "role_change_grant_god")

    return PermissionDecision(True, "user_role_change")
