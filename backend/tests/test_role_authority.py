"""
Tests for the role hierarchy and permission matrix.
"""

import itertools
from uuid import uuid4

import pytest

from app.services.role_authority import (
    Action,
    PermissionContext,
    Resource,
    Role,
    evaluate_document_delete,
    evaluate_permission,
    evaluate_role_change,
    has_permission,
    is_at_least,
    outranks,
    weight,
)

ALL_ROLES = list(Role)
ORG_A = uuid4()
ORG_B = uuid4()


def test_weights_are_strictly_ordered():
    assert weight(Role.USER) < weight(Role.ADMIN) < weight(Role.SUPER_ADMIN) < weight(Role.GOD)
    assert weight("user") == 10
    assert weight("god") == 100


def test_unknown_role_weighs_nothing():
    assert weight("emperor") == 0
    assert not outranks("emperor", Role.USER)


@pytest.mark.parametrize("a,b", list(itertools.product(ALL_ROLES, ALL_ROLES)))
def test_trichotomy(a, b):
    outcomes = [outranks(a, b), outranks(b, a), a == b]
    assert outcomes.count(True) == 1


@pytest.mark.parametrize("role", ALL_ROLES)
def test_is_at_least_is_reflexive(role):
    assert is_at_least(role, role)
    assert not outranks(role, role)


def test_god_panel_is_reserved_for_god():
    assert has_permission(Role.GOD, Action.ACCESS, Resource.GOD_PANEL)
    for role in (Role.USER, Role.ADMIN, Role.SUPER_ADMIN):
        decision = evaluate_permission(role, Action.ACCESS, Resource.GOD_PANEL)
        assert not decision.allowed
        assert decision.rule == "god_panel_only"


@pytest.mark.parametrize("role", [Role.USER, Role.ADMIN, Role.SUPER_ADMIN])
@pytest.mark.parametrize("resource", [Resource.DOCUMENT, Resource.USER, Resource.ORGANIZATION, Resource.AI_KEY])
def test_tenant_isolation_for_non_god(role, resource):
    user_id = uuid4()
    ctx = PermissionContext(owner_id=user_id, user_id=user_id, resource_org_id=ORG_A, user_org_id=ORG_B)
    decision = evaluate_permission(role, Action.READ, resource, ctx)
    assert not decision.allowed
    assert decision.rule == "tenant_boundary"


def test_god_crosses_tenants():
    ctx = PermissionContext(resource_org_id=ORG_A, user_org_id=ORG_B)
    assert has_permission(Role.GOD, Action.DELETE, Resource.ORGANIZATION, ctx)


def test_tenant_check_needs_both_org_ids():
    ctx = PermissionContext(resource_org_id=ORG_A, user_org_id=None)
    assert has_permission(Role.USER, Action.READ, Resource.DOCUMENT, ctx)


def test_owner_may_update_and_delete_own_document():
    user_id = uuid4()
    ctx = PermissionContext(owner_id=user_id, user_id=user_id, resource_org_id=ORG_A, user_org_id=ORG_A)
    assert has_permission(Role.USER, Action.UPDATE, Resource.DOCUMENT, ctx)
    assert has_permission(Role.USER, Action.DELETE, Resource.DOCUMENT, ctx)


def test_user_may_not_update_someone_elses_document():
    ctx = PermissionContext(owner_id=uuid4(), user_id=uuid4(), resource_org_id=ORG_A, user_org_id=ORG_A)
    assert not has_permission(Role.USER, Action.UPDATE, Resource.DOCUMENT, ctx)
    assert has_permission(Role.ADMIN, Action.UPDATE, Resource.DOCUMENT, ctx)


def test_ai_keys_are_one_tier_stricter_than_documents():
    ctx = PermissionContext(owner_id=uuid4(), user_id=uuid4(), resource_org_id=ORG_A, user_org_id=ORG_A)
    assert has_permission(Role.ADMIN, Action.READ, Resource.DOCUMENT, ctx)
    assert not has_permission(Role.ADMIN, Action.READ, Resource.AI_KEY, ctx)
    assert has_permission(Role.SUPER_ADMIN, Action.READ, Resource.AI_KEY, ctx)


def test_owner_reads_own_ai_key():
    user_id = uuid4()
    ctx = PermissionContext(owner_id=user_id, user_id=user_id)
    decision = evaluate_permission(Role.USER, Action.READ, Resource.AI_KEY, ctx)
    assert decision.allowed
    assert decision.rule == "ai_key_owner"


def test_admin_panel_and_organization_tiers():
    assert not has_permission(Role.USER, Action.ACCESS, Resource.ADMIN_PANEL)
    assert has_permission(Role.ADMIN, Action.ACCESS, Resource.ADMIN_PANEL)
    assert has_permission(Role.ADMIN, Action.READ, Resource.ORGANIZATION)
    assert not has_permission(Role.ADMIN, Action.UPDATE, Resource.ORGANIZATION)
    assert has_permission(Role.SUPER_ADMIN, Action.UPDATE, Resource.ORGANIZATION)


def test_membership_decisions_need_super_admin():
    assert not has_permission(Role.ADMIN, Action.APPROVE, Resource.USER)
    assert has_permission(Role.SUPER_ADMIN, Action.APPROVE, Resource.USER)
    assert has_permission(Role.SUPER_ADMIN, Action.REJECT, Resource.USER)


def test_unknown_inputs_deny_without_raising():
    assert evaluate_permission("emperor", Action.READ, Resource.DOCUMENT).rule == "unknown_role"
    assert not has_permission(Role.ADMIN, "teleport", Resource.DOCUMENT)
    assert not has_permission(Role.ADMIN, Action.READ, "spaceship")


class TestDocumentDelete:

    def _ctx(self, owner_id=None, user_id=None, resource_org=ORG_A, user_org=ORG_A):
        return PermissionContext(
            owner_id=owner_id or uuid4(),
            user_id=user_id or uuid4(),
            resource_org_id=resource_org,
            user_org_id=user_org,
        )

    def test_owner_can_always_delete(self):
        user_id = uuid4()
        decision = evaluate_document_delete(Role.USER, Role.USER, False, self._ctx(user_id, user_id))
        assert decision.allowed

    def test_must_outrank_owner(self):
        assert evaluate_document_delete(Role.ADMIN, Role.USER, False, self._ctx()).allowed
        assert not evaluate_document_delete(Role.ADMIN, Role.ADMIN, False, self._ctx()).allowed
        assert not evaluate_document_delete(Role.ADMIN, Role.SUPER_ADMIN, True, self._ctx()).allowed

    def test_god_deletes_only_public_documents_of_others(self):
        ctx = self._ctx(user_org=ORG_B)
        assert evaluate_document_delete(Role.GOD, Role.USER, True, ctx).allowed
        decision = evaluate_document_delete(Role.GOD, Role.USER, False, ctx)
        assert not decision.allowed
        assert decision.rule == "god_public_documents_only"

    def test_unknown_owner_denies(self):
        decision = evaluate_document_delete(Role.SUPER_ADMIN, None, True, self._ctx())
        assert decision.rule == "document_owner_unknown"

    def test_tenant_boundary(self):
        decision = evaluate_document_delete(Role.SUPER_ADMIN, Role.USER, True, self._ctx(user_org=ORG_B))
        assert decision.rule == "tenant_boundary"


class TestRoleChange:

    def _ctx(self, same_person=False, resource_org=ORG_A, user_org=ORG_A):
        actor = uuid4()
        return PermissionContext(
            owner_id=actor if same_person else uuid4(),
            user_id=actor,
            resource_org_id=resource_org,
            user_org_id=user_org,
        )

    def test_super_admin_promotes_user_to_admin(self):
        assert evaluate_role_change(Role.SUPER_ADMIN, Role.USER, Role.ADMIN, self._ctx()).allowed

    def test_cannot_change_own_role(self):
        decision = evaluate_role_change(Role.GOD, Role.GOD, Role.USER, self._ctx(same_person=True))
        assert decision.rule == "role_change_self"

    def test_admin_cannot_change_roles(self):
        decision = evaluate_role_change(Role.ADMIN, Role.USER, Role.ADMIN, self._ctx())
        assert not decision.allowed

    def test_must_outrank_target(self):
        decision = evaluate_role_change(Role.SUPER_ADMIN, Role.SUPER_ADMIN, Role.USER, self._ctx())
        assert decision.rule == "role_change_outranks_target"

    def test_super_admin_cannot_grant_god(self):
        decision = evaluate_role_change(Role.SUPER_ADMIN, Role.USER, Role.GOD, self._ctx())
        assert decision.rule == "role_change_grant_god"

    def test_god_can_grant_god_across_tenants(self):
        assert evaluate_role_change(Role.GOD, Role.USER, Role.GOD, self._ctx(user_org=ORG_B)).allowed

    def test_tenant_boundary_for_super_admin(self):
        decision = evaluate_role_change(Role.SUPER_ADMIN, Role.USER, Role.ADMIN, self._ctx(user_org=ORG_B))
        assert decision.rule == "tenant_boundary"
