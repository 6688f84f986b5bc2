"""
Tests for user management endpoints.
"""

from sqlalchemy import select

from app.models.audit_log import AuditLog
from app.models.user import ApprovalStatus, User
from tests.factories import DEFAULT_PASSWORD, auth_headers_for, create_test_user


async def test_list_users_requires_admin(client, auth_headers):
    response = await client.get("/api/v1/users/", headers=auth_headers)
    assert response.status_code == 403


async def test_admin_lists_only_own_org(client, db_session, admin_headers, test_user, other_organization):
    await create_test_user(db_session, email="outsider@example.com", org=other_organization)

    response = await client.get("/api/v1/users/", headers=admin_headers)

    assert response.status_code == 200
    emails = {u["email"] for u in response.json()["items"]}
    assert emails == {"admin@example.com", "test@example.com"}


async def test_god_lists_everyone(client, db_session, god_headers, test_user, other_organization):
    await create_test_user(db_session, email="outsider@example.com", org=other_organization)

    response = await client.get("/api/v1/users/", headers=god_headers)

    assert response.status_code == 200
    assert response.json()["total"] == 3


class TestMembershipApproval:

    async def _pending(self, db_session, org, email="pending@example.com"):
        return await create_test_user(db_session, email=email, org=org, approval_status=ApprovalStatus.PENDING)

    async def test_super_admin_sees_pending_queue(self, client, db_session, organization, super_admin_headers):
        await self._pending(db_session, organization)

        response = await client.get("/api/v1/users/pending", headers=super_admin_headers)

        assert response.status_code == 200
        assert [u["email"] for u in response.json()] == ["pending@example.com"]

    async def test_admin_cannot_approve(self, client, db_session, organization, admin_headers):
        pending = await self._pending(db_session, organization)

        response = await client.post(f"/api/v1/users/{pending.id}/approve", headers=admin_headers)
        assert response.status_code == 403

    async def test_approve_then_login(self, client, db_session, organization, super_admin_headers):
        pending = await self._pending(db_session, organization)

        response = await client.post(f"/api/v1/users/{pending.id}/approve", headers=super_admin_headers)
        assert response.status_code == 200
        assert response.json()["approval_status"] == "approved"

        login = await client.post(
            "/api/v1/auth/login",
            json={"email": "pending@example.com", "password": DEFAULT_PASSWORD}
        )
        assert login.status_code == 200

        logs = (await db_session.execute(
            select(AuditLog).where(AuditLog.action == "approve_membership")
        )).scalars().all()
        assert len(logs) == 1

    async def test_reject(self, client, db_session, organization, super_admin_headers):
        pending = await self._pending(db_session, organization)

        response = await client.post(f"/api/v1/users/{pending.id}/reject", headers=super_admin_headers)
        assert response.status_code == 200
        assert response.json()["approval_status"] == "rejected"

    async def test_cannot_approve_other_org(self, client, db_session, other_organization, super_admin_headers):
        pending = await self._pending(db_session, other_organization)

        response = await client.post(f"/api/v1/users/{pending.id}/approve", headers=super_admin_headers)
        assert response.status_code == 403
        assert response.json()["rule"] == "tenant_boundary"

    async def test_cannot_approve_twice(self, client, test_user, super_admin_headers):
        response = await client.post(f"/api/v1/users/{test_user.id}/approve", headers=super_admin_headers)
        assert response.status_code == 400


class TestRoleChanges:

    async def test_super_admin_promotes_user(self, client, test_user, super_admin_headers):
        response = await client.put(
            f"/api/v1/users/{test_user.id}/role", json={"role": "admin"}, headers=super_admin_headers
        )
        assert response.status_code == 200
        assert response.json()["role"] == "admin"

    async def test_super_admin_cannot_grant_god(self, client, test_user, super_admin_headers):
        response = await client.put(
            f"/api/v1/users/{test_user.id}/role", json={"role": "god"}, headers=super_admin_headers
        )
        assert response.status_code == 403
        assert response.json()["rule"] == "role_change_grant_god"

    async def test_admin_cannot_change_roles(self, client, test_user, admin_headers):
        response = await client.put(
            f"/api/v1/users/{test_user.id}/role", json={"role": "admin"}, headers=admin_headers
        )
        assert response.status_code == 403

    async def test_cannot_change_own_role(self, client, super_admin_user, super_admin_headers):
        response = await client.put(
            f"/api/v1/users/{super_admin_user.id}/role", json={"role": "user"}, headers=super_admin_headers
        )
        assert response.status_code == 403
        assert response.json()["rule"] == "role_change_self"

    async def test_unknown_role_is_rejected(self, client, test_user, super_admin_headers):
        response = await client.put(
            f"/api/v1/users/{test_user.id}/role", json={"role": "emperor"}, headers=super_admin_headers
        )
        assert response.status_code == 422


async def test_admin_creates_user_in_own_org(client, admin_headers, organization):
    response = await client.post(
        "/api/v1/users/",
        json={"email": "made@example.com", "full_name": "Made", "password": "madepass123"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    data = response.json()
    assert data["org_id"] == str(organization.id)
    assert data["approval_status"] == "approved"


async def test_admin_cannot_create_admin(client, admin_headers):
    response = await client.post(
        "/api/v1/users/",
        json={"email": "made@example.com", "full_name": "Made", "password": "madepass123", "role": "admin"},
        headers=admin_headers,
    )
    assert response.status_code == 403


async def test_user_updates_own_profile_but_not_others(client, db_session, organization, test_user, auth_headers):
    response = await client.put(
        f"/api/v1/users/{test_user.id}", json={"full_name": "Renamed"}, headers=auth_headers
    )
    assert response.status_code == 200
    assert response.json()["full_name"] == "Renamed"

    other = await create_test_user(db_session, email="other@example.com", org=organization)
    response = await client.put(f"/api/v1/users/{other.id}", json={"full_name": "Nope"}, headers=auth_headers)
    assert response.status_code == 403


async def test_deactivate_requires_outranking(client, db_session, organization, admin_headers, test_user):
    response = await client.put(
        f"/api/v1/users/{test_user.id}/active", json={"is_active": False}, headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["is_active"] is False

    peer = await create_test_user(db_session, email="peer@example.com", role="admin", org=organization)
    response = await client.put(f"/api/v1/users/{peer.id}/active", json={"is_active": False}, headers=admin_headers)
    assert response.status_code == 403


async def test_delete_user(client, db_session, admin_headers, test_user):
    user_id = test_user.id
    response = await client.delete(f"/api/v1/users/{user_id}", headers=admin_headers)
    assert response.status_code == 200

    db_session.expunge_all()
    assert await db_session.get(User, user_id) is None


async def test_admin_without_organization_cannot_manage_members(client, db_session, test_user):
    loner_admin = await create_test_user(db_session, email="loner-admin@example.com", role="admin")
    headers = auth_headers_for(loner_admin)

    response = await client.put(f"/api/v1/users/{test_user.id}/active", json={"is_active": False}, headers=headers)
    assert response.status_code == 403
    assert response.json()["rule"] == "tenant_boundary"

    response = await client.delete(f"/api/v1/users/{test_user.id}", headers=headers)
    assert response.status_code == 403
    assert response.json()["rule"] == "tenant_boundary"

    await db_session.refresh(test_user)
    assert test_user.is_active is True


async def test_super_admin_without_organization_cannot_change_member_roles(client, db_session, test_user):
    loner = await create_test_user(db_session, email="loner-super@example.com", role="super_admin")

    response = await client.put(
        f"/api/v1/users/{test_user.id}/role", json={"role": "admin"}, headers=auth_headers_for(loner)
    )

    assert response.status_code == 403
    assert response.json()["rule"] == "tenant_boundary"


async def test_move_user_between_orgs_is_god_only(
    client, test_user, other_organization, super_admin_headers, god_headers
):
    payload = {"org_id": str(other_organization.id)}

    response = await client.put(f"/api/v1/users/{test_user.id}/organization", json=payload, headers=super_admin_headers)
    assert response.status_code == 403

    response = await client.put(f"/api/v1/users/{test_user.id}/organization", json=payload, headers=god_headers)
    assert response.status_code == 200
    assert response.json()["org_id"] == str(other_organization.id)


async def test_change_password(client, auth_headers, test_user):
    response = await client.put(
        "/api/v1/users/me/password",
        json={"current_password": DEFAULT_PASSWORD, "new_password": "brandnewpass1"},
        headers=auth_headers,
    )
    assert response.status_code == 200

    response = await client.put(
        "/api/v1/users/me/password",
        json={"current_password": "wrong-password", "new_password": "anotherpass1"},
        headers=auth_headers,
    )
    assert response.status_code == 400


async def test_user_cannot_read_user_in_other_org(client, db_session, other_organization, admin_headers):
    outsider = await create_test_user(db_session, email="outsider@example.com", org=other_organization)

    response = await client.get(f"/api/v1/users/{outsider.id}", headers=admin_headers)
    assert response.status_code == 403

    response = await client.get(f"/api/v1/users/{outsider.id}", headers=auth_headers_for(outsider))
    assert response.status_code == 200
