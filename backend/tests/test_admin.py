"""
Tests for admin endpoints.
"""

from tests.factories import auth_headers_for, create_test_document, create_test_user


async def test_get_system_health_admin(client, admin_headers):
    """Test getting system health (admin only)."""
    response = await client.get("/api/v1/admin/health", headers=admin_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["overall_status"] == "healthy"
    assert data["services"]["database"]["status"] == "healthy"
    assert data["services"]["policy_engine"]["status"] == "disabled"
    assert "timestamp" in data


async def test_get_system_health_non_admin(client, auth_headers):
    """Test getting system health as non-admin (should fail)."""
    response = await client.get("/api/v1/admin/health", headers=auth_headers)

    assert response.status_code == 403


async def test_stats_for_org_admin(client, db_session, test_user, admin_headers, other_organization):
    outsider = await create_test_user(db_session, email="outsider@example.com", org=other_organization)
    await create_test_document(db_session, test_user)
    await create_test_document(db_session, outsider)

    response = await client.get("/api/v1/admin/stats", headers=admin_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["org_id"] == str(test_user.org_id)
    assert data["organization_count"] == 1
    assert data["user_count"] == 2
    assert data["document_count"] == 1


async def test_stats_for_god_are_global(client, db_session, test_user, god_headers, other_organization):
    outsider = await create_test_user(db_session, email="outsider@example.com", org=other_organization)
    await create_test_document(db_session, test_user)
    await create_test_document(db_session, outsider)

    response = await client.get("/api/v1/admin/stats", headers=god_headers)

    data = response.json()
    assert data["org_id"] is None
    assert data["organization_count"] == 2
    assert data["user_count"] == 3
    assert data["document_count"] == 2


async def test_stats_non_admin(client, auth_headers):
    response = await client.get("/api/v1/admin/stats", headers=auth_headers)
    assert response.status_code == 403


class TestAuditLogs:

    async def test_admin_sees_own_org_only(self, client, db_session, auth_headers, admin_headers, other_organization):
        await client.post("/api/v1/documents/", json={"title": "Audited"}, headers=auth_headers)
        outsider = await create_test_user(db_session, email="outsider@example.com", org=other_organization)
        await create_test_document(db_session, outsider)

        # Asking for another org is silently narrowed to the caller's own
        response = await client.get(
            "/api/v1/audit-logs", params={"org_id": str(other_organization.id)}, headers=admin_headers
        )

        assert response.status_code == 200
        entries = response.json()
        assert [(e["action"], e["resource_type"]) for e in entries] == [("create", "document")]

    async def test_god_filters_by_org(self, client, auth_headers, god_headers, organization, other_organization):
        await client.post("/api/v1/documents/", json={"title": "Audited"}, headers=auth_headers)

        acme = await client.get("/api/v1/audit-logs", params={"org_id": str(organization.id)}, headers=god_headers)
        globex = await client.get(
            "/api/v1/audit-logs", params={"org_id": str(other_organization.id)}, headers=god_headers
        )

        assert len(acme.json()) == 1
        assert globex.json() == []

    async def test_limit_is_bounded(self, client, admin_headers):
        response = await client.get("/api/v1/audit-logs", params={"limit": 501}, headers=admin_headers)
        assert response.status_code == 422

    async def test_plain_user_is_refused(self, client, auth_headers):
        response = await client.get("/api/v1/audit-logs", headers=auth_headers)
        assert response.status_code == 403

    async def test_admin_without_org_gets_nothing(self, client, db_session, auth_headers):
        await client.post("/api/v1/documents/", json={"title": "Audited"}, headers=auth_headers)
        loner = await create_test_user(db_session, email="loner@example.com", role="admin")
        response = await client.get("/api/v1/audit-logs", headers=auth_headers_for(loner))
        assert response.json() == []
