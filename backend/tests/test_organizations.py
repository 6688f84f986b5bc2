"""
Tests for organization (tenant) endpoints.
"""

from app.services.auth_service import ORG_CODE_RE
from app.services.organization_service import generate_org_code
from tests.factories import auth_headers_for, create_test_document, create_test_user


def test_generated_codes_are_valid_registration_codes():
    codes = {generate_org_code() for _ in range(200)}
    assert len(codes) > 190
    for code in codes:
        assert len(code) == 8
        assert ORG_CODE_RE.match(code)


async def test_god_creates_organization_with_generated_code(client, god_headers):
    response = await client.post(
        "/api/v1/organizations/",
        json={"name": " Initech ", "slug": "Initech"},
        headers=god_headers,
    )

    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "Initech"
    assert data["slug"] == "initech"
    assert ORG_CODE_RE.match(data["org_code"])


async def test_god_creates_organization_with_given_code(client, god_headers):
    response = await client.post(
        "/api/v1/organizations/",
        json={"name": "Hooli", "slug": "hooli", "org_code": "hooli99"},
        headers=god_headers,
    )
    assert response.status_code == 201
    assert response.json()["org_code"] == "HOOLI99"


async def test_duplicate_slug_and_code_conflict(client, god_headers, organization):
    slug = await client.post(
        "/api/v1/organizations/", json={"name": "Acme 2", "slug": "acme"}, headers=god_headers
    )
    assert slug.status_code == 409

    code = await client.post(
        "/api/v1/organizations/",
        json={"name": "Acme 3", "slug": "acme-3", "org_code": "ACME2024"},
        headers=god_headers,
    )
    assert code.status_code == 409


async def test_super_admin_cannot_create_organization(client, super_admin_headers):
    response = await client.post(
        "/api/v1/organizations/", json={"name": "Nope", "slug": "nope"}, headers=super_admin_headers
    )
    assert response.status_code == 403
    assert response.json()["rule"] == "god_panel_only"


async def test_listing_is_scoped(client, organization, other_organization, admin_headers, god_headers):
    scoped = await client.get("/api/v1/organizations/", headers=admin_headers)
    assert [o["slug"] for o in scoped.json()] == ["acme"]

    everything = await client.get("/api/v1/organizations/", headers=god_headers)
    assert [o["slug"] for o in everything.json()] == ["acme", "globex"]


async def test_plain_user_cannot_read_organization(client, organization, auth_headers):
    response = await client.get(f"/api/v1/organizations/{organization.id}", headers=auth_headers)
    assert response.status_code == 403


async def test_admin_cannot_read_other_organization(client, other_organization, admin_headers):
    response = await client.get(f"/api/v1/organizations/{other_organization.id}", headers=admin_headers)
    assert response.status_code == 403
    assert response.json()["rule"] == "tenant_boundary"


async def test_update_requires_super_admin(client, organization, admin_headers, super_admin_headers):
    denied = await client.put(
        f"/api/v1/organizations/{organization.id}", json={"name": "Acme Corp"}, headers=admin_headers
    )
    assert denied.status_code == 403

    allowed = await client.put(
        f"/api/v1/organizations/{organization.id}", json={"name": "Acme Corp"}, headers=super_admin_headers
    )
    assert allowed.status_code == 200
    assert allowed.json()["name"] == "Acme Corp"


async def test_super_admin_without_organization_cannot_touch_tenants(client, db_session, organization):
    loner = await create_test_user(db_session, email="loner-super@example.com", role="super_admin")
    headers = auth_headers_for(loner)

    update = await client.put(f"/api/v1/organizations/{organization.id}", json={"name": "Taken"}, headers=headers)
    assert update.status_code == 403
    assert update.json()["rule"] == "tenant_boundary"

    regenerate = await client.post(f"/api/v1/organizations/{organization.id}/regenerate-code", headers=headers)
    assert regenerate.status_code == 403

    await db_session.refresh(organization)
    assert organization.name != "Taken"


async def test_regenerated_code_replaces_old_one(client, organization, super_admin_headers):
    response = await client.post(
        f"/api/v1/organizations/{organization.id}/regenerate-code", headers=super_admin_headers
    )
    assert response.status_code == 200
    new_code = response.json()["org_code"]
    assert new_code != "ACME2024"

    old = await client.post(
        "/api/v1/auth/register",
        json={"email": "late@example.com", "password": "latepass123", "full_name": "Late", "org_code": "ACME2024"},
    )
    assert old.status_code == 404

    new = await client.post(
        "/api/v1/auth/register",
        json={"email": "late@example.com", "password": "latepass123", "full_name": "Late", "org_code": new_code},
    )
    assert new.status_code == 201


async def test_stats(client, db_session, organization, test_user, admin_headers):
    await create_test_user(db_session, email="waiting@example.com", org=organization, approval_status="pending")
    await create_test_document(db_session, test_user)

    response = await client.get(f"/api/v1/organizations/{organization.id}/stats", headers=admin_headers)

    assert response.status_code == 200
    assert response.json() == {"user_count": 3, "document_count": 1, "pending_count": 1}


async def test_delete_is_god_only(client, organization, super_admin_headers, god_headers):
    denied = await client.delete(f"/api/v1/organizations/{organization.id}", headers=super_admin_headers)
    assert denied.status_code == 403

    allowed = await client.delete(f"/api/v1/organizations/{organization.id}", headers=god_headers)
    assert allowed.status_code == 200

    missing = await client.get(f"/api/v1/organizations/{organization.id}", headers=god_headers)
    assert missing.status_code == 404
