"""Integration tests for role administration endpoints."""

import pytest
from httpx import AsyncClient
from sqlmodel.ext.asyncio.session import AsyncSession

from siteaccess.core.messages import AccessMessages, RoleMessages
from siteaccess.models.user import AppRole
from siteaccess.services.roles import has_role
from siteaccess.testing import create_admin, create_user, get_auth_headers


@pytest.mark.integration
async def test_admin_grants_and_revokes_role(client: AsyncClient, session: AsyncSession):
    admin = await create_admin(session)
    user = await create_user(session)
    headers = get_auth_headers(admin)

    granted = await client.post("/api/v1/roles/", headers=headers, json={"user_id": user.id, "role": "moderator"})
    assert granted.status_code == 201
    assert granted.json()["granted_by"] == admin.id
    assert await has_role(session, user.id, AppRole.moderator) is True

    revoked = await client.delete("/api/v1/roles/", headers=headers, params={"user_id": user.id, "role": "moderator"})
    assert revoked.status_code == 204
    assert await has_role(session, user.id, AppRole.moderator) is False


@pytest.mark.integration
async def test_user_cannot_grant_themselves_admin(client: AsyncClient, session: AsyncSession):
    user = await create_user(session)

    response = await client.post(
        "/api/v1/roles/", headers=get_auth_headers(user), json={"user_id": user.id, "role": "admin"}
    )

    assert response.status_code == 403
    assert response.json()["detail"] == AccessMessages.NOT_PERMITTED
    assert await has_role(session, user.id, AppRole.admin) is False


@pytest.mark.integration
async def test_unknown_role_is_a_constraint_violation(client: AsyncClient, session: AsyncSession):
    admin = await create_admin(session)

    response = await client.post(
        "/api/v1/roles/", headers=get_auth_headers(admin), json={"user_id": admin.id, "role": "superuser"}
    )

    assert response.status_code == 422
    assert response.json() == {"detail": RoleMessages.INVALID_ROLE, "field": "role"}


@pytest.mark.integration
async def test_user_lists_only_own_roles(client: AsyncClient, session: AsyncSession):
    await create_admin(session)
    user = await create_user(session)

    response = await client.get("/api/v1/roles/", headers=get_auth_headers(user))

    assert response.status_code == 200
    assert response.json() == []
