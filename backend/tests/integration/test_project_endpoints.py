"""
Integration tests for project endpoints.

Tests the project API endpoints at /api/v1/projects including:
- Authentication requirement
- Creating, listing, updating and deleting projects
- Membership management, including 200 vs 201 on re-adding a member
- Deleting project documents
- Issuing and revoking portal tokens
"""

import pytest
from httpx import AsyncClient
from sqlmodel.ext.asyncio.session import AsyncSession

from siteaccess.core.messages import AccessMessages, DocumentMessages, ProjectMessages
from siteaccess.models.document import ProjectDocument
from siteaccess.testing import (
    add_project_member,
    create_access_token_row,
    create_admin,
    create_project,
    create_user,
    get_auth_headers,
)


@pytest.mark.integration
async def test_list_projects_requires_authentication(client: AsyncClient):
    response = await client.get("/api/v1/projects/")

    assert response.status_code == 401
    assert response.json()["detail"] == AccessMessages.NOT_AUTHENTICATED


@pytest.mark.integration
async def test_create_project_enrols_creator(client: AsyncClient, session: AsyncSession):
    user = await create_user(session)
    headers = get_auth_headers(user)

    response = await client.post(
        "/api/v1/projects/",
        headers=headers,
        json={"name": "Harbour Tower", "project_number": "HT-001"},
    )

    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "Harbour Tower"
    assert data["created_by"] == user.id

    members = await client.get(f"/api/v1/projects/{data['id']}/members", headers=headers)
    assert members.status_code == 200
    assert members.json()["members"][0]["user_id"] == user.id
    assert members.json()["members"][0]["position"] == "primary"


@pytest.mark.integration
async def test_list_projects_filters_silently(client: AsyncClient, session: AsyncSession):
    user = await create_user(session)
    mine = await create_project(session, owner=user)
    await create_project(session)

    response = await client.get("/api/v1/projects/", headers=get_auth_headers(user))

    assert response.status_code == 200
    assert [project["id"] for project in response.json()] == [mine.id]


@pytest.mark.integration
async def test_admin_lists_every_project(client: AsyncClient, session: AsyncSession):
    admin = await create_admin(session)
    await create_project(session)
    await create_project(session)

    response = await client.get("/api/v1/projects/", headers=get_auth_headers(admin))

    assert response.status_code == 200
    assert len(response.json()) == 2


@pytest.mark.integration
async def test_invisible_project_is_not_found(client: AsyncClient, session: AsyncSession):
    outsider = await create_user(session)
    project = await create_project(session)

    response = await client.get(f"/api/v1/projects/{project.id}", headers=get_auth_headers(outsider))

    assert response.status_code == 404
    assert response.json()["detail"] == ProjectMessages.NOT_FOUND


@pytest.mark.integration
async def test_member_update_is_not_applied(client: AsyncClient, session: AsyncSession):
    project = await create_project(session, name="Original")
    member = await create_user(session)
    await add_project_member(session, project, member)

    response = await client.patch(
        f"/api/v1/projects/{project.id}",
        headers=get_auth_headers(member),
        json={"name": "Renamed"},
    )

    assert response.status_code == 404
    await session.refresh(project)
    assert project.name == "Original"


@pytest.mark.integration
async def test_owner_updates_and_deletes_project(client: AsyncClient, session: AsyncSession):
    owner = await create_user(session)
    project = await create_project(session, owner=owner)
    headers = get_auth_headers(owner)

    updated = await client.patch(
        f"/api/v1/projects/{project.id}", headers=headers, json={"client_name": "Acme"}
    )
    assert updated.status_code == 200
    assert updated.json()["client_name"] == "Acme"

    deleted = await client.delete(f"/api/v1/projects/{project.id}", headers=headers)
    assert deleted.status_code == 204

    missing = await client.get(f"/api/v1/projects/{project.id}", headers=headers)
    assert missing.status_code == 404


@pytest.mark.integration
async def test_add_member_with_invalid_position(client: AsyncClient, session: AsyncSession):
    owner = await create_user(session)
    user = await create_user(session)
    project = await create_project(session, owner=owner)

    response = await client.post(
        f"/api/v1/projects/{project.id}/members",
        headers=get_auth_headers(owner),
        json={"user_id": user.id, "position": "foreman"},
    )

    assert response.status_code == 422
    assert response.json() == {"detail": ProjectMessages.INVALID_POSITION, "field": "position"}


@pytest.mark.integration
async def test_member_cannot_add_members(client: AsyncClient, session: AsyncSession):
    project = await create_project(session)
    member = await create_user(session)
    newcomer = await create_user(session)
    await add_project_member(session, project, member)

    response = await client.post(
        f"/api/v1/projects/{project.id}/members",
        headers=get_auth_headers(member),
        json={"user_id": newcomer.id},
    )

    assert response.status_code == 403
    assert response.json()["detail"] == AccessMessages.NOT_PERMITTED


@pytest.mark.integration
async def test_owner_manages_members(client: AsyncClient, session: AsyncSession):
    owner = await create_user(session)
    user = await create_user(session)
    project = await create_project(session, owner=owner)
    headers = get_auth_headers(owner)

    added = await client.post(
        f"/api/v1/projects/{project.id}/members",
        headers=headers,
        json={"user_id": user.id, "position": "draughtsman"},
    )
    assert added.status_code == 201
    assert added.json()["position"] == "draughtsman"

    removed = await client.delete(f"/api/v1/projects/{project.id}/members/{user.id}", headers=headers)
    assert removed.status_code == 204

    again = await client.delete(f"/api/v1/projects/{project.id}/members/{user.id}", headers=headers)
    assert again.status_code == 404


@pytest.mark.integration
async def test_member_cannot_readd_existing_member(client: AsyncClient, session: AsyncSession):
    project = await create_project(session)
    member = await create_user(session)
    colleague = await create_user(session)
    await add_project_member(session, project, member)
    await add_project_member(session, project, colleague)

    response = await client.post(
        f"/api/v1/projects/{project.id}/members",
        headers=get_auth_headers(member),
        json={"user_id": colleague.id, "position": "secondary"},
    )

    assert response.status_code == 403
    assert response.json()["detail"] == AccessMessages.NOT_PERMITTED


@pytest.mark.integration
async def test_posting_existing_member_returns_ok(client: AsyncClient, session: AsyncSession):
    owner = await create_user(session)
    user = await create_user(session)
    project = await create_project(session, owner=owner)
    await add_project_member(session, project, user)
    headers = get_auth_headers(owner)

    unchanged = await client.post(
        f"/api/v1/projects/{project.id}/members",
        headers=headers,
        json={"user_id": user.id, "position": "secondary"},
    )
    promoted = await client.post(
        f"/api/v1/projects/{project.id}/members",
        headers=headers,
        json={"user_id": user.id, "position": "primary"},
    )

    assert unchanged.status_code == 200
    assert promoted.status_code == 200
    assert promoted.json()["position"] == "primary"


@pytest.mark.integration
async def test_issue_and_revoke_portal_token(client: AsyncClient, session: AsyncSession):
    owner = await create_user(session)
    project = await create_project(session, owner=owner)
    headers = get_auth_headers(owner)

    issued = await client.post(
        f"/api/v1/projects/{project.id}/portal-tokens",
        headers=headers,
        json={"kind": "contractor_portal", "contractor_name": "Volt Electrical", "document_categories": ["electrical"]},
    )
    assert issued.status_code == 201
    token = issued.json()
    assert token["kind"] == "contractor_portal"
    assert token["short_code"]

    listed = await client.get(
        f"/api/v1/projects/{project.id}/portal-tokens",
        headers=headers,
        params={"kind": "contractor_portal"},
    )
    assert [row["id"] for row in listed.json()] == [token["id"]]

    revoked = await client.delete(
        f"/api/v1/projects/{project.id}/portal-tokens/contractor_portal/{token['id']}",
        headers=headers,
    )
    assert revoked.status_code == 204


@pytest.mark.integration
async def test_outsider_cannot_see_portal_tokens(client: AsyncClient, session: AsyncSession):
    project = await create_project(session)
    await create_access_token_row(session, project)
    outsider = await create_user(session)

    response = await client.get(
        f"/api/v1/projects/{project.id}/portal-tokens", headers=get_auth_headers(outsider)
    )

    assert response.status_code == 404


async def _add_document(session: AsyncSession, project, name: str = "Lease") -> ProjectDocument:
    document = ProjectDocument(
        project_id=project.id,
        name=name,
        category="legal",
        file_path=f"{project.id}/{name}.pdf",
        created_by=project.created_by,
    )
    session.add(document)
    await session.commit()
    await session.refresh(document)
    return document


@pytest.mark.integration
async def test_member_deletes_project_document(client: AsyncClient, session: AsyncSession):
    project = await create_project(session)
    member = await create_user(session)
    await add_project_member(session, project, member)
    document = await _add_document(session, project)
    headers = get_auth_headers(member)

    removed = await client.delete(f"/api/v1/projects/{project.id}/documents/{document.id}", headers=headers)
    assert removed.status_code == 204

    listed = await client.get(f"/api/v1/projects/{project.id}/documents", headers=headers)
    assert listed.json() == []


@pytest.mark.integration
async def test_outsider_cannot_delete_project_document(client: AsyncClient, session: AsyncSession):
    project = await create_project(session)
    outsider = await create_user(session)
    document = await _add_document(session, project)

    response = await client.delete(
        f"/api/v1/projects/{project.id}/documents/{document.id}", headers=get_auth_headers(outsider)
    )

    assert response.status_code == 404
    assert response.json()["detail"] == DocumentMessages.NOT_FOUND
    assert await session.get(ProjectDocument, document.id) is not None


@pytest.mark.integration
async def test_document_must_belong_to_the_addressed_project(client: AsyncClient, session: AsyncSession):
    member = await create_user(session)
    project = await create_project(session, owner=member)
    other = await create_project(session, owner=member)
    document = await _add_document(session, other)

    response = await client.delete(
        f"/api/v1/projects/{project.id}/documents/{document.id}", headers=get_auth_headers(member)
    )

    assert response.status_code == 404
