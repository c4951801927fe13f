"""Tests for client comments written by members and portal token holders."""

import pytest
from sqlmodel.ext.asyncio.session import AsyncSession

from siteaccess.core.errors import AccessDenied
from siteaccess.models.access_token import AccessTokenKind
from siteaccess.services import comments
from siteaccess.services.principals import Anonymous
from siteaccess.testing import create_access_token_row, create_project, create_user


def _client(token_row, email: str | None = "client@example.com") -> Anonymous:
    return Anonymous(tokens={AccessTokenKind.client_portal: token_row.token}, contributor_email=email)


@pytest.mark.service
async def test_token_holder_comment_is_tagged_with_token(session: AsyncSession, evaluator_for):
    project = await create_project(session)
    token_row = await create_access_token_row(session, project)

    comment = await comments.create_comment(
        evaluator_for(_client(token_row)), project_id=project.id, body="Please move the door"
    )

    assert comment.access_token_id == token_row.id
    assert comment.user_id is None
    assert comment.author_email == "client@example.com"
    await session.refresh(token_row)
    assert token_row.access_count == 1


@pytest.mark.service
async def test_token_holder_cannot_comment_on_another_project(session: AsyncSession, evaluator_for):
    project = await create_project(session)
    other = await create_project(session)
    token_row = await create_access_token_row(session, project)

    with pytest.raises(AccessDenied):
        await comments.create_comment(
            evaluator_for(_client(token_row)), project_id=other.id, body="Wrong project"
        )


@pytest.mark.service
async def test_anonymous_without_token_cannot_comment(session: AsyncSession, evaluator_for):
    project = await create_project(session)

    with pytest.raises(AccessDenied):
        await comments.create_comment(evaluator_for(None), project_id=project.id, body="Hello")


@pytest.mark.service
async def test_member_comment_uses_profile(session: AsyncSession, evaluator_for):
    owner = await create_user(session, full_name="Site Manager")
    project = await create_project(session, owner=owner)

    comment = await comments.create_comment(evaluator_for(owner), project_id=project.id, body="Noted")

    assert comment.user_id == owner.id
    assert comment.access_token_id is None
    assert comment.author_name == "Site Manager"
    assert comment.author_email == owner.email


@pytest.mark.service
async def test_token_holder_deletes_only_own_comments(session: AsyncSession, evaluator_for):
    project = await create_project(session)
    token_row = await create_access_token_row(session, project)
    alice = evaluator_for(_client(token_row, "alice@example.com"))
    bob = evaluator_for(_client(token_row, "bob@example.com"))

    alice_comment = await comments.create_comment(alice, project_id=project.id, body="From Alice")

    assert await comments.update_comment(bob, alice_comment, "Edited by Bob") is True
    assert await comments.delete_comment(bob, alice_comment) is False
    assert await comments.delete_comment(alice, alice_comment) is True


@pytest.mark.service
async def test_comments_visible_to_members_and_token_holders(session: AsyncSession, evaluator_for):
    owner = await create_user(session)
    outsider = await create_user(session)
    project = await create_project(session, owner=owner)
    token_row = await create_access_token_row(session, project)
    await comments.create_comment(evaluator_for(owner), project_id=project.id, body="Internal")
    await comments.create_comment(evaluator_for(_client(token_row)), project_id=project.id, body="Client")

    assert len(await comments.list_comments(evaluator_for(owner), project.id)) == 2
    assert len(await comments.list_comments(evaluator_for(_client(token_row)), project.id)) == 2
    assert await comments.list_comments(evaluator_for(outsider), project.id) == []
    assert await comments.portal_project_id(evaluator_for(_client(token_row))) == project.id
    assert await comments.portal_project_id(evaluator_for(owner)) is None
