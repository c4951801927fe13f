"""Tests for role lookup and role administration."""

import pytest
from sqlmodel.ext.asyncio.session import AsyncSession

from siteaccess.core.errors import AccessDenied, ConstraintViolation
from siteaccess.models.user import AppRole
from siteaccess.services import roles
from siteaccess.testing import create_admin, create_user, grant_role


@pytest.mark.service
async def test_has_role_reads_assignments(session: AsyncSession):
    user = await create_user(session)
    await grant_role(session, user, AppRole.moderator)

    assert await roles.has_role(session, user.id, AppRole.moderator) is True
    assert await roles.has_role(session, user.id, "moderator") is True
    assert await roles.has_role(session, user.id, AppRole.admin) is False


@pytest.mark.service
@pytest.mark.parametrize("user_id, role", [(None, "admin"), (999, "admin")])
async def test_has_role_is_false_for_missing_users(session: AsyncSession, user_id, role):
    assert await roles.has_role(session, user_id, role) is False


@pytest.mark.service
async def test_has_role_is_false_for_unknown_role(session: AsyncSession):
    user = await create_admin(session)

    assert await roles.has_role(session, user.id, "superuser") is False


@pytest.mark.unit
def test_parse_role_rejects_values_outside_the_enum():
    with pytest.raises(ConstraintViolation) as exc_info:
        roles.parse_role("superuser")

    assert exc_info.value.field == "role"


@pytest.mark.service
async def test_admin_grants_and_revokes_roles(session: AsyncSession, evaluator_for):
    admin = await create_admin(session)
    user = await create_user(session)
    evaluator = evaluator_for(admin)

    assignment = await roles.grant_role(evaluator, user_id=user.id, role="admin")
    again = await roles.grant_role(evaluator, user_id=user.id, role=AppRole.admin)

    assert again.id == assignment.id
    assert assignment.granted_by == admin.id
    assert await roles.has_role(session, user.id, AppRole.admin) is True

    assert await roles.revoke_role(evaluator, user_id=user.id, role="admin") is True
    assert await roles.has_role(session, user.id, AppRole.admin) is False
    assert await roles.revoke_role(evaluator, user_id=user.id, role="admin") is False


@pytest.mark.service
async def test_non_admin_cannot_grant_even_an_existing_role(session: AsyncSession, evaluator_for):
    user = await create_user(session)
    await grant_role(session, user, AppRole.moderator)
    evaluator = evaluator_for(user)

    with pytest.raises(AccessDenied):
        await roles.grant_role(evaluator, user_id=user.id, role=AppRole.admin)
    with pytest.raises(AccessDenied):
        await roles.grant_role(evaluator, user_id=user.id, role=AppRole.moderator)


@pytest.mark.service
async def test_non_admin_revoke_leaves_assignment(session: AsyncSession, evaluator_for):
    user = await create_user(session)
    await grant_role(session, user, AppRole.moderator)

    removed = await roles.revoke_role(evaluator_for(user), user_id=user.id, role="moderator")

    assert removed is False
    assert await roles.has_role(session, user.id, AppRole.moderator) is True


@pytest.mark.service
async def test_list_roles_filters_to_visible_rows(session: AsyncSession, evaluator_for):
    admin = await create_admin(session)
    user = await create_user(session)
    await grant_role(session, user, AppRole.moderator)

    own = await roles.list_roles(evaluator_for(user))
    other = await roles.list_roles(evaluator_for(user), user_id=admin.id)
    everything = await roles.list_roles(evaluator_for(admin))

    assert [row.role for row in own] == [AppRole.moderator]
    assert other == []
    assert len(everything) == 2
