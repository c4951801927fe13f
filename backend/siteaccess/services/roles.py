"""Role lookup and role administration.

``has_role`` reads ``user_roles`` directly through the session, outside the
policy layer. It is the only sanctioned way for a policy predicate to ask
about roles: the ``user_roles`` table is itself protected by a policy, so a
policy-checked read from inside a predicate would re-enter that policy.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from siteaccess.core.errors import ConstraintViolation
from siteaccess.core.messages import RoleMessages
from siteaccess.models.user import AppRole, UserRole
from siteaccess.services.guarded import delete_row, insert_row, select_visible

if TYPE_CHECKING:  # pragma: no cover
    from siteaccess.services.policies import PolicyEvaluator

logger = logging.getLogger(__name__)


def parse_role(value: AppRole | str) -> AppRole:
    if isinstance(value, AppRole):
        return value
    try:
        return AppRole(value)
    except ValueError as exc:
        raise ConstraintViolation(RoleMessages.INVALID_ROLE, field="role", value=value) from exc


async def has_role(session: AsyncSession, user_id: int | None, role: AppRole | str) -> bool:
    """True iff ``user_id`` holds ``role``. Unknown users and roles are False."""
    if user_id is None:
        return False
    try:
        role_value = role if isinstance(role, AppRole) else AppRole(role)
    except ValueError:
        return False
    stmt = (
        select(UserRole.id)
        .where(UserRole.user_id == user_id, UserRole.role == role_value)
        .limit(1)
    )
    result = await session.exec(stmt)
    return result.first() is not None


async def list_roles(evaluator: PolicyEvaluator, *, user_id: int | None = None) -> list[UserRole]:
    conditions = []
    if user_id is not None:
        conditions.append(UserRole.user_id == user_id)
    return await select_visible(evaluator, UserRole, *conditions, order_by=UserRole.id)


async def grant_role(
    evaluator: PolicyEvaluator,
    *,
    user_id: int,
    role: AppRole | str,
) -> UserRole:
    """Grant ``role`` to ``user_id``; granting a held role is a no-op.

    The insert check runs on both paths so an unauthorised caller is
    rejected the same way whether or not the assignment already exists.
    """
    role_value = parse_role(role)
    assignment = UserRole(user_id=user_id, role=role_value, granted_by=evaluator.user_id)

    result = await evaluator.session.exec(
        select(UserRole).where(UserRole.user_id == user_id, UserRole.role == role_value)
    )
    existing = result.one_or_none()
    if existing is not None:
        await evaluator.authorize_insert(UserRole.__tablename__, assignment)
        return existing

    await insert_row(evaluator, assignment)
    logger.info("Granted role %s to user %s", role_value.value, user_id)
    return assignment


async def revoke_role(
    evaluator: PolicyEvaluator,
    *,
    user_id: int,
    role: AppRole | str,
) -> bool:
    role_value = parse_role(role)
    result = await evaluator.session.exec(
        select(UserRole).where(UserRole.user_id == user_id, UserRole.role == role_value)
    )
    assignment = result.one_or_none()
    if assignment is None:
        return False
    removed = await delete_row(evaluator, assignment)
    if removed:
        logger.info("Revoked role %s from user %s", role_value.value, user_id)
    return bool(removed)
