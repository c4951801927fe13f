from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from siteaccess.core.errors import ConstraintViolation
from siteaccess.core.messages import ProjectMessages
from siteaccess.models.project import MemberPosition, ProjectMember
from siteaccess.services.guarded import delete_row, get_visible, insert_row, select_visible, update_row

if TYPE_CHECKING:  # pragma: no cover
    from siteaccess.services.policies import PolicyEvaluator

logger = logging.getLogger(__name__)


def parse_position(value: MemberPosition | str) -> MemberPosition:
    if isinstance(value, MemberPosition):
        return value
    try:
        return MemberPosition(value)
    except ValueError as exc:
        raise ConstraintViolation(
            ProjectMessages.INVALID_POSITION, field="position", value=value
        ) from exc


async def list_members(evaluator: PolicyEvaluator, project_id: int) -> list[ProjectMember]:
    return await select_visible(
        evaluator,
        ProjectMember,
        ProjectMember.project_id == project_id,
        order_by=ProjectMember.user_id,
    )


async def get_member(evaluator: PolicyEvaluator, project_id: int, user_id: int) -> ProjectMember | None:
    return await get_visible(evaluator, ProjectMember, (project_id, user_id))


async def add_member(
    evaluator: PolicyEvaluator,
    *,
    project_id: int,
    user_id: int,
    position: MemberPosition | str = MemberPosition.secondary,
) -> tuple[ProjectMember, bool]:
    """Add ``user_id`` to the project, or change the position of an existing member.

    Returns the membership and whether it was newly created. Re-adding an
    existing member is held to the insert policy even when nothing changes.
    """
    position_value = parse_position(position)
    existing = await evaluator.session.get(ProjectMember, (project_id, user_id))
    if existing is not None:
        if existing.position == position_value:
            await evaluator.authorize_insert(ProjectMember.__tablename__, existing)
        elif not await update_row(evaluator, existing, {"position": position_value}):
            await evaluator.authorize_insert(ProjectMember.__tablename__, existing)
        return existing, False

    membership = ProjectMember(project_id=project_id, user_id=user_id, position=position_value)
    await insert_row(evaluator, membership)
    logger.info("Added user %s to project %s as %s", user_id, project_id, position_value.value)
    return membership, True


async def remove_member(evaluator: PolicyEvaluator, *, project_id: int, user_id: int) -> bool:
    membership = await evaluator.session.get(ProjectMember, (project_id, user_id))
    if membership is None:
        return False
    removed = await delete_row(evaluator, membership)
    if removed:
        logger.info("Removed user %s from project %s", user_id, project_id)
    return bool(removed)
