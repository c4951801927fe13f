from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Mapping

from siteaccess.models.project import MemberPosition, Project, ProjectMember
from siteaccess.services.guarded import (
    delete_row,
    get_visible,
    insert_row,
    select_visible,
    update_row,
)

if TYPE_CHECKING:  # pragma: no cover
    from siteaccess.services.policies import PolicyEvaluator

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("name", "project_number", "client_name", "description")


async def create_project(
    evaluator: PolicyEvaluator,
    *,
    name: str,
    project_number: str | None = None,
    client_name: str | None = None,
    description: str | None = None,
) -> Project:
    """Create a project owned by the caller and enrol them as primary member."""
    project = Project(
        name=name,
        project_number=project_number,
        client_name=client_name,
        description=description,
        created_by=evaluator.user_id,
    )
    await insert_row(evaluator, project)
    membership = ProjectMember(
        project_id=project.id,
        user_id=evaluator.user_id,
        position=MemberPosition.primary,
    )
    await insert_row(evaluator, membership)
    logger.info("Created project %s", project.id)
    return project


async def list_projects(evaluator: PolicyEvaluator) -> list[Project]:
    return await select_visible(evaluator, Project, order_by=Project.id)


async def get_project(evaluator: PolicyEvaluator, project_id: int) -> Project | None:
    return await get_visible(evaluator, Project, project_id)


async def update_project(
    evaluator: PolicyEvaluator,
    project: Project,
    changes: Mapping[str, Any],
) -> bool:
    values = {key: value for key, value in changes.items() if key in UPDATABLE_FIELDS}
    if not values:
        return True
    values["updated_at"] = datetime.now(timezone.utc)
    return bool(await update_row(evaluator, project, values))


async def delete_project(evaluator: PolicyEvaluator, project: Project) -> bool:
    removed = await delete_row(evaluator, project)
    if removed:
        logger.info("Deleted project %s", project.id)
    return bool(removed)
