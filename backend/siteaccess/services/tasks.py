from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Mapping

from siteaccess.core.errors import ConstraintViolation
from siteaccess.core.messages import TaskMessages
from siteaccess.db.session import is_postgres
from siteaccess.models.notification import Notification, NotificationType
from siteaccess.models.task import Task, TaskStatus
from siteaccess.services import user_notifications
from siteaccess.services.guarded import get_visible, insert_row, select_visible, update_row

if TYPE_CHECKING:  # pragma: no cover
    from sqlmodel.ext.asyncio.session import AsyncSession

    from siteaccess.services.policies import PolicyEvaluator

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("title", "description", "status", "assigned_to", "due_date")


def parse_status(value: TaskStatus | str) -> TaskStatus:
    if isinstance(value, TaskStatus):
        return value
    try:
        return TaskStatus(value)
    except ValueError as exc:
        raise ConstraintViolation(TaskMessages.INVALID_STATUS, field="status", value=value) from exc


async def notify_assignment(
    session: AsyncSession,
    task: Task,
    previous_assignee: int | None,
) -> Notification | None:
    """Emit one ``task_assigned`` notification when the assignee changed to a user.

    Runs with the caller's session but outside the policy layer, like the
    database trigger it mirrors: the actor usually may not write the
    assignee's notifications.
    """
    assignee = task.assigned_to
    if assignee is None or assignee == previous_assignee:
        return None
    if is_postgres(session):
        # tasks_notify_assignment trigger writes it
        return None
    notification = await user_notifications.create_notification(
        session,
        user_id=assignee,
        notification_type=NotificationType.task_assigned,
        title=f"You were assigned: {task.title}",
        data={"task_id": task.id, "project_id": task.project_id},
    )
    logger.debug("Queued assignment notification for task %s", task.id)
    return notification


async def create_task(
    evaluator: PolicyEvaluator,
    *,
    project_id: int,
    title: str,
    description: str | None = None,
    status: TaskStatus | str = TaskStatus.todo,
    assigned_to: int | None = None,
    due_date: datetime | None = None,
) -> Task:
    task = Task(
        project_id=project_id,
        title=title,
        description=description,
        status=parse_status(status),
        assigned_to=assigned_to,
        due_date=due_date,
        created_by=evaluator.user_id,
    )
    await insert_row(evaluator, task)
    await notify_assignment(evaluator.session, task, None)
    return task


async def list_tasks(evaluator: PolicyEvaluator, project_id: int) -> list[Task]:
    return await select_visible(evaluator, Task, Task.project_id == project_id, order_by=Task.id)


async def get_task(evaluator: PolicyEvaluator, task_id: int) -> Task | None:
    return await get_visible(evaluator, Task, task_id)


async def update_task(
    evaluator: PolicyEvaluator,
    task: Task,
    changes: Mapping[str, Any],
) -> bool:
    """Apply ``changes``; returns False when the caller cannot update the task."""
    values = {key: value for key, value in changes.items() if key in UPDATABLE_FIELDS}
    if "status" in values:
        values["status"] = parse_status(values["status"])
    if not values:
        return True
    values["updated_at"] = datetime.now(timezone.utc)

    previous_assignee = task.assigned_to
    if not await update_row(evaluator, task, values):
        return False
    await notify_assignment(evaluator.session, task, previous_assignee)
    return True
