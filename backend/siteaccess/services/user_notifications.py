from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Mapping

from sqlalchemy import func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from siteaccess.models.notification import Notification, NotificationType
from siteaccess.services.guarded import get_visible, select_visible, update_row

if TYPE_CHECKING:  # pragma: no cover
    from siteaccess.services.policies import PolicyEvaluator


async def create_notification(
    session: AsyncSession,
    *,
    user_id: int,
    notification_type: NotificationType,
    title: str,
    data: Mapping[str, object],
) -> Notification:
    """Write a notification row directly; callers are trusted hooks, not users."""
    notification = Notification(
        user_id=user_id,
        type=notification_type,
        title=title,
        data=dict(data),
    )
    session.add(notification)
    await session.flush()
    return notification


async def list_notifications(
    evaluator: PolicyEvaluator,
    *,
    limit: int = 50,
) -> tuple[list[Notification], int]:
    user_id = evaluator.user_id
    if user_id is None:
        return [], 0
    notifications = await select_visible(
        evaluator,
        Notification,
        Notification.user_id == user_id,
        order_by=Notification.id.desc(),
        limit=limit,
    )
    return notifications, await unread_count(evaluator.session, user_id=user_id)


async def mark_notification_read(
    evaluator: PolicyEvaluator,
    *,
    notification_id: int,
) -> Notification | None:
    notification = await get_visible(evaluator, Notification, notification_id)
    if notification is None:
        return None
    if notification.read_at is None:
        updated = await update_row(
            evaluator, notification, {"read_at": datetime.now(timezone.utc)}
        )
        if not updated:
            return None
    return notification


async def mark_all_notifications_read(evaluator: PolicyEvaluator) -> int:
    user_id = evaluator.user_id
    if user_id is None:
        return 0
    unread = await select_visible(
        evaluator,
        Notification,
        Notification.user_id == user_id,
        Notification.read_at.is_(None),
    )
    now = datetime.now(timezone.utc)
    count = 0
    for notification in unread:
        count += await update_row(evaluator, notification, {"read_at": now})
    return count


async def unread_count(session: AsyncSession, *, user_id: int) -> int:
    stmt = select(func.count()).where(
        Notification.user_id == user_id,
        Notification.read_at.is_(None),
    )
    result = await session.exec(stmt)
    row = result.one()
    return row[0] if isinstance(row, tuple) else row
