"""Tests for the notification inbox."""

import pytest
from sqlmodel.ext.asyncio.session import AsyncSession

from siteaccess.models.notification import NotificationType
from siteaccess.services import user_notifications
from siteaccess.testing import create_user


async def _notify(session: AsyncSession, user, title: str = "Hello"):
    return await user_notifications.create_notification(
        session,
        user_id=user.id,
        notification_type=NotificationType.status_update,
        title=title,
        data={},
    )


@pytest.mark.service
async def test_inbox_lists_own_notifications_newest_first(session: AsyncSession, evaluator_for):
    user = await create_user(session)
    other = await create_user(session)
    first = await _notify(session, user, "First")
    second = await _notify(session, user, "Second")
    await _notify(session, other, "Not yours")

    notifications, unread = await user_notifications.list_notifications(evaluator_for(user))

    assert [n.id for n in notifications] == [second.id, first.id]
    assert unread == 2


@pytest.mark.service
async def test_anonymous_inbox_is_empty(evaluator_for):
    assert await user_notifications.list_notifications(evaluator_for(None)) == ([], 0)


@pytest.mark.service
async def test_mark_read_only_touches_own_notifications(session: AsyncSession, evaluator_for):
    user = await create_user(session)
    other = await create_user(session)
    notification = await _notify(session, user)

    assert await user_notifications.mark_notification_read(
        evaluator_for(other), notification_id=notification.id
    ) is None
    assert notification.read_at is None

    marked = await user_notifications.mark_notification_read(
        evaluator_for(user), notification_id=notification.id
    )
    assert marked is not None and marked.read_at is not None
    assert await user_notifications.unread_count(session, user_id=user.id) == 0


@pytest.mark.service
async def test_mark_all_read(session: AsyncSession, evaluator_for):
    user = await create_user(session)
    other = await create_user(session)
    await _notify(session, user)
    await _notify(session, user)
    await _notify(session, other)

    assert await user_notifications.mark_all_notifications_read(evaluator_for(user)) == 2
    assert await user_notifications.unread_count(session, user_id=user.id) == 0
    assert await user_notifications.unread_count(session, user_id=other.id) == 1
