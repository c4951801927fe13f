from fastapi import APIRouter, HTTPException, Query

from siteaccess.api.deps import AuthenticatedEvaluatorDep, SessionDep
from siteaccess.core.messages import NotificationMessages
from siteaccess.db.session import reapply_rls_context
from siteaccess.schemas.notification import (
    NotificationCountResponse,
    NotificationListResponse,
    NotificationRead,
)
from siteaccess.services import user_notifications as notifications_service

router = APIRouter()


@router.get("/", response_model=NotificationListResponse)
async def list_notifications(
    evaluator: AuthenticatedEvaluatorDep,
    limit: int = Query(default=20, ge=1, le=100),
) -> NotificationListResponse:
    notifications, unread_count = await notifications_service.list_notifications(evaluator, limit=limit)
    return NotificationListResponse(notifications=notifications, unread_count=unread_count)


@router.post("/{notification_id}/read", response_model=NotificationRead)
async def mark_notification_read(
    notification_id: int,
    session: SessionDep,
    evaluator: AuthenticatedEvaluatorDep,
) -> NotificationRead:
    notification = await notifications_service.mark_notification_read(
        evaluator,
        notification_id=notification_id,
    )
    if not notification:
        raise HTTPException(status_code=404, detail=NotificationMessages.NOT_FOUND)
    await session.commit()
    return notification


@router.post("/read-all", response_model=NotificationCountResponse)
async def mark_all_notifications_read(
    session: SessionDep,
    evaluator: AuthenticatedEvaluatorDep,
) -> NotificationCountResponse:
    await notifications_service.mark_all_notifications_read(evaluator)
    await session.commit()
    await reapply_rls_context(session)
    if evaluator.user_id is None:
        return NotificationCountResponse(unread_count=0)
    count = await notifications_service.unread_count(session, user_id=evaluator.user_id)
    return NotificationCountResponse(unread_count=count)
