from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from shopmesh.notifications.dispatcher import DEFAULT_LIMIT, NotificationDispatcher, build_dispatcher
from shopmesh.notifications.models import Notification
from shopmesh.notifications.schemas import (
    BulkNotificationRequest,
    NotificationListResponse,
    NotificationRequest,
    UnreadNotificationsResponse,
    dump,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])


@lru_cache
def get_dispatcher() -> NotificationDispatcher:
    return build_dispatcher()


@router.get("")
def list_notifications(
    user_id: Optional[str] = Query(None, alias="userId"),
    type: Optional[str] = None,
    limit: int = DEFAULT_LIMIT,
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    notifications = dispatcher.list_notifications(user_id=user_id, type=type, limit=limit)
    body = NotificationListResponse(notifications=notifications, count=len(notifications))
    return body.model_dump(mode="json", by_alias=True)


@router.post("")
def send_notification(request: NotificationRequest, dispatcher: NotificationDispatcher = Depends(get_dispatcher)):
    notification = dispatcher.send(
        request.user_id,
        request.type,
        request.message,
        order_id=request.order_id,
        email=request.email,
        phone=request.phone,
    )
    return JSONResponse(status_code=201, content=dump(notification))


@router.post("/bulk")
def send_bulk(request: BulkNotificationRequest, dispatcher: NotificationDispatcher = Depends(get_dispatcher)):
    results = dispatcher.send_bulk(request.notifications)
    content = [dump(r) if isinstance(r, Notification) else r for r in results]
    return JSONResponse(status_code=201, content={"results": content, "count": len(content)})


@router.get("/user/{user_id}/unread")
def unread_for_user(user_id: str, dispatcher: NotificationDispatcher = Depends(get_dispatcher)):
    notifications = dispatcher.unread_for_user(user_id)
    body = UnreadNotificationsResponse(notifications=notifications, count=len(notifications), user_id=user_id)
    return body.model_dump(mode="json", by_alias=True)


@router.get("/{notification_id}")
def get_notification(notification_id: str, dispatcher: NotificationDispatcher = Depends(get_dispatcher)):
    return dump(dispatcher.get(notification_id))


@router.put("/{notification_id}/read")
def mark_read(notification_id: str, dispatcher: NotificationDispatcher = Depends(get_dispatcher)):
    return dump(dispatcher.mark_read(notification_id))
