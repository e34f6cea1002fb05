from datetime import datetime
from typing import Any, Optional

from shopmesh.schemas import CamelModel


class NotificationRequest(CamelModel):
    user_id: Optional[str] = None
    type: Optional[str] = None
    message: Optional[str] = None
    order_id: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class BulkNotificationRequest(CamelModel):
    # Items stay raw so one malformed entry cannot reject the whole batch
    notifications: list[Any]


class NotificationResponse(CamelModel):
    id: str
    user_id: str
    type: str
    message: str
    order_id: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    status: str
    created_at: datetime
    read_at: Optional[datetime] = None


class NotificationListResponse(CamelModel):
    notifications: list[NotificationResponse]
    count: int


class UnreadNotificationsResponse(NotificationListResponse):
    user_id: str


def dump(notification) -> dict:
    return NotificationResponse.model_validate(notification).model_dump(mode="json", by_alias=True)
