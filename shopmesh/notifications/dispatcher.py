from typing import Callable, Optional
from uuid import uuid4

import structlog

from shopmesh import config
from shopmesh.database import Store, create_session_factory, utcnow
from shopmesh.errors import NotFoundError, ValidationError
from shopmesh.notifications.channels import ChannelRegistry
from shopmesh.notifications.models import READ, SENT, Base, Notification

logger = structlog.get_logger(__name__)

REQUIRED_FIELDS_MESSAGE = "User ID, type, and message are required"
DEFAULT_LIMIT = 50


def _present(value) -> bool:
    return isinstance(value, str) and value != ""


def _optional_text(value, field: str):
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    return value


class NotificationDispatcher:
    def __init__(self, store: Store, channels: Optional[ChannelRegistry] = None, clock: Callable = utcnow):
        self.store = store
        self.channels = channels or ChannelRegistry()
        self.clock = clock

    def send(self, user_id, type, message, order_id=None, email=None, phone=None) -> Notification:
        if not (_present(user_id) and _present(type) and _present(message)):
            raise ValidationError(REQUIRED_FIELDS_MESSAGE)

        notification = Notification(
            id=str(uuid4()),
            user_id=user_id,
            type=type,
            message=message,
            order_id=_optional_text(order_id, "orderId"),
            email=_optional_text(email, "email"),
            phone=_optional_text(phone, "phone"),
            status=SENT,
            created_at=self.clock(),
        )
        self.store.append(notification)

        logger.info("notification_sent", notification_id=notification.id, user_id=user_id, type=type)
        self.channels.for_type(type).deliver(notification)
        return notification

    def get(self, notification_id: str) -> Notification:
        notification = self.store.find_by_id(notification_id)
        if notification is None:
            raise NotFoundError("Notification not found", notification_id)
        return notification

    def list_notifications(self, user_id: Optional[str] = None, type: Optional[str] = None, limit: int = DEFAULT_LIMIT):
        if limit < 0:
            raise ValidationError("limit must not be negative")
        criteria = []
        if user_id:
            criteria.append(Notification.user_id == user_id)
        if type:
            criteria.append(Notification.type == type)
        # id breaks ties between notifications created in the same instant
        newest_first = (Notification.created_at.desc(), Notification.id.desc())
        return self.store.find_by(*criteria, order_by=newest_first, limit=limit)

    def mark_read(self, notification_id: str) -> Notification:
        """Mark as read. A second call succeeds too and moves ``read_at`` forward."""

        def _mark(notification):
            notification.status = READ
            notification.read_at = self.clock()

        notification = self.store.update(notification_id, _mark)
        if notification is None:
            raise NotFoundError("Notification not found", notification_id)
        return notification

    def unread_for_user(self, user_id: str) -> list[Notification]:
        return self.store.find_by(
            Notification.user_id == user_id,
            Notification.status == SENT,
            order_by=(Notification.created_at, Notification.id),
        )

    def send_bulk(self, requests: list) -> list:
        """Send each request independently.

        Returns one entry per request, in order: the stored notification, or
        ``{"error": ..., "data": <request>}`` for a request that failed
        validation.
        """
        results = []
        for data in requests:
            if not isinstance(data, dict):
                results.append({"error": REQUIRED_FIELDS_MESSAGE, "data": data})
                continue
            try:
                notification = self.send(
                    data.get("userId", data.get("user_id")),
                    data.get("type"),
                    data.get("message"),
                    order_id=data.get("orderId", data.get("order_id")),
                    email=data.get("email"),
                    phone=data.get("phone"),
                )
            except ValidationError as exc:
                results.append({"error": exc.message, "data": data})
                continue
            results.append(notification)

        sent = sum(1 for result in results if isinstance(result, Notification))
        logger.info("bulk_notifications_processed", requested=len(requests), sent=sent)
        return results


def build_dispatcher() -> NotificationDispatcher:
    engine, SessionLocal = create_session_factory(config.NOTIFICATIONS_DATABASE_URL)
    Base.metadata.create_all(bind=engine)
    return NotificationDispatcher(store=Store(Notification, SessionLocal))
