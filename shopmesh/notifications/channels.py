"""Simulated delivery channels.

Nothing leaves the process: each channel logs the delivery and keeps it in
``sent`` so tests can assert on what would have gone out.
"""

from uuid import uuid4

import structlog

logger = structlog.get_logger(__name__)

DEFAULT_EMAIL = "user@example.com"
DEFAULT_PHONE = "+1234567890"


class Channel:
    name = "generic"

    def __init__(self):
        self.sent: list[dict] = []

    def _record(self, notification, **fields) -> dict:
        record = {
            "message_id": f"{self.name}-{uuid4().hex[:12]}",
            "notification_id": notification.id,
            "user_id": notification.user_id,
            **fields,
        }
        self.sent.append(record)
        logger.info("notification_delivered", channel=self.name, **record)
        return record

    def deliver(self, notification) -> dict:
        return self._record(notification, body=notification.message)

    def reset(self):
        self.sent.clear()


class EmailChannel(Channel):
    name = "email"

    SUBJECTS = {
        "order_confirmed": "Order confirmed",
        "order_cancelled": "Order cancelled",
        "payment_failed": "Payment failed",
    }

    def deliver(self, notification) -> dict:
        return self._record(
            notification,
            to=notification.email or DEFAULT_EMAIL,
            subject=self.SUBJECTS.get(notification.type, notification.type),
            body=notification.message,
        )


class SMSChannel(Channel):
    name = "sms"

    def deliver(self, notification) -> dict:
        return self._record(
            notification,
            to=notification.phone or DEFAULT_PHONE,
            body="Your order has shipped!",
        )


class PushChannel(Channel):
    name = "push"

    def deliver(self, notification) -> dict:
        return self._record(notification, title="Your order has been delivered!", body=notification.message)


class ChannelRegistry:
    """Maps a notification type to the channel that carries it."""

    ROUTES = {
        "order_confirmed": "email",
        "order_cancelled": "email",
        "payment_failed": "email",
        "order_shipped": "sms",
        "order_delivered": "push",
    }

    def __init__(self):
        self.channels = {
            "email": EmailChannel(),
            "sms": SMSChannel(),
            "push": PushChannel(),
            "generic": Channel(),
        }

    def for_type(self, notification_type: str) -> Channel:
        return self.channels[self.ROUTES.get(notification_type, "generic")]

    def reset(self):
        for channel in self.channels.values():
            channel.reset()
