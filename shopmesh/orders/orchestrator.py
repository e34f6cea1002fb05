"""Order saga: create, charge, confirm or fail, notify; cancel with refund.

The payment call decides the order's status. The notification and refund
calls that follow are best-effort: their failures are logged and dropped,
never returned to the caller and never allowed to change the order.
"""

import enum
from dataclasses import dataclass
from typing import Callable
from uuid import uuid4

import structlog

from shopmesh import config
from shopmesh.database import Store, create_session_factory, utcnow
from shopmesh.errors import (
    InvalidStateError,
    NotFoundError,
    PaymentDeclined,
    UpstreamUnavailable,
    ValidationError,
)
from shopmesh.money import to_cents, to_decimal
from shopmesh.orders.clients import NotificationClient, PaymentClient
from shopmesh.orders.models import (
    CANCELLED,
    CONFIRMED,
    DELIVERED,
    PAYMENT_FAILED,
    PENDING,
    TRANSITIONS,
    VALID_STATUSES,
    Base,
    Order,
)

logger = structlog.get_logger(__name__)

PAYMENT_UNAVAILABLE = "Payment service unavailable"


class Outcome(str, enum.Enum):
    CONFIRMED = "confirmed"
    DECLINED = "declined"
    UNAVAILABLE = "unavailable"


@dataclass
class Placement:
    """The order as it stands after the charge, and how the charge went."""

    order: Order
    outcome: Outcome


def order_total(items: list) -> int:
    """Sum of price x quantity over the items, in cents (half-up)."""
    total = sum((to_decimal(item["price"]) * to_decimal(item["quantity"]) for item in items), start=to_decimal(0))
    return to_cents(total)


def _validate_items(items) -> None:
    for position, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValidationError(f"Item {position} must be an object")
        for field in ("price", "quantity"):
            if item.get(field) is None:
                raise ValidationError(f"Item {position} is missing {field}")
            try:
                value = to_decimal(item[field])
            except ValueError:
                raise ValidationError(f"Item {position} {field} must be a number")
            if value < 0:
                raise ValidationError(f"Item {position} {field} must not be negative")


class OrderOrchestrator:
    def __init__(
        self,
        store: Store,
        payments: PaymentClient,
        notifications: NotificationClient,
        clock: Callable = utcnow,
        default_payment_method: str = "credit_card",
    ):
        self.store = store
        self.payments = payments
        self.notifications = notifications
        self.clock = clock
        self.default_payment_method = default_payment_method

    def create_order(self, user_id, items, shipping_address=None, payment_method=None) -> Placement:
        if not user_id or not isinstance(items, list) or not items:
            raise ValidationError("User ID and items are required")
        _validate_items(items)

        order = Order(
            id=str(uuid4()),
            user_id=user_id,
            items=items,
            total_cents=order_total(items),
            status=PENDING,
            shipping_address=shipping_address or {},
            payment_method=payment_method or self.default_payment_method,
            created_at=self.clock(),
        )
        # Stored before the charge so an outage still leaves a record behind
        self.store.append(order)
        log = logger.bind(order_id=order.id, user_id=user_id)
        log.info("order_created", total_amount=order.total_amount)

        try:
            payment = self.payments.charge(order.id, order.total_amount, order.payment_method)
        except PaymentDeclined as exc:
            log.info("order_payment_declined", reason=exc.message)
            order = self._set(order.id, status=PAYMENT_FAILED, payment_error=exc.message)
            return Placement(order, Outcome.DECLINED)
        except UpstreamUnavailable as exc:
            log.error("order_payment_unavailable", error=exc.message)
            order = self._set(order.id, status=PAYMENT_FAILED, payment_error=PAYMENT_UNAVAILABLE)
            return Placement(order, Outcome.UNAVAILABLE)
        except Exception as exc:
            log.exception("order_payment_error", error=str(exc), error_type=type(exc).__name__)
            order = self._set(order.id, status=PAYMENT_FAILED, payment_error=PAYMENT_UNAVAILABLE)
            return Placement(order, Outcome.UNAVAILABLE)

        order = self._set(order.id, status=CONFIRMED, payment_id=payment["id"], confirmed_at=self.clock())
        log.info("order_confirmed", payment_id=order.payment_id)

        self._best_effort(
            "notification_failed",
            order,
            self.notifications.send,
            order.user_id,
            "order_confirmed",
            f"Your order #{order.id} has been confirmed!",
            order_id=order.id,
        )
        return Placement(order, Outcome.CONFIRMED)

    def get(self, order_id: str) -> Order:
        order = self.store.find_by_id(order_id)
        if order is None:
            raise NotFoundError("Order not found", order_id)
        return order

    def list_orders(self) -> list[Order]:
        return self.store.find_by(order_by=Order.created_at)

    def update_status(self, order_id: str, status: str) -> Order:
        """Administrative override: set any valid status, ignoring the lifecycle.

        Unlike ``transition`` this does not check that the move is allowed and
        never triggers refunds or notifications.
        """
        self.get(order_id)
        if status not in VALID_STATUSES:
            raise ValidationError("Invalid status", validStatuses=VALID_STATUSES)
        order = self._set(order_id, status=status, updated_at=self.clock())
        logger.info("order_status_overridden", order_id=order_id, status=status)
        return order

    def transition(self, order_id: str, status: str) -> Order:
        """Move the order along the lifecycle, refusing moves it does not allow."""
        self.get(order_id)
        if status not in TRANSITIONS:
            raise ValidationError("Invalid status", validStatuses=list(TRANSITIONS))
        if status == CANCELLED:
            return self.cancel(order_id)

        def _advance(order):
            if not order.can_transition(status):
                raise InvalidStateError(f"Cannot move order from {order.status} to {status}")
            order.status = status
            order.updated_at = self.clock()
            if status == CONFIRMED:
                order.confirmed_at = order.updated_at

        order = self.store.update(order_id, _advance)
        logger.info("order_status_changed", order_id=order_id, status=status)
        return order

    def cancel(self, order_id: str) -> Order:
        order = self.get(order_id)
        self._ensure_cancellable(order)

        refund = None
        if order.payment_id and order.status == CONFIRMED:
            refund = self._best_effort("refund_failed", order, self.payments.refund, order.payment_id)
            if refund is not None:
                logger.info("order_refunded", order_id=order.id, payment_id=order.payment_id, refund_id=refund.get("id"))

        def _cancel(current):
            self._ensure_cancellable(current)
            current.status = CANCELLED
            current.cancelled_at = self.clock()

        try:
            order = self.store.update(order_id, _cancel)
        except InvalidStateError:
            if refund is not None:
                # The order moved on while the refund was in flight
                logger.error(
                    "refund_orphaned",
                    order_id=order_id,
                    payment_id=order.payment_id,
                    refund_id=refund.get("id"),
                )
            raise
        logger.info("order_cancelled", order_id=order.id)

        self._best_effort(
            "notification_failed",
            order,
            self.notifications.send,
            order.user_id,
            "order_cancelled",
            f"Your order #{order.id} has been cancelled.",
            order_id=order.id,
        )
        return order

    def _ensure_cancellable(self, order: Order) -> None:
        if order.status == DELIVERED:
            raise InvalidStateError("Cannot cancel delivered order")

    def _set(self, order_id: str, **fields) -> Order:
        def _apply(order):
            for name, value in fields.items():
                setattr(order, name, value)

        return self.store.update(order_id, _apply)

    def _best_effort(self, event: str, order: Order, call, *args, **kwargs):
        """Run a side call whose failure must not reach the caller.

        Returns the call's result, or None after logging ``event``.
        """
        try:
            return call(*args, **kwargs)
        except Exception as exc:
            logger.warning(event, order_id=order.id, error=str(exc), error_type=type(exc).__name__)
            return None


def build_orchestrator() -> OrderOrchestrator:
    engine, SessionLocal = create_session_factory(config.ORDERS_DATABASE_URL)
    Base.metadata.create_all(bind=engine)
    return OrderOrchestrator(
        store=Store(Order, SessionLocal),
        payments=PaymentClient(config.PAYMENT_SERVICE_URL, timeout=config.PAYMENT_TIMEOUT_SECONDS),
        notifications=NotificationClient(config.NOTIFICATION_SERVICE_URL, timeout=config.NOTIFICATION_TIMEOUT_SECONDS),
        default_payment_method=config.DEFAULT_PAYMENT_METHOD,
    )
