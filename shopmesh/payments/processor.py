import random
from typing import Callable, Optional
from uuid import uuid4

import structlog

from shopmesh import config
from shopmesh.database import Store, create_session_factory, utcnow
from shopmesh.errors import InvalidStateError, NotFoundError, ValidationError
from shopmesh.money import to_cents, to_decimal
from shopmesh.payments.models import COMPLETED, FAILED, REFUNDED, Base, Payment

logger = structlog.get_logger(__name__)

DECLINE_MESSAGE = "Payment failed - insufficient funds"


class PaymentProcessor:
    """Simulated card processor.

    Whether a charge goes through is up to ``decide``, a zero-argument
    callable returning True for success. By default it draws from a seeded
    ``random.Random`` and succeeds with probability ``success_rate``.
    """

    def __init__(
        self,
        store: Store,
        success_rate: float = 0.9,
        seed: Optional[int] = None,
        decide: Optional[Callable[[], bool]] = None,
        default_currency: str = "USD",
    ):
        if not 0.0 <= success_rate <= 1.0:
            raise ValueError("success_rate must be between 0 and 1")
        self.store = store
        self.success_rate = success_rate
        self.default_currency = default_currency
        self._random = random.Random(seed)
        self._decide = decide or self._draw

    def _draw(self) -> bool:
        return self._random.random() < self.success_rate

    def charge(self, order_id, amount, payment_method, currency=None) -> Payment:
        if not order_id or amount is None or not payment_method:
            raise ValidationError("Order ID, amount, and payment method are required")
        try:
            value = to_decimal(amount)
        except ValueError:
            raise ValidationError("Amount must be a number")
        if value < 0:
            raise ValidationError("Amount must not be negative")

        succeeded = self._decide()
        payment = Payment(
            id=str(uuid4()),
            order_id=order_id,
            amount_cents=to_cents(value),
            currency=currency or self.default_currency,
            payment_method=payment_method,
            status=COMPLETED if succeeded else FAILED,
            transaction_id=f"txn_{uuid4().hex[:12]}" if succeeded else None,
            processed_at=utcnow(),
        )
        self.store.append(payment)

        logger.info(
            "payment_processed",
            payment_id=payment.id,
            order_id=order_id,
            amount=payment.amount,
            status=payment.status,
        )
        return payment

    def get(self, payment_id: str) -> Payment:
        payment = self.store.find_by_id(payment_id)
        if payment is None:
            raise NotFoundError("Payment not found", payment_id)
        return payment

    def for_order(self, order_id: str) -> list[Payment]:
        return self.store.find_by(Payment.order_id == order_id)

    def refund(self, payment_id: str) -> Payment:
        # Held across check and append so two refunds of one payment cannot race
        with self.store.lock:
            payment = self.get(payment_id)
            if payment.status != COMPLETED:
                raise InvalidStateError("Can only refund completed payments")
            if self.store.find_by(Payment.original_payment_id == payment.id):
                raise InvalidStateError("Payment already refunded")

            refund = Payment(
                id=str(uuid4()),
                order_id=payment.order_id,
                original_payment_id=payment.id,
                amount_cents=payment.amount_cents,
                currency=payment.currency,
                status=REFUNDED,
                refunded_at=utcnow(),
            )
            self.store.append(refund)

        logger.info("payment_refunded", payment_id=payment.id, refund_id=refund.id, amount=refund.amount)
        return refund


def build_processor() -> PaymentProcessor:
    engine, SessionLocal = create_session_factory(config.PAYMENTS_DATABASE_URL)
    Base.metadata.create_all(bind=engine)
    return PaymentProcessor(
        store=Store(Payment, SessionLocal),
        success_rate=config.PAYMENT_SUCCESS_RATE,
        seed=config.PAYMENT_RANDOM_SEED,
        default_currency=config.DEFAULT_CURRENCY,
    )
