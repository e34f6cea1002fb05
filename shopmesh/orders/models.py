from sqlalchemy import JSON, Column, DateTime, Integer, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()

PENDING = "pending"
CONFIRMED = "confirmed"
PAYMENT_FAILED = "payment_failed"
SHIPPED = "shipped"
DELIVERED = "delivered"
CANCELLED = "cancelled"

# Statuses the administrative override accepts
VALID_STATUSES = [PENDING, CONFIRMED, SHIPPED, DELIVERED, CANCELLED]

TRANSITIONS = {
    PENDING: {CONFIRMED, PAYMENT_FAILED, CANCELLED},
    CONFIRMED: {SHIPPED, CANCELLED},
    PAYMENT_FAILED: {CANCELLED},
    SHIPPED: {DELIVERED, CANCELLED},
    DELIVERED: set(),
    CANCELLED: set(),
}


class Order(Base):
    __tablename__ = "orders"

    id = Column(String, primary_key=True)
    user_id = Column(String, index=True, nullable=False)
    items = Column(JSON, nullable=False)
    total_cents = Column(Integer, nullable=False)
    shipping_address = Column(JSON, nullable=False)
    payment_method = Column(String, nullable=False)
    status = Column(String, nullable=False)
    payment_id = Column(String, nullable=True)
    payment_error = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False)
    confirmed_at = Column(DateTime, nullable=True)
    updated_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)

    @property
    def total_amount(self) -> float:
        return self.total_cents / 100

    def can_transition(self, status: str) -> bool:
        return status in TRANSITIONS.get(self.status, set())
