from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.orm import declarative_base

Base = declarative_base()

COMPLETED = "completed"
FAILED = "failed"
REFUNDED = "refunded"


class Payment(Base):
    """A charge attempt or a refund; both live in the same collection."""

    __tablename__ = "payments"

    id = Column(String, primary_key=True)
    order_id = Column(String, index=True, nullable=True)
    original_payment_id = Column(String, index=True, nullable=True)   # refunds only
    amount_cents = Column(Integer, nullable=False)
    currency = Column(String, nullable=False)
    payment_method = Column(String, nullable=True)
    status = Column(String, nullable=False)                           # completed | failed | refunded
    transaction_id = Column(String, nullable=True)
    processed_at = Column(DateTime, nullable=True)
    refunded_at = Column(DateTime, nullable=True)

    @property
    def amount(self) -> float:
        return self.amount_cents / 100

    @property
    def is_refund(self) -> bool:
        return self.original_payment_id is not None
