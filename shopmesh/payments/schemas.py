from datetime import datetime
from decimal import Decimal
from typing import Optional

from shopmesh.schemas import CamelModel


class PaymentRequest(CamelModel):
    order_id: Optional[str] = None
    amount: Optional[Decimal] = None
    currency: Optional[str] = None
    payment_method: Optional[str] = None


class PaymentResponse(CamelModel):
    id: str
    order_id: Optional[str] = None
    original_payment_id: Optional[str] = None
    amount: float
    currency: str
    payment_method: Optional[str] = None
    status: str
    transaction_id: Optional[str] = None
    processed_at: Optional[datetime] = None
    refunded_at: Optional[datetime] = None


class OrderPaymentsResponse(CamelModel):
    payments: list[PaymentResponse]
    count: int
    order_id: str


def dump(payment) -> dict:
    """JSON-ready body for a payment or refund record."""
    return PaymentResponse.model_validate(payment).model_dump(mode="json", by_alias=True, exclude_none=True)
