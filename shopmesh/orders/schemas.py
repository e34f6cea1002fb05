from datetime import datetime
from typing import Any, Optional

from shopmesh.schemas import CamelModel


class OrderRequest(CamelModel):
    user_id: Optional[str] = None
    # Items are checked by the orchestrator so bad ones produce its messages
    items: Optional[list[Any]] = None
    shipping_address: Optional[dict] = None
    payment_method: Optional[str] = None


class StatusRequest(CamelModel):
    status: Optional[str] = None


class OrderResponse(CamelModel):
    id: str
    user_id: str
    items: list[Any]
    total_amount: float
    status: str
    shipping_address: dict
    payment_method: str
    payment_id: Optional[str] = None
    payment_error: Optional[str] = None
    created_at: datetime
    confirmed_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None


class OrderListResponse(CamelModel):
    orders: list[OrderResponse]
    count: int


def dump(order) -> dict:
    return OrderResponse.model_validate(order).model_dump(mode="json", by_alias=True, exclude_none=True)
