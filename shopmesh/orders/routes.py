from functools import lru_cache

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from shopmesh.orders.orchestrator import OrderOrchestrator, Outcome, build_orchestrator
from shopmesh.orders.schemas import OrderListResponse, OrderRequest, StatusRequest, dump

router = APIRouter(prefix="/orders", tags=["orders"])

OUTCOME_STATUS_CODES = {
    Outcome.CONFIRMED: 201,
    Outcome.DECLINED: 402,
    Outcome.UNAVAILABLE: 503,
}


@lru_cache
def get_orchestrator() -> OrderOrchestrator:
    return build_orchestrator()


@router.get("")
def list_orders(orchestrator: OrderOrchestrator = Depends(get_orchestrator)):
    orders = orchestrator.list_orders()
    body = OrderListResponse(orders=orders, count=len(orders))
    return body.model_dump(mode="json", by_alias=True, exclude_none=True)


@router.post("")
def create_order(request: OrderRequest, orchestrator: OrderOrchestrator = Depends(get_orchestrator)):
    placement = orchestrator.create_order(
        request.user_id,
        request.items,
        shipping_address=request.shipping_address,
        payment_method=request.payment_method,
    )
    return JSONResponse(status_code=OUTCOME_STATUS_CODES[placement.outcome], content=dump(placement.order))


@router.get("/{order_id}")
def get_order(order_id: str, orchestrator: OrderOrchestrator = Depends(get_orchestrator)):
    return dump(orchestrator.get(order_id))


@router.put("/{order_id}/status")
def update_status(
    order_id: str,
    request: StatusRequest,
    strict: bool = False,
    orchestrator: OrderOrchestrator = Depends(get_orchestrator),
):
    """Set the order status.

    By default this is an administrative override that accepts any valid
    status. With ``?strict=true`` the lifecycle is enforced instead.
    """
    if strict:
        return dump(orchestrator.transition(order_id, request.status))
    return dump(orchestrator.update_status(order_id, request.status))


@router.post("/{order_id}/cancel")
def cancel_order(order_id: str, orchestrator: OrderOrchestrator = Depends(get_orchestrator)):
    return dump(orchestrator.cancel(order_id))
