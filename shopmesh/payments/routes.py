from functools import lru_cache

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from shopmesh.payments.models import COMPLETED
from shopmesh.payments.processor import DECLINE_MESSAGE, PaymentProcessor, build_processor
from shopmesh.payments.schemas import OrderPaymentsResponse, PaymentRequest, dump

router = APIRouter(prefix="/payments", tags=["payments"])


@lru_cache
def get_processor() -> PaymentProcessor:
    return build_processor()


@router.post("")
def create_payment_api(request: PaymentRequest, processor: PaymentProcessor = Depends(get_processor)):
    payment = processor.charge(
        request.order_id,
        request.amount,
        request.payment_method,
        currency=request.currency,
    )

    if payment.status == COMPLETED:
        return JSONResponse(status_code=201, content=dump(payment))
    return JSONResponse(status_code=402, content={**dump(payment), "error": DECLINE_MESSAGE})


@router.get("/order/{order_id}")
def payments_for_order(order_id: str, processor: PaymentProcessor = Depends(get_processor)):
    payments = processor.for_order(order_id)
    body = OrderPaymentsResponse(payments=payments, count=len(payments), order_id=order_id)
    return body.model_dump(mode="json", by_alias=True, exclude_none=True)


@router.get("/{payment_id}")
def get_payment(payment_id: str, processor: PaymentProcessor = Depends(get_processor)):
    return dump(processor.get(payment_id))


@router.post("/{payment_id}/refund")
def refund(payment_id: str, processor: PaymentProcessor = Depends(get_processor)):
    return dump(processor.refund(payment_id))
