"""Error kinds shared by the services and their HTTP translation."""

from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = structlog.get_logger(__name__)


class ShopMeshError(Exception):
    status_code = 500

    def __init__(self, message: str, **extra):
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_body(self) -> dict:
        return {"error": self.message, **self.extra}


class ValidationError(ShopMeshError):
    """Missing or malformed input."""

    status_code = 400


class NotFoundError(ShopMeshError):
    """Unknown identifier. The body echoes the id that was asked for."""

    status_code = 404

    def __init__(self, message: str, record_id: str):
        super().__init__(message, id=record_id)
        self.record_id = record_id


class InvalidStateError(ShopMeshError):
    """The operation is not allowed in the record's current state."""

    status_code = 400


class PaymentDeclined(ShopMeshError):
    """The payment service answered, but refused the charge."""

    status_code = 402

    def __init__(self, message: str, payment: Optional[dict] = None):
        super().__init__(message)
        self.payment = payment or {}


class UpstreamUnavailable(ShopMeshError):
    """A peer service could not be reached or answered unexpectedly."""

    status_code = 503


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ShopMeshError)
    async def shopmesh_error_handler(request: Request, exc: ShopMeshError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_body())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.info("request_rejected", path=request.url.path, errors=len(exc.errors()))
        details = [
            {"loc": list(err.get("loc", ())), "msg": err.get("msg")}
            for err in exc.errors()
        ]
        return JSONResponse(status_code=400, content={"error": "Invalid request", "details": details})
