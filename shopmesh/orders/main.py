"""Order service application.

Usage:
    uvicorn shopmesh.orders.main:app --port 3003
"""

import structlog
from fastapi import FastAPI

from shopmesh import config
from shopmesh.errors import register_error_handlers
from shopmesh.logging import add_request_logging, configure_logging
from shopmesh.orders.routes import router

configure_logging()

app = FastAPI(title="Order Service", version=config.SERVICE_VERSION)

app.include_router(router)
register_error_handlers(app)
add_request_logging(app, "order-service")

structlog.get_logger(__name__).info(
    "service_configured",
    service="order-service",
    version=config.SERVICE_VERSION,
    payment_service=config.PAYMENT_SERVICE_URL,
    notification_service=config.NOTIFICATION_SERVICE_URL,
)
