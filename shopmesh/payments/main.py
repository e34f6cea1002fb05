"""Payment service application.

Usage:
    uvicorn shopmesh.payments.main:app --port 3004
"""

import structlog
from fastapi import FastAPI

from shopmesh import config
from shopmesh.errors import register_error_handlers
from shopmesh.logging import add_request_logging, configure_logging
from shopmesh.payments.routes import router

configure_logging()

app = FastAPI(title="Payment Service", version=config.SERVICE_VERSION)

app.include_router(router)
register_error_handlers(app)
add_request_logging(app, "payment-service")

structlog.get_logger(__name__).info("service_configured", service="payment-service", version=config.SERVICE_VERSION)
