"""Notification service application.

Usage:
    uvicorn shopmesh.notifications.main:app --port 3005
"""

import structlog
from fastapi import FastAPI

from shopmesh import config
from shopmesh.errors import register_error_handlers
from shopmesh.logging import add_request_logging, configure_logging
from shopmesh.notifications.routes import router

configure_logging()

app = FastAPI(title="Notification Service", version=config.SERVICE_VERSION)

app.include_router(router)
register_error_handlers(app)
add_request_logging(app, "notification-service")

structlog.get_logger(__name__).info("service_configured", service="notification-service", version=config.SERVICE_VERSION)
