from datetime import datetime, timedelta

import httpx
import pytest
from fastapi.testclient import TestClient

from shopmesh.database import Store, create_session_factory
from shopmesh.notifications import models as notification_models
from shopmesh.notifications.dispatcher import NotificationDispatcher
from shopmesh.notifications.main import app as notifications_app
from shopmesh.notifications.routes import get_dispatcher
from shopmesh.orders import models as order_models
from shopmesh.orders.clients import NotificationClient, PaymentClient
from shopmesh.orders.main import app as orders_app
from shopmesh.orders.orchestrator import OrderOrchestrator
from shopmesh.orders.routes import get_orchestrator
from shopmesh.payments import models as payment_models
from shopmesh.payments.main import app as payments_app
from shopmesh.payments.processor import PaymentProcessor
from shopmesh.payments.routes import get_processor


class FakeClock:
    """Strictly increasing timestamps, one second apart."""

    def __init__(self):
        self.now = datetime(2024, 1, 1, 12, 0, 0)

    def __call__(self):
        self.now += timedelta(seconds=1)
        return self.now


class Decisions:
    """Charge outcomes fed to the processor; queued values first, then ``default``."""

    def __init__(self):
        self.queue = []
        self.default = True

    def __call__(self):
        if self.queue:
            return self.queue.pop(0)
        return self.default


def make_store(model, base):
    engine, SessionLocal = create_session_factory("sqlite://")
    base.metadata.create_all(bind=engine)
    return Store(model, SessionLocal)


def unreachable(request):
    raise httpx.ConnectError("connection refused", request=request)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def decisions():
    return Decisions()


@pytest.fixture
def processor(decisions):
    return PaymentProcessor(make_store(payment_models.Payment, payment_models.Base), decide=decisions)


@pytest.fixture
def dispatcher(clock):
    return NotificationDispatcher(
        make_store(notification_models.Notification, notification_models.Base),
        clock=clock,
    )


@pytest.fixture
def payment_api(processor):
    payments_app.dependency_overrides[get_processor] = lambda: processor
    with TestClient(payments_app) as c:
        yield c
    payments_app.dependency_overrides.clear()


@pytest.fixture
def notification_api(dispatcher):
    notifications_app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    with TestClient(notifications_app) as c:
        yield c
    notifications_app.dependency_overrides.clear()


@pytest.fixture
def down_http():
    """An httpx client whose every request fails to connect."""
    with httpx.Client(transport=httpx.MockTransport(unreachable), base_url="http://down") as c:
        yield c


@pytest.fixture
def order_store():
    return make_store(order_models.Order, order_models.Base)


@pytest.fixture
def orchestrator(order_store, payment_api, notification_api, clock):
    return OrderOrchestrator(
        order_store,
        PaymentClient("http://payment-service", http=payment_api),
        NotificationClient("http://notification-service", http=notification_api),
        clock=clock,
    )


@pytest.fixture
def order_api(orchestrator):
    orders_app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    with TestClient(orders_app) as c:
        yield c
    orders_app.dependency_overrides.clear()
