import threading

import pytest

from shopmesh.notifications.models import Base, Notification

from conftest import FakeClock, make_store


@pytest.fixture
def store():
    return make_store(Notification, Base)


def _notification(id, user_id="user-1", created_at=None):
    return Notification(
        id=id,
        user_id=user_id,
        type="promo",
        message="hi",
        status="sent",
        created_at=created_at or FakeClock()(),
    )


def test_append_and_find(store):
    store.append(_notification("n-1"))

    assert store.find_by_id("n-1").user_id == "user-1"
    assert store.find_by_id("n-2") is None


def test_find_by_criteria_order_and_limit(store):
    clock = FakeClock()
    for i in range(5):
        store.append(_notification(f"n-{i}", user_id="a" if i % 2 else "b", created_at=clock()))

    found = store.find_by(Notification.user_id == "b", order_by=Notification.created_at.desc(), limit=2)

    assert [n.id for n in found] == ["n-4", "n-2"]
    assert len(store.all()) == 5


def test_update_applies_mutation(store):
    store.append(_notification("n-1"))

    updated = store.update("n-1", lambda n: setattr(n, "status", "read"))

    assert updated.status == "read"
    assert store.find_by_id("n-1").status == "read"
    assert store.update("missing", lambda n: None) is None


def test_update_rolls_back_when_mutation_raises(store):
    store.append(_notification("n-1"))

    def explode(n):
        n.status = "read"
        raise ValueError("nope")

    with pytest.raises(ValueError):
        store.update("n-1", explode)

    assert store.find_by_id("n-1").status == "sent"


def test_concurrent_read_modify_write_is_atomic(store):
    store.append(_notification("n-1"))
    store.update("n-1", lambda n: setattr(n, "message", "0"))

    def bump(n):
        n.message = str(int(n.message) + 1)

    threads = [threading.Thread(target=lambda: [store.update("n-1", bump) for _ in range(25)]) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert store.find_by_id("n-1").message == "200"
