from datetime import datetime

import pytest

from shopmesh.errors import NotFoundError, ValidationError
from shopmesh.notifications.channels import DEFAULT_EMAIL, DEFAULT_PHONE
from shopmesh.notifications.dispatcher import NotificationDispatcher
from shopmesh.notifications.models import Base, Notification

from conftest import make_store


def test_send_stores_sent_notification(dispatcher):
    notification = dispatcher.send("user-1", "order_confirmed", "Confirmed!", order_id="ORDER-1")

    assert notification.status == "sent"
    assert notification.order_id == "ORDER-1"
    assert notification.read_at is None
    assert dispatcher.get(notification.id).message == "Confirmed!"


@pytest.mark.parametrize(
    "user_id, type, message",
    [("", "order_confirmed", "hi"), ("user-1", None, "hi"), ("user-1", "order_confirmed", "")],
)
def test_send_requires_user_type_and_message(dispatcher, user_id, type, message):
    with pytest.raises(ValidationError):
        dispatcher.send(user_id, type, message)

    assert dispatcher.store.all() == []


@pytest.mark.parametrize(
    "type, channel",
    [
        ("order_confirmed", "email"),
        ("order_cancelled", "email"),
        ("payment_failed", "email"),
        ("order_shipped", "sms"),
        ("order_delivered", "push"),
        ("promo", "generic"),
    ],
)
def test_delivery_channel_follows_type(dispatcher, type, channel):
    notification = dispatcher.send("user-1", type, "hello")

    delivered = dispatcher.channels.channels[channel].sent
    assert [d["notification_id"] for d in delivered] == [notification.id]
    others = [c for name, c in dispatcher.channels.channels.items() if name != channel]
    assert all(c.sent == [] for c in others)


def test_delivery_falls_back_to_default_addresses(dispatcher):
    dispatcher.send("user-1", "order_confirmed", "hello")
    dispatcher.send("user-1", "order_shipped", "hello", phone="+440000")
    dispatcher.send("user-1", "order_cancelled", "bye", email="a@b.c")

    emails = dispatcher.channels.channels["email"].sent
    assert [e["to"] for e in emails] == [DEFAULT_EMAIL, "a@b.c"]
    assert dispatcher.channels.channels["sms"].sent[0]["to"] == "+440000"


def test_sms_without_phone_goes_to_default_number(dispatcher):
    dispatcher.send("user-1", "order_shipped", "hello")

    assert dispatcher.channels.channels["sms"].sent[0]["to"] == DEFAULT_PHONE


def test_list_filters_orders_newest_first_and_truncates(dispatcher):
    first = dispatcher.send("user-1", "order_confirmed", "one")
    second = dispatcher.send("user-1", "order_confirmed", "two")
    third = dispatcher.send("user-1", "order_confirmed", "three")
    dispatcher.send("user-2", "order_confirmed", "other user")
    dispatcher.send("user-1", "order_shipped", "other type")

    result = dispatcher.list_notifications(user_id="user-1", type="order_confirmed", limit=2)

    assert [n.id for n in result] == [third.id, second.id]
    assert first.id not in [n.id for n in result]


def test_list_order_is_stable_for_equal_timestamps():
    instant = datetime(2024, 1, 1, 12, 0, 0)
    dispatcher = NotificationDispatcher(make_store(Notification, Base), clock=lambda: instant)
    sent = [dispatcher.send("user-1", "promo", str(i)) for i in range(5)]

    listed = [n.id for n in dispatcher.list_notifications(user_id="user-1")]

    assert listed == sorted((n.id for n in sent), reverse=True)
    assert [n.id for n in dispatcher.list_notifications(user_id="user-1")] == listed


def test_list_without_filters_returns_everything_up_to_default_limit(dispatcher):
    for i in range(3):
        dispatcher.send(f"user-{i}", "promo", "hi")

    assert len(dispatcher.list_notifications()) == 3
    assert dispatcher.list_notifications(limit=0) == []


def test_list_rejects_negative_limit(dispatcher):
    with pytest.raises(ValidationError):
        dispatcher.list_notifications(limit=-1)


def test_mark_read_twice_moves_read_timestamp(dispatcher):
    notification = dispatcher.send("user-1", "promo", "hi")

    first = dispatcher.mark_read(notification.id)
    second = dispatcher.mark_read(notification.id)

    assert first.status == second.status == "read"
    assert second.read_at > first.read_at


def test_mark_read_unknown_raises_not_found(dispatcher):
    with pytest.raises(NotFoundError):
        dispatcher.mark_read("missing")


def test_unread_for_user_only_returns_sent(dispatcher):
    read = dispatcher.send("user-1", "promo", "one")
    unread = dispatcher.send("user-1", "promo", "two")
    dispatcher.send("user-2", "promo", "three")
    dispatcher.mark_read(read.id)

    assert [n.id for n in dispatcher.unread_for_user("user-1")] == [unread.id]


def test_send_bulk_keeps_positions_and_persists_only_valid(dispatcher):
    requests = [
        {"userId": "user-1", "type": "promo", "message": "one"},
        {"userId": "user-1", "type": "promo"},
        "not an object",
        {"user_id": "user-2", "type": "order_shipped", "message": "two"},
    ]

    results = dispatcher.send_bulk(requests)

    assert len(results) == 4
    assert results[0].message == "one"
    assert results[1] == {"error": "User ID, type, and message are required", "data": requests[1]}
    assert results[2]["data"] == "not an object"
    assert results[3].user_id == "user-2"
    assert sorted(n.message for n in dispatcher.store.all()) == ["one", "two"]


# --- HTTP -----------------------------------------------------------------


def test_send_notification_api(notification_api):
    response = notification_api.post(
        "/notifications",
        json={"userId": "user-1", "type": "order_confirmed", "message": "Hi", "orderId": "ORDER-1"},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "sent"
    assert body["orderId"] == "ORDER-1"
    assert body["email"] is None


def test_send_notification_api_validation(notification_api):
    response = notification_api.post("/notifications", json={"userId": "user-1"})

    assert response.status_code == 400
    assert response.json() == {"error": "User ID, type, and message are required"}


def test_list_notifications_api(notification_api, dispatcher):
    for message in ("one", "two", "three"):
        dispatcher.send("user-1", "promo", message)

    body = notification_api.get("/notifications", params={"userId": "user-1", "limit": 2}).json()

    assert body["count"] == 2
    assert [n["message"] for n in body["notifications"]] == ["three", "two"]


def test_list_notifications_api_bad_limit(notification_api):
    assert notification_api.get("/notifications", params={"limit": "many"}).status_code == 400
    assert notification_api.get("/notifications", params={"limit": -5}).status_code == 400


def test_get_and_mark_read_api(notification_api, dispatcher):
    notification = dispatcher.send("user-1", "promo", "hi")

    assert notification_api.get(f"/notifications/{notification.id}").json()["status"] == "sent"

    read = notification_api.put(f"/notifications/{notification.id}/read")
    assert read.status_code == 200
    assert read.json()["status"] == "read"
    assert read.json()["readAt"] is not None

    missing = notification_api.put("/notifications/nope/read")
    assert missing.status_code == 404
    assert missing.json()["id"] == "nope"


def test_unread_api(notification_api, dispatcher):
    dispatcher.send("user-1", "promo", "hi")

    body = notification_api.get("/notifications/user/user-1/unread").json()

    assert body["count"] == 1
    assert body["userId"] == "user-1"


def test_bulk_api(notification_api):
    response = notification_api.post(
        "/notifications/bulk",
        json={"notifications": [{"userId": "u", "type": "promo", "message": "m"}, {"type": "promo"}]},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["count"] == 2
    assert body["results"][0]["status"] == "sent"
    assert "error" in body["results"][1]


def test_bulk_api_requires_a_list(notification_api):
    response = notification_api.post("/notifications/bulk", json={"notifications": "nope"})

    assert response.status_code == 400
