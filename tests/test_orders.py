from datetime import timedelta

import pytest
from sqlalchemy.exc import IntegrityError
from sqlmodel import select

from app.models.gift import Gift
from app.models.order import Order
from app.models.order_item import OrderItem
from app.services import order_service


def _buy(client, headers, address, items, **extra):
    payload = {"mode": "buy", "shipping_address_id": address.id, "items": items, **extra}
    return client.post("/orders", json=payload, headers=headers)


def test_buy_order_decrements_stock(client, session, user_headers, address, book):
    res = _buy(client, user_headers, address, [{"book_id": book.id, "quantity": 2}])

    assert res.status_code == 201
    body = res.json()
    assert body["mode"] == "buy"
    assert body["status"] == "Pending"
    assert body["payment_status"] == "pending"
    assert body["subtotal"] == 800.0
    assert body["total"] == 830.0
    assert body["items"][0]["price"] == 400.0
    assert body["delivery_eta"] is not None

    session.refresh(book)
    assert book.stock == 3


def test_insufficient_stock_rejects_whole_order(client, session, user_headers, address, make_book):
    plenty = make_book(title="Plenty", stock=10)
    scarce = make_book(title="Scarce", stock=1)

    res = _buy(
        client, user_headers, address,
        [{"book_id": plenty.id, "quantity": 1}, {"book_id": scarce.id, "quantity": 2}],
    )

    assert res.status_code == 400
    assert "Scarce" in res.json()["detail"]
    assert "Available: 1" in res.json()["detail"]

    session.refresh(plenty)
    session.refresh(scarce)
    assert plenty.stock == 10
    assert scarce.stock == 1
    assert session.exec(select(Order)).all() == []
    assert session.exec(select(OrderItem)).all() == []


def test_unknown_book_is_404(client, user_headers, address):
    res = _buy(client, user_headers, address, [{"book_id": 999, "quantity": 1}])
    assert res.status_code == 404


def test_buy_requires_own_address(client, session, make_user, headers_for, address, book):
    other = make_user()

    res = _buy(client, headers_for(other), address, [{"book_id": book.id, "quantity": 1}])

    assert res.status_code == 404
    session.refresh(book)
    assert book.stock == 5


def test_rental_ends_thirty_days_after_creation(client, session, user_headers, book):
    res = client.post(
        "/orders",
        json={"mode": "rent", "items": [{"book_id": book.id, "quantity": 1}]},
        headers=user_headers,
    )

    assert res.status_code == 201
    body = res.json()
    assert body["status"] == "Active"
    assert body["rental_days"] == 30
    assert body["total"] == 140.0

    order = session.get(Order, body["id"])
    assert order.rental_end == order.created_at + timedelta(days=30)

    session.refresh(book)
    assert book.stock == 5


def test_gift_order_issues_one_gift_per_item(client, session, user_headers, make_book, make_user):
    recipient = make_user(email="bob@example.com")
    first = make_book(title="First")
    second = make_book(title="Second")

    res = client.post(
        "/orders",
        json={
            "mode": "gift",
            "gift_email": "Bob@Example.com",
            "items": [{"book_id": first.id, "quantity": 1}, {"book_id": second.id, "quantity": 2}],
        },
        headers=user_headers,
    )

    assert res.status_code == 201
    assert res.json()["status"] == "Delivered"
    assert res.json()["gift_email"] == "bob@example.com"

    gifts = session.exec(select(Gift).where(Gift.order_id == res.json()["id"])).all()
    assert len(gifts) == 2
    assert len({g.claim_token for g in gifts}) == 2
    assert all(g.recipient_user_id == recipient.id for g in gifts)
    assert all(g.claimed_at is not None for g in gifts)


def test_gift_to_unknown_email_waits_for_claim(client, session, user_headers, book):
    res = client.post(
        "/orders",
        json={"mode": "gift", "gift_email": "nobody@example.com", "items": [{"book_id": book.id, "quantity": 1}]},
        headers=user_headers,
    )

    gift = session.exec(select(Gift).where(Gift.order_id == res.json()["id"])).one()
    assert gift.recipient_user_id is None
    assert gift.claimed_at is None


def test_catalog_price_change_leaves_history_alone(client, session, user_headers, address, admin_headers, book):
    order_id = _buy(client, user_headers, address, [{"book_id": book.id, "quantity": 1}]).json()["id"]

    res = client.patch(f"/admin/books/{book.id}", json={"price": 999.0}, headers=admin_headers)
    assert res.status_code == 200

    body = client.get(f"/orders/{order_id}", headers=user_headers).json()
    assert body["items"][0]["price"] == 400.0
    assert body["total"] == 430.0


def test_idempotency_key_returns_same_order(client, session, user_headers, address, book):
    headers = {**user_headers, "Idempotency-Key": "checkout-abc"}
    items = [{"book_id": book.id, "quantity": 1}]

    first = _buy(client, headers, address, items)
    second = _buy(client, headers, address, items)

    assert first.json()["id"] == second.json()["id"]
    session.refresh(book)
    assert book.stock == 4


def test_invalid_payloads_are_400(client, user_headers, address, book):
    no_items = _buy(client, user_headers, address, [])
    zero_qty = _buy(client, user_headers, address, [{"book_id": book.id, "quantity": 0}])
    no_address = client.post(
        "/orders", json={"mode": "buy", "items": [{"book_id": book.id, "quantity": 1}]}, headers=user_headers,
    )
    gift_without_email = client.post(
        "/orders", json={"mode": "gift", "items": [{"book_id": book.id, "quantity": 1}]}, headers=user_headers,
    )
    bad_mode = client.post(
        "/orders", json={"mode": "lend", "items": [{"book_id": book.id, "quantity": 1}]}, headers=user_headers,
    )

    for res in (no_items, zero_qty, no_address, gift_without_email, bad_mode):
        assert res.status_code == 400


def test_orders_require_login(client, book):
    res = client.post("/orders", json={"mode": "rent", "items": [{"book_id": book.id, "quantity": 1}]})
    assert res.status_code == 401


def test_users_only_see_their_own_orders(client, user, user_headers, make_user, headers_for, make_order, book):
    mine = make_order(user, book)
    other = make_user()
    theirs = make_order(other, book)

    listing = client.get("/orders", headers=user_headers).json()
    assert listing["total_items"] == 1
    assert [o["id"] for o in listing["results"]] == [mine.id]

    assert client.get(f"/orders/{theirs.id}", headers=user_headers).status_code == 404
    assert client.get(f"/orders/{theirs.id}", headers=headers_for(other)).status_code == 200


def test_idempotency_key_is_unique_per_user(session, user, make_user, book, make_order):
    make_order(user, book, idempotency_key="retry-1")
    make_order(make_user(), book, idempotency_key="retry-1")

    with pytest.raises(IntegrityError):
        make_order(user, book, idempotency_key="retry-1")
    session.rollback()


def test_racing_retry_returns_committed_order(client, session, monkeypatch, user, user_headers, address, book, make_order):
    committed = make_order(user, book, idempotency_key="retry-2")
    real_find = order_service._find_by_idempotency_key
    calls = []

    # the first lookup misses, as if the other request had not committed yet
    def find_after_commit(session, user_id, key):
        calls.append(key)
        return None if len(calls) == 1 else real_find(session, user_id, key)

    monkeypatch.setattr(order_service, "_find_by_idempotency_key", find_after_commit)

    res = _buy(client, {**user_headers, "Idempotency-Key": "retry-2"}, address, [{"book_id": book.id, "quantity": 1}])

    assert res.status_code == 201
    assert res.json()["id"] == committed.id
    assert len(calls) == 2
    session.refresh(book)
    assert book.stock == 5
    assert len(session.exec(select(Order).where(Order.user_id == user.id)).all()) == 1
