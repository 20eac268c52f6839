from datetime import datetime, timedelta

from app.config import settings
from app.constants.order_status import OrderMode, PaymentStatus
from app.services import r2_helper
from app.services.entitlement import (
    ACCESS_GIFT,
    ACCESS_PURCHASE,
    ACCESS_RENTAL,
    REASON_NOT_OWNED,
    REASON_RENTAL_EXPIRED,
    resolve_entitlement,
)

CONTENT_URL = "https://cdn.example.com/books/deep-work.pdf"


def test_no_order_is_not_owned(client, user_headers, make_book):
    book = make_book(content_location=CONTENT_URL)

    res = client.get(f"/books/{book.id}/read", headers=user_headers)

    assert res.status_code == 403
    assert res.json()["detail"]["reason"] == REASON_NOT_OWNED


def test_purchase_grants_reading_url(client, user, user_headers, make_book, make_order):
    book = make_book(content_location=CONTENT_URL)
    make_order(user, book)

    res = client.get(f"/books/{book.id}/read", headers=user_headers)

    assert res.status_code == 200
    body = res.json()
    assert body["reading_url"] == CONTENT_URL
    assert body["access_kind"] == ACCESS_PURCHASE
    assert body["content_kind"] == "pdf"


def test_unpaid_order_does_not_grant(session, user, book, make_order):
    make_order(user, book, payment_status=PaymentStatus.PENDING)
    make_order(user, book, payment_status=PaymentStatus.FAILED)

    decision = resolve_entitlement(session, user, book.id)
    assert not decision.granted
    assert decision.reason == REASON_NOT_OWNED


def test_captured_payment_counts_as_paid(session, user, book, make_order):
    make_order(user, book, payment_status=PaymentStatus.CAPTURED)
    assert resolve_entitlement(session, user, book.id).granted


def test_rental_boundary(session, user, book, make_order):
    end = datetime(2026, 5, 1, 9, 0, 0)
    make_order(user, book, mode=OrderMode.RENT, rental_end=end)

    before = resolve_entitlement(session, user, book.id, now=end - timedelta(seconds=1))
    after = resolve_entitlement(session, user, book.id, now=end + timedelta(seconds=1))

    assert before.granted
    assert before.access_kind == ACCESS_RENTAL
    assert before.expires_at == end
    assert not after.granted
    assert after.reason == REASON_RENTAL_EXPIRED


def test_expired_rental_is_403_with_reason(client, user, user_headers, make_book, make_order):
    book = make_book(content_location=CONTENT_URL)
    make_order(user, book, mode=OrderMode.RENT, rental_end=datetime.utcnow() - timedelta(seconds=1))

    res = client.get(f"/books/{book.id}/read", headers=user_headers)

    assert res.status_code == 403
    assert res.json()["detail"]["reason"] == REASON_RENTAL_EXPIRED


def test_later_rental_renews_access(session, user, book, make_order):
    now = datetime(2026, 6, 1)
    make_order(user, book, mode=OrderMode.RENT, rental_end=now - timedelta(days=2))
    make_order(user, book, mode=OrderMode.RENT, rental_end=now + timedelta(days=10))

    decision = resolve_entitlement(session, user, book.id, now=now)
    assert decision.granted
    assert decision.expires_at == now + timedelta(days=10)


def test_access_without_content_is_404(client, user, user_headers, book, make_order):
    make_order(user, book)

    res = client.get(f"/books/{book.id}/read", headers=user_headers)
    assert res.status_code == 404


def test_claimed_gift_grants_access(session, user, make_user, book, make_order, make_gift):
    sender = make_user()
    order = make_order(sender, book, mode=OrderMode.GIFT)
    make_gift(order, book, user.email, recipient=user, claimed=True)

    decision = resolve_entitlement(session, user, book.id)
    assert decision.granted
    assert decision.access_kind == ACCESS_GIFT


def test_unclaimed_gift_needs_claim(session, monkeypatch, user, make_user, book, make_order, make_gift):
    sender = make_user()
    order = make_order(sender, book, mode=OrderMode.GIFT)
    make_gift(order, book, user.email)

    assert not resolve_entitlement(session, user, book.id).granted

    monkeypatch.setattr(settings, "gift_access_requires_claim", False)
    assert resolve_entitlement(session, user, book.id).granted


def test_gift_rescues_expired_rental(session, user, make_user, book, make_order, make_gift):
    make_order(user, book, mode=OrderMode.RENT, rental_end=datetime.utcnow() - timedelta(days=1))
    sender = make_user()
    make_gift(make_order(sender, book, mode=OrderMode.GIFT), book, user.email, recipient=user, claimed=True)

    assert resolve_entitlement(session, user, book.id).access_kind == ACCESS_GIFT


def test_storage_keys_are_presigned(client, monkeypatch, user, user_headers, make_book, make_order):
    calls = []

    class FakeS3:
        def generate_presigned_url(self, op, Params, ExpiresIn):
            calls.append((op, Params["Key"], ExpiresIn))
            return f"https://signed.example.com/{Params['Key']}?sig=abc"

    monkeypatch.setattr(r2_helper, "get_s3_client", lambda: FakeS3())

    book = make_book(content_location="book_content/1_deep-work.pdf")
    make_order(user, book)

    res = client.get(f"/books/{book.id}/read", headers=user_headers)

    assert res.status_code == 200
    assert res.json()["reading_url"].startswith("https://signed.example.com/book_content/")
    assert calls == [("get_object", "book_content/1_deep-work.pdf", settings.content_url_expires)]


def test_summary_requires_access(client, session, user, user_headers, book, make_order, admin_headers):
    assert client.get(f"/reading-assistant/summary/{book.id}", headers=user_headers).status_code == 403

    make_order(user, book)
    assert client.get(f"/reading-assistant/summary/{book.id}", headers=user_headers).status_code == 404

    client.put(
        f"/admin/books/{book.id}/summary",
        json={"summary": "Focus is a skill.", "key_takeaways": ["Schedule deep work"]},
        headers=admin_headers,
    )

    res = client.get(f"/reading-assistant/summary/{book.id}", headers=user_headers)
    assert res.status_code == 200
    assert res.json()["key_takeaways"] == ["Schedule deep work"]

    check = client.get(f"/reading-assistant/check-access/{book.id}", headers=user_headers).json()
    assert check["granted"] is True
    assert check["has_cached_summary"] is True


def test_unpaid_gift_order_does_not_grant(client, session, user, user_headers, make_book):
    book = make_book(content_location=CONTENT_URL)

    res = client.post(
        "/orders",
        json={"mode": "gift", "gift_email": user.email, "items": [{"book_id": book.id, "quantity": 1}]},
        headers=user_headers,
    )
    assert res.status_code == 201
    assert res.json()["payment_status"] == "pending"

    read = client.get(f"/books/{book.id}/read", headers=user_headers)
    assert read.status_code == 403
    assert read.json()["detail"]["reason"] == REASON_NOT_OWNED
    assert client.get("/library", headers=user_headers).json()["gifted"] == []


def test_gift_grants_once_sender_pays(session, user, make_user, book, make_order, make_gift):
    order = make_order(make_user(), book, mode=OrderMode.GIFT, payment_status=PaymentStatus.PENDING)
    make_gift(order, book, user.email, recipient=user, claimed=True)

    assert not resolve_entitlement(session, user, book.id).granted

    order.payment_status = PaymentStatus.CAPTURED
    session.add(order)
    session.commit()

    assert resolve_entitlement(session, user, book.id).access_kind == ACCESS_GIFT
