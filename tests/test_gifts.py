from app.constants.order_status import OrderMode


def _gift_for(user, make_user, make_order, make_gift, book, **kwargs):
    sender = make_user()
    order = make_order(sender, book, mode=OrderMode.GIFT)
    return make_gift(order, book, user.email, **kwargs)


def test_claim_all_is_idempotent(client, session, user, user_headers, make_user, make_order, make_gift, make_book):
    first = _gift_for(user, make_user, make_order, make_gift, make_book(title="One"))
    second = _gift_for(user, make_user, make_order, make_gift, make_book(title="Two"))

    res = client.post("/gifts/claim", headers=user_headers)
    assert res.json() == {"claimed": 2}

    session.refresh(first)
    session.refresh(second)
    assert first.recipient_user_id == user.id
    assert second.claimed_at is not None

    assert client.post("/gifts/claim", headers=user_headers).json() == {"claimed": 0}


def test_claim_one_gift(client, session, user, user_headers, make_user, make_order, make_gift, book):
    gift = _gift_for(user, make_user, make_order, make_gift, book)

    assert client.post(f"/gifts/claim/{gift.id}", headers=user_headers).json() == {"claimed": 1}
    assert client.post(f"/gifts/claim/{gift.id}", headers=user_headers).json() == {"claimed": 0}


def test_cannot_claim_someone_elses_gift(client, user, make_user, headers_for, make_order, make_gift, book):
    gift = _gift_for(user, make_user, make_order, make_gift, book)
    stranger = make_user()

    res = client.post(f"/gifts/claim/{gift.id}", headers=headers_for(stranger))
    assert res.status_code == 404


def test_claimed_gift_unlocks_reading(client, user, user_headers, make_user, make_order, make_gift, make_book):
    book = make_book(content_location="https://cdn.example.com/gift.pdf")
    gift = _gift_for(user, make_user, make_order, make_gift, book)

    assert client.get(f"/books/{book.id}/read", headers=user_headers).status_code == 403

    client.post(f"/gifts/claim/{gift.id}", headers=user_headers)

    res = client.get(f"/books/{book.id}/read", headers=user_headers)
    assert res.status_code == 200
    assert res.json()["access_kind"] == "gift"


def test_my_gifts_lists_sender_and_read_state(client, user, user_headers, make_user, make_order, make_gift, book):
    gift = _gift_for(user, make_user, make_order, make_gift, book)

    mine = client.get("/gifts/mine", headers=user_headers).json()
    assert len(mine) == 1
    assert mine[0]["title"] == book.title
    assert mine[0]["claimed"] is False
    assert mine[0]["read_at"] is None
    assert mine[0]["sender_email"].endswith("@example.com")

    assert client.post(f"/gifts/read/{gift.id}", headers=user_headers).json() == {"marked_read": 1}
    assert client.post("/gifts/read-all", headers=user_headers).json() == {"marked_read": 0}

    assert client.get("/gifts/mine", headers=user_headers).json()[0]["read_at"] is not None


def test_registering_claims_pending_gifts(client, session, make_user, make_order, make_gift, book):
    sender = make_user()
    gift = make_gift(make_order(sender, book, mode=OrderMode.GIFT), book, "newreader@example.com")

    res = client.post(
        "/auth/register",
        json={"email": "NewReader@example.com", "password": "secret123", "confirm_password": "secret123"},
    )
    assert res.status_code == 200

    session.refresh(gift)
    assert gift.recipient_user_id == res.json()["user_id"]
    assert gift.claimed_at is not None
