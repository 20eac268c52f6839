import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["SQLALCHEMY_URL"] = "sqlite://"
os.environ["STATUS_RECONCILE_ENABLED"] = "false"
os.environ["RAZORPAY_WEBHOOK_SECRET"] = "test-webhook-secret"

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel

from app.constants.order_status import INITIAL_STATUS, OrderMode, PaymentStatus
from app.database import create_db_and_tables, engine, get_session
from app.main import app
from app.models.address import Address
from app.models.book import Book
from app.models.gift import Gift
from app.models.order import Order
from app.models.order_item import OrderItem
from app.models.user import User
from app.utils.hash import hash_password
from app.utils.token import create_access_token


@pytest.fixture(name="session")
def session_fixture():
    create_db_and_tables()
    with Session(engine) as session:
        yield session
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="client")
def client_fixture(session):
    app.dependency_overrides[get_session] = lambda: session
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(session):
    counter = {"n": 0}

    def _make_user(email=None, role="user", password="secret123"):
        counter["n"] += 1
        user = User(
            first_name="Reader",
            last_name=str(counter["n"]),
            username=f"reader{counter['n']}",
            email=email or f"reader{counter['n']}@example.com",
            password=hash_password(password),
            role=role,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make_user


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
def headers_for():
    return auth_headers


@pytest.fixture
def user(make_user):
    return make_user(email="alice@example.com")


@pytest.fixture
def user_headers(user):
    return auth_headers(user)


@pytest.fixture
def admin(make_user):
    return make_user(email="admin@example.com", role="admin")


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def address(session, user):
    address = Address(
        user_id=user.id,
        recipient="Alice",
        address="12 Library Road",
        city="Bengaluru",
        state="KA",
        zip_code="560001",
    )
    session.add(address)
    session.commit()
    session.refresh(address)
    return address


@pytest.fixture
def make_book(session):
    def _make_book(title="Deep Work", price=400.0, stock=5, content_location=None):
        book = Book(
            title=title,
            slug=title.lower().replace(" ", "-"),
            author="Cal Newport",
            price=price,
            stock=stock,
            content_location=content_location,
        )
        session.add(book)
        session.commit()
        session.refresh(book)
        return book

    return _make_book


@pytest.fixture
def book(make_book):
    return make_book()


@pytest.fixture
def make_order(session):
    """Insert an order directly, bypassing checkout."""

    def _make_order(
        user,
        book,
        mode=OrderMode.BUY,
        payment_status=PaymentStatus.COMPLETED,
        rental_end=None,
        delivery_eta=None,
        created_at=None,
        idempotency_key=None,
    ):
        created_at = created_at or datetime.utcnow()
        if mode == OrderMode.RENT and rental_end is None:
            rental_end = created_at + timedelta(days=30)

        order = Order(
            user_id=user.id,
            mode=mode.value,
            subtotal=book.price,
            total=book.price,
            status=INITIAL_STATUS[mode],
            payment_status=payment_status,
            rental_days=30 if mode == OrderMode.RENT else None,
            rental_end=rental_end,
            delivery_eta=delivery_eta,
            idempotency_key=idempotency_key,
            created_at=created_at,
            updated_at=created_at,
        )
        session.add(order)
        session.flush()
        session.add(OrderItem(order_id=order.id, book_id=book.id, book_title=book.title, price=book.price, quantity=1))
        session.commit()
        session.refresh(order)
        return order

    return _make_order


@pytest.fixture
def make_gift(session):
    def _make_gift(order, book, recipient_email, recipient=None, claimed=False, token="token"):
        gift = Gift(
            order_id=order.id,
            book_id=book.id,
            recipient_email=recipient_email,
            claim_token=f"{token}-{order.id}-{book.id}",
            recipient_user_id=recipient.id if recipient else None,
            claimed_at=datetime.utcnow() if claimed else None,
        )
        session.add(gift)
        session.commit()
        session.refresh(gift)
        return gift

    return _make_gift
