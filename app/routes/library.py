from datetime import datetime

from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from app.constants.order_status import OrderMode, PAID_PAYMENT_STATUSES
from app.database import get_session
from app.models.book import Book
from app.models.gift import Gift
from app.models.order import Order
from app.models.order_item import OrderItem
from app.models.user import User
from app.utils.token import get_current_user

router = APIRouter()


def _book_card(book: Book):
    return {
        "id": book.id,
        "title": book.title,
        "author": book.author,
        "cover_image": book.cover_image,
        "has_content": book.has_content,
    }


@router.get("")
def my_library(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """
    Owned, rented and gifted books.

    Only claimed gifts are listed; unclaimed ones live under /gifts/mine.
    """
    now = datetime.utcnow()

    paid = session.exec(
        select(Order, OrderItem, Book)
        .join(OrderItem, OrderItem.order_id == Order.id)
        .join(Book, Book.id == OrderItem.book_id)
        .where(Order.user_id == current_user.id)
        .where(Order.payment_status.in_(PAID_PAYMENT_STATUSES))
        .order_by(Order.created_at.desc())
    ).all()

    owned = {}
    rented = {}
    for order, item, book in paid:
        if order.mode == OrderMode.BUY and book.id not in owned:
            owned[book.id] = {"book": _book_card(book), "purchased_at": order.created_at}
        elif order.mode == OrderMode.RENT:
            current = rented.get(book.id)
            if current is None or order.rental_end > current["rental_end"]:
                rented[book.id] = {
                    "book": _book_card(book),
                    "rental_end": order.rental_end,
                    "active": order.rental_end > now,
                }

    gifts = session.exec(
        select(Gift, Book)
        .join(Book, Book.id == Gift.book_id)
        .join(Order, Order.id == Gift.order_id)
        .where(Order.payment_status.in_(PAID_PAYMENT_STATUSES))
        .where(Gift.recipient_user_id == current_user.id)
        .where(Gift.claimed_at.is_not(None))
        .order_by(Gift.claimed_at.desc())
    ).all()

    gifted = {}
    for gift, book in gifts:
        gifted.setdefault(book.id, {"book": _book_card(book), "gift_id": gift.id, "claimed_at": gift.claimed_at})

    return {
        "owned": list(owned.values()),
        "rented": list(rented.values()),
        "gifted": list(gifted.values()),
    }
