# app/services/entitlement.py
import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException, status
from pydantic import BaseModel
from sqlalchemy import func, or_
from sqlmodel import Session, select

from app.config import settings
from app.constants.order_status import OrderMode, PAID_PAYMENT_STATUSES
from app.models.book import Book
from app.models.gift import Gift
from app.models.order import Order
from app.models.order_item import OrderItem
from app.models.user import User

logger = logging.getLogger(__name__)

ACCESS_PURCHASE = "purchase"
ACCESS_RENTAL = "rental"
ACCESS_GIFT = "gift"

REASON_NOT_OWNED = "not owned"
REASON_RENTAL_EXPIRED = "rental expired"

DENIAL_MESSAGES = {
    REASON_NOT_OWNED: "You do not have access to this book. Purchase it or check whether it was gifted to you.",
    REASON_RENTAL_EXPIRED: "Your rental period has expired.",
}


class EntitlementDecision(BaseModel):
    granted: bool
    access_kind: Optional[str] = None
    reason: Optional[str] = None
    expires_at: Optional[datetime] = None
    order_id: Optional[int] = None
    gift_id: Optional[int] = None


def _paid_orders_for_book(session: Session, user_id: int, book_id: int):
    return session.exec(
        select(Order)
        .join(OrderItem, OrderItem.order_id == Order.id)
        .where(Order.user_id == user_id)
        .where(OrderItem.book_id == book_id)
        .where(Order.payment_status.in_(PAID_PAYMENT_STATUSES))
        .where(Order.mode.in_([OrderMode.BUY.value, OrderMode.RENT.value]))
        .order_by(Order.created_at.desc())
    ).all()


def _matching_gift(session: Session, user: User, book_id: int) -> Optional[Gift]:
    # the gift only counts once the sender has paid for it
    query = (
        select(Gift)
        .join(Order, Order.id == Gift.order_id)
        .where(Gift.book_id == book_id)
        .where(Order.payment_status.in_(PAID_PAYMENT_STATUSES))
    )

    if settings.gift_access_requires_claim:
        query = (
            query.where(Gift.recipient_user_id == user.id)
            .where(Gift.claimed_at.is_not(None))
        )
    else:
        query = query.where(
            or_(
                Gift.recipient_user_id == user.id,
                func.lower(Gift.recipient_email) == user.email.lower(),
            )
        )

    return session.exec(query.order_by(Gift.created_at.desc())).first()


def resolve_entitlement(
    session: Session,
    user: User,
    book_id: int,
    now: Optional[datetime] = None,
) -> EntitlementDecision:
    """
    Decide whether ``user`` may read ``book_id``.

    Checked in order: a paid buy order, a paid rental that has not ended,
    then a gift addressed to the user. An expired rental is only reported
    when no gift grants access either.
    """
    now = now or datetime.utcnow()
    rental_expired = False

    orders = _paid_orders_for_book(session, user.id, book_id)

    purchase = next((o for o in orders if o.mode == OrderMode.BUY), None)
    if purchase:
        return EntitlementDecision(granted=True, access_kind=ACCESS_PURCHASE, order_id=purchase.id)

    rentals = [o for o in orders if o.mode == OrderMode.RENT and o.rental_end is not None]
    active = [o for o in rentals if o.rental_end > now]
    if active:
        rental = max(active, key=lambda o: o.rental_end)
        return EntitlementDecision(
            granted=True,
            access_kind=ACCESS_RENTAL,
            expires_at=rental.rental_end,
            order_id=rental.id,
        )
    if rentals:
        rental_expired = True

    gift = _matching_gift(session, user, book_id)
    if gift:
        return EntitlementDecision(granted=True, access_kind=ACCESS_GIFT, gift_id=gift.id)

    reason = REASON_RENTAL_EXPIRED if rental_expired else REASON_NOT_OWNED
    return EntitlementDecision(granted=False, reason=reason)


def ensure_content_access(
    session: Session,
    user: User,
    book: Book,
    require_content: bool = True,
    now: Optional[datetime] = None,
) -> EntitlementDecision:
    """
    Resolve access and raise the matching HTTP error when it is missing.

    403 carries the denial reason; 404 means access is fine but the admin
    has not uploaded the content yet.
    """
    decision = resolve_entitlement(session, user, book.id, now=now)

    if not decision.granted:
        logger.info("Access to book %s denied for user %s: %s", book.id, user.id, decision.reason)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"reason": decision.reason, "message": DENIAL_MESSAGES[decision.reason]},
        )

    if require_content and not book.content_location:
        raise HTTPException(404, "Book content not available yet")

    return decision
