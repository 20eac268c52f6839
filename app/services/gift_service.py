import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, or_, update
from sqlmodel import Session, select

from app.models.book import Book
from app.models.gift import Gift
from app.models.order import Order
from app.models.user import User
from app.schemas.gift_schemas import GiftRead

logger = logging.getLogger(__name__)


def _addressed_to(user: User):
    return or_(
        Gift.recipient_user_id == user.id,
        func.lower(Gift.recipient_email) == user.email.lower(),
    )


def claim_all_gifts(session: Session, user: User, now: Optional[datetime] = None) -> int:
    """Claim every unclaimed gift sent to the user's email."""
    now = now or datetime.utcnow()
    result = session.execute(
        update(Gift)
        .where(func.lower(Gift.recipient_email) == user.email.lower())
        .where(Gift.claimed_at.is_(None))
        .where(or_(Gift.recipient_user_id.is_(None), Gift.recipient_user_id == user.id))
        .values(recipient_user_id=user.id, claimed_at=now)
        .execution_options(synchronize_session=False)
    )
    session.commit()

    claimed = result.rowcount or 0
    logger.info("User %s claimed %s gift(s)", user.id, claimed)
    return claimed


def get_gift_for_user(session: Session, user: User, gift_id: int) -> Optional[Gift]:
    return session.exec(
        select(Gift).where(Gift.id == gift_id).where(_addressed_to(user))
    ).first()


def claim_gift(session: Session, user: User, gift: Gift, now: Optional[datetime] = None) -> int:
    """Claim one gift. Already-claimed gifts are left untouched."""
    if gift.claimed_at is not None:
        return 0

    gift.recipient_user_id = user.id
    gift.claimed_at = now or datetime.utcnow()
    session.add(gift)
    session.commit()

    logger.info("User %s claimed gift %s", user.id, gift.id)
    return 1


def mark_gift_read(session: Session, user: User, gift_id: int, now: Optional[datetime] = None) -> int:
    result = session.execute(
        update(Gift)
        .where(Gift.id == gift_id)
        .where(_addressed_to(user))
        .where(Gift.read_at.is_(None))
        .values(read_at=now or datetime.utcnow())
        .execution_options(synchronize_session=False)
    )
    session.commit()
    return result.rowcount or 0


def mark_all_gifts_read(session: Session, user: User, now: Optional[datetime] = None) -> int:
    result = session.execute(
        update(Gift)
        .where(_addressed_to(user))
        .where(Gift.read_at.is_(None))
        .values(read_at=now or datetime.utcnow())
        .execution_options(synchronize_session=False)
    )
    session.commit()
    return result.rowcount or 0


def list_my_gifts(session: Session, user: User) -> List[GiftRead]:
    rows = session.exec(
        select(Gift, Book, User)
        .join(Book, Book.id == Gift.book_id)
        .join(Order, Order.id == Gift.order_id)
        .join(User, User.id == Order.user_id)
        .where(_addressed_to(user))
        .order_by(Gift.created_at.desc(), Gift.id.desc())
    ).all()

    return [
        GiftRead(
            id=gift.id,
            order_id=gift.order_id,
            book_id=book.id,
            title=book.title,
            author=book.author,
            quantity=gift.quantity,
            recipient_email=gift.recipient_email,
            sender_name=f"{sender.first_name} {sender.last_name}".strip() or sender.username,
            sender_email=sender.email,
            claimed=gift.is_claimed,
            claimed_at=gift.claimed_at,
            read_at=gift.read_at,
            created_at=gift.created_at,
        )
        for gift, book, sender in rows
    ]
