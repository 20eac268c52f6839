# app/services/order_service.py
import logging
import secrets
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, text, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from app.config import settings
from app.constants.order_status import INITIAL_STATUS, OrderMode, PaymentStatus
from app.exceptions import AddressNotFoundError, InsufficientStockError, OrderError
from app.models.address import Address
from app.models.book import Book
from app.models.gift import Gift
from app.models.order import Order
from app.models.order_item import OrderItem
from app.models.user import User
from app.schemas.order_schemas import OrderCreate, OrderItemRead, OrderRead
from app.services.order_status import effective_status
from app.services.pricing import DEFAULT_RENTAL_DAYS, delivery_eta_for, price_order, rental_end_for

logger = logging.getLogger(__name__)


def _apply_statement_timeout(session: Session):
    if session.get_bind().dialect.name == "postgresql":
        timeout_ms = int(settings.checkout_statement_timeout_ms)
        session.execute(text(f"SET LOCAL statement_timeout = {timeout_ms}"))


def _find_by_idempotency_key(session: Session, user_id: int, key: str) -> Optional[Order]:
    return session.exec(
        select(Order)
        .where(Order.user_id == user_id)
        .where(Order.idempotency_key == key)
    ).first()


def _load_books(session: Session, book_ids: List[int], lock: bool):
    query = select(Book).where(Book.id.in_(book_ids))
    if lock:
        query = query.with_for_update()
    return {book.id: book for book in session.exec(query).all()}


def _decrement_stock(session: Session, book: Book, quantity: int):
    """Compare-and-decrement so concurrent buyers cannot oversell."""
    result = session.execute(
        update(Book)
        .where(Book.id == book.id)
        .where(Book.stock >= quantity)
        .values(stock=Book.stock - quantity, updated_at=datetime.utcnow())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        available = session.exec(select(Book.stock).where(Book.id == book.id)).one()
        raise InsufficientStockError(book.id, book.title, available, quantity)


def _issue_gifts(session: Session, order: Order, items: List[OrderItem], recipient_email: str, now: datetime):
    recipient = session.exec(
        select(User).where(func.lower(User.email) == recipient_email)
    ).first()

    for item in items:
        gift = Gift(
            order_id=order.id,
            book_id=item.book_id,
            quantity=item.quantity,
            recipient_email=recipient_email,
            claim_token=secrets.token_hex(24),
            recipient_user_id=recipient.id if recipient else None,
            claimed_at=now if recipient else None,
            created_at=now,
        )
        session.add(gift)

    logger.info(
        "Issued %s gift(s) for order %s to %s (%s)",
        len(items), order.id, recipient_email,
        "auto-claimed" if recipient else "awaiting claim",
    )


def place_order(
    session: Session,
    user: User,
    payload: OrderCreate,
    idempotency_key: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Order:
    """
    Price and persist an order in a single transaction.

    Buy orders decrement stock; gift orders issue one Gift per item. Any
    failure rolls the whole order back.
    """
    now = now or datetime.utcnow()
    mode = OrderMode(payload.mode)

    if idempotency_key:
        existing = _find_by_idempotency_key(session, user.id, idempotency_key)
        if existing:
            logger.info("Order %s replayed for idempotency key %s", existing.id, idempotency_key)
            return existing

    try:
        _apply_statement_timeout(session)

        if mode == OrderMode.BUY:
            address = session.get(Address, payload.shipping_address_id)
            if not address or address.user_id != user.id:
                raise AddressNotFoundError(payload.shipping_address_id)

        lines = [(item.book_id, item.quantity) for item in payload.items]
        books = _load_books(session, sorted({book_id for book_id, _ in lines}), lock=mode == OrderMode.BUY)

        priced = price_order(
            lines,
            books,
            mode,
            shipping_speed=payload.shipping_speed,
            payment_method=payload.payment_method,
            rental_days=payload.rental_days,
        )

        if mode == OrderMode.BUY:
            for line in priced.lines:
                _decrement_stock(session, line.book, line.quantity)

        gift_email = payload.gift_email.lower() if mode == OrderMode.GIFT else None

        order = Order(
            user_id=user.id,
            mode=mode.value,
            subtotal=float(priced.subtotal),
            shipping_fee=float(priced.shipping_fee),
            cod_fee=float(priced.cod_fee),
            total=float(priced.total),
            status=INITIAL_STATUS[mode],
            payment_status=PaymentStatus.PENDING,
            payment_method=payload.payment_method,
            shipping_address_id=payload.shipping_address_id if mode == OrderMode.BUY else None,
            shipping_speed=payload.shipping_speed.value if mode == OrderMode.BUY else None,
            delivery_eta=delivery_eta_for(payload.shipping_speed, now) if mode == OrderMode.BUY else None,
            rental_days=(payload.rental_days or DEFAULT_RENTAL_DAYS) if mode == OrderMode.RENT else None,
            rental_end=rental_end_for(payload.rental_days, now) if mode == OrderMode.RENT else None,
            gift_email=gift_email,
            notes=payload.notes,
            idempotency_key=idempotency_key,
            created_at=now,
            updated_at=now,
        )
        session.add(order)
        session.flush()

        items = []
        for line in priced.lines:
            item = OrderItem(
                order_id=order.id,
                book_id=line.book.id,
                book_title=line.book.title,
                price=float(line.unit_price),
                quantity=line.quantity,
            )
            session.add(item)
            items.append(item)

        if mode == OrderMode.GIFT:
            _issue_gifts(session, order, items, gift_email, now)

        session.commit()

    except OrderError as e:
        session.rollback()
        logger.warning("Order rejected for user %s: %s", user.id, e.message)
        raise
    except IntegrityError:
        session.rollback()
        # a concurrent request with the same key committed first
        existing = _find_by_idempotency_key(session, user.id, idempotency_key) if idempotency_key else None
        if existing is None:
            logger.exception("Order persistence failed for user %s", user.id)
            raise
        logger.info("Order %s replayed for idempotency key %s", existing.id, idempotency_key)
        return existing
    except SQLAlchemyError:
        session.rollback()
        logger.exception("Order persistence failed for user %s", user.id)
        raise

    session.refresh(order)
    logger.info("Order %s placed by user %s (%s, total %.2f)", order.id, user.id, order.mode, order.total)
    return order


def list_user_orders_query(user_id: int):
    return (
        select(Order)
        .where(Order.user_id == user_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
    )


def get_user_order(session: Session, user_id: int, order_id: int) -> Optional[Order]:
    return session.exec(
        select(Order)
        .where(Order.id == order_id)
        .where(Order.user_id == user_id)
    ).first()


def build_order_read(order: Order, now: Optional[datetime] = None) -> OrderRead:
    return OrderRead(
        id=order.id,
        mode=order.mode,
        status=order.status,
        effective_status=effective_status(order, now),
        payment_status=order.payment_status,
        payment_method=order.payment_method,
        subtotal=order.subtotal,
        shipping_fee=order.shipping_fee,
        cod_fee=order.cod_fee,
        total=order.total,
        shipping_address_id=order.shipping_address_id,
        shipping_speed=order.shipping_speed,
        delivery_eta=order.delivery_eta,
        rental_days=order.rental_days,
        rental_end=order.rental_end,
        gift_email=order.gift_email,
        notes=order.notes,
        created_at=order.created_at,
        items=[
            OrderItemRead(
                id=item.id,
                book_id=item.book_id,
                book_title=item.book_title,
                quantity=item.quantity,
                price=item.price,
                line_total=item.line_total,
            )
            for item in order.items
        ],
    )
