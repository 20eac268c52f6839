# app/services/pricing.py
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional, Sequence, Tuple

from app.constants.order_status import CASH_ON_DELIVERY, OrderMode, ShippingSpeed
from app.exceptions import BookNotFoundError, InvalidOrderItemError
from app.models.book import Book

CENT = Decimal("0.01")

DEFAULT_RENTAL_DAYS = 30
# default rental is the cheaper per-day tier
DEFAULT_RENTAL_MULTIPLIER = Decimal("0.35")
CUSTOM_RENTAL_MULTIPLIER = Decimal("0.50")

SHIPPING_FEES = {
    ShippingSpeed.STANDARD: Decimal("30.00"),
    ShippingSpeed.EXPRESS: Decimal("70.00"),
    ShippingSpeed.PRIORITY: Decimal("120.00"),
}

DELIVERY_DAYS = {
    ShippingSpeed.STANDARD: 5,
    ShippingSpeed.EXPRESS: 3,
    ShippingSpeed.PRIORITY: 1,
}

COD_FEE = Decimal("50.00")


@dataclass
class PricedLine:
    book: Book
    quantity: int
    unit_price: Decimal

    @property
    def line_total(self) -> Decimal:
        return (self.unit_price * self.quantity).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass
class PricedOrder:
    mode: OrderMode
    lines: List[PricedLine]
    subtotal: Decimal
    shipping_fee: Decimal
    cod_fee: Decimal
    total: Decimal


def _money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def rental_multiplier(rental_days: Optional[int]) -> Decimal:
    if rental_days is None or rental_days == DEFAULT_RENTAL_DAYS:
        return DEFAULT_RENTAL_MULTIPLIER
    return CUSTOM_RENTAL_MULTIPLIER


def unit_price_for(book: Book, mode: OrderMode, rental_days: Optional[int] = None) -> Decimal:
    catalog_price = _money(book.price)
    if mode == OrderMode.RENT:
        return _money(catalog_price * rental_multiplier(rental_days))
    return catalog_price


def price_order(
    lines: Sequence[Tuple[int, int]],
    books: Dict[int, Book],
    mode: OrderMode,
    shipping_speed: Optional[ShippingSpeed] = None,
    payment_method: Optional[str] = None,
    rental_days: Optional[int] = None,
) -> PricedOrder:
    """
    Price (book_id, quantity) lines against already-loaded catalog rows.

    Reads catalog prices only; nothing is written.
    """
    mode = OrderMode(mode)
    priced: List[PricedLine] = []
    subtotal = Decimal("0.00")

    for book_id, quantity in lines:
        if quantity is None or quantity <= 0:
            raise InvalidOrderItemError(book_id, "Quantity must be greater than zero")

        book = books.get(book_id)
        if book is None:
            raise BookNotFoundError(book_id)

        line = PricedLine(book=book, quantity=quantity, unit_price=unit_price_for(book, mode, rental_days))
        subtotal += line.line_total
        priced.append(line)

    shipping_fee = Decimal("0.00")
    cod_fee = Decimal("0.00")
    if mode == OrderMode.BUY:
        shipping_fee = SHIPPING_FEES[ShippingSpeed(shipping_speed or ShippingSpeed.STANDARD)]
        if payment_method and payment_method.lower() == CASH_ON_DELIVERY:
            cod_fee = COD_FEE

    total = (subtotal + shipping_fee + cod_fee).quantize(CENT, rounding=ROUND_HALF_UP)

    return PricedOrder(
        mode=mode,
        lines=priced,
        subtotal=subtotal,
        shipping_fee=shipping_fee,
        cod_fee=cod_fee,
        total=total,
    )


def delivery_eta_for(shipping_speed: Optional[ShippingSpeed], now: datetime) -> datetime:
    days = DELIVERY_DAYS[ShippingSpeed(shipping_speed or ShippingSpeed.STANDARD)]
    return now + timedelta(days=days)


def rental_end_for(rental_days: Optional[int], now: datetime) -> datetime:
    return now + timedelta(days=rental_days or DEFAULT_RENTAL_DAYS)
