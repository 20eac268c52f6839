from enum import Enum


class OrderMode(str, Enum):
    BUY = "buy"
    RENT = "rent"
    GIFT = "gift"


class ShippingSpeed(str, Enum):
    STANDARD = "standard"
    EXPRESS = "express"
    PRIORITY = "priority"


class OrderStatus:
    PENDING = "Pending"
    ACTIVE = "Active"
    DELIVERED = "Delivered"
    COMPLETED = "Completed"


class PaymentStatus:
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    CAPTURED = "captured"


# payment states that count as "paid" for reading access
PAID_PAYMENT_STATUSES = (PaymentStatus.COMPLETED, PaymentStatus.CAPTURED)

INITIAL_STATUS = {
    OrderMode.BUY: OrderStatus.PENDING,
    OrderMode.RENT: OrderStatus.ACTIVE,
    OrderMode.GIFT: OrderStatus.DELIVERED,
}

TERMINAL_STATUSES = {OrderStatus.COMPLETED}

CASH_ON_DELIVERY = "cod"
