import logging
from datetime import datetime
from functools import lru_cache
from typing import Any, Dict, Optional

from sqlmodel import Session, select

from app.config import settings
from app.constants.order_status import PaymentStatus, PAID_PAYMENT_STATUSES
from app.models.order import Order
from app.models.user import User

logger = logging.getLogger(__name__)


class PaymentVerificationError(Exception):
    pass


@lru_cache(maxsize=1)
def get_razorpay_client():
    import razorpay

    return razorpay.Client(
        auth=(settings.razorpay_key_id, settings.razorpay_key_secret)
    )


def payment_signature_is_valid(params: Dict[str, str]) -> bool:
    import razorpay

    try:
        get_razorpay_client().utility.verify_payment_signature(params)
    except razorpay.errors.SignatureVerificationError:
        return False
    return True


def create_gateway_order(session: Session, order: Order, user: User) -> Dict[str, Any]:
    """Create (or reuse) the Razorpay order backing one of our orders."""
    if order.gateway_order_id:
        return {
            "order_id": order.id,
            "razorpay_order_id": order.gateway_order_id,
            "razorpay_key": settings.razorpay_key_id,
            "amount": order.total,
            "currency": settings.currency,
            "message": "Razorpay order already created",
        }

    razorpay_order = get_razorpay_client().order.create({
        "amount": int(round(order.total * 100)),  # paise
        "currency": settings.currency,
        "receipt": f"order_{order.id}",
        "notes": {
            "order_id": order.id,
            "user_id": user.id,
            "order_mode": order.mode,
        },
    })

    order.gateway_order_id = razorpay_order["id"]
    order.updated_at = datetime.utcnow()
    session.add(order)
    session.commit()

    logger.info("Razorpay order %s created for order %s", order.gateway_order_id, order.id)

    return {
        "order_id": order.id,
        "razorpay_order_id": order.gateway_order_id,
        "razorpay_key": settings.razorpay_key_id,
        "amount": order.total,
        "currency": settings.currency,
    }


def mark_payment_failed(session: Session, order: Order):
    order.payment_status = PaymentStatus.FAILED
    order.updated_at = datetime.utcnow()
    session.add(order)
    session.commit()
    logger.warning("Payment failed for order %s", order.id)


def confirm_payment(
    session: Session,
    order: Order,
    razorpay_order_id: str,
    razorpay_payment_id: str,
    razorpay_signature: str,
) -> Order:
    """
    Verify a checkout signature and mark the order paid.

    Verifying an already-paid order is a no-op.
    """
    if order.payment_status in PAID_PAYMENT_STATUSES:
        return order

    if not order.gateway_order_id:
        raise PaymentVerificationError("Razorpay order not initialized")

    if order.gateway_order_id != razorpay_order_id:
        raise PaymentVerificationError("Order mismatch")

    if not payment_signature_is_valid({
        "razorpay_order_id": razorpay_order_id,
        "razorpay_payment_id": razorpay_payment_id,
        "razorpay_signature": razorpay_signature,
    }):
        mark_payment_failed(session, order)
        raise PaymentVerificationError("Payment verification failed")

    order.payment_status = PaymentStatus.COMPLETED
    order.gateway_payment_id = razorpay_payment_id
    order.gateway_signature = razorpay_signature
    order.updated_at = datetime.utcnow()
    session.add(order)
    session.commit()
    session.refresh(order)

    logger.info("Payment %s confirmed for order %s", razorpay_payment_id, order.id)
    return order


def webhook_signature_is_valid(body: str, signature: Optional[str]) -> bool:
    # unsigned webhooks are never trusted, even without a configured secret
    if not settings.razorpay_webhook_secret or not signature:
        return False

    import razorpay

    try:
        get_razorpay_client().utility.verify_webhook_signature(
            body, signature, settings.razorpay_webhook_secret
        )
    except razorpay.errors.SignatureVerificationError:
        return False
    return True


WEBHOOK_PAYMENT_STATUS = {
    "payment.captured": PaymentStatus.CAPTURED,
    "payment.failed": PaymentStatus.FAILED,
}


def apply_webhook_event(session: Session, event: Dict[str, Any]) -> Optional[Order]:
    new_status = WEBHOOK_PAYMENT_STATUS.get(event.get("event"))
    if new_status is None:
        logger.info("Unhandled webhook event: %s", event.get("event"))
        return None

    payment = event.get("payload", {}).get("payment", {}).get("entity", {})
    if not payment.get("id") or not payment.get("order_id"):
        logger.warning("Webhook %s without payment or order id ignored", event.get("event"))
        return None

    order = session.exec(
        select(Order).where(Order.gateway_order_id == payment["order_id"])
    ).first()

    if not order:
        logger.warning("Webhook %s for unknown payment %s", event.get("event"), payment.get("id"))
        return None

    # a late failure event must not revoke an already paid order
    if new_status == PaymentStatus.FAILED and order.payment_status in PAID_PAYMENT_STATUSES:
        return order

    order.payment_status = new_status
    order.gateway_payment_id = order.gateway_payment_id or payment.get("id")
    order.updated_at = datetime.utcnow()
    session.add(order)
    session.commit()

    logger.info("Webhook %s applied to order %s", event.get("event"), order.id)
    return order
