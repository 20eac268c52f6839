import json
import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from sqlmodel import Session

from app.constants.order_status import CASH_ON_DELIVERY, PAID_PAYMENT_STATUSES
from app.database import get_session
from app.models.user import User
from app.schemas.payment_schemas import CreatePaymentOrder, RazorpayPaymentVerifySchema
from app.services.order_service import get_user_order
from app.services.payment_service import (
    PaymentVerificationError,
    apply_webhook_event,
    confirm_payment,
    create_gateway_order,
    webhook_signature_is_valid,
)
from app.utils.token import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/create-order")
def create_payment_order(
    data: CreatePaymentOrder,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    order = get_user_order(session, current_user.id, data.order_id)
    if not order:
        raise HTTPException(404, "Order not found")

    if order.payment_status in PAID_PAYMENT_STATUSES:
        raise HTTPException(400, "Order already paid")

    if order.payment_method == CASH_ON_DELIVERY:
        raise HTTPException(400, "Cash on delivery orders are paid on delivery")

    return create_gateway_order(session, order, current_user)


@router.post("/verify")
def verify_payment(
    data: RazorpayPaymentVerifySchema,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    order = get_user_order(session, current_user.id, data.order_id)
    if not order:
        raise HTTPException(404, "Order not found")

    try:
        order = confirm_payment(
            session,
            order,
            data.razorpay_order_id,
            data.razorpay_payment_id,
            data.razorpay_signature,
        )
    except PaymentVerificationError as e:
        raise HTTPException(400, str(e))

    return {
        "message": "Payment successful",
        "order_id": order.id,
        "payment_status": order.payment_status,
    }


@router.post("/webhook")
async def razorpay_webhook(
    request: Request,
    x_razorpay_signature: str | None = Header(default=None),
    session: Session = Depends(get_session),
):
    body = (await request.body()).decode()

    if not webhook_signature_is_valid(body, x_razorpay_signature):
        logger.warning("Rejected webhook with invalid signature")
        raise HTTPException(400, "Invalid webhook signature")

    try:
        event = json.loads(body)
    except json.JSONDecodeError:
        raise HTTPException(400, "Invalid webhook payload")

    order = apply_webhook_event(session, event)
    return {"status": "ok", "order_id": order.id if order else None}


@router.get("/status/{order_id}")
def payment_status(
    order_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    order = get_user_order(session, current_user.id, order_id)
    if not order:
        raise HTTPException(404, "Order not found")

    return {
        "order_id": order.id,
        "payment_status": order.payment_status,
        "payment_method": order.payment_method,
        "razorpay_order_id": order.gateway_order_id,
        "razorpay_payment_id": order.gateway_payment_id,
        "amount": order.total,
    }
