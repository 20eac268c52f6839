import logging
from datetime import datetime
from typing import Dict, Optional

from sqlalchemy import update
from sqlmodel import Session

from app.constants.order_status import OrderMode, OrderStatus, TERMINAL_STATUSES
from app.models.order import Order

logger = logging.getLogger(__name__)


def effective_status(order: Order, now: Optional[datetime] = None) -> str:
    """
    Display status derived from stored timestamps.

    Read paths use this for freshness between reconcile ticks; it is never
    written back from a read.
    """
    now = now or datetime.utcnow()
    mode = order.mode

    if mode == OrderMode.GIFT:
        return OrderStatus.DELIVERED

    if mode == OrderMode.RENT and order.rental_end is not None:
        if order.rental_end <= now:
            return OrderStatus.COMPLETED
        if order.status in TERMINAL_STATUSES:
            return order.status
        return OrderStatus.ACTIVE

    if (
        mode == OrderMode.BUY
        and order.status == OrderStatus.PENDING
        and order.delivery_eta is not None
        and order.delivery_eta <= now
    ):
        return OrderStatus.DELIVERED

    return order.status


def reconcile_order_statuses(session: Session, now: Optional[datetime] = None) -> Dict[str, int]:
    """
    Bulk-correct stored statuses from elapsed time.

    Both updates are predicate based, so running them again is a no-op.
    """
    now = now or datetime.utcnow()

    delivered = session.execute(
        update(Order)
        .where(Order.mode == OrderMode.BUY.value)
        .where(Order.status == OrderStatus.PENDING)
        .where(Order.delivery_eta.is_not(None))
        .where(Order.delivery_eta <= now)
        .values(status=OrderStatus.DELIVERED, updated_at=now)
        .execution_options(synchronize_session=False)
    )

    completed = session.execute(
        update(Order)
        .where(Order.mode == OrderMode.RENT.value)
        .where(Order.rental_end.is_not(None))
        .where(Order.rental_end <= now)
        .where(Order.status != OrderStatus.COMPLETED)
        .values(status=OrderStatus.COMPLETED, updated_at=now)
        .execution_options(synchronize_session=False)
    )

    session.commit()

    result = {"delivered": delivered.rowcount or 0, "completed": completed.rowcount or 0}
    if result["delivered"] or result["completed"]:
        logger.info(
            "Reconciled order statuses: %s delivered, %s rentals completed",
            result["delivered"], result["completed"],
        )
    return result
