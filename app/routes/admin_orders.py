# -------- ADMIN ORDERS --------
import logging
from datetime import datetime

from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from app.constants.order_status import OrderMode
from app.database import get_session
from app.dependencies.admin import require_admin
from app.models.order import Order
from app.models.user import User
from app.schemas.order_schemas import OrderList
from app.services.order_service import build_order_read
from app.services.order_status import reconcile_order_statuses
from app.utils.pagination import paginate

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=OrderList)
def list_orders(
    page: int = 1,
    limit: int = 10,
    mode: OrderMode | None = None,
    status: str | None = None,
    user_id: int | None = None,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    query = select(Order)

    if mode:
        query = query.where(Order.mode == mode.value)

    if status:
        query = query.where(Order.status == status)

    if user_id:
        query = query.where(Order.user_id == user_id)

    now = datetime.utcnow()
    return paginate(
        session=session,
        query=query.order_by(Order.created_at.desc(), Order.id.desc()),
        page=page,
        limit=limit,
        serialize=lambda order: build_order_read(order, now),
    )


@router.post("/reconcile")
def reconcile_now(
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    counts = reconcile_order_statuses(session)
    logger.info("Admin %s triggered status reconciliation", admin.id)
    return {"message": "Order statuses reconciled", **counts}
