from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status
from sqlmodel import Session

from app.database import get_session
from app.exceptions import OrderError
from app.models.user import User
from app.schemas.order_schemas import OrderCreate, OrderList, OrderRead
from app.services.order_service import (
    build_order_read,
    get_user_order,
    list_user_orders_query,
    place_order,
)
from app.utils.pagination import paginate
from app.utils.token import get_current_user

router = APIRouter()


@router.post("", response_model=OrderRead, status_code=status.HTTP_201_CREATED)
def create_order(
    payload: OrderCreate,
    idempotency_key: Optional[str] = Header(default=None, alias="Idempotency-Key", max_length=128),
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    try:
        order = place_order(session, current_user, payload, idempotency_key=idempotency_key)
    except OrderError as e:
        raise HTTPException(e.status_code, e.message)

    return build_order_read(order)


@router.get("", response_model=OrderList)
def my_orders(
    page: int = 1,
    limit: int = 10,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    now = datetime.utcnow()
    return paginate(
        session=session,
        query=list_user_orders_query(current_user.id),
        page=page,
        limit=limit,
        serialize=lambda order: build_order_read(order, now),
    )


@router.get("/{order_id}", response_model=OrderRead)
def get_order(
    order_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    order = get_user_order(session, current_user.id, order_id)
    if not order:
        raise HTTPException(404, "Order not found")

    return build_order_read(order)
