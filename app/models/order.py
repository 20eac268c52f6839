from sqlmodel import SQLModel, Field, Relationship
from typing import List, Optional
from datetime import datetime
from sqlalchemy import UniqueConstraint

from app.constants.order_status import OrderStatus, PaymentStatus
from app.models.order_item import OrderItem


class Order(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("user_id", "idempotency_key", name="uq_order_user_idempotency_key"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)

    mode: str = Field(index=True)  # buy | rent | gift

    subtotal: float
    shipping_fee: float = 0.0
    cod_fee: float = 0.0
    total: float

    # stored status is set at checkout and only moved by the reconcile job
    status: str = Field(default=OrderStatus.PENDING, index=True)
    payment_status: str = Field(default=PaymentStatus.PENDING, index=True)
    payment_method: Optional[str] = None

    # buy
    shipping_address_id: Optional[int] = Field(default=None, foreign_key="address.id")
    shipping_speed: Optional[str] = None
    delivery_eta: Optional[datetime] = None

    # rent
    rental_days: Optional[int] = None
    rental_end: Optional[datetime] = None

    # gift
    gift_email: Optional[str] = None

    notes: Optional[str] = None
    idempotency_key: Optional[str] = Field(default=None, index=True)

    gateway_order_id: Optional[str] = Field(default=None, index=True)
    gateway_payment_id: Optional[str] = Field(default=None, index=True)
    gateway_signature: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    items: List["OrderItem"] = Relationship(back_populates="order")
