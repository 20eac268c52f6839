from pydantic import BaseModel, EmailStr, Field, model_validator
from typing import List, Optional
from datetime import datetime

from app.constants.order_status import OrderMode, ShippingSpeed


class OrderItemCreate(BaseModel):
    book_id: int
    quantity: int = Field(..., gt=0)


class OrderCreate(BaseModel):
    items: List[OrderItemCreate] = Field(..., min_length=1)
    mode: OrderMode

    # buy
    shipping_address_id: Optional[int] = None
    shipping_speed: ShippingSpeed = ShippingSpeed.STANDARD
    payment_method: Optional[str] = None

    # rent
    rental_days: Optional[int] = Field(default=None, gt=0, le=365)

    # gift
    gift_email: Optional[EmailStr] = None

    notes: Optional[str] = Field(default=None, max_length=1000)

    @model_validator(mode="after")
    def validate_mode_fields(self):
        if self.mode == OrderMode.GIFT and not self.gift_email:
            raise ValueError("gift_email is required for gifts")
        if self.mode == OrderMode.BUY and self.shipping_address_id is None:
            raise ValueError("shipping_address_id is required for buy orders")
        return self


class OrderItemRead(BaseModel):
    id: int
    book_id: int
    book_title: str
    quantity: int
    price: float
    line_total: float


class OrderRead(BaseModel):
    id: int
    mode: str
    status: str
    effective_status: str
    payment_status: str
    payment_method: Optional[str]

    subtotal: float
    shipping_fee: float
    cod_fee: float
    total: float

    shipping_address_id: Optional[int]
    shipping_speed: Optional[str]
    delivery_eta: Optional[datetime]
    rental_days: Optional[int]
    rental_end: Optional[datetime]
    gift_email: Optional[str]
    notes: Optional[str]

    created_at: datetime
    items: List[OrderItemRead]


class OrderList(BaseModel):
    total_items: int
    total_pages: int
    current_page: int
    limit: int
    results: List[OrderRead]
