from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class GiftRead(BaseModel):
    id: int
    order_id: int
    book_id: int
    title: str
    author: str
    quantity: int
    recipient_email: str
    sender_name: str
    sender_email: str
    claimed: bool
    claimed_at: Optional[datetime]
    read_at: Optional[datetime]
    created_at: datetime
