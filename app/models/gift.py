from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime


class Gift(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: int = Field(foreign_key="order.id", index=True)
    book_id: int = Field(foreign_key="book.id", index=True)
    quantity: int = 1

    recipient_email: str = Field(index=True)
    claim_token: str = Field(unique=True)
    recipient_user_id: Optional[int] = Field(default=None, foreign_key="user.id", index=True)

    claimed_at: Optional[datetime] = None
    read_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def is_claimed(self) -> bool:
        return self.claimed_at is not None
