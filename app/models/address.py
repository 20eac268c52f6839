from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime

class Address(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    recipient: str
    address: str
    city: str
    state: str
    zip_code: str
    phone_number: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
