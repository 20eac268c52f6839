from pydantic import BaseModel, Field
from typing import Optional


class AddressCreate(BaseModel):
    recipient: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    city: str
    state: str
    zip_code: str
    phone_number: Optional[str] = None
