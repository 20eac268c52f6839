from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class ReviewCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(default=None, max_length=2000)

class ReviewRead(BaseModel):
    id: int
    book_id: int
    user_id: int
    user_name: str
    rating: int
    comment: Optional[str]
    created_at: datetime
