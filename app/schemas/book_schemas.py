from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import datetime


class BookCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    slug: Optional[str] = None
    description: Optional[str] = None
    author: str = Field(..., min_length=1, max_length=100)
    language: Optional[str] = None

    price: float = Field(..., gt=0)
    stock: int = Field(default=0, ge=0)

    content_location: Optional[str] = None
    content_kind: Optional[str] = None
    page_count: int = Field(default=0, ge=0)


class BookUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    slug: Optional[str] = None
    description: Optional[str] = None
    author: Optional[str] = None
    language: Optional[str] = None

    price: Optional[float] = Field(None, gt=0)
    stock: Optional[int] = Field(None, ge=0)

    content_location: Optional[str] = None
    content_kind: Optional[str] = None
    page_count: Optional[int] = Field(None, ge=0)


class BookResponse(BaseModel):
    id: int
    title: str
    slug: Optional[str]
    description: Optional[str]
    author: str
    language: Optional[str]
    cover_image: Optional[str]

    price: float
    stock: int
    in_stock: bool
    has_content: bool
    content_kind: str
    page_count: int

    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BookList(BaseModel):
    total_items: int
    total_pages: int
    current_page: int
    limit: int
    results: List[BookResponse]


class BookContentAccess(BaseModel):
    book_id: int
    title: str
    reading_url: str
    content_kind: str
    page_count: int
    access_kind: str
    expires_at: Optional[datetime] = None


class SummaryUpsert(BaseModel):
    summary: str = Field(..., min_length=1)
    key_takeaways: List[str] = []
