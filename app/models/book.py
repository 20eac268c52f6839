from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, TYPE_CHECKING, List
from datetime import datetime
from sqlalchemy import CheckConstraint

if TYPE_CHECKING:
    from app.models.review import Review


class Book(SQLModel, table=True):
    __table_args__ = (CheckConstraint("stock >= 0", name="ck_book_stock_non_negative"),)

    #main info
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(index=True)
    slug: str
    description: Optional[str] = None

    #Author and meta
    author: str = Field(index=True)
    language: Optional[str] = None

    #Image
    cover_image: Optional[str] = None

    #Shop Details
    price: float
    stock: int = Field(default=0)

    #Digital content: storage key or absolute URL, unset until an admin uploads it
    content_location: Optional[str] = None
    content_kind: str = Field(default="pdf")  # pdf | epub | txt | html
    page_count: int = Field(default=0)
    sample_location: Optional[str] = None

    #timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def in_stock(self) -> bool:
         return self.stock > 0

    @property
    def has_content(self) -> bool:
        return bool(self.content_location)

    reviews: List["Review"] = Relationship(
        back_populates="book",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )
