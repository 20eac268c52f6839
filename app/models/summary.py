from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON
from typing import List, Optional
from datetime import datetime


class BookSummary(SQLModel, table=True):
    __tablename__ = "book_summary"
    id: Optional[int] = Field(default=None, primary_key=True)
    book_id: int = Field(foreign_key="book.id", unique=True)

    summary: str
    key_takeaways: Optional[List[str]] = Field(default=None, sa_column=Column(JSON))

    created_at: datetime = Field(default_factory=datetime.utcnow)
