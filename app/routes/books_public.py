from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session, select

from app.database import get_session
from app.models.book import Book
from app.schemas.book_schemas import BookList, BookResponse
from app.utils.pagination import paginate

router = APIRouter()


@router.get("", response_model=BookList, summary="List and search books")
def list_books(
    q: str | None = Query(None, description="Search term for title or author"),
    language: str | None = None,
    in_stock: bool | None = None,
    page: int = 1,
    limit: int = 10,
    session: Session = Depends(get_session),
):
    query = select(Book)

    if q:
        like = f"%{q}%"
        query = query.where(Book.title.ilike(like) | Book.author.ilike(like))

    if language:
        query = query.where(Book.language == language)

    if in_stock is True:
        query = query.where(Book.stock > 0)
    elif in_stock is False:
        query = query.where(Book.stock <= 0)

    query = query.order_by(Book.created_at.desc(), Book.id.desc())

    return paginate(
        session=session,
        query=query,
        page=page,
        limit=limit,
        serialize=BookResponse.model_validate,
    )


@router.get("/{book_id}", response_model=BookResponse)
def get_book(book_id: int, session: Session = Depends(get_session)):
    book = session.get(Book, book_id)
    if not book:
        raise HTTPException(404, "Book not found")
    return book
