from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from app.database import get_session
from app.models.book import Book
from app.models.user import User
from app.schemas.book_schemas import BookContentAccess
from app.services.entitlement import ensure_content_access
from app.services.r2_helper import to_presigned_url
from app.utils.token import get_current_user

router = APIRouter()


@router.get("/{book_id}/read", response_model=BookContentAccess)
def read_book(
    book_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    book = session.get(Book, book_id)
    if not book:
        raise HTTPException(404, "Book not found")

    decision = ensure_content_access(session, current_user, book)

    return BookContentAccess(
        book_id=book.id,
        title=book.title,
        reading_url=to_presigned_url(book.content_location),
        content_kind=book.content_kind,
        page_count=book.page_count,
        access_kind=decision.access_kind,
        expires_at=decision.expires_at,
    )


@router.get("/{book_id}/sample")
def book_sample(book_id: int, session: Session = Depends(get_session)):
    book = session.get(Book, book_id)
    if not book or not book.sample_location:
        raise HTTPException(404, "Book sample not found")

    return {
        "book_id": book.id,
        "title": book.title,
        "sample_url": to_presigned_url(book.sample_location),
        "content_kind": book.content_kind,
    }
