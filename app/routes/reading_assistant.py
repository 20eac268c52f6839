from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from app.database import get_session
from app.models.book import Book
from app.models.summary import BookSummary
from app.models.user import User
from app.services.entitlement import ensure_content_access, resolve_entitlement
from app.utils.token import get_current_user

router = APIRouter()


def _cached_summary(session: Session, book_id: int):
    return session.exec(
        select(BookSummary).where(BookSummary.book_id == book_id)
    ).first()


@router.get("/check-access/{book_id}")
def check_access(
    book_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    book = session.get(Book, book_id)
    if not book:
        raise HTTPException(404, "Book not found")

    decision = resolve_entitlement(session, current_user, book.id)

    return {
        **decision.model_dump(),
        "has_cached_summary": decision.granted and _cached_summary(session, book.id) is not None,
    }


@router.get("/summary/{book_id}")
def book_summary(
    book_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Summary of an owned book. Summaries are read from the cache table only."""
    book = session.get(Book, book_id)
    if not book:
        raise HTTPException(404, "Book not found")

    decision = ensure_content_access(session, current_user, book, require_content=False)

    summary = _cached_summary(session, book.id)
    if not summary:
        raise HTTPException(404, "Summary not available yet")

    return {
        "book_id": book.id,
        "book_title": book.title,
        "book_author": book.author,
        "access_kind": decision.access_kind,
        "summary": summary.summary,
        "key_takeaways": summary.key_takeaways or [],
        "generated_at": summary.created_at,
    }
