from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session, select

from app.database import get_session
from app.models.book import Book
from app.models.review import Review
from app.models.user import User
from app.schemas.review_schemas import ReviewCreate, ReviewRead
from app.services.entitlement import ensure_content_access, resolve_entitlement
from app.utils.token import get_current_user

router = APIRouter()


def _get_book_or_404(session: Session, book_id: int) -> Book:
    book = session.get(Book, book_id)
    if not book:
        raise HTTPException(404, "Book not found")
    return book


def _my_review(session: Session, user_id: int, book_id: int):
    return session.exec(
        select(Review).where(Review.book_id == book_id, Review.user_id == user_id)
    ).first()


@router.get("/book/{book_id}")
def book_reviews(book_id: int, session: Session = Depends(get_session)):
    book = _get_book_or_404(session, book_id)

    reviews = session.exec(
        select(Review)
        .where(Review.book_id == book.id)
        .order_by(Review.created_at.desc())
    ).all()

    average = round(sum(r.rating for r in reviews) / len(reviews), 1) if reviews else None

    return {
        "book_id": book.id,
        "total_reviews": len(reviews),
        "average_rating": average,
        "reviews": [ReviewRead.model_validate(r, from_attributes=True) for r in reviews],
    }


@router.get("/can-review/{book_id}")
def can_review(
    book_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    book = _get_book_or_404(session, book_id)
    decision = resolve_entitlement(session, current_user, book.id)

    return {
        "can_review": decision.granted,
        "already_reviewed": _my_review(session, current_user.id, book.id) is not None,
        "reason": decision.reason,
    }


@router.post("/{book_id}", response_model=ReviewRead, status_code=status.HTTP_201_CREATED)
def create_review(
    book_id: int,
    data: ReviewCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    book = _get_book_or_404(session, book_id)
    ensure_content_access(session, current_user, book, require_content=False)

    if _my_review(session, current_user.id, book.id):
        raise HTTPException(400, "You have already reviewed this book")

    review = Review(
        book_id=book.id,
        user_id=current_user.id,
        user_name=f"{current_user.first_name} {current_user.last_name}".strip() or current_user.username,
        rating=data.rating,
        comment=data.comment,
    )

    session.add(review)
    session.commit()
    session.refresh(review)
    return review


@router.delete("/{book_id}")
def delete_review(
    book_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    review = _my_review(session, current_user.id, book_id)
    if not review:
        raise HTTPException(404, "Review not found")

    session.delete(review)
    session.commit()
    return {"message": "Review deleted"}
