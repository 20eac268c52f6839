import logging
from datetime import datetime

from fastapi import APIRouter, Depends, File, UploadFile, HTTPException
from slugify import slugify
from sqlmodel import Session, select

from app.database import get_session
from app.dependencies.admin import require_admin
from app.models.book import Book
from app.models.order_item import OrderItem
from app.models.summary import BookSummary
from app.models.user import User
from app.schemas.book_schemas import BookCreate, BookResponse, BookUpdate, SummaryUpsert
from app.services.r2_helper import (
    CONTENT_KINDS,
    COVER_TYPES,
    delete_r2_file,
    upload_book_content,
    upload_book_cover,
    upload_book_sample,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_book_or_404(session: Session, book_id: int) -> Book:
    book = session.get(Book, book_id)
    if not book:
        raise HTTPException(404, "Book not found")
    return book


def _save(session: Session, book: Book) -> Book:
    book.updated_at = datetime.utcnow()
    session.add(book)
    session.commit()
    session.refresh(book)
    return book


@router.post("", response_model=BookResponse, status_code=201)
def create_book(
    data: BookCreate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    values = data.model_dump(exclude_none=True)
    if not values.get("slug"):
        values["slug"] = slugify(data.title)

    book = Book(**values)
    session.add(book)
    session.commit()
    session.refresh(book)

    logger.info("Admin %s created book %s", admin.id, book.id)
    return book


@router.patch("/{book_id}", response_model=BookResponse)
def update_book(
    book_id: int,
    data: BookUpdate,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    book = _get_book_or_404(session, book_id)

    # price changes never touch placed orders, items keep their own price
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(book, field, value)

    return _save(session, book)


@router.delete("/{book_id}")
def delete_book(
    book_id: int,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    book = _get_book_or_404(session, book_id)

    ordered = session.exec(select(OrderItem.id).where(OrderItem.book_id == book.id)).first()
    if ordered:
        raise HTTPException(400, "Book has orders and cannot be deleted")

    for key in (book.cover_image, book.content_location, book.sample_location):
        if key and not key.startswith(("http://", "https://")):
            delete_r2_file(key)

    summary = session.exec(select(BookSummary).where(BookSummary.book_id == book.id)).first()
    if summary:
        session.delete(summary)

    session.delete(book)
    session.commit()

    logger.info("Admin %s deleted book %s", admin.id, book_id)
    return {"message": "Book deleted"}


@router.post("/{book_id}/content", response_model=BookResponse)
def upload_content(
    book_id: int,
    file: UploadFile = File(...),
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    book = _get_book_or_404(session, book_id)

    if file.content_type not in CONTENT_KINDS:
        raise HTTPException(400, "Unsupported content type. Use PDF, EPUB, TXT or HTML")

    old_key = book.content_location
    book.content_location, book.content_kind = upload_book_content(file, book.id, book.title)

    if old_key and old_key != book.content_location:
        delete_r2_file(old_key)

    return _save(session, book)


@router.post("/{book_id}/sample", response_model=BookResponse)
def upload_sample(
    book_id: int,
    file: UploadFile = File(...),
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    book = _get_book_or_404(session, book_id)

    if file.content_type not in CONTENT_KINDS:
        raise HTTPException(400, "Unsupported content type. Use PDF, EPUB, TXT or HTML")

    book.sample_location = upload_book_sample(file, book.id, book.title)
    return _save(session, book)


@router.post("/{book_id}/cover", response_model=BookResponse)
def upload_cover(
    book_id: int,
    cover_image: UploadFile = File(...),
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    book = _get_book_or_404(session, book_id)

    if cover_image.content_type not in COVER_TYPES:
        raise HTTPException(400, "Cover must be a JPEG, PNG, WEBP or GIF image")

    old_key = book.cover_image
    book.cover_image = upload_book_cover(cover_image, book.title)

    if old_key:
        delete_r2_file(old_key)

    return _save(session, book)


@router.put("/{book_id}/summary")
def upsert_summary(
    book_id: int,
    data: SummaryUpsert,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    book = _get_book_or_404(session, book_id)

    summary = session.exec(select(BookSummary).where(BookSummary.book_id == book.id)).first()
    if summary:
        summary.summary = data.summary
        summary.key_takeaways = data.key_takeaways
        summary.created_at = datetime.utcnow()
    else:
        summary = BookSummary(
            book_id=book.id,
            summary=data.summary,
            key_takeaways=data.key_takeaways,
        )

    session.add(summary)
    session.commit()
    session.refresh(summary)
    return summary
