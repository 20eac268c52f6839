from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from app.database import get_session
from app.models.user import User
from app.schemas.gift_schemas import GiftRead
from app.services.gift_service import (
    claim_all_gifts,
    claim_gift,
    get_gift_for_user,
    list_my_gifts,
    mark_all_gifts_read,
    mark_gift_read,
)
from app.utils.token import get_current_user

router = APIRouter()


# Claim all unclaimed gifts sent to my email
@router.post("/claim")
def claim_my_gifts(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return {"claimed": claim_all_gifts(session, current_user)}


@router.post("/claim/{gift_id}")
def claim_one_gift(
    gift_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    gift = get_gift_for_user(session, current_user, gift_id)
    if not gift:
        raise HTTPException(404, "Gift not found or not authorized")

    return {"claimed": claim_gift(session, current_user, gift)}


@router.post("/read/{gift_id}")
def read_gift(
    gift_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return {"marked_read": mark_gift_read(session, current_user, gift_id)}


@router.post("/read-all")
def read_all_gifts(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return {"marked_read": mark_all_gifts_read(session, current_user)}


@router.get("/mine", response_model=List[GiftRead])
def my_gifts(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return list_my_gifts(session, current_user)
