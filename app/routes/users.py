from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from app.database import get_session
from app.models.address import Address
from app.models.user import User
from app.schemas.address_schemas import AddressCreate
from app.schemas.user_schemas import UserProfile
from app.utils.token import get_current_user

router = APIRouter()


# -------- USER PROFILE --------

@router.get("/me", response_model=UserProfile)
def get_my_profile(current_user: User = Depends(get_current_user)):
    return UserProfile(
        id=current_user.id,
        first_name=current_user.first_name,
        last_name=current_user.last_name,
        username=current_user.username,
        email=current_user.email,
        role=current_user.role,
        created_at=current_user.created_at,
    )


# -------- ADDRESSES --------

@router.get("/addresses")
def list_addresses(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return session.exec(
        select(Address)
        .where(Address.user_id == current_user.id)
        .order_by(Address.created_at.desc())
    ).all()


@router.post("/addresses", status_code=201)
def add_address(
    data: AddressCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    address = Address(user_id=current_user.id, **data.model_dump())
    session.add(address)
    session.commit()
    session.refresh(address)
    return address


@router.delete("/addresses/{address_id}")
def delete_address(
    address_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    address = session.get(Address, address_id)
    if not address or address.user_id != current_user.id:
        raise HTTPException(404, "Address not found")

    session.delete(address)
    session.commit()
    return {"message": "Address deleted"}
