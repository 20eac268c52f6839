import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from app.database import get_session
from app.models.user import User
from app.schemas.user_schemas import UserRegister, UserLogin, Token, UserResponse
from app.services.gift_service import claim_all_gifts
from app.utils.hash import hash_password, verify_password
from app.utils.token import create_access_token

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/register", response_model=UserResponse)
def register_user(payload: UserRegister, session: Session = Depends(get_session)):
    email = payload.email.lower()

    existing_user = session.exec(select(User).where(User.email == email)).first()
    if existing_user:
        raise HTTPException(400, "Email already registered")

    user = User(
        first_name=payload.first_name or "",
        last_name=payload.last_name or "",
        username=payload.username or email.split("@")[0],
        email=email,
        password=hash_password(payload.password),
    )

    session.add(user)
    session.commit()
    session.refresh(user)

    # gifts sent before the account existed
    claim_all_gifts(session, user)

    logger.info("Registered user %s", user.id)

    return UserResponse(
        message="Registration successful.",
        user_id=user.id,
        email=user.email,
        role=user.role,
        can_login=user.can_login,
    )


@router.post("/login", response_model=Token)
def login(payload: UserLogin, session: Session = Depends(get_session)):
    user = session.exec(select(User).where(User.email == payload.email.lower())).first()

    if not user or not verify_password(payload.password, user.password):
        raise HTTPException(401, "Invalid email or password")

    if not user.can_login:
        raise HTTPException(403, "User account is disabled")

    return Token(access_token=create_access_token(user.id), token_type="bearer")
