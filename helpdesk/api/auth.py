import logging
from fastapi import APIRouter, Depends, status
from sqlmodel import Session, select

from ..models.users import User
from ..schemas.auth import (
    TokenResponse,
    RegisterResponse,
    RegisterRequest,
    LoginRequest,
)
from ..schemas.organization import MessageResponse
from ..schemas.users import UserRead
from ..core.database import get_session
from ..core.errors import Unauthenticated, ValidationError
from ..models.base import utcnow
from ..core.security import (
    ActiveContext,
    get_current_context,
    get_password_hash,
    open_user_session,
    verify_password,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: RegisterRequest,
    session: Session = Depends(get_session),
):
    email = user_data.email.strip().lower()
    if session.exec(select(User).where(User.email == email)).first():
        raise ValidationError("Email already registered")

    user = User(
        email=email,
        password_hash=get_password_hash(user_data.password),
        full_name=user_data.full_name,
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    logger.info(f"User {user.id} registered")

    return RegisterResponse(user=UserRead.model_validate(user), message="Registration successful")


@router.post("/login", response_model=TokenResponse)
async def login(login_data: LoginRequest, session: Session = Depends(get_session)):
    user = session.exec(
        select(User).where(User.email == login_data.email.strip().lower())
    ).first()

    if not user or not verify_password(login_data.password, user.password_hash):
        raise Unauthenticated("Incorrect email or password")
    if not user.is_active:
        raise Unauthenticated("Account is disabled")

    _, access_token = open_user_session(session, user)

    return TokenResponse(
        access_token=access_token,
        token_type="bearer",
        user=UserRead.model_validate(user),
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    context: ActiveContext = Depends(get_current_context),
    session: Session = Depends(get_session),
):
    context.session.revoked_at = utcnow()
    session.add(context.session)
    session.commit()
    return MessageResponse(message="Logged out successfully")
