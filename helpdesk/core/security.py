from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID
from jose import jwt, JWTError
from passlib.context import CryptContext
from fastapi import Depends, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlmodel import Session
from .config import get_settings
from .database import get_session
from .errors import Unauthenticated
from ..models.base import utcnow
from ..models.users import User, UserSession


settings = get_settings()
pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")
# Missing credentials are reported as 401 by get_current_context
security = HTTPBearer(auto_error=False)


@dataclass
class ActiveContext:
    """The authenticated user and the login session the request runs in."""
    user: User
    session: UserSession

    @property
    def active_organization_id(self) -> Optional[UUID]:
        return self.session.active_organization_id


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(data: dict, expires_at: datetime):
    to_encode = data.copy()
    to_encode.update({"exp": expires_at, "type": "access"})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def open_user_session(db: Session, user: User) -> tuple[UserSession, str]:
    """Persist a new login session for ``user`` and mint its bearer token."""
    expires_at = utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    user_session = UserSession(user_id=user.id, expires_at=expires_at)
    db.add(user_session)
    db.commit()
    db.refresh(user_session)

    token = create_access_token(
        {"sub": str(user.id), "sid": str(user_session.id)},
        expires_at=expires_at
    )
    return user_session, token


async def get_current_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    db: Session = Depends(get_session)
) -> ActiveContext:
    if credentials is None:
        raise Unauthenticated()

    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM]
        )
        user_id = UUID(payload.get("sub"))
        session_id = UUID(payload.get("sid"))
    except (JWTError, TypeError, ValueError):
        raise Unauthenticated("Could not validate credentials")

    user_session = db.get(UserSession, session_id)
    if not user_session or user_session.user_id != user_id or not user_session.is_valid:
        raise Unauthenticated("Session has expired or been revoked")

    user = db.get(User, user_id)
    if not user or not user.is_active:
        raise Unauthenticated("User not found")

    return ActiveContext(user=user, session=user_session)
