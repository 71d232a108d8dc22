from typing import Optional
from datetime import datetime
from uuid import UUID
from sqlmodel import SQLModel


class UserSummary(SQLModel):
    id: UUID
    full_name: Optional[str] = None
    email: str
    image: Optional[str] = None


class UserRead(SQLModel):
    id: UUID
    email: str
    full_name: Optional[str]
    image: Optional[str] = None
    is_active: bool
    created_at: datetime


class CurrentUserRead(UserRead):
    active_organization_id: Optional[UUID] = None
