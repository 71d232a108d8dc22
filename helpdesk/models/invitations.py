from datetime import datetime
from typing import Optional, TYPE_CHECKING
from uuid import UUID, uuid4
from sqlmodel import SQLModel, Field, Relationship
from .base import utcnow
from .types import MemberRole, InvitationStatus

if TYPE_CHECKING:
    from .organization import Organization, Team
    from .users import User


class Invitation(SQLModel, table=True):
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    code: Optional[str] = Field(default=None, unique=True, index=True, max_length=6)
    email: Optional[str] = Field(default=None, index=True)
    organization_id: UUID = Field(foreign_key="organization.id", index=True)
    team_id: Optional[UUID] = Field(default=None, foreign_key="team.id")
    role: MemberRole = Field(default=MemberRole.MEMBER)
    inviter_id: UUID = Field(foreign_key="user.id")
    status: InvitationStatus = Field(default=InvitationStatus.PENDING)
    expires_at: datetime
    created_at: datetime = Field(default_factory=utcnow)
    accepted_at: Optional[datetime] = None

    # Relaciones
    organization: "Organization" = Relationship(back_populates="invitations")
    team: Optional["Team"] = Relationship()
    inviter: "User" = Relationship()

    @property
    def is_expired(self) -> bool:
        """Expiry is decided by time alone, whatever the stored status says."""
        return self.expires_at < utcnow()
