from datetime import datetime
from typing import List, Optional, TYPE_CHECKING
from uuid import UUID, uuid4
from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import UniqueConstraint
from .base import TimestampModel, utcnow
from .types import MemberRole

if TYPE_CHECKING:
    from .users import User
    from .invitations import Invitation


class OrganizationBase(SQLModel):
    name: str = Field(index=True)
    slug: str = Field(unique=True, index=True)
    logo: Optional[str] = None


class Organization(OrganizationBase, TimestampModel, table=True):
    id: UUID = Field(default_factory=uuid4, primary_key=True)

    members: List["Member"] = Relationship(back_populates="organization")
    teams: List["Team"] = Relationship(back_populates="organization")
    invitations: List["Invitation"] = Relationship(back_populates="organization")


class Team(TimestampModel, table=True):
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str
    organization_id: UUID = Field(foreign_key="organization.id", index=True)

    organization: Organization = Relationship(back_populates="teams")
    members: List["Member"] = Relationship(back_populates="team")

    __table_args__ = (
        UniqueConstraint("organization_id", "name", name="uq_team_organization_name"),
    )


class Member(SQLModel, table=True):
    """
    Binds a user to an organization, optionally scoped to one of its teams.

    A row with ``team_id`` set to None is the org-level membership; team
    memberships are separate rows for the same user and organization.
    """
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: UUID = Field(foreign_key="user.id", index=True)
    organization_id: UUID = Field(foreign_key="organization.id", index=True)
    team_id: Optional[UUID] = Field(default=None, foreign_key="team.id", index=True)
    role: MemberRole = Field(default=MemberRole.MEMBER)
    created_at: datetime = Field(default_factory=utcnow)

    # Relationships
    user: "User" = Relationship(back_populates="memberships")
    organization: Organization = Relationship(back_populates="members")
    team: Optional[Team] = Relationship(back_populates="members")

    __table_args__ = (
        UniqueConstraint("user_id", "organization_id", "team_id", name="uq_member_scope"),
    )

    @property
    def is_owner(self) -> bool:
        return self.role == MemberRole.OWNER
