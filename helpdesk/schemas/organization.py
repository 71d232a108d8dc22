from typing import Optional, List
from datetime import datetime
from uuid import UUID
from sqlmodel import SQLModel
from ..models.types import MemberRole
from .invitations import OrganizationSummary, TeamSummary
from .users import UserSummary


class OrganizationCreate(SQLModel):
    name: Optional[str] = None
    slug: Optional[str] = None
    logo: Optional[str] = None


class OrganizationRead(SQLModel):
    id: UUID
    name: str
    slug: str
    logo: Optional[str] = None
    created_at: datetime


class OrganizationResponse(SQLModel):
    success: bool = True
    organization: OrganizationRead
    active_organization_id: Optional[UUID] = None


class SetActiveRequest(SQLModel):
    organization_id: Optional[UUID] = None


class TeamCreate(SQLModel):
    name: Optional[str] = None
    organization_id: Optional[UUID] = None


class TeamMemberRead(SQLModel):
    id: UUID
    role: MemberRole
    user: UserSummary


class TeamRead(SQLModel):
    id: UUID
    name: str
    organization_id: UUID
    created_at: datetime
    updated_at: datetime
    members: List[TeamMemberRead]


class TeamResponse(SQLModel):
    success: bool = True
    team: TeamRead


class RoleUpdate(SQLModel):
    member_id: Optional[UUID] = None
    new_role: Optional[str] = None
    team_id: Optional[UUID] = None
    organization_id: Optional[UUID] = None


class MemberRoleRead(SQLModel):
    id: UUID
    role: MemberRole
    user: UserSummary
    team: Optional[TeamSummary] = None


class RoleUpdateResponse(SQLModel):
    success: bool = True
    message: str
    member: MemberRoleRead


class MessageResponse(SQLModel):
    success: bool = True
    message: str


class OrganizationMemberRead(SQLModel):
    id: UUID
    full_name: Optional[str] = None
    email: str
    image: Optional[str] = None
    role: MemberRole


class MembersResponse(SQLModel):
    success: bool = True
    members: List[OrganizationMemberRead]


class TeamListItem(SQLModel):
    id: UUID
    name: str
    member_count: int
    created_at: datetime


class TeamsResponse(SQLModel):
    success: bool = True
    teams: List[TeamListItem]


class TeamsWithMembersResponse(SQLModel):
    success: bool = True
    teams: List[TeamRead]


class UserTeamRead(SQLModel):
    id: UUID
    name: str
    role: MemberRole
    created_at: datetime
    team_created_at: datetime
    team_updated_at: datetime


class UserTeamsResponse(SQLModel):
    success: bool = True
    teams: List[UserTeamRead]


class MemberInfo(SQLModel):
    id: UUID
    role: MemberRole
    created_at: datetime
    user: UserSummary
    organization: OrganizationSummary
    team: Optional[TeamSummary] = None


class MemberInfoResponse(SQLModel):
    success: bool = True
    member: MemberInfo
