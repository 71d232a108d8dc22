from datetime import datetime
from typing import List, Optional
from uuid import UUID
from sqlmodel import SQLModel
from ..models.types import MemberRole, InvitationStatus
from .users import UserSummary


class OrganizationSummary(SQLModel):
    id: UUID
    name: str
    slug: Optional[str] = None
    logo: Optional[str] = None


class TeamSummary(SQLModel):
    id: UUID
    name: str


class InviterSummary(SQLModel):
    full_name: Optional[str] = None
    email: str


class GenerateCodeRequest(SQLModel):
    organization_id: Optional[UUID] = None
    team_id: Optional[UUID] = None
    role: Optional[str] = None


class InvitationCreated(SQLModel):
    id: UUID
    code: str
    role: MemberRole
    organization_name: str
    team_name: Optional[str] = None
    inviter_name: Optional[str] = None
    expires_at: datetime


class GenerateCodeResponse(SQLModel):
    success: bool = True
    code: str
    invitation: InvitationCreated


class InvitationInfo(SQLModel):
    id: UUID
    code: str
    role: MemberRole
    status: InvitationStatus
    expires_at: datetime
    organization: OrganizationSummary
    team: Optional[TeamSummary] = None
    inviter: InviterSummary


class InvitationInfoResponse(SQLModel):
    success: bool = True
    invitation: InvitationInfo


class JoinRequest(SQLModel):
    code: Optional[str] = None


class JoinedMember(SQLModel):
    id: UUID
    role: MemberRole
    organization_id: UUID
    organization_name: str
    team_name: Optional[str] = None
    joined_at: datetime
    active_organization_set: bool


class JoinResponse(SQLModel):
    success: bool = True
    member: JoinedMember


class InvitationDetail(SQLModel):
    id: UUID
    code: Optional[str] = None
    email: Optional[str] = None
    role: MemberRole
    status: InvitationStatus
    expires_at: datetime
    created_at: datetime
    team: Optional[TeamSummary] = None
    inviter: UserSummary
    organization: OrganizationSummary


class InvitationListResponse(SQLModel):
    success: bool = True
    invitations: List[InvitationDetail]


class InvitationCancelResponse(SQLModel):
    success: bool = True
    message: str
    invitation: InvitationDetail
