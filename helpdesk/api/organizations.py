"""
    Organization, Team and Invitation API

    Overview
    FastAPI router for the organization subsystem: code-based invitations,
    team creation and team membership management, plus the read endpoints the
    dashboard uses to list members, teams and invitations.

    Invitations
    - `POST /organization/generate-code`
    - Creates a pending invitation under a unique 6-digit code, valid 48 hours
    - Requires an owner/admin role at the invitation's team or organization

    - `GET /organization/invitation-info?code=`
    - Inspects a code without authentication

    - `POST /organization/join-with-code`
    - Redeems a code; the organization becomes active if the session has none

    - `DELETE /organization/invitations/{invitation_id}`
    - Cancels a pending invitation

    - `GET /organization/invitations-with-details`
    - Lists every invitation of the organization

    Teams and members
    - `POST /organization/create-team`
    - Creates a team and its first member in one transaction

    - `PATCH /organization/update-member-role`
    - `DELETE /organization/remove-team-member`
    - Both keep at least one owner in the team
    - Both send an email notification

    - `GET /organization/members`, `/teams`, `/teams-with-members`,
      `/user-teams`, `/member-info`

    Organizations
    - `POST /organization/create`
    - `POST /organization/set-active`

    Errors are rendered as `{"error": message}`; see `helpdesk.core.errors`.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlmodel import Session

from ..core.database import get_session
from ..core.security import ActiveContext, get_current_context
from ..models.invitations import Invitation
from ..models.organization import Member, Organization, Team
from ..models.users import User
from ..schemas.invitations import (
    GenerateCodeRequest, GenerateCodeResponse, InvitationCancelResponse,
    InvitationCreated, InvitationDetail, InvitationInfo, InvitationInfoResponse,
    InvitationListResponse, InviterSummary, JoinedMember, JoinRequest,
    JoinResponse, OrganizationSummary, TeamSummary
)
from ..schemas.organization import (
    MemberInfo, MemberInfoResponse, MemberRoleRead, MembersResponse,
    MessageResponse, OrganizationCreate, OrganizationMemberRead,
    OrganizationRead, OrganizationResponse, RoleUpdate, RoleUpdateResponse,
    SetActiveRequest, TeamCreate, TeamListItem, TeamMemberRead, TeamRead,
    TeamResponse, TeamsResponse, TeamsWithMembersResponse, UserTeamRead,
    UserTeamsResponse
)
from ..schemas.users import UserSummary
from ..services import invitation_service, membership_service
from ..services.email_services import email_service


router = APIRouter()


def _user_summary(user: User) -> UserSummary:
    return UserSummary(id=user.id, full_name=user.full_name, email=user.email, image=user.image)


def _organization_summary(organization: Organization) -> OrganizationSummary:
    return OrganizationSummary(
        id=organization.id,
        name=organization.name,
        slug=organization.slug,
        logo=organization.logo
    )


def _team_summary(team: Optional[Team]) -> Optional[TeamSummary]:
    return TeamSummary(id=team.id, name=team.name) if team else None


def _team_read(team: Team) -> TeamRead:
    return TeamRead(
        id=team.id,
        name=team.name,
        organization_id=team.organization_id,
        created_at=team.created_at,
        updated_at=team.updated_at,
        members=[
            TeamMemberRead(id=member.id, role=member.role, user=_user_summary(member.user))
            for member in team.members
        ]
    )


def _invitation_detail(invitation: Invitation) -> InvitationDetail:
    return InvitationDetail(
        id=invitation.id,
        code=invitation.code,
        email=invitation.email,
        role=invitation.role,
        status=invitation.status,
        expires_at=invitation.expires_at,
        created_at=invitation.created_at,
        team=_team_summary(invitation.team),
        inviter=_user_summary(invitation.inviter),
        organization=_organization_summary(invitation.organization)
    )


@router.post("/create", response_model=OrganizationResponse)
async def create_organization(
    data: OrganizationCreate,
    context: ActiveContext = Depends(get_current_context),
    session: Session = Depends(get_session)
):
    organization = membership_service.create_organization(
        session, context, name=data.name, slug=data.slug, logo=data.logo
    )
    return OrganizationResponse(
        organization=OrganizationRead.model_validate(organization),
        active_organization_id=context.active_organization_id
    )


@router.post("/set-active", response_model=OrganizationResponse)
async def set_active_organization(
    data: SetActiveRequest,
    context: ActiveContext = Depends(get_current_context),
    session: Session = Depends(get_session)
):
    organization = membership_service.set_active_organization(session, context, data.organization_id)
    return OrganizationResponse(
        organization=OrganizationRead.model_validate(organization),
        active_organization_id=context.active_organization_id
    )


@router.post("/generate-code", response_model=GenerateCodeResponse)
async def generate_code(
    data: GenerateCodeRequest,
    context: ActiveContext = Depends(get_current_context),
    session: Session = Depends(get_session)
):
    """
    Create a code-based invitation to the organization, optionally scoped to
    one of its teams.

    Returns:
        GenerateCodeResponse with the code and an invitation summary

    Raises:
        ValidationError (400): Missing organization or invalid role
        NotFound (404): Unknown organization or team
        Unauthorized (403): Caller is not owner/admin at the invitation scope
        ExhaustedRetries (500): No free code found
    """
    invitation = invitation_service.generate_code(
        session,
        acting_user_id=context.user.id,
        organization_id=data.organization_id,
        role=data.role,
        team_id=data.team_id
    )

    return GenerateCodeResponse(
        code=invitation.code,
        invitation=InvitationCreated(
            id=invitation.id,
            code=invitation.code,
            role=invitation.role,
            organization_name=invitation.organization.name,
            team_name=invitation.team.name if invitation.team else None,
            inviter_name=invitation.inviter.full_name,
            expires_at=invitation.expires_at
        )
    )


@router.get("/invitation-info", response_model=InvitationInfoResponse)
async def invitation_info(
    code: Optional[str] = None,
    session: Session = Depends(get_session)
):
    invitation = invitation_service.get_invitation_info(session, code)

    return InvitationInfoResponse(
        invitation=InvitationInfo(
            id=invitation.id,
            code=invitation.code,
            role=invitation.role,
            status=invitation.status,
            expires_at=invitation.expires_at,
            organization=_organization_summary(invitation.organization),
            team=_team_summary(invitation.team),
            inviter=InviterSummary(
                full_name=invitation.inviter.full_name,
                email=invitation.inviter.email
            )
        )
    )


@router.post("/join-with-code", response_model=JoinResponse)
async def join_with_code(
    data: JoinRequest,
    context: ActiveContext = Depends(get_current_context),
    session: Session = Depends(get_session)
):
    result = invitation_service.redeem(session, data.code, context)
    member = result.member

    return JoinResponse(
        member=JoinedMember(
            id=member.id,
            role=member.role,
            organization_id=member.organization_id,
            organization_name=member.organization.name,
            team_name=member.team.name if member.team else None,
            joined_at=member.created_at,
            active_organization_set=result.activated_organization
        )
    )


@router.delete("/invitations/{invitation_id}", response_model=InvitationCancelResponse)
async def cancel_invitation(
    invitation_id: UUID,
    context: ActiveContext = Depends(get_current_context),
    session: Session = Depends(get_session)
):
    invitation = invitation_service.cancel_invitation(session, context.user.id, invitation_id)
    return InvitationCancelResponse(
        message="Invitation canceled successfully",
        invitation=_invitation_detail(invitation)
    )


@router.get("/invitations-with-details", response_model=InvitationListResponse)
async def invitations_with_details(
    organization_id: Optional[UUID] = None,
    context: ActiveContext = Depends(get_current_context),
    session: Session = Depends(get_session)
):
    invitations = invitation_service.list_invitations(session, context.user.id, organization_id)
    return InvitationListResponse(
        invitations=[_invitation_detail(invitation) for invitation in invitations]
    )


@router.post("/create-team", response_model=TeamResponse)
async def create_team(
    data: TeamCreate,
    context: ActiveContext = Depends(get_current_context),
    session: Session = Depends(get_session)
):
    team, _ = membership_service.create_team(
        session,
        acting_user_id=context.user.id,
        organization_id=data.organization_id,
        name=data.name
    )
    return TeamResponse(team=_team_read(team))


@router.patch("/update-member-role", response_model=RoleUpdateResponse)
async def update_member_role(
    data: RoleUpdate,
    background_tasks: BackgroundTasks,
    context: ActiveContext = Depends(get_current_context),
    session: Session = Depends(get_session)
):
    member = membership_service.change_role(
        session,
        acting_user_id=context.user.id,
        member_id=data.member_id,
        new_role=data.new_role,
        team_id=data.team_id,
        organization_id=data.organization_id
    )
    user, team = member.user, member.team

    background_tasks.add_task(
        email_service.send_role_update_email,
        to_email=user.email,
        team_name=team.name,
        new_role=member.role
    )

    return RoleUpdateResponse(
        message=f"{user.full_name or user.email}'s role has been updated to {member.role.value}",
        member=MemberRoleRead(
            id=member.id,
            role=member.role,
            user=_user_summary(user),
            team=_team_summary(team)
        )
    )


@router.delete("/remove-team-member", response_model=MessageResponse)
async def remove_team_member(
    background_tasks: BackgroundTasks,
    member_id: Optional[UUID] = None,
    team_id: Optional[UUID] = None,
    organization_id: Optional[UUID] = None,
    context: ActiveContext = Depends(get_current_context),
    session: Session = Depends(get_session)
):
    user, team = membership_service.remove_member(
        session,
        acting_user_id=context.user.id,
        member_id=member_id,
        team_id=team_id,
        organization_id=organization_id
    )

    background_tasks.add_task(
        email_service.send_member_removed_email,
        to_email=user.email,
        team_name=team.name
    )

    return MessageResponse(
        message=f"{user.full_name or user.email} has been removed from {team.name}"
    )


@router.get("/members", response_model=MembersResponse)
async def list_members(
    organization_id: Optional[UUID] = None,
    context: ActiveContext = Depends(get_current_context),
    session: Session = Depends(get_session)
):
    members = membership_service.list_members(session, context.user.id, organization_id)
    return MembersResponse(
        members=[
            OrganizationMemberRead(
                id=user.id,
                full_name=user.full_name,
                email=user.email,
                image=user.image,
                role=role
            )
            for user, role in members
        ]
    )


@router.get("/teams", response_model=TeamsResponse)
async def list_teams(
    organization_id: Optional[UUID] = None,
    context: ActiveContext = Depends(get_current_context),
    session: Session = Depends(get_session)
):
    teams = membership_service.list_teams(session, context.user.id, organization_id)
    return TeamsResponse(
        teams=[
            TeamListItem(
                id=team.id,
                name=team.name,
                member_count=member_count,
                created_at=team.created_at
            )
            for team, member_count in teams
        ]
    )


@router.get("/teams-with-members", response_model=TeamsWithMembersResponse)
async def teams_with_members(
    organization_id: Optional[UUID] = None,
    context: ActiveContext = Depends(get_current_context),
    session: Session = Depends(get_session)
):
    teams = membership_service.list_teams_with_members(session, context.user.id, organization_id)
    return TeamsWithMembersResponse(teams=[_team_read(team) for team in teams])


@router.get("/user-teams", response_model=UserTeamsResponse)
async def user_teams(
    organization_id: Optional[UUID] = None,
    context: ActiveContext = Depends(get_current_context),
    session: Session = Depends(get_session)
):
    memberships = membership_service.list_user_teams(session, context.user.id, organization_id)
    return UserTeamsResponse(
        teams=[
            UserTeamRead(
                id=team.id,
                name=team.name,
                role=member.role,
                created_at=member.created_at,
                team_created_at=team.created_at,
                team_updated_at=team.updated_at
            )
            for member, team in memberships
        ]
    )


@router.get("/member-info", response_model=MemberInfoResponse)
async def member_info(
    organization_id: Optional[UUID] = None,
    context: ActiveContext = Depends(get_current_context),
    session: Session = Depends(get_session)
):
    member: Member = membership_service.get_member_info(session, context.user.id, organization_id)
    return MemberInfoResponse(
        member=MemberInfo(
            id=member.id,
            role=member.role,
            created_at=member.created_at,
            user=_user_summary(member.user),
            organization=_organization_summary(member.organization),
            team=_team_summary(member.team)
        )
    )
