"""
Organization, team and membership operations.

Every mutating operation follows the same order: validate the input, look up
the target (NotFound), authorize the caller (Unauthorized), then mutate.
"""
import logging
import re
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ..core.config import get_settings
from ..core.errors import (
    DuplicateName, LastOwnerProtection, NotFound, StateConflict,
    TeamLimitReached, ValidationError
)
from ..core.permission import (
    Permission, find_membership, parse_role, require_org_member,
    require_permission
)
from ..core.security import ActiveContext
from ..models.organization import Member, Organization, Team
from ..models.types import MemberRole
from ..models.users import User

logger = logging.getLogger(__name__)


def slugify(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


def create_organization(
    db: Session,
    context: ActiveContext,
    name: Optional[str],
    slug: Optional[str] = None,
    logo: Optional[str] = None
) -> Organization:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Organization name is required")
    slug = slugify(slug or name)
    if not slug:
        raise ValidationError("Organization slug is invalid")

    if db.exec(select(Organization).where(Organization.slug == slug)).first():
        raise StateConflict("An organization with this slug already exists")

    organization = Organization(name=name, slug=slug, logo=logo)
    db.add(organization)
    db.flush()

    db.add(Member(
        user_id=context.user.id,
        organization_id=organization.id,
        role=MemberRole.OWNER
    ))
    if context.session.active_organization_id is None:
        context.session.active_organization_id = organization.id
        db.add(context.session)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise StateConflict("An organization with this slug already exists")

    db.refresh(organization)
    logger.info(f"Organization {organization.id} created by {context.user.id}")
    return organization


def set_active_organization(db: Session, context: ActiveContext, organization_id: Optional[UUID]) -> Organization:
    if not organization_id:
        raise ValidationError("Organization ID is required")
    organization = db.get(Organization, organization_id)
    if not organization:
        raise NotFound("Organization not found")
    require_org_member(db, context.user.id, organization_id)

    context.session.active_organization_id = organization_id
    db.add(context.session)
    db.commit()
    return organization


def create_team(
    db: Session,
    acting_user_id: UUID,
    organization_id: Optional[UUID],
    name: Optional[str]
) -> Tuple[Team, Member]:
    """
    Create a team and make its creator a team member in one transaction.

    The creator becomes team owner when they own the organization and team
    admin otherwise.

    Raises:
        ValidationError: Missing name or organization
        NotFound: Unknown organization
        Unauthorized: Caller is not an org-level owner or admin
        DuplicateName: Same (trimmed, case-sensitive) name exists in the organization
        TeamLimitReached: Organization already holds the maximum number of teams
    """
    name = (name or "").strip()
    if not name or not organization_id:
        raise ValidationError("Team name and organization ID are required")

    if not db.get(Organization, organization_id):
        raise NotFound("Organization not found")

    require_permission(
        db, acting_user_id, organization_id,
        permission=Permission.MANAGE_TEAMS,
        detail="Insufficient permissions to create teams"
    )
    creator_role = find_membership(db, acting_user_id, organization_id).role

    existing_team = db.exec(
        select(Team).where(Team.organization_id == organization_id, Team.name == name)
    ).first()
    if existing_team:
        raise DuplicateName()

    team_count = db.exec(
        select(func.count(Team.id)).where(Team.organization_id == organization_id)
    ).one()
    if team_count >= get_settings().MAX_TEAMS_PER_ORGANIZATION:
        raise TeamLimitReached()

    try:
        team = Team(name=name, organization_id=organization_id)
        db.add(team)
        db.flush()

        team_member = Member(
            user_id=acting_user_id,
            organization_id=organization_id,
            team_id=team.id,
            role=MemberRole.OWNER if creator_role == MemberRole.OWNER else MemberRole.ADMIN
        )
        db.add(team_member)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateName()
    except Exception:
        db.rollback()
        raise

    db.refresh(team)
    db.refresh(team_member)
    logger.info(f"Team {team.id} created in organization {organization_id} by {acting_user_id}")
    return team, team_member


def _get_team_member(
    db: Session,
    member_id: UUID,
    team_id: UUID,
    organization_id: UUID
) -> Member:
    member = db.get(Member, member_id)
    if not member or member.team_id != team_id or member.organization_id != organization_id:
        raise NotFound("Member not found in this team")
    return member


def _ensure_other_owner(db: Session, member: Member, acting_user_id: UUID, removing: bool) -> None:
    other_owners = db.exec(
        select(func.count(Member.id)).where(
            Member.team_id == member.team_id,
            Member.role == MemberRole.OWNER,
            Member.id != member.id
        )
    ).one()
    if other_owners > 0:
        return

    if member.user_id == acting_user_id:
        subject = "yourself as the only team owner"
    else:
        subject = "the only team owner"
    if removing:
        raise LastOwnerProtection(f"Cannot remove {subject}. Transfer ownership first.")
    raise LastOwnerProtection(f"Cannot demote {subject}. Promote someone else first.")


def change_role(
    db: Session,
    acting_user_id: UUID,
    member_id: Optional[UUID],
    new_role: Optional[str],
    team_id: Optional[UUID],
    organization_id: Optional[UUID]
) -> Member:
    if not member_id or not new_role or not team_id or not organization_id:
        raise ValidationError("Member ID, new role, team ID, and organization ID are required")
    role = parse_role(new_role)

    member = _get_team_member(db, member_id, team_id, organization_id)

    require_permission(
        db, acting_user_id, organization_id, team_id,
        permission=Permission.MANAGE_MEMBERS,
        detail="Insufficient permissions to update member roles"
    )

    if member.role == MemberRole.OWNER and role != MemberRole.OWNER:
        _ensure_other_owner(db, member, acting_user_id, removing=False)

    member.role = role
    db.add(member)
    db.commit()
    db.refresh(member)
    logger.info(f"Member {member.id} role changed to {role.value} by {acting_user_id}")
    return member


def remove_member(
    db: Session,
    acting_user_id: UUID,
    member_id: Optional[UUID],
    team_id: Optional[UUID],
    organization_id: Optional[UUID]
) -> Tuple[User, Team]:
    """Delete a team membership; returns the removed user and the team it left."""
    if not member_id or not team_id or not organization_id:
        raise ValidationError("Member ID, team ID, and organization ID are required")

    member = _get_team_member(db, member_id, team_id, organization_id)

    require_permission(
        db, acting_user_id, organization_id, team_id,
        permission=Permission.MANAGE_MEMBERS,
        detail="Insufficient permissions to remove team members"
    )

    if member.role == MemberRole.OWNER:
        _ensure_other_owner(db, member, acting_user_id, removing=True)

    user, team = member.user, member.team
    db.delete(member)
    db.commit()
    logger.info(f"Member {member_id} removed from team {team_id} by {acting_user_id}")
    return user, team


def list_members(db: Session, acting_user_id: UUID, organization_id: Optional[UUID]) -> List[Tuple[User, MemberRole]]:
    """Distinct users of the organization; the org-level role wins over team roles."""
    if not organization_id:
        raise ValidationError("Organization ID is required")
    require_org_member(db, acting_user_id, organization_id)

    rows = db.exec(
        select(Member, User)
        .join(User, Member.user_id == User.id)
        .where(Member.organization_id == organization_id)
        .order_by(User.full_name)
    ).all()

    members = {}
    for member, user in rows:
        if user.id not in members or member.team_id is None:
            members[user.id] = (user, member.role)
    return list(members.values())


def list_teams(db: Session, acting_user_id: UUID, organization_id: Optional[UUID]) -> List[Tuple[Team, int]]:
    if not organization_id:
        raise ValidationError("Organization ID is required")
    require_org_member(db, acting_user_id, organization_id)

    return db.exec(
        select(Team, func.count(Member.id))
        .outerjoin(Member, Member.team_id == Team.id)
        .where(Team.organization_id == organization_id)
        .group_by(Team.id)
        .order_by(Team.name)
    ).all()


def list_teams_with_members(db: Session, acting_user_id: UUID, organization_id: Optional[UUID]) -> List[Team]:
    if not organization_id:
        raise ValidationError("Organization ID is required")
    require_org_member(db, acting_user_id, organization_id)

    return db.exec(
        select(Team)
        .where(Team.organization_id == organization_id)
        .order_by(Team.created_at.desc())
    ).all()


def list_user_teams(db: Session, acting_user_id: UUID, organization_id: Optional[UUID]) -> List[Tuple[Member, Team]]:
    if not organization_id:
        raise ValidationError("Organization ID is required")
    require_org_member(db, acting_user_id, organization_id)

    return db.exec(
        select(Member, Team)
        .join(Team, Member.team_id == Team.id)
        .where(
            Member.user_id == acting_user_id,
            Member.organization_id == organization_id
        )
        .order_by(Team.name)
    ).all()


def get_member_info(db: Session, acting_user_id: UUID, organization_id: Optional[UUID]) -> Member:
    if not organization_id:
        raise ValidationError("Organization ID is required")

    member = find_membership(db, acting_user_id, organization_id)
    if not member:
        member = db.exec(
            select(Member).where(
                Member.user_id == acting_user_id,
                Member.organization_id == organization_id
            )
        ).first()
    if not member:
        raise NotFound("Member not found")
    return member
