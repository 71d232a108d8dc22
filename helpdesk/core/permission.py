from enum import Flag, auto
from typing import List, Optional
from uuid import UUID
from sqlmodel import Session, select
from .errors import Unauthorized, ValidationError
from ..models.organization import Member
from ..models.types import MemberRole


class Permission(Flag):
    NONE = 0
    VIEW_MEMBERS = auto()
    INVITE_MEMBERS = auto()
    MANAGE_MEMBERS = auto()
    MANAGE_TEAMS = auto()


ROLE_PERMISSIONS = {

    MemberRole.OWNER: (
        Permission.VIEW_MEMBERS |
        Permission.INVITE_MEMBERS |
        Permission.MANAGE_MEMBERS |
        Permission.MANAGE_TEAMS
    ),
    MemberRole.ADMIN: (
        Permission.VIEW_MEMBERS |
        Permission.INVITE_MEMBERS |
        Permission.MANAGE_MEMBERS |
        Permission.MANAGE_TEAMS
    ),
    MemberRole.MEMBER: (
        Permission.VIEW_MEMBERS
    )
}


def parse_role(value: Optional[str]) -> MemberRole:
    try:
        return MemberRole(value)
    except ValueError:
        raise ValidationError("Invalid role. Must be one of: owner, admin, member")


def find_membership(
    db: Session,
    user_id: UUID,
    organization_id: UUID,
    team_id: Optional[UUID] = None
) -> Optional[Member]:
    """Return the user's Member row for exactly this scope (None is org-level)."""
    return db.exec(
        select(Member).where(
            Member.user_id == user_id,
            Member.organization_id == organization_id,
            Member.team_id == team_id
        )
    ).first()


def scope_roles(
    db: Session,
    user_id: UUID,
    organization_id: UUID,
    team_id: Optional[UUID] = None
) -> List[MemberRole]:
    """
    The user's roles for a team or organization, team scope first.

    Each scope contributes the role of its Member row, if any. A team-scoped
    row never hides the org-level one.
    """
    scopes = [team_id, None] if team_id is not None else [None]
    roles = []
    for scope in scopes:
        member = find_membership(db, user_id, organization_id, scope)
        if member:
            roles.append(member.role)
    return roles


def can_manage(
    db: Session,
    user_id: UUID,
    organization_id: UUID,
    team_id: Optional[UUID] = None,
    permission: Permission = Permission.MANAGE_MEMBERS
) -> bool:
    # Granted as soon as one scope allows it
    for role in scope_roles(db, user_id, organization_id, team_id):
        if ROLE_PERMISSIONS[role] & permission:
            return True
    return False


def require_permission(
    db: Session,
    user_id: UUID,
    organization_id: UUID,
    team_id: Optional[UUID] = None,
    permission: Permission = Permission.MANAGE_MEMBERS,
    detail: str = "Insufficient permissions"
) -> None:
    if not can_manage(db, user_id, organization_id, team_id, permission):
        raise Unauthorized(detail)


def require_org_member(db: Session, user_id: UUID, organization_id: UUID) -> Member:
    """Any Member row in the organization, team-scoped or not, grants read access."""
    member = db.exec(
        select(Member).where(
            Member.user_id == user_id,
            Member.organization_id == organization_id
        )
    ).first()
    if not member:
        raise Unauthorized("Access denied")
    return member
