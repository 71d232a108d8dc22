from dataclasses import dataclass
from datetime import timedelta
from typing import List, Optional
from uuid import UUID
import logging

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ..core.config import get_settings
from ..core.errors import (
    AlreadyMember, ExhaustedRetries, InvitationAlreadyUsed, InvitationCanceled,
    InvitationExpired, NotFound, StateConflict, ValidationError
)
from ..core.permission import Permission, parse_role, require_org_member, require_permission
from ..core.security import ActiveContext
from ..models.base import utcnow
from ..models.invitations import Invitation
from ..models.organization import Member, Organization, Team
from ..models.types import InvitationStatus, MemberRole
from .invitation_codes import is_valid_code, try_generate_unique

logger = logging.getLogger(__name__)


@dataclass
class RedeemResult:
    member: Member
    invitation: Invitation
    # True when the organization became the session's active organization
    activated_organization: bool


def code_exists(db: Session, code: str) -> bool:
    return db.exec(select(Invitation.id).where(Invitation.code == code)).first() is not None


def create_invitation(
    db: Session,
    organization_id: UUID,
    inviter_id: UUID,
    role: MemberRole = MemberRole.MEMBER,
    team_id: Optional[UUID] = None,
    max_attempts: Optional[int] = None
) -> Invitation:
    """
    Persist a pending invitation under a fresh 6-digit code.

    The code is probed against stored invitations first; a unique-constraint
    violation on insert (another request claimed the same code in between)
    sends it back to probing. Probes and insert retries draw from one budget
    of ``max_attempts`` generated codes.

    Raises:
        ExhaustedRetries: If no free code could be stored within the budget
    """
    settings = get_settings()
    max_attempts = max_attempts or settings.INVITATION_CODE_MAX_ATTEMPTS
    used = 0

    def taken(code: str) -> bool:
        nonlocal used
        used += 1
        return code_exists(db, code)

    while used < max_attempts:
        before = used
        code = try_generate_unique(taken, max_attempts - used)
        # Every returned code costs at least one attempt
        used = max(used, before + 1)

        invitation = Invitation(
            code=code,
            organization_id=organization_id,
            team_id=team_id,
            role=role,
            inviter_id=inviter_id,
            status=InvitationStatus.PENDING,
            expires_at=utcnow() + timedelta(hours=settings.INVITATION_EXPIRE_HOURS)
        )
        db.add(invitation)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.warning(f"Invitation code {code} was claimed concurrently, retrying ({used}/{max_attempts})")
            continue

        db.refresh(invitation)
        logger.info(f"Invitation {invitation.id} created for organization {organization_id}")
        return invitation

    raise ExhaustedRetries()


def generate_code(
    db: Session,
    acting_user_id: UUID,
    organization_id: Optional[UUID],
    role: Optional[str] = None,
    team_id: Optional[UUID] = None
) -> Invitation:
    if not organization_id:
        raise ValidationError("Organization ID is required")
    invitation_role = parse_role(role) if role else MemberRole.MEMBER

    if not db.get(Organization, organization_id):
        raise NotFound("Organization not found")
    if team_id is not None:
        team = db.get(Team, team_id)
        if not team or team.organization_id != organization_id:
            raise NotFound("Team not found")

    require_permission(
        db, acting_user_id, organization_id, team_id,
        permission=Permission.INVITE_MEMBERS
    )

    return create_invitation(
        db,
        organization_id=organization_id,
        inviter_id=acting_user_id,
        role=invitation_role,
        team_id=team_id
    )


def find_by_code(db: Session, code: str) -> Invitation:
    invitation = db.exec(select(Invitation).where(Invitation.code == code)).first()
    if not invitation:
        raise NotFound("Invalid invitation code")
    return invitation


def ensure_redeemable(invitation: Invitation) -> None:
    # Expiry wins over the stored status
    if invitation.is_expired:
        raise InvitationExpired()
    if invitation.status == InvitationStatus.CANCELED:
        raise InvitationCanceled()
    if invitation.status != InvitationStatus.PENDING:
        raise InvitationAlreadyUsed()


def get_invitation_info(db: Session, code: Optional[str]) -> Invitation:
    if not is_valid_code(code):
        raise ValidationError("Invalid invitation code")
    invitation = find_by_code(db, code)
    ensure_redeemable(invitation)
    return invitation


def redeem(db: Session, code: Optional[str], context: ActiveContext) -> RedeemResult:
    """
    Join the invitation's organization (and team, if any) with its role.

    Checks run in order: code format, existence, expiry, status, existing
    membership. On success the invitation is accepted and, if the caller's
    session has no active organization yet, this organization becomes active.
    All writes are committed together.
    """
    if not is_valid_code(code):
        raise ValidationError("Invalid invitation code")

    invitation = find_by_code(db, code)
    ensure_redeemable(invitation)

    existing_member = db.exec(
        select(Member).where(
            Member.user_id == context.user.id,
            Member.organization_id == invitation.organization_id
        )
    ).first()
    if existing_member:
        raise AlreadyMember()

    # Accept only while still pending; a concurrent redemption leaves no row to update
    accepted = db.exec(
        update(Invitation)
        .where(Invitation.id == invitation.id, Invitation.status == InvitationStatus.PENDING)
        .values(status=InvitationStatus.ACCEPTED, accepted_at=utcnow())
    )
    if accepted.rowcount != 1:
        db.rollback()
        raise InvitationAlreadyUsed()

    member = Member(
        user_id=context.user.id,
        organization_id=invitation.organization_id,
        team_id=invitation.team_id,
        role=invitation.role
    )

    activated = False
    if context.session.active_organization_id is None:
        context.session.active_organization_id = invitation.organization_id
        activated = True

    db.add(member)
    db.add(context.session)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise AlreadyMember()

    db.refresh(member)
    db.refresh(invitation)
    logger.info(f"User {context.user.id} joined organization {invitation.organization_id} with invitation {invitation.id}")
    return RedeemResult(member=member, invitation=invitation, activated_organization=activated)


def cancel_invitation(db: Session, acting_user_id: UUID, invitation_id: UUID) -> Invitation:
    invitation = db.get(Invitation, invitation_id)
    if not invitation:
        raise NotFound("Invitation not found")

    require_permission(
        db, acting_user_id, invitation.organization_id, invitation.team_id,
        permission=Permission.INVITE_MEMBERS,
        detail="Insufficient permissions to cancel invitations"
    )

    if invitation.status != InvitationStatus.PENDING:
        raise StateConflict("Only pending invitations can be canceled")

    invitation.status = InvitationStatus.CANCELED
    db.add(invitation)
    db.commit()
    db.refresh(invitation)
    logger.info(f"Invitation {invitation.id} canceled by {acting_user_id}")
    return invitation


def list_invitations(db: Session, acting_user_id: UUID, organization_id: Optional[UUID]) -> List[Invitation]:
    if not organization_id:
        raise ValidationError("Organization ID is required")
    require_org_member(db, acting_user_id, organization_id)

    return db.exec(
        select(Invitation)
        .where(Invitation.organization_id == organization_id)
        .order_by(Invitation.created_at.desc())
    ).all()
