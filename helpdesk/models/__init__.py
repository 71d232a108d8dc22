from .base import TimestampModel, utcnow
from .types import MemberRole, InvitationStatus
from .users import User, UserSession
from .organization import Organization, Team, Member
from .invitations import Invitation

__all__ = [
    "TimestampModel",
    "utcnow",
    "MemberRole",
    "InvitationStatus",
    "User",
    "UserSession",
    "Organization",
    "Team",
    "Member",
    "Invitation",
]
