from .users import UserRead, UserSummary, CurrentUserRead
from .auth import TokenResponse, LoginRequest, RegisterRequest, RegisterResponse
from .organization import (
    OrganizationCreate, OrganizationRead, TeamCreate, TeamRead, RoleUpdate
)
from .invitations import GenerateCodeRequest, JoinRequest, InvitationInfo

__all__ = [
    "UserRead", "UserSummary", "CurrentUserRead",
    "TokenResponse", "LoginRequest", "RegisterRequest", "RegisterResponse",
    "OrganizationCreate", "OrganizationRead", "TeamCreate", "TeamRead", "RoleUpdate",
    "GenerateCodeRequest", "JoinRequest", "InvitationInfo",
]
