"""
Domain errors raised by the services and rendered by the API layer.

Every error carries the HTTP status it maps to. The handlers registered in
``helpdesk.main`` turn them into ``{"error": message}`` responses.
"""


class HelpdeskError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(HelpdeskError):
    status_code = 401
    default_message = "Unauthorized"


class Unauthorized(HelpdeskError):
    status_code = 403
    default_message = "Insufficient permissions"


class NotFound(HelpdeskError):
    status_code = 404
    default_message = "Not found"


class ValidationError(HelpdeskError):
    status_code = 400
    default_message = "Invalid request"


class StateConflict(HelpdeskError):
    status_code = 400
    default_message = "Request conflicts with the current state"


class InvitationExpired(StateConflict):
    default_message = "Invitation code has expired"


class InvitationAlreadyUsed(StateConflict):
    default_message = "Invitation code has already been used"


class InvitationCanceled(StateConflict):
    default_message = "Invitation code has been canceled"


class AlreadyMember(StateConflict):
    default_message = "You are already a member of this organization"


class LastOwnerProtection(StateConflict):
    default_message = "A team must keep at least one owner"


class DuplicateName(StateConflict):
    default_message = "A team with this name already exists"


class TeamLimitReached(StateConflict):
    default_message = "Maximum number of teams reached for this organization"


class ExhaustedRetries(HelpdeskError):
    status_code = 500
    default_message = "Unable to generate unique code"
