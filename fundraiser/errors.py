"""
Error taxonomy for the fundraiser API

Every error raised by the services carries the HTTP status it maps to.
The application renders all of them as {"error": message}.
"""


class FundraiserError(Exception):
    """Base class for errors surfaced to API callers"""
    status_code = 500
    default_message = "Server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(FundraiserError):
    """Missing or invalid request fields"""
    status_code = 400
    default_message = "Invalid request"


class AuthenticationError(FundraiserError):
    status_code = 401
    default_message = "Unauthorized"


class AuthorizationError(FundraiserError):
    status_code = 403
    default_message = "Forbidden"


class NotFoundError(FundraiserError):
    status_code = 404
    default_message = "Not found"


class ConflictError(FundraiserError):
    """Request clashes with stored state (reported as 400 like the other client errors)"""
    status_code = 400
    default_message = "Conflict"


class UpstreamError(FundraiserError):
    """Payment provider rejected or failed the call"""
    status_code = 400
    default_message = "Payment provider error"


class InfrastructureError(FundraiserError):
    status_code = 500
    default_message = "Server error"


# ==================== NAMED FAILURES ====================

class TeamNotFound(NotFoundError):
    default_message = "Team not found"


class SponsorNotFound(NotFoundError):
    default_message = "Sponsor not found"


class Forbidden(AuthorizationError):
    default_message = "Only the team creator can modify the team"


class NotAuthorized(AuthorizationError):
    default_message = "Not authorized to join private team"


class TeamFull(ConflictError):
    default_message = "Team is full"


class InsufficientSpots(ConflictError):
    default_message = "Not enough spots available"


class SpotNotOwned(ConflictError):
    default_message = "Spot not found or not owned by user"


class SpotAlreadyAssigned(ConflictError):
    default_message = "Spot already assigned to a team"


class SpotNotInTeam(ConflictError):
    default_message = "Spot not found in team"


class DuplicateEmail(ConflictError):

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"Email {email} is already in use")
