"""
Seat ledger error taxonomy.

Every error carries the HTTP status it maps to and a stable ``kind`` string
so clients can tell "not allowed" apart from "ride is full".
"""


class DomainError(Exception):
    status_code = 400
    kind = "domain_error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFound(DomainError):
    status_code = 404
    kind = "not_found"


class CapacityExceeded(DomainError):
    status_code = 400
    kind = "capacity_exceeded"

    def __init__(self, seats_available: int, seats_requested: int):
        self.seats_available = seats_available
        self.seats_requested = seats_requested
        super().__init__(f"Only {seats_available} seats available")


class InvalidTransition(DomainError):
    status_code = 409
    kind = "invalid_transition"


class Unauthorized(DomainError):
    status_code = 403
    kind = "unauthorized"


class MissingIdentity(DomainError):
    status_code = 401
    kind = "missing_identity"


class InfrastructureFailure(DomainError):
    status_code = 503
    kind = "infrastructure_failure"


class InvalidRequest(DomainError):
    status_code = 400
    kind = "invalid_request"
