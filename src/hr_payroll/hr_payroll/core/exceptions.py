class DomainError(Exception):
    """Base exception for business rule violations."""

    http_status = 400


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AlreadyProcessedError(ValidationError):
    """Raised when a workflow item has already left the Pending state."""

    def __init__(self, entity: str, status: str):
        super().__init__(f"{entity} is already {str(status).lower()}")
        self.status = status


class NotFoundError(DomainError):
    http_status = 404


class EmployeeNotFoundError(NotFoundError):
    def __init__(self, employee_id):
        super().__init__(f"Employee {employee_id} not found")
        self.employee_id = employee_id


class AuthenticationError(DomainError):
    """Raised when the bearer token is missing or invalid."""

    http_status = 401


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    http_status = 403


class ConflictError(DomainError):
    """Uniqueness violation. The conflicting row is never committed."""

    http_status = 409


class DuplicatePeriodError(ConflictError):
    http_status = 400


class DuplicateAttendanceDayError(ConflictError):
    pass


class OverlappingLeaveError(ConflictError):
    http_status = 400


class DuplicateRuleCodeError(ConflictError):
    pass


class ConfigurationMissingError(DomainError):
    """Operator error: required configuration (e.g. a salary rule set) is absent."""

    http_status = 500


class FormulaError(ConfigurationMissingError):
    """A salary component formula is not a plain arithmetic expression."""


class DownstreamFailure(DomainError):
    """External collaborator (mail, storage) failed. Never fatal to the caller."""

    http_status = 502
