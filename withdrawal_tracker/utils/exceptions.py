class ServiceError(Exception):
    status = 400

    def __init__(self, code="SERVICE_ERROR", message="Service error", details=None, status=None):
        self.code = code
        self.message = message
        self.details = details or {}
        if status is not None:
            self.status = status
        super().__init__(message)


class UnsupportedCountry(ServiceError):
    def __init__(self, country):
        super().__init__(
            code="UNSUPPORTED_COUNTRY",
            message=f"Unsupported country: {country}",
            details={"field": "country", "value": country},
        )


class NotFound(ServiceError):
    status = 404

    def __init__(self, message="Resource not found", details=None):
        super().__init__(code="NOT_FOUND", message=message, details=details)


class Unauthorized(ServiceError):
    status = 403

    def __init__(self, message="Permission denied", details=None):
        super().__init__(code="FORBIDDEN", message=message, details=details)


class AssignmentFailure(ServiceError):
    """No eligible user exists for the target stage.

    This is a staffing/configuration problem, not a transient one; retrying
    will not help until an administrator adds or reactivates a user.
    """
    status = 409

    def __init__(self, stage, region=None):
        super().__init__(
            code="ASSIGNMENT_FAILURE",
            message=f"No eligible assignee for stage '{stage}'",
            details={"stage": stage, "region": region},
        )


class ValidationFailure(ServiceError):
    status = 422

    def __init__(self, message="Validation failed", details=None):
        super().__init__(code="VALIDATION_ERROR", message=message, details=details)


class InvalidTransition(ServiceError):
    def __init__(self, stage, decision):
        super().__init__(
            code="INVALID_STATE",
            message=f"Cannot {decision} a request at stage '{stage}'",
            details={"stage": stage, "decision": decision},
        )


class Conflict(ServiceError):
    status = 409

    def __init__(self, message="Request was modified concurrently", details=None):
        super().__init__(code="CONFLICT", message=message, details=details)


# warning code attached to a successful response when the audit append failed
AUDIT_WRITE_FAILED = "AUDIT_WRITE_FAILED"
