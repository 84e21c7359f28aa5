class WorkflowStage:
    SUBMITTED = "submitted"
    UNDER_LOAN_REVIEW = "under_loan_review"
    UNDER_OPERATIONS_REVIEW = "under_operations_review"
    RETURNED_FOR_MODIFICATION = "returned_for_modification"
    APPROVED = "approved"
    DISBURSED = "disbursed"

    ALL = (
        SUBMITTED,
        UNDER_LOAN_REVIEW,
        UNDER_OPERATIONS_REVIEW,
        RETURNED_FOR_MODIFICATION,
        APPROVED,
        DISBURSED,
    )
    TERMINAL = (DISBURSED,)

    LABELS = {
        SUBMITTED: "Submitted",
        UNDER_LOAN_REVIEW: "Loan Review",
        UNDER_OPERATIONS_REVIEW: "Operations Review",
        RETURNED_FOR_MODIFICATION: "Returned for Modification",
        APPROVED: "Core Banking",
        DISBURSED: "Disbursed",
    }


class Decision:
    APPROVE = "approve"
    REJECT = "reject"

    ALL = (APPROVE, REJECT)


class UserRole:
    ADMIN = "admin"
    ARCHIVE_TEAM = "archive_team"
    OPERATIONS_TEAM = "operations_team"
    CORE_BANKING = "core_banking"
    LOAN_ADMINISTRATOR = "loan_administrator"
    OBSERVER = "observer"

    ALL = (ADMIN, ARCHIVE_TEAM, OPERATIONS_TEAM, CORE_BANKING, LOAN_ADMINISTRATOR, OBSERVER)


class Region:
    AFRICA = "africa"
    ASIA = "asia"
    EUROPE_LATIN_AMERICA = "europe_latin_america"

    ALL = (AFRICA, ASIA, EUROPE_LATIN_AMERICA)


class AuditAction:
    CREATE = "create"
    SUBMIT = "submit"
    APPROVE = "approve"
    REJECT = "reject"
    DISBURSE = "disburse"
    UPDATE = "update"
    COMMENT = "comment"
    ASSIGN = "assign"


class CommentType:
    GENERAL = "general"
    DECISION = "decision"
    SYSTEM = "system"

    ALL = (GENERAL, DECISION, SYSTEM)


class NotificationType:
    REQUEST_SUBMITTED = "request_submitted"
    REQUEST_ASSIGNED = "request_assigned"
    REQUEST_APPROVED = "request_approved"
    REQUEST_RETURNED = "request_returned"
    REQUEST_REJECTED = "request_rejected"
    REQUEST_DISBURSED = "request_disbursed"


class Priority:
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"

    ALL = (LOW, MEDIUM, HIGH, URGENT)
