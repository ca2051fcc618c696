"""Custom exception classes for the lead report application."""


class LeadReportException(Exception):
    """Base exception for all application-specific errors."""

    def __init__(self, message: str, details: str | None = None):
        self.message = message
        self.details = details
        super().__init__(self.message)


class InvalidReportIdError(LeadReportException):
    """Raised when a report id is not a well-formed identifier."""

    def __init__(self, report_id: str):
        super().__init__(
            message="Invalid report ID",
            details=f"'{report_id}' is not a valid report identifier"
        )
        self.report_id = report_id


class InvalidInputError(LeadReportException):
    """Raised when request data fails a business validation rule."""

    def __init__(self, message: str, details: str | None = None):
        super().__init__(message=message, details=details)


class NoSectionsEnabledError(LeadReportException):
    """Raised when a section batch is requested with nothing enabled."""

    def __init__(self):
        super().__init__(
            message="No sections are enabled. Please enable at least one section.",
        )


class AuthenticationRequiredError(LeadReportException):
    """Raised when a request carries no valid credentials."""

    def __init__(self, details: str | None = None):
        super().__init__(message="Authentication required", details=details)


class PermissionDeniedError(LeadReportException):
    """Raised when the principal may not perform an action."""

    def __init__(self, message: str = "Access denied", details: str | None = None):
        super().__init__(message=message, details=details)


class ReportNotFoundError(LeadReportException):
    """Raised when a report is not found."""

    def __init__(self, report_id: str):
        super().__init__(
            message=f"Report not found: {report_id}",
            details="The requested report does not exist"
        )
        self.report_id = report_id


class UserNotFoundError(LeadReportException):
    """Raised when a user is not found."""

    def __init__(self, user_id: str):
        super().__init__(
            message=f"User not found: {user_id}",
            details="The requested user does not exist"
        )
        self.user_id = user_id


class DuplicateUserError(LeadReportException):
    """Raised when creating a user whose email is already registered."""

    def __init__(self, email: str):
        super().__init__(
            message="User with this email already exists",
            details=email
        )
        self.email = email


class SelfDeletionError(LeadReportException):
    """Raised when an admin tries to delete their own account."""

    def __init__(self):
        super().__init__(message="Cannot delete your own account")


class ReportGenerationInProgressError(LeadReportException):
    """Raised when a report already has a generation run in flight."""

    def __init__(self, report_id: str):
        super().__init__(
            message=f"Report {report_id} is already being generated",
            details="Wait for the current run to finish before starting another"
        )
        self.report_id = report_id


class ReportNotReadyError(LeadReportException):
    """Raised when an operation needs a completed report."""

    def __init__(self, report_id: str, status: str):
        super().__init__(
            message=f"Report {report_id} is not completed",
            details=f"Current status: {status}"
        )
        self.report_id = report_id
        self.status = status


class InvalidTransitionError(LeadReportException):
    """Raised when a lifecycle move is not allowed from the current state."""

    retryable = True

    def __init__(self, report_id: str, current: str, requested: str):
        super().__init__(
            message="Report generation failed. Please try again.",
            details=f"Cannot move report {report_id} from {current} to {requested}"
        )
        self.report_id = report_id
        self.current = current
        self.requested = requested


class BatchAbortedError(LeadReportException):
    """Raised when a section batch stops outside a single section call.

    ``partial`` holds the ``SectionBatchResult`` gathered before the abort.
    """

    retryable = True

    def __init__(self, reason: str, partial=None):
        super().__init__(
            message="Section generation was interrupted. Please try again.",
            details=reason
        )
        self.reason = reason
        self.partial = partial


class LLMServiceError(LeadReportException):
    """Raised when LLM service encounters an error."""

    def __init__(self, operation: str, original_error: Exception | None = None):
        message = f"LLM service error during {operation}"
        if original_error:
            message += f": {str(original_error)}"
        super().__init__(
            message=message,
            details="The language model service is temporarily unavailable"
        )
        self.operation = operation
        self.original_error = original_error


class EnrichmentServiceError(LeadReportException):
    """Raised when the enrichment provider cannot return lead data."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(
            message=message,
            details="The enrichment service could not complete the lookup"
        )
        self.status_code = status_code
