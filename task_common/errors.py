"""Error types raised by the task service layer."""


class TaskServiceError(Exception):
    """Base class for every error the handlers know how to report."""


class NotFound(TaskServiceError):
    """Referenced task or user profile does not exist."""


class Unauthorized(TaskServiceError):
    """Caller identity is missing or not allowed to act on the resource."""


class ValidationError(TaskServiceError):
    """Request is missing a required field or carries a malformed value."""


class DependencyFailure(TaskServiceError):
    """A call to DynamoDB, SES/SMTP or S3 failed."""
