"""Domain errors raised by the repositories and services.

The API maps each class to an HTTP status via ``status_code``.
"""


class PipelineError(Exception):
    """Base class for staging, quarantine and promotion errors."""
    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFoundError(PipelineError):
    status_code = 404


class InvalidInputError(PipelineError):
    status_code = 400


class ConflictError(PipelineError):
    status_code = 409


class InvalidTransitionError(ConflictError):
    """Requested status change is not allowed from the current status."""
    pass


class ChecksumMismatchError(InvalidInputError):
    """Sidecar content no longer matches the checksum taken at staging time."""
    pass


class PromotionError(PipelineError):
    """Physical copy or commit failed while promoting."""
    status_code = 500
