"""
Exception classes for the batch sender.

Stage-local errors (resolution, signing, submission) are caught by the
pipeline and turned into dropped items or failed outcomes. Input and
configuration errors are fatal and abort the batch before any network call.
"""


class BatchSenderError(Exception):
    """Base class for all batch sender errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(BatchSenderError):
    """Raised when credentials or settings are missing or invalid at startup."""
    pass


class InputFileError(BatchSenderError):
    """Raised when the payment list cannot be read or contains an invalid row."""

    def __init__(self, message: str, line_number: int | None = None):
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)
        self.line_number = line_number


class ResolutionError(BatchSenderError):
    """Raised when the NFD API call fails or returns unusable data."""

    def __init__(self, handle: str, message: str):
        super().__init__(f"Failed to resolve {handle}: {message}")
        self.handle = handle
        self.reason = message


class SigningError(BatchSenderError):
    """Raised when a transaction group cannot be decoded or signed."""
    pass


class SubmissionError(BatchSenderError):
    """Raised when the node rejects a group or confirmation does not arrive."""

    def __init__(self, message: str, kind=None):
        super().__init__(message)
        self.kind = kind


class ReportWriteError(BatchSenderError):
    """Raised when the failure report cannot be written."""
    pass
