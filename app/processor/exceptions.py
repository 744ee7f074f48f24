from app.validation.errors import ErrorDetail


class ProcessingError(Exception):
    """Base exception for all pipeline rejections. Carries the user-facing detail."""

    def __init__(self, detail: ErrorDetail) -> None:
        super().__init__(detail.details or detail.message)
        self.detail = detail


class InvalidFileTypeError(ProcessingError):
    """Raised when the declared type is unknown, not accepted, or not backed by the bytes."""


class FileTooLargeError(ProcessingError):
    """Raised when a file exceeds the ceiling of its category."""


class CompressionFailedError(ProcessingError):
    """Raised when a signature-valid image cannot be decoded or re-encoded."""
