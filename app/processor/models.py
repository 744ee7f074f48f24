from dataclasses import dataclass

from app.imaging.models import CompressionStats
from app.signatures.models import Category
from app.validation.errors import ErrorDetail


@dataclass(frozen=True)
class ProcessingSuccess:
    """Validated (and for images, normalized) file ready to be stored."""

    file: bytes
    category: Category
    mime_type: str
    stats: CompressionStats | None = None
    filename: str | None = None
    success: bool = True


@dataclass(frozen=True)
class ProcessingFailure:
    """Rejected file. Never carries output bytes."""

    error: ErrorDetail
    category: Category | None = None
    success: bool = False


ProcessedFileResult = ProcessingSuccess | ProcessingFailure
