"""Closed error taxonomy with English and Vietnamese display messages."""

from dataclasses import dataclass
from enum import Enum

from app.signatures.models import Category


class ErrorCode(str, Enum):
    INVALID_FILE_TYPE = "INVALID_FILE_TYPE"
    IMAGE_TOO_LARGE = "IMAGE_TOO_LARGE"
    DOCUMENT_TOO_LARGE = "DOCUMENT_TOO_LARGE"
    COMPRESSION_FAILED = "COMPRESSION_FAILED"


@dataclass(frozen=True)
class ErrorDetail:
    """Machine-readable code plus display strings. Callers branch on ``code`` only."""

    code: ErrorCode
    message: str
    message_vi: str
    details: str | None = None
    size_bytes: int | None = None
    limit_bytes: int | None = None


_TOO_LARGE_CODES: dict[Category, ErrorCode] = {
    Category.IMAGE: ErrorCode.IMAGE_TOO_LARGE,
    Category.DOCUMENT: ErrorCode.DOCUMENT_TOO_LARGE,
}

_CATEGORY_LABELS: dict[Category, tuple[str, str]] = {
    Category.IMAGE: ("Image", "Ảnh"),
    Category.DOCUMENT: ("PDF", "PDF"),
}


def _megabytes(size_bytes: int) -> str:
    return f"{size_bytes / (1024 * 1024):g}"


def invalid_file_type(details: str | None = None) -> ErrorDetail:
    return ErrorDetail(
        code=ErrorCode.INVALID_FILE_TYPE,
        message="Invalid file type. Only images (JPG, PNG, WebP) and PDF are accepted.",
        message_vi="Loại tệp không hợp lệ. Chỉ chấp nhận ảnh (JPG, PNG, WebP) và PDF.",
        details=details,
    )


def too_large(category: Category, size_bytes: int, limit_bytes: int) -> ErrorDetail:
    label, label_vi = _CATEGORY_LABELS[category]
    limit_mb = _megabytes(limit_bytes)
    return ErrorDetail(
        code=_TOO_LARGE_CODES[category],
        message=(
            f"{label} file exceeds {limit_mb}MB. "
            f"Please compress the file before uploading."
        ),
        message_vi=(
            f"File {label_vi} có dung lượng vượt quá {limit_mb}MB. "
            f"Vui lòng nén để giảm dung lượng file trước khi tải lên."
        ),
        details=f"{size_bytes} bytes exceeds limit of {limit_bytes} bytes",
        size_bytes=size_bytes,
        limit_bytes=limit_bytes,
    )


def compression_failed(details: str | None = None) -> ErrorDetail:
    return ErrorDetail(
        code=ErrorCode.COMPRESSION_FAILED,
        message="Image compression failed. Please try again or choose a different image.",
        message_vi="Không thể nén ảnh. Vui lòng thử lại hoặc chọn ảnh khác.",
        details=details,
    )
