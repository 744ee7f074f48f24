from dataclasses import dataclass

from app.signatures.models import Category, MediaSignature
from app.validation.errors import ErrorDetail


@dataclass(frozen=True)
class ValidationVerdict:
    """Outcome of checking a declared type against the file's leading bytes."""

    is_valid: bool
    matches_signature: bool
    declared_type: str
    category: Category | None = None
    signature: MediaSignature | None = None
    error: ErrorDetail | None = None
