"""Two-phase type check: resolve the declared type, then verify it against the bytes."""

from app.signatures.matcher import SignatureMatcher
from app.signatures.registry import SignatureRegistry, normalize_declared_type
from app.validation.errors import invalid_file_type
from app.validation.models import ValidationVerdict
from app.validation.policy import CategoryPolicy


class TypeValidator:
    """Produces a ValidationVerdict for a buffer and its client-supplied media type.

    The declared type only selects which signature to check; it is never trusted
    on its own. Unknown types fail closed.
    """

    def __init__(
        self,
        registry: SignatureRegistry,
        category_policy: CategoryPolicy,
        matcher: SignatureMatcher | None = None,
    ) -> None:
        self._registry = registry
        self._category_policy = category_policy
        self._matcher = matcher if matcher is not None else SignatureMatcher()

    def validate(self, data: bytes, declared_type: str) -> ValidationVerdict:
        declared = normalize_declared_type(declared_type)
        signature = self._registry.resolve(declared)
        if signature is None:
            return ValidationVerdict(
                is_valid=False,
                matches_signature=False,
                declared_type=declared,
                error=invalid_file_type(f"File type '{declared}' not accepted"),
            )

        if not self._category_policy.is_accepted(signature.category):
            return ValidationVerdict(
                is_valid=False,
                matches_signature=False,
                declared_type=declared,
                category=signature.category,
                signature=signature,
                error=invalid_file_type(
                    f"Category '{signature.category.value}' not accepted"
                ),
            )

        if not self._matcher.matches(data, signature):
            return ValidationVerdict(
                is_valid=False,
                matches_signature=False,
                declared_type=declared,
                category=signature.category,
                signature=signature,
                error=invalid_file_type(self._mismatch_details(data, declared)),
            )

        return ValidationVerdict(
            is_valid=True,
            matches_signature=True,
            declared_type=declared,
            category=signature.category,
            signature=signature,
        )

    def _mismatch_details(self, data: bytes, declared: str) -> str:
        if not data:
            return "File is empty; signature does not match declared type"
        message = (
            f"File signature does not match declared type '{declared}' "
            f"(possible malicious file)"
        )
        detected = self._registry.detect(data)
        if detected is not None:
            message += f"; content looks like {detected.canonical_mime}"
        return message
