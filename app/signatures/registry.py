from collections.abc import Iterable

from app.signatures.exceptions import SignatureRegistryError
from app.signatures.matcher import SignatureMatcher
from app.signatures.models import ByteRule, Category, MediaSignature

JPEG = MediaSignature(
    name="jpeg",
    category=Category.IMAGE,
    mime_candidates=frozenset({"image/jpeg", "image/jpg"}),
    byte_rules=(ByteRule(offset=0, expected=b"\xff\xd8\xff"),),
    canonical_mime="image/jpeg",
)

PNG = MediaSignature(
    name="png",
    category=Category.IMAGE,
    mime_candidates=frozenset({"image/png"}),
    byte_rules=(ByteRule(offset=0, expected=b"\x89PNG\r\n\x1a\n"),),
    canonical_mime="image/png",
)

# RIFF is shared with WAV and AVI; the WEBP marker at offset 8 disambiguates.
WEBP = MediaSignature(
    name="webp",
    category=Category.IMAGE,
    mime_candidates=frozenset({"image/webp"}),
    byte_rules=(
        ByteRule(offset=0, expected=b"RIFF"),
        ByteRule(offset=8, expected=b"WEBP"),
    ),
    canonical_mime="image/webp",
)

PDF = MediaSignature(
    name="pdf",
    category=Category.DOCUMENT,
    mime_candidates=frozenset({"application/pdf"}),
    byte_rules=(ByteRule(offset=0, expected=b"%PDF-"),),
    canonical_mime="application/pdf",
)

DEFAULT_SIGNATURES: tuple[MediaSignature, ...] = (JPEG, PNG, WEBP, PDF)


def normalize_declared_type(declared_type: str) -> str:
    """Lower-case a MIME label and strip parameters such as ``; charset=...``."""
    return declared_type.split(";", 1)[0].strip().lower()


class SignatureRegistry:
    """Immutable lookup table from declared media types to byte signatures.

    The table is validated on construction: every signature needs at least one
    declared type and at least one non-empty rule, and a declared type may belong
    to only one signature.
    """

    def __init__(
        self,
        signatures: Iterable[MediaSignature] = DEFAULT_SIGNATURES,
        matcher: SignatureMatcher | None = None,
    ) -> None:
        self._signatures = tuple(signatures)
        self._matcher = matcher if matcher is not None else SignatureMatcher()
        self._by_mime = self._index(self._signatures)

    @property
    def signatures(self) -> tuple[MediaSignature, ...]:
        return self._signatures

    def resolve(self, declared_type: str) -> MediaSignature | None:
        """Return the signature registered for ``declared_type``, if any."""
        return self._by_mime.get(normalize_declared_type(declared_type))

    def for_category(self, category: Category) -> tuple[MediaSignature, ...]:
        return tuple(s for s in self._signatures if s.category is category)

    def declared_types(self) -> frozenset[str]:
        return frozenset(self._by_mime)

    def detect(self, data: bytes) -> MediaSignature | None:
        """Return the first signature whose rules all match ``data``."""
        for signature in self._signatures:
            if self._matcher.matches(data, signature):
                return signature
        return None

    @staticmethod
    def _index(signatures: tuple[MediaSignature, ...]) -> dict[str, MediaSignature]:
        if not signatures:
            raise SignatureRegistryError("registry must contain at least one signature")
        by_mime: dict[str, MediaSignature] = {}
        for signature in signatures:
            if not signature.mime_candidates:
                raise SignatureRegistryError(
                    f"signature '{signature.name}' declares no media types"
                )
            if not signature.byte_rules:
                raise SignatureRegistryError(
                    f"signature '{signature.name}' has no byte rules"
                )
            for rule in signature.byte_rules:
                if rule.offset < 0:
                    raise SignatureRegistryError(
                        f"signature '{signature.name}' has a negative rule offset"
                    )
                if not rule.expected:
                    raise SignatureRegistryError(
                        f"signature '{signature.name}' has an empty byte rule"
                    )
            for mime in signature.mime_candidates:
                key = normalize_declared_type(mime)
                existing = by_mime.get(key)
                if existing is not None and existing is not signature:
                    raise SignatureRegistryError(
                        f"media type '{key}' is claimed by both "
                        f"'{existing.name}' and '{signature.name}'"
                    )
                by_mime[key] = signature
        return by_mime
