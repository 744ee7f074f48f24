from dataclasses import dataclass
from enum import Enum


class Category(str, Enum):
    """Accepted evidence file categories."""

    IMAGE = "image"
    DOCUMENT = "document"


@dataclass(frozen=True)
class ByteRule:
    """Exact byte sequence expected at a fixed offset.

    Every byte of ``expected`` takes part in the comparison.
    """

    offset: int
    expected: bytes

    @property
    def end(self) -> int:
        return self.offset + len(self.expected)


@dataclass(frozen=True)
class MediaSignature:
    """Magic-byte description of one binary format.

    All rules must match. Container formats list the outer wrapper at offset 0
    and the inner format marker at its fixed offset.
    """

    name: str
    category: Category
    mime_candidates: frozenset[str]
    byte_rules: tuple[ByteRule, ...]
    canonical_mime: str

    @property
    def prefix_length(self) -> int:
        """Number of leading bytes needed to evaluate every rule."""
        return max((rule.end for rule in self.byte_rules), default=0)
