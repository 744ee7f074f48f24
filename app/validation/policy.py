from collections.abc import Iterable, Mapping
from types import MappingProxyType

from app.processor.exceptions import FileTooLargeError
from app.signatures.models import Category
from app.validation.errors import too_large


class SizePolicy:
    """Per-category size ceilings in bytes. The ceiling itself is allowed."""

    def __init__(self, limits: Mapping[Category, int]) -> None:
        for category, limit in limits.items():
            if limit < 0:
                raise ValueError(f"size limit for '{category.value}' must be non-negative")
        self._limits = MappingProxyType(dict(limits))

    @property
    def limits(self) -> Mapping[Category, int]:
        return self._limits

    def limit_for(self, category: Category) -> int:
        try:
            return self._limits[category]
        except KeyError:
            raise ValueError(f"No size limit configured for '{category.value}'") from None

    def check_size(self, category: Category, byte_length: int) -> None:
        """Raise FileTooLargeError when ``byte_length`` exceeds the category ceiling."""
        limit = self.limit_for(category)
        if byte_length > limit:
            raise FileTooLargeError(too_large(category, byte_length, limit))


class CategoryPolicy:
    """Allowlist of categories the pipeline accepts."""

    def __init__(self, accepted: Iterable[Category]) -> None:
        self._accepted = frozenset(accepted)

    @property
    def accepted(self) -> frozenset[Category]:
        return self._accepted

    def is_accepted(self, category: Category) -> bool:
        return category in self._accepted
