"""
formbind Error Model
====================

Structured validation errors.

A validation run produces an ordered `Errors` sequence of immutable
`ValidationError` records. Order is the order fields were visited, then
the order rules were declared on each field. Errors are never sorted or
deduplicated.

Example:
    errors = validate(request, post)

    if errors.has(ERR_REQUIRED):
        ...

    payload = errors.to_json()
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Union, overload

import orjson


# Classifications
ERR_REQUIRED = "Required"
ERR_ALPHA_DASH = "AlphaDashError"
ERR_ALPHA_DASH_DOT = "AlphaDashDot"
ERR_SIZE = "Size"
ERR_MIN_SIZE = "MinSize"
ERR_MAX_SIZE = "MaxSize"
ERR_RANGE = "Range"
ERR_EMAIL = "Email"
ERR_URL = "Url"
ERR_IN = "In"
ERR_NOT_IN = "NotIn"
ERR_INCLUDE = "Include"
ERR_EXCLUDE = "Exclude"
ERR_DEFAULT = "Default"


@dataclass(frozen=True)
class ValidationError:
    """
    A single validation failure.

    Attributes:
        field_names: Fields the error applies to (usually one)
        classification: Error kind, usually the rule name
        message: Short message
    """

    field_names: tuple
    classification: str
    message: str

    def __post_init__(self) -> None:
        # Lists are accepted for convenience but stored as a tuple
        if not isinstance(self.field_names, tuple):
            object.__setattr__(self, "field_names", tuple(self.field_names))

    def fields(self) -> List[str]:
        """Get field names."""
        return list(self.field_names)

    def kind(self) -> str:
        """Get classification."""
        return self.classification

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "fieldNames": list(self.field_names),
            "classification": self.classification,
            "message": self.message,
        }

    def __str__(self) -> str:
        return self.message


class Errors:
    """
    Ordered collection of validation errors.

    Behaves like a read-only list for iteration, indexing and
    comparison, with `add` for appending new errors.
    """

    __slots__ = ("_items",)

    def __init__(self, items: Optional[Iterable[ValidationError]] = None) -> None:
        self._items: List[ValidationError] = list(items or [])

    def add(
        self,
        field_names: Sequence[str],
        classification: str,
        message: str,
    ) -> "Errors":
        """
        Append a new error.

        Args:
            field_names: Fields the error applies to
            classification: Error kind
            message: Error message

        Returns:
            Self for chaining
        """
        self._items.append(ValidationError(tuple(field_names), classification, message))
        return self

    def append(self, error: ValidationError) -> None:
        """Append an existing error."""
        self._items.append(error)

    def extend(self, errors: Iterable[ValidationError]) -> None:
        """Append several errors, keeping their order."""
        self._items.extend(errors)

    def has(self, classification: str) -> bool:
        """Check if any error has the classification."""
        return any(e.classification == classification for e in self._items)

    def for_field(self, name: str) -> List[ValidationError]:
        """Get errors that mention a field."""
        return [e for e in self._items if name in e.field_names]

    def to_list(self) -> List[Dict[str, Any]]:
        """Convert to list of dictionaries."""
        return [e.to_dict() for e in self._items]

    def to_json(self) -> bytes:
        """Serialize to JSON bytes."""
        return orjson.dumps(self.to_list())

    def raise_if_any(self) -> None:
        """Raise ValidationFailed if not empty."""
        if self._items:
            raise ValidationFailed(self)

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __iter__(self) -> Iterator[ValidationError]:
        return iter(self._items)

    @overload
    def __getitem__(self, index: int) -> ValidationError: ...

    @overload
    def __getitem__(self, index: slice) -> "Errors": ...

    def __getitem__(self, index: Union[int, slice]) -> Union[ValidationError, "Errors"]:
        if isinstance(index, slice):
            return Errors(self._items[index])
        return self._items[index]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Errors):
            return self._items == other._items
        if isinstance(other, (list, tuple)):
            return self._items == list(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"Errors({self._items!r})"


class ValidationFailed(Exception):
    """
    Validation failed exception.

    Raised by `validate_or_fail` and `Errors.raise_if_any`.
    """

    def __init__(self, errors: Errors, message: str = "Validation failed") -> None:
        super().__init__(message)
        self.errors = errors

    def __str__(self) -> str:
        lines = [
            f"  - {', '.join(e.field_names)}: {e.classification} ({e.message})"
            for e in self.errors
        ]
        if not lines:
            return "Validation failed"
        return "Validation failed:\n" + "\n".join(lines)

    def first(self, field_name: Optional[str] = None) -> Optional[ValidationError]:
        """Get first error, optionally for one field."""
        if field_name:
            matches = self.errors.for_field(field_name)
            return matches[0] if matches else None
        return self.errors[0] if self.errors else None
