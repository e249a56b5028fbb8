"""
formbind Validation Rules
=========================

The fixed catalog of built-in rules.

Each rule is built once from a `RuleInvocation` and keeps the raw
parameter strings. Numeric parameters are parsed when the rule runs;
a parameter that is not a number makes the rule fail instead of
raising.
"""

from __future__ import annotations

import numbers
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, fields, is_dataclass
from typing import Any, ClassVar, Dict, Optional, Set, Tuple, Type
from urllib.parse import urlsplit

from formbind.errors import (
    ERR_ALPHA_DASH,
    ERR_ALPHA_DASH_DOT,
    ERR_DEFAULT,
    ERR_EMAIL,
    ERR_EXCLUDE,
    ERR_IN,
    ERR_INCLUDE,
    ERR_MAX_SIZE,
    ERR_MIN_SIZE,
    ERR_NOT_IN,
    ERR_RANGE,
    ERR_REQUIRED,
    ERR_SIZE,
    ERR_URL,
)
from formbind.tags import RuleInvocation
from formbind.utils.logger import get_logger

logger = get_logger("formbind.rules")

_ALPHA_DASH = re.compile(r"[^A-Za-z0-9_-]")
_ALPHA_DASH_DOT = re.compile(r"[^A-Za-z0-9_.-]")
_EMAIL = re.compile(
    r"[\w!#$%&'*+/=?^_`{|}~-]+(?:\.[\w!#$%&'*+/=?^_`{|}~-]+)*"
    r"@(?:\w(?:[\w-]*\w)?\.)+[a-zA-Z0-9](?:[\w-]*\w)?"
)


def is_zero(value: Any, _seen: Optional[Set[int]] = None) -> bool:
    """
    Check whether a value is the empty value of its type.

    None, "", 0, False, empty containers, and dataclass instances whose
    fields are all zero count as zero. A dataclass met again through a
    reference cycle counts as non-zero.
    """
    if value is None:
        return True
    if isinstance(value, (str, bytes, list, tuple, dict, set, frozenset)):
        return len(value) == 0
    if isinstance(value, numbers.Number):
        return value == 0
    if is_dataclass(value) and not isinstance(value, type):
        seen = _seen if _seen is not None else set()
        if id(value) in seen:
            return False
        seen.add(id(value))
        return all(is_zero(getattr(value, f.name), seen) for f in fields(value))
    return False


def as_text(value: Any) -> str:
    """Render a value the way string rules compare it."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _length(value: Any) -> Optional[int]:
    if isinstance(value, (str, list, tuple)):
        return len(value)
    return None


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, numbers.Real):
        return value
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


@dataclass(frozen=True)
class Rule(ABC):
    """
    Abstract validation rule.

    Attributes:
        params: Raw parameters from the directive
    """

    params: Tuple[str, ...] = ()

    name: ClassVar[str] = ""
    classification: ClassVar[str] = ""

    @property
    def message(self) -> str:
        """Error message; always the rule's canonical name."""
        return self.name

    @property
    def argument(self) -> str:
        """Raw text between the parentheses."""
        return ",".join(self.params)

    def int_param(self, index: int) -> int:
        """Parse a parameter as integer (raises ValueError/IndexError)."""
        return int(self.params[index].strip())

    @abstractmethod
    def validate(self, value: Any, field: str, data: Any) -> bool:
        """
        Validate the value.

        Args:
            value: Current field value
            field: Field validation name
            data: Struct the field belongs to

        Returns:
            True if valid, False otherwise
        """
        ...

    def __call__(self, value: Any, field: str, data: Any) -> bool:
        return self.validate(value, field, data)


@dataclass(frozen=True)
class Required(Rule):
    """Value must not be the zero value."""

    name: ClassVar[str] = "Required"
    classification: ClassVar[str] = ERR_REQUIRED

    def validate(self, value: Any, field: str, data: Any) -> bool:
        return not is_zero(value)


@dataclass(frozen=True)
class AlphaDash(Rule):
    """Letters, digits, dash and underscore only."""

    name: ClassVar[str] = "AlphaDash"
    classification: ClassVar[str] = ERR_ALPHA_DASH

    def validate(self, value: Any, field: str, data: Any) -> bool:
        return not _ALPHA_DASH.search(as_text(value))


@dataclass(frozen=True)
class AlphaDashDot(Rule):
    """Letters, digits, dash, underscore and dot only."""

    name: ClassVar[str] = "AlphaDashDot"
    classification: ClassVar[str] = ERR_ALPHA_DASH_DOT

    def validate(self, value: Any, field: str, data: Any) -> bool:
        return not _ALPHA_DASH_DOT.search(as_text(value))


@dataclass(frozen=True)
class Size(Rule):
    """Exact string or sequence length."""

    name: ClassVar[str] = "Size"
    classification: ClassVar[str] = ERR_SIZE

    def validate(self, value: Any, field: str, data: Any) -> bool:
        try:
            size = self.int_param(0)
        except (IndexError, ValueError):
            return False
        length = _length(value)
        return length is None or length == size


@dataclass(frozen=True)
class MinSize(Rule):
    """Minimum string or sequence length."""

    name: ClassVar[str] = "MinSize"
    classification: ClassVar[str] = ERR_MIN_SIZE

    def validate(self, value: Any, field: str, data: Any) -> bool:
        try:
            size = self.int_param(0)
        except (IndexError, ValueError):
            return False
        length = _length(value)
        return length is None or length >= size


@dataclass(frozen=True)
class MaxSize(Rule):
    """Maximum string or sequence length."""

    name: ClassVar[str] = "MaxSize"
    classification: ClassVar[str] = ERR_MAX_SIZE

    def validate(self, value: Any, field: str, data: Any) -> bool:
        try:
            size = self.int_param(0)
        except (IndexError, ValueError):
            return False
        length = _length(value)
        return length is None or length <= size


@dataclass(frozen=True)
class Range(Rule):
    """Number between two bounds, inclusive."""

    name: ClassVar[str] = "Range"
    classification: ClassVar[str] = ERR_RANGE

    def validate(self, value: Any, field: str, data: Any) -> bool:
        try:
            low, high = self.int_param(0), self.int_param(1)
        except (IndexError, ValueError):
            return False
        number = _number(value)
        if number is None:
            return False
        return low <= number <= high


@dataclass(frozen=True)
class In(Rule):
    """Value must be one of the parameters."""

    name: ClassVar[str] = "In"
    classification: ClassVar[str] = ERR_IN

    def validate(self, value: Any, field: str, data: Any) -> bool:
        return as_text(value) in self.params


@dataclass(frozen=True)
class NotIn(Rule):
    """Value must not be one of the parameters."""

    name: ClassVar[str] = "NotIn"
    classification: ClassVar[str] = ERR_NOT_IN

    def validate(self, value: Any, field: str, data: Any) -> bool:
        return as_text(value) not in self.params


@dataclass(frozen=True)
class Include(Rule):
    """Value must contain the argument."""

    name: ClassVar[str] = "Include"
    classification: ClassVar[str] = ERR_INCLUDE

    def validate(self, value: Any, field: str, data: Any) -> bool:
        return self.argument in as_text(value)


@dataclass(frozen=True)
class Exclude(Rule):
    """Value must not contain the argument."""

    name: ClassVar[str] = "Exclude"
    classification: ClassVar[str] = ERR_EXCLUDE

    def validate(self, value: Any, field: str, data: Any) -> bool:
        return self.argument not in as_text(value)


@dataclass(frozen=True)
class Email(Rule):
    """Value must be a single email address."""

    name: ClassVar[str] = "Email"
    classification: ClassVar[str] = ERR_EMAIL

    def validate(self, value: Any, field: str, data: Any) -> bool:
        return _EMAIL.fullmatch(as_text(value)) is not None


@dataclass(frozen=True)
class Url(Rule):
    """Value must be an absolute URL with scheme and host."""

    name: ClassVar[str] = "Url"
    classification: ClassVar[str] = ERR_URL

    def validate(self, value: Any, field: str, data: Any) -> bool:
        text = as_text(value)
        if not text or any(c.isspace() for c in text):
            return False
        try:
            parts = urlsplit(text)
        except ValueError:
            return False
        return bool(parts.scheme) and bool(parts.netloc)


@dataclass(frozen=True)
class Default(Rule):
    """
    Fallback value for zero fields.

    Never fails by itself. The walker assigns `convert(field_type)` to
    the field when its value is zero.
    """

    name: ClassVar[str] = "Default"
    classification: ClassVar[str] = ERR_DEFAULT

    def validate(self, value: Any, field: str, data: Any) -> bool:
        return True

    def convert(self, target: Optional[type]) -> Any:
        """
        Convert the argument to the field's type.

        Raises:
            ValueError: Argument does not parse as the type
            TypeError: Type has no string conversion
        """
        raw = self.argument

        if target is None or target is str:
            return raw
        if target is bool:
            lowered = raw.strip().lower()
            if lowered in ("true", "1", "yes", "on"):
                return True
            if lowered in ("false", "0", "no", "off"):
                return False
            raise ValueError(f"'{raw}' is not a boolean")
        if target in (int, float):
            return target(raw.strip())

        raise TypeError(f"Cannot default a field of type {target!r}")


RULES: Dict[str, Type[Rule]] = {
    rule.name: rule
    for rule in (
        Required,
        AlphaDash,
        AlphaDashDot,
        Size,
        MinSize,
        MaxSize,
        Range,
        In,
        NotIn,
        Include,
        Exclude,
        Email,
        Url,
        Default,
    )
}


def build_rule(invocation: RuleInvocation) -> Optional[Rule]:
    """
    Create rule from an invocation.

    Returns:
        Rule instance, or None for unknown rule names
    """
    rule_class = RULES.get(invocation.name)

    if rule_class is None:
        logger.warning("Unknown rule ignored", rule=str(invocation))
        return None

    return rule_class(params=invocation.params)
