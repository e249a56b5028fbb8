"""
formbind Validator
==================

Validation entry points.

Example:
    @dataclass
    class Person:
        name: str = binding("Required", name="name")

    errors = validate(request, Person(name=""))
    errors.to_list()
    # [{"fieldNames": ["name"], "classification": "Required", "message": "Required"}]
"""

from __future__ import annotations

from typing import Any, TypeVar

from formbind.errors import Errors
from formbind.utils.logger import get_logger
from formbind.walker import StructWalker

logger = get_logger("formbind.validator")

T = TypeVar("T")


def validate(request: Any, data: Any) -> Errors:
    """
    Validate a decoded payload.

    Directive problems never abort validation; they only drop the
    affected rule. Exceptions raised by user validation hooks propagate.

    Args:
        request: Request context handed to validation hooks
        data: Dataclass instance, or list/tuple of them

    Returns:
        Errors in visit order (empty when valid)
    """
    errors = StructWalker(request).walk(data)
    logger.debug("Validated payload", type=type(data).__name__, errors=len(errors))
    return errors


def validate_or_fail(request: Any, data: T) -> T:
    """
    Validate a payload and raise on failure.

    Returns:
        The payload, with any Default values applied

    Raises:
        ValidationFailed: If any rule failed
    """
    validate(request, data).raise_if_any()
    return data
