"""
formbind Struct Walker
======================

Depth-first traversal of a decoded payload.

For every struct node the walker runs each field's rules in
declaration order, descends into nested structs and lists of structs,
and finally runs the node's own validation hooks. Errors accumulate in
visit order.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Optional, Protocol, Set, Tuple, runtime_checkable

from formbind.errors import Errors, ValidationError
from formbind.rules import Default, is_zero
from formbind.schema import FieldSpec, is_struct, schema_for
from formbind.utils.logger import get_logger

logger = get_logger("formbind.walker")


@runtime_checkable
class Validatable(Protocol):
    """
    Protocol for structs with their own validation logic.

    The hook runs after the built-in rules of the struct, and its
    errors are appended after them.

    Example:
        @dataclass
        class Post:
            title: str = binding("Required", name="title")

            def validate(self, request):
                if len(self.title) < 10:
                    return [ValidationError(("title",), "LengthError", "Life is too short")]
                return []
    """

    def validate(self, request: Any) -> Optional[Iterable[ValidationError]]:
        ...


class StructWalker:
    """
    Walks one payload and collects its errors.

    A walker is used for a single validation call.
    """

    def __init__(self, request: Any = None) -> None:
        self.request = request
        self.errors = Errors()
        self._active: Set[int] = set()

    def walk(self, data: Any) -> Errors:
        """
        Validate a struct or a list/tuple of structs.

        Returns:
            Collected errors (empty for anything else)
        """
        if isinstance(data, (list, tuple)):
            for item in data:
                if is_struct(item):
                    self.walk_struct(item)
        elif is_struct(data):
            self.walk_struct(data)
        else:
            logger.debug("Nothing to validate", type=type(data).__name__)

        return self.errors

    def walk_struct(self, node: Any) -> None:
        """Validate one struct node, its nested values, then its hooks."""
        # Cyclic references are visited once per path
        if id(node) in self._active:
            return
        self._active.add(id(node))

        try:
            embedded = schema_for(type(node)).embedded_values(node)
            self._walk_fields(node, embedded)

            for value in embedded:
                self._run_hook(value)
            self._run_hook(node)
        finally:
            self._active.discard(id(node))

    def _walk_fields(self, node: Any, embedded: List[Any]) -> None:
        """
        Check every field of a node and descend into its values.

        Embedded values whose type is only known at walk time have their
        fields checked as the node's own and are added to `embedded`.
        """
        for spec in schema_for(type(node)).fields:
            owner = spec.owner(node)
            if owner is None:
                continue

            if spec.embed:
                value = getattr(owner, spec.attr, None)
                if is_struct(value) and id(value) not in self._active:
                    embedded.append(value)
                    self._active.add(id(value))
                    try:
                        embedded.extend(schema_for(type(value)).embedded_values(value))
                        self._walk_fields(value, embedded)
                    finally:
                        self._active.discard(id(value))
                continue

            value = self._check_field(spec, owner, node)
            self._descend(value)

    def _check_field(self, spec: FieldSpec, owner: Any, node: Any) -> Any:
        """Run a field's rules; returns the value after any Default."""
        value = getattr(owner, spec.attr, None)

        for rule in spec.rules:
            if isinstance(rule, Default):
                if not is_zero(value):
                    continue
                applied, value = self._apply_default(rule, spec, owner, value)
                if not applied:
                    break
                continue

            # Optional fields left empty are valid
            if not spec.required and is_zero(value):
                continue

            if not rule.validate(value, spec.name, node):
                self.errors.add([spec.name], rule.classification, rule.message)

        return value

    def _apply_default(
        self,
        rule: Default,
        spec: FieldSpec,
        owner: Any,
        value: Any,
    ) -> Tuple[bool, Any]:
        if isinstance(spec.type, type):
            target = spec.type
        elif value is not None:
            target = type(value)
        else:
            # No annotation and no value to take the type from
            logger.debug("Default not applied", field=spec.name, reason="unknown field type")
            self.errors.add([spec.name], rule.classification, rule.message)
            return False, value

        try:
            default = rule.convert(target)
            setattr(owner, spec.attr, default)
        except (ValueError, TypeError, AttributeError) as e:
            logger.debug("Default not applied", field=spec.name, reason=str(e))
            self.errors.add([spec.name], rule.classification, rule.message)
            return False, value

        logger.debug("Applied default", field=spec.name, value=default)
        return True, default

    def _descend(self, value: Any) -> None:
        if is_struct(value):
            self.walk_struct(value)
        elif isinstance(value, (list, tuple)):
            for item in value:
                if is_struct(item):
                    self.walk_struct(item)
                else:
                    self._run_hook(item)
        else:
            self._run_hook(value)

    def _run_hook(self, target: Any) -> None:
        # Classes expose validate too, but only instances are hooked
        if isinstance(target, type) or not isinstance(target, Validatable):
            return

        result = target.validate(self.request)
        if result:
            self.errors.extend(result)
