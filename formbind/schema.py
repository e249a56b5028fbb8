"""
formbind Schemas
================

Per-type field tables, built once from dataclass metadata and cached.

A schema lists every validated field of a dataclass in declaration
order, with its reported name and its parsed rules. Fields of embedded
dataclasses are inlined into the parent's list, so the walker never
has to special-case them.

Example:
    @dataclass
    class Person:
        name: str = binding("Required", name="name")
        email: str = binding("Email", name="email")

    schema_for(Person).fields[0].name  # "name"
"""

from __future__ import annotations

import dataclasses
import sys
import types
import typing
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

from formbind.config import get_settings
from formbind.rules import Required, Rule, build_rule
from formbind.tags import parse_directive
from formbind.utils.logger import get_logger

logger = get_logger("formbind.schema")

EMBED_KEY = "embed"
IGNORE_NAME = "-"

_UNION_TYPES = tuple(t for t in (Union, getattr(types, "UnionType", None)) if t is not None)


@dataclass(frozen=True)
class FieldSpec:
    """
    One validated field.

    Attributes:
        path: Attribute chain from the struct to the field's owner
        attr: Attribute name on the owner
        name: Name reported in errors
        rules: Rules in declaration order
        type: Declared type (Optional unwrapped), if resolvable
        required: Whether a Required rule is present
        embed: Embedded struct whose type is only known at walk time; its
            value's fields are inlined when the walker reaches it
    """

    path: Tuple[str, ...]
    attr: str
    name: str
    rules: Tuple[Rule, ...]
    type: Optional[Any] = None
    required: bool = False
    embed: bool = False

    def owner(self, node: Any) -> Any:
        """
        Resolve the object holding this field.

        Returns:
            The owner, or None when an embedded struct on the way is None
        """
        current = node
        for attr in self.path:
            current = getattr(current, attr, None)
            if current is None:
                return None
        return current


@dataclass(frozen=True)
class StructSchema:
    """
    Validation schema of a dataclass.

    Attributes:
        cls: Described class
        fields: Validated fields, embedded ones inlined
        embedded: Paths to embedded struct values, in declaration order
    """

    cls: type
    fields: Tuple[FieldSpec, ...]
    embedded: Tuple[Tuple[str, ...], ...] = ()

    def embedded_values(self, node: Any) -> List[Any]:
        """Get the embedded struct values of a node that are not None."""
        values = []
        for path in self.embedded:
            current = node
            for attr in path:
                current = getattr(current, attr, None)
                if current is None:
                    break
            if current is not None:
                values.append(current)
        return values


# Schema cache keyed by class
_schemas: Dict[type, StructSchema] = {}


def binding(
    rules: str = "",
    *,
    name: Optional[str] = None,
    embed: bool = False,
    **kwargs: Any,
) -> Any:
    """
    Declare a validated dataclass field.

    Args:
        rules: Directive, e.g. "Required;MinSize(5)"
        name: Name reported in errors ("-" ignores the field)
        embed: Inline this dataclass field's own fields into the parent
        **kwargs: Passed to dataclasses.field (default, default_factory, ...)

    Returns:
        dataclasses.Field
    """
    settings = get_settings()
    metadata = dict(kwargs.pop("metadata", None) or {})

    if rules:
        metadata[settings.tag_key] = rules
    if name is not None:
        metadata[settings.name_keys[0] if settings.name_keys else "form"] = name
    if embed:
        metadata[EMBED_KEY] = True

    if "default" not in kwargs and "default_factory" not in kwargs:
        kwargs["default"] = None

    return dataclasses.field(metadata=metadata, **kwargs)


def unwrap_optional(annotation: Any) -> Any:
    """Strip None from Optional[X] / X | None."""
    if typing.get_origin(annotation) in _UNION_TYPES:
        args = [a for a in typing.get_args(annotation) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def _resolve_hints(cls: type) -> Dict[str, Any]:
    """
    Resolve field annotations of a class.

    When the whole class does not resolve (a local or TYPE_CHECKING-only
    name in one annotation), each field is resolved on its own so only
    the unresolvable ones are lost.
    """
    try:
        return typing.get_type_hints(cls)
    except (NameError, TypeError, AttributeError):
        pass

    namespaces = []
    for klass in cls.__mro__:
        module = sys.modules.get(klass.__module__)
        namespace = dict(vars(module)) if module is not None else {}
        namespace.setdefault(klass.__name__, klass)
        namespaces.append(namespace)

    hints: Dict[str, Any] = {}

    for f in dataclasses.fields(cls):
        if not isinstance(f.type, str):
            hints[f.name] = f.type
            continue

        for namespace in namespaces:
            try:
                hints[f.name] = eval(f.type, namespace)
                break
            except (NameError, SyntaxError, TypeError, AttributeError):
                continue
        else:
            logger.debug(
                "Could not resolve annotation",
                cls=cls.__qualname__,
                field=f.name,
                annotation=f.type,
            )

    return hints


def _field_name(f: dataclasses.Field, name_keys: Tuple[str, ...]) -> str:
    for key in name_keys:
        value = f.metadata.get(key)
        if value:
            return value
    return f.name


def _build(cls: type) -> StructSchema:
    settings = get_settings()
    hints = _resolve_hints(cls)

    specs: List[FieldSpec] = []
    embedded: List[Tuple[str, ...]] = []

    for f in dataclasses.fields(cls):
        if f.name.startswith("_"):
            continue

        name = _field_name(f, settings.name_keys)
        if name == IGNORE_NAME:
            continue

        declared = hints.get(f.name, f.type if isinstance(f.type, type) else None)
        declared = unwrap_optional(declared)

        if f.metadata.get(EMBED_KEY):
            is_struct_type = isinstance(declared, type) and dataclasses.is_dataclass(declared)

            if (is_struct_type or declared is None) and f.metadata.get(settings.tag_key):
                logger.warning(
                    "Directive on embedded field ignored",
                    cls=cls.__qualname__,
                    field=f.name,
                    directive=f.metadata.get(settings.tag_key),
                )

            if declared is None:
                logger.debug("Embedded field type resolved at walk time", cls=cls.__qualname__, field=f.name)
                specs.append(FieldSpec(path=(), attr=f.name, name=name, rules=(), embed=True))
                continue

            if is_struct_type:
                inner = schema_for(declared)
                embedded.append((f.name,))
                embedded.extend((f.name,) + path for path in inner.embedded)
                specs.extend(
                    dataclasses.replace(spec, path=(f.name,) + spec.path)
                    for spec in inner.fields
                )
                continue
            logger.warning(
                "Embedded field is not a dataclass type, validating as nested",
                cls=cls.__qualname__,
                field=f.name,
            )

        rules = []
        for invocation in parse_directive(f.metadata.get(settings.tag_key)):
            rule = build_rule(invocation)
            if rule is not None:
                rules.append(rule)

        specs.append(
            FieldSpec(
                path=(),
                attr=f.name,
                name=name,
                rules=tuple(rules),
                type=declared,
                required=any(isinstance(r, Required) for r in rules),
            )
        )

    logger.debug("Built schema", cls=cls.__qualname__, fields=len(specs))
    return StructSchema(cls=cls, fields=tuple(specs), embedded=tuple(embedded))


def schema_for(cls: type) -> StructSchema:
    """
    Get the schema of a dataclass, building it on first use.

    Raises:
        TypeError: If cls is not a dataclass
    """
    schema = _schemas.get(cls)
    if schema is not None:
        return schema

    if not (isinstance(cls, type) and dataclasses.is_dataclass(cls)):
        raise TypeError(f"{cls!r} is not a dataclass")

    schema = _build(cls)
    _schemas[cls] = schema
    return schema


def is_struct(value: Any) -> bool:
    """Check whether a value is a dataclass instance."""
    return dataclasses.is_dataclass(value) and not isinstance(value, type)


def clear_schema_cache() -> None:
    """Drop all cached schemas."""
    _schemas.clear()
