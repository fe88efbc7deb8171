"""Record shapes: what each field of a target type expects.

A ``RecordShape`` is the ordered list of ``FieldSpec`` entries for one target
type. Each field carries a value kind (scalar, sequence, optional, nested
record or tagged union) derived from its annotation by ``classify``.
"""

from __future__ import annotations

import dataclasses
import re
import types
from collections.abc import Callable
from dataclasses import dataclass
from typing import Annotated, Any, Union, get_args, get_origin

from recap.scalars import ANY, ScalarType, scalar_for

RENAME_RULES = (
    "lowercase",
    "UPPERCASE",
    "PascalCase",
    "camelCase",
    "snake_case",
    "SCREAMING_SNAKE_CASE",
    "kebab-case",
    "SCREAMING-KEBAB-CASE",
)


@dataclass(frozen=True)
class SequenceType:
    element: ScalarType
    container: type = list


@dataclass(frozen=True)
class OptionalType:
    inner: ValueType


@dataclass(frozen=True)
class RecordType:
    cls: type


@dataclass(frozen=True)
class UnionType:
    variants: tuple[type, ...]


ValueType = Union[ScalarType, SequenceType, OptionalType, RecordType, UnionType]


@dataclass(frozen=True)
class FieldSpec:
    name: str
    kind: ValueType
    key: str
    default: Callable[[], Any] | None = None
    delimiter: re.Pattern[str] | None = None

    @property
    def shape(self) -> str:
        return describe_kind(self.kind)


@dataclass(frozen=True)
class Variant:
    name: str
    pattern: re.Pattern[str]
    shape: RecordShape


@dataclass(frozen=True)
class RecordShape:
    name: str
    factory: Callable[..., Any]
    fields: tuple[FieldSpec, ...] = ()
    pattern: re.Pattern[str] | None = None
    variants: tuple[Variant, ...] = ()

    @property
    def is_union(self) -> bool:
        return bool(self.variants)


def describe_kind(kind: ValueType) -> str:
    if isinstance(kind, ScalarType):
        return "scalar"
    if isinstance(kind, SequenceType):
        return "sequence"
    if isinstance(kind, OptionalType):
        return "optional"
    if isinstance(kind, RecordType):
        return "record"
    return "union"


def rename_key(name: str, rule: str | None) -> str:
    """Apply a ``rename_all`` rule to a snake_case attribute name."""
    if rule is None:
        return name
    words = [word for word in name.split("_") if word]
    if rule == "lowercase":
        return name.lower()
    if rule == "UPPERCASE":
        return name.upper()
    if rule == "PascalCase":
        return "".join(word.capitalize() for word in words)
    if rule == "camelCase":
        pascal = "".join(word.capitalize() for word in words)
        return pascal[:1].lower() + pascal[1:]
    if rule == "snake_case":
        return name
    if rule == "SCREAMING_SNAKE_CASE":
        return name.upper()
    if rule == "kebab-case":
        return name.replace("_", "-")
    if rule == "SCREAMING-KEBAB-CASE":
        return name.replace("_", "-").upper()
    raise ValueError(f"Unknown rename rule {rule!r}; expected one of {RENAME_RULES}")


def is_record_type(target: Any) -> bool:
    return isinstance(target, type) and dataclasses.is_dataclass(target)


def classify(annotation: Any) -> ValueType:
    """Map a resolved field annotation to its value kind."""
    metadata: tuple[Any, ...] = ()
    if get_origin(annotation) is Annotated:
        annotation, *extra = get_args(annotation)
        metadata = tuple(extra)

    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = get_args(annotation)
        members = tuple(arg for arg in args if arg is not type(None))
        if len(members) < len(args):
            inner = members[0] if len(members) == 1 else Union[members]
            return OptionalType(classify(inner))
        if all(is_record_type(member) for member in members):
            return UnionType(members)
        raise TypeError(f"Unsupported union {annotation!r}: only unions of record types bind")

    if origin in (list, tuple) or annotation in (list, tuple):
        container = origin or annotation
        args = get_args(annotation)
        if container is tuple and args and not (len(args) == 2 and args[1] is Ellipsis):
            raise TypeError(f"Unsupported tuple {annotation!r}: use tuple[T, ...]")
        element = classify(args[0]) if args else ANY
        if not isinstance(element, ScalarType):
            raise TypeError(f"Unsupported sequence {annotation!r}: elements must be scalars")
        return SequenceType(element=element, container=container)

    if is_record_type(annotation):
        return RecordType(annotation)

    scalar = scalar_for(annotation, metadata)
    if scalar is None:
        raise TypeError(f"Unsupported field type {annotation!r}")
    return scalar
