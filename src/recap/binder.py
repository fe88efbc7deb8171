"""Generic record binding.

One binder serves two kinds of input. ``CaptureSource`` wraps the named
captures of a single pattern match; ``DocumentSource`` wraps an
already-structured mapping (for example a decoded JSON object). Both expose
the same key lookup, so renames, ``rename_all`` rules and defaults behave the
same whichever way a record is built.

Nested record fields are bound from text by re-matching the nested record's
own pattern against the captured value, or from a mapping by binding it
directly. Tagged unions try each variant pattern in order and commit to the
first that matches.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol

from recap.captures import CaptureSet, compile_pattern, extract
from recap.errors import (
    CoercionFailure,
    MissingField,
    NoMatch,
    NoVariantMatched,
    RecapError,
    StructuralMismatch,
)
from recap.registry import REGISTRY
from recap.scalars import ScalarType
from recap.sequences import split_spans
from recap.shape import (
    FieldSpec,
    OptionalType,
    RecordShape,
    RecordType,
    SequenceType,
    UnionType,
    ValueType,
)

MISSING = object()
ROOT = "<root>"


@dataclass(frozen=True)
class Text:
    """A string value plus where it sits in the original input."""

    value: str
    source: str
    start: int = 0

    @classmethod
    def of(cls, value: str) -> Text:
        return cls(value, value, 0)


class FieldSource(Protocol):
    def lookup(self, key: str) -> Any:
        """Return the value stored under ``key`` or ``MISSING``."""

    def missing(self, spec: FieldSpec, shape: RecordShape) -> RecapError:
        """Error for a required field that has no value."""


class CaptureSource:
    def __init__(self, captures: CaptureSet) -> None:
        self.captures = captures

    def lookup(self, key: str) -> Any:
        capture = self.captures.get(key)
        if capture is None:
            return MISSING
        return Text(capture.value, self.captures.source, capture.start)

    def missing(self, spec: FieldSpec, shape: RecordShape) -> RecapError:
        return MissingField(spec.key, shape.name)


class DocumentSource:
    def __init__(self, document: Mapping[str, Any]) -> None:
        self.document = document

    def lookup(self, key: str) -> Any:
        if key in self.document:
            return self.document[key]
        return MISSING

    def missing(self, spec: FieldSpec, shape: RecordShape) -> RecapError:
        return StructuralMismatch(spec.key, shape.name, "required field missing from document")


def bind(shape: RecordShape, source: FieldSource) -> Any:
    """Bind every field of ``shape`` from ``source``; stop at the first error."""
    values: dict[str, Any] = {}
    for spec in shape.fields:
        value = source.lookup(spec.key)
        if value is MISSING:
            if spec.default is not None:
                values[spec.name] = spec.default()
            elif isinstance(spec.kind, OptionalType):
                values[spec.name] = None
            else:
                raise source.missing(spec, shape)
            continue
        values[spec.name] = resolve(spec, spec.kind, value)
    return shape.factory(**values)


def resolve(spec: FieldSpec, kind: ValueType, value: Any) -> Any:
    """Turn one present field value into the Python value ``kind`` expects."""
    if isinstance(kind, OptionalType):
        if value is None:
            return None
        return resolve(spec, kind.inner, value)
    if isinstance(value, str):
        value = Text.of(value)
    if isinstance(kind, ScalarType):
        if isinstance(value, Text):
            return kind.coerce(spec.key, value.value, source=value.source, start=value.start)
        return kind.convert(spec.key, value)
    if isinstance(kind, SequenceType):
        return resolve_sequence(spec, kind, value)
    if isinstance(kind, RecordType):
        return resolve_record(spec.key, REGISTRY.shape(kind.cls), value)
    if isinstance(kind, UnionType):
        return resolve_union_value(spec.key, REGISTRY.union_shape(kind.variants), value)
    raise TypeError(f"Unknown value kind {kind!r}")


def resolve_sequence(spec: FieldSpec, kind: SequenceType, value: Any) -> Any:
    element = kind.element
    if isinstance(value, Text):
        text = value.value
        return kind.container(
            element.coerce(spec.key, text[lo:hi], source=value.source, start=value.start + lo)
            for lo, hi in split_spans(text, spec.delimiter)
        )
    if isinstance(value, (list, tuple)):
        return kind.container(element.convert(spec.key, item) for item in value)
    raise CoercionFailure(
        spec.key, value, f"sequence of {element.name}", f"invalid type: {type(value).__name__}"
    )


def resolve_record(field: str, shape: RecordShape, value: Any) -> Any:
    factory = shape.factory
    if isinstance(factory, type) and isinstance(value, factory):
        return value
    if isinstance(value, Text):
        return bind_nested_text(field, shape, value)
    if isinstance(value, Mapping):
        return bind(shape, DocumentSource(value))
    raise StructuralMismatch(
        field, shape.name, f"expected text or a mapping, found {type(value).__name__}"
    )


def bind_nested_text(field: str, shape: RecordShape, text: Text) -> Any:
    """Re-match a captured value against the nested record's own pattern.

    The outer pattern already matched, so a nested pattern that does not is
    reported against the parent field rather than as ``NoMatch``.
    """
    if shape.pattern is None:
        raise StructuralMismatch(field, shape.name, "record has no pattern to parse text with")
    try:
        captures = extract(shape.pattern, text.value, source=text.source, offset=text.start)
    except NoMatch as exc:
        raise CoercionFailure(field, text.value, shape.name, str(exc)) from exc
    return bind(shape, CaptureSource(captures))


def resolve_union(shape: RecordShape, text: Text, field: str | None = None) -> Any:
    """Bind the first variant whose pattern matches ``text``.

    Once a variant matches it is final: binding errors inside it propagate
    instead of falling through to later variants.
    """
    for variant in shape.variants:
        if not variant.shape.fields:
            if variant.pattern.search(text.value) is not None:
                return variant.shape.factory()
            continue
        try:
            captures = extract(variant.pattern, text.value, source=text.source, offset=text.start)
        except NoMatch:
            continue
        return bind(variant.shape, CaptureSource(captures))
    raise NoVariantMatched(text.value, shape.name, [v.name for v in shape.variants], field=field)


def resolve_union_value(field: str, shape: RecordShape, value: Any) -> Any:
    if isinstance(value, str):
        value = Text.of(value)
    if isinstance(value, Text):
        return resolve_union(shape, value, field=field)
    for variant in shape.variants:
        factory = variant.shape.factory
        if isinstance(factory, type) and isinstance(value, factory):
            return value
    if isinstance(value, Mapping) and len(value) == 1:
        ((tag, inner),) = value.items()
        for variant in shape.variants:
            if variant.name == tag:
                return resolve_record(field, variant.shape, {} if inner is None else inner)
    raise StructuralMismatch(
        field,
        shape.name,
        "expected text or a single-key mapping naming one of "
        + ", ".join(v.name for v in shape.variants),
    )


def bind_captures(shape: RecordShape, captures: CaptureSet) -> Any:
    return bind(shape, CaptureSource(captures))


def bind_from_string(
    pattern: str | re.Pattern[str] | None,
    shape: RecordShape,
    text: str,
) -> Any:
    """Match ``text`` and bind the captures into ``shape``.

    For a tagged-union shape the variants' own patterns are used and
    ``pattern`` is ignored; otherwise ``pattern`` (or the shape's registered
    pattern when ``None``) must match or ``NoMatch`` is raised.
    """
    if shape.is_union:
        return resolve_union(shape, Text.of(text))
    compiled = compile_pattern(pattern) if pattern is not None else shape.pattern
    if compiled is None:
        raise TypeError(f"{shape.name} has no pattern; pass one explicitly")
    return bind(shape, CaptureSource(extract(compiled, text)))


def bind_from_structured(shape: RecordShape, document: Any) -> Any:
    """Bind ``shape`` directly from an already-structured value."""
    if shape.is_union:
        return resolve_union_value(ROOT, shape, document)
    if isinstance(document, str):
        return bind_from_string(None, shape, document)
    if not isinstance(document, Mapping):
        raise StructuralMismatch(
            ROOT, shape.name, f"expected a mapping, found {type(document).__name__}"
        )
    return bind(shape, DocumentSource(document))
