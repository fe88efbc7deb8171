"""Dataclass integration.

``@record(regex)`` turns a dataclass into a recap record: its pattern is
compiled and checked against the field count up front, registered in the
shared registry, and the class gains ``parse``, ``is_match`` and
``from_mapping`` classmethods::

    @record(r"(?P<foo>\\w+):(?P<bar>\\d+)")
    @dataclass
    class Inner:
        foo: str
        bar: u32

    Inner.parse("abc:123")  # Inner(foo='abc', bar=123)
"""

from __future__ import annotations

import dataclasses
import re
from collections.abc import Callable, Iterable, Iterator
from typing import Any, TypeVar

from recap.binder import bind_from_string, bind_from_structured
from recap.captures import compile_pattern, extract, matches
from recap.registry import METADATA_KEY, REGISTRY, FieldOptions, build_shape
from recap.shape import RecordShape
from recap.union import TaggedUnion

T = TypeVar("T")


def record(
    regex: str | re.Pattern[str],
    *,
    rename_all: str | None = None,
) -> Callable[[type[T]], type[T]]:
    """Register a dataclass with the pattern its instances are parsed from."""

    def wrap(cls: type[T]) -> type[T]:
        REGISTRY.register(cls, regex, rename_all=rename_all)
        cls.parse = classmethod(from_str)  # type: ignore[attr-defined]
        cls.is_match = classmethod(is_match)  # type: ignore[attr-defined]
        cls.from_mapping = classmethod(from_mapping)  # type: ignore[attr-defined]
        return cls

    return wrap


def field(
    *,
    rename: str | None = None,
    delimiter: str | None = None,
    default: Any = dataclasses.MISSING,
    default_factory: Any = dataclasses.MISSING,
    **kwargs: Any,
) -> Any:
    """``dataclasses.field`` with recap options attached as metadata.

    ``rename`` sets the capture group (or document key) the field reads from;
    ``delimiter`` is a pattern that splits a sequence field instead of commas.
    """
    if delimiter is not None:
        re.compile(delimiter)
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[METADATA_KEY] = FieldOptions(rename=rename, delimiter=delimiter)
    return dataclasses.field(
        default=default, default_factory=default_factory, metadata=metadata, **kwargs
    )


def shape_of(target: Any) -> RecordShape:
    if isinstance(target, TaggedUnion):
        return target.shape
    return REGISTRY.shape(target)


def from_str(target: Any, text: str) -> Any:
    """Parse ``text`` with the pattern registered for ``target``."""
    return bind_from_string(None, shape_of(target), text)


def from_mapping(target: Any, document: Any) -> Any:
    """Build ``target`` from an already-structured value such as decoded JSON."""
    return bind_from_structured(shape_of(target), document)


def is_match(target: Any, text: str) -> bool:
    shape = shape_of(target)
    if shape.is_union:
        return any(variant.pattern.search(text) is not None for variant in shape.variants)
    if shape.pattern is None:
        raise TypeError(f"{shape.name} has no registered pattern")
    return matches(shape.pattern, text)


def from_captures(pattern: str | re.Pattern[str], text: str, target: Any = dict) -> Any:
    """Bind the named captures of ``pattern`` in ``text`` into ``target``.

    ``target`` may be any dataclass; it need not be registered and the
    pattern is not checked against its field count. With the default
    ``dict`` target the captures come back as a plain mapping.
    """
    compiled = compile_pattern(pattern)
    if target is dict:
        return extract(compiled, text).as_dict()
    if REGISTRY.is_registered(target):
        shape = REGISTRY.shape(target)
    else:
        shape = build_shape(target)
    return bind_from_string(compiled, shape, text)


def iter_records(
    target: Any,
    lines: Iterable[str],
    skip_unmatched: bool = True,
) -> Iterator[tuple[int, Any]]:
    """Yield ``(line_number, record)`` for each line that parses.

    Lines the target's pattern does not match are skipped unless
    ``skip_unmatched`` is off, in which case their binding error propagates.
    """
    for number, line in enumerate(lines, start=1):
        line = line.rstrip("\r\n")
        if skip_unmatched and not is_match(target, line):
            continue
        yield number, from_str(target, line)
