"""Pattern registry and shape derivation.

Record types register their pattern once; the registry compiles it, checks
that it declares one named group per field and keeps the compiled pattern
for every later bind. Shapes are derived from dataclass annotations on first
use and memoized, keyed by the type itself.
"""

from __future__ import annotations

import dataclasses
import re
import threading
import typing
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from recap.captures import compile_pattern
from recap.shape import FieldSpec, RecordShape, Variant, classify, is_record_type, rename_key

METADATA_KEY = "recap"


@dataclass(frozen=True)
class FieldOptions:
    rename: str | None = None
    delimiter: str | None = None


def init_fields(cls: type) -> list[dataclasses.Field]:
    return [f for f in dataclasses.fields(cls) if f.init]


def validate_groups(cls: type, pattern: re.Pattern[str]) -> None:
    """Require exactly one named group per init field of ``cls``."""
    expected = len(init_fields(cls))
    found = len(pattern.groupindex)
    if found != expected:
        raise TypeError(
            f"Could not register {cls.__name__}: expected a pattern with {expected} named "
            f"capture groups to align with its fields but found {found}"
        )


def _default_supplier(f: dataclasses.Field) -> Callable[[], Any] | None:
    if f.default_factory is not dataclasses.MISSING:
        return f.default_factory
    if f.default is not dataclasses.MISSING:
        value = f.default
        return lambda: value
    return None


def build_shape(
    cls: type,
    pattern: re.Pattern[str] | None = None,
    rename_all: str | None = None,
) -> RecordShape:
    """Derive a ``RecordShape`` from a dataclass and its annotations."""
    if not is_record_type(cls):
        raise TypeError(f"{cls!r} is not a dataclass; recap binds dataclasses only")
    hints = typing.get_type_hints(cls, include_extras=True)
    specs: list[FieldSpec] = []
    for f in init_fields(cls):
        options = f.metadata.get(METADATA_KEY) or FieldOptions()
        specs.append(
            FieldSpec(
                name=f.name,
                kind=classify(hints[f.name]),
                key=options.rename or rename_key(f.name, rename_all),
                default=_default_supplier(f),
                delimiter=re.compile(options.delimiter) if options.delimiter else None,
            )
        )
    return RecordShape(name=cls.__name__, factory=cls, fields=tuple(specs), pattern=pattern)


class PatternRegistry:
    """Compiled patterns and derived shapes, keyed by record type."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._patterns: dict[type, re.Pattern[str]] = {}
        self._rename_all: dict[type, str | None] = {}
        self._shapes: dict[type, RecordShape] = {}
        self._unions: dict[tuple[tuple[type, ...], str | None], RecordShape] = {}

    def register(
        self,
        cls: type,
        regex: str | re.Pattern[str],
        rename_all: str | None = None,
    ) -> re.Pattern[str]:
        if not is_record_type(cls):
            raise TypeError(f"{cls!r} is not a dataclass; recap binds dataclasses only")
        compiled = compile_pattern(regex)
        validate_groups(cls, compiled)
        if rename_all is not None:
            rename_key("", rename_all)  # reject unknown rules up front
        try:
            shape: RecordShape | None = build_shape(cls, compiled, rename_all)
        except NameError:
            shape = None  # forward references resolve on first use
        with self._lock:
            self._patterns[cls] = compiled
            self._rename_all[cls] = rename_all
            if shape is None:
                self._shapes.pop(cls, None)
            else:
                self._shapes[cls] = shape
            self._unions.clear()
        return compiled

    def unregister(self, cls: type) -> None:
        with self._lock:
            self._patterns.pop(cls, None)
            self._rename_all.pop(cls, None)
            self._shapes.pop(cls, None)
            self._unions.clear()

    def is_registered(self, cls: type) -> bool:
        return cls in self._patterns

    def pattern(self, cls: type) -> re.Pattern[str] | None:
        return self._patterns.get(cls)

    def shape(self, cls: type) -> RecordShape:
        shape = self._shapes.get(cls)
        if shape is None:
            with self._lock:
                shape = self._shapes.get(cls)
                if shape is None:
                    shape = build_shape(cls, self._patterns.get(cls), self._rename_all.get(cls))
                    self._shapes[cls] = shape
        return shape

    def union_shape(self, variants: Sequence[type], name: str | None = None) -> RecordShape:
        """Shape of a tagged union whose variants are tried in the given order."""
        key = (tuple(variants), name)
        shape = self._unions.get(key)
        if shape is None:
            with self._lock:
                shape = self._unions.get(key)
                if shape is None:
                    shape = self._build_union(key[0], name)
                    self._unions[key] = shape
        return shape

    def _build_union(self, variants: tuple[type, ...], name: str | None) -> RecordShape:
        entries: list[Variant] = []
        for cls in variants:
            pattern = self._patterns.get(cls)
            if pattern is None:
                raise TypeError(
                    f"Union variant {cls.__name__} has no registered pattern; decorate it "
                    "with @record(...)"
                )
            entries.append(Variant(name=cls.__name__, pattern=pattern, shape=self.shape(cls)))
        label = name or " | ".join(cls.__name__ for cls in variants)
        return RecordShape(name=label, factory=_no_factory(label), variants=tuple(entries))

    def clear(self) -> None:
        with self._lock:
            self._patterns.clear()
            self._rename_all.clear()
            self._shapes.clear()
            self._unions.clear()


def _no_factory(label: str) -> Callable[..., Any]:
    def factory(**_values: Any) -> Any:
        raise TypeError(f"{label} is a tagged union; bind one of its variants instead")

    return factory


REGISTRY = PatternRegistry()
