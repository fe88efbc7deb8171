"""Tagged unions of record types.

A ``TaggedUnion`` is an ordered list of ``@record`` variants. Parsing tries
each variant's pattern in declaration order and binds the first one that
matches; ordering is the contract, there is no most-specific-match inference.
The same behaviour applies to fields annotated ``A | B`` with record types.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from recap.binder import bind_from_string, bind_from_structured
from recap.registry import REGISTRY
from recap.shape import RecordShape


class TaggedUnion:
    def __init__(self, name: str, variants: Sequence[type]) -> None:
        if not variants:
            raise ValueError(f"Tagged union {name} needs at least one variant")
        self.name = name
        self.variants = tuple(variants)

    @property
    def shape(self) -> RecordShape:
        return REGISTRY.union_shape(self.variants, name=self.name)

    @property
    def variant_names(self) -> list[str]:
        return [cls.__name__ for cls in self.variants]

    def parse(self, text: str) -> Any:
        return bind_from_string(None, self.shape, text)

    def from_mapping(self, document: Any) -> Any:
        return bind_from_structured(self.shape, document)

    def is_match(self, text: str) -> bool:
        return any(variant.pattern.search(text) is not None for variant in self.shape.variants)

    def __repr__(self) -> str:
        return f"TaggedUnion({self.name!r}, [{', '.join(self.variant_names)}])"
