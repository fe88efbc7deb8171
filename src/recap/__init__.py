"""Deserialize typed records from regex named capture groups."""

from recap.binder import bind_captures, bind_from_string, bind_from_structured
from recap.captures import Capture, CaptureSet, compile_pattern, extract, matches
from recap.errors import (
    CoercionFailure,
    MissingField,
    NoMatch,
    NoVariantMatched,
    RecapError,
    StructuralMismatch,
)
from recap.record import (
    field,
    from_captures,
    from_mapping,
    from_str,
    is_match,
    iter_records,
    record,
)
from recap.registry import REGISTRY, PatternRegistry
from recap.scalars import TextSlice, char, coerce, i8, i16, i32, i64, u8, u16, u32, u64
from recap.sequences import expand_sequence
from recap.union import TaggedUnion

__version__ = "0.1.0"

__all__ = [
    "REGISTRY",
    "Capture",
    "CaptureSet",
    "CoercionFailure",
    "MissingField",
    "NoMatch",
    "NoVariantMatched",
    "PatternRegistry",
    "RecapError",
    "StructuralMismatch",
    "TaggedUnion",
    "TextSlice",
    "bind_captures",
    "bind_from_string",
    "bind_from_structured",
    "char",
    "coerce",
    "compile_pattern",
    "expand_sequence",
    "extract",
    "field",
    "from_captures",
    "from_mapping",
    "from_str",
    "i8",
    "i16",
    "i32",
    "i64",
    "is_match",
    "iter_records",
    "matches",
    "record",
    "u8",
    "u16",
    "u32",
    "u64",
]
