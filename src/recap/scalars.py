"""Scalar coercion from captured text.

Each supported target type has a parser implementing that type's canonical
textual grammar. Parsers never trim, fold case or apply locale rules, so
``" 1"`` is not an integer and ``"True"`` is not a boolean. Failures surface
as ``CoercionFailure`` tagged with the field the text came from.
"""

from __future__ import annotations

import enum
import re
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Annotated, Any, get_args, get_origin

from recap.errors import CoercionFailure

INT_RE = re.compile(r"[+-]?[0-9]+")
FLOAT_RE = re.compile(
    r"[+-]?(?:inf|infinity|nan|[0-9]+(?:\.[0-9]*)?(?:[eE][+-]?[0-9]+)?|\.[0-9]+(?:[eE][+-]?[0-9]+)?)",
    re.IGNORECASE,
)


class TextSlice:
    """A borrowed view of ``source[start:end]``.

    Bound instead of ``str`` when a field asks for borrowed text; the slice
    keeps a reference to the original input rather than a copy of the span.
    """

    __slots__ = ("source", "start", "end")

    def __init__(self, source: str, start: int = 0, end: int | None = None) -> None:
        self.source = source
        self.start = start
        self.end = len(source) if end is None else end

    def __str__(self) -> str:
        return self.source[self.start : self.end]

    def __len__(self) -> int:
        return self.end - self.start

    def __eq__(self, other: object) -> bool:
        if isinstance(other, TextSlice):
            return str(self) == str(other)
        if isinstance(other, str):
            return str(self) == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(str(self))

    def __repr__(self) -> str:
        return f"TextSlice({str(self)!r}, start={self.start}, end={self.end})"


@dataclass(frozen=True)
class IntRange:
    low: int | None = None
    high: int | None = None


@dataclass(frozen=True)
class Char:
    """Marks a ``str`` field that must hold exactly one character."""


u8 = Annotated[int, IntRange(0, 2**8 - 1)]
u16 = Annotated[int, IntRange(0, 2**16 - 1)]
u32 = Annotated[int, IntRange(0, 2**32 - 1)]
u64 = Annotated[int, IntRange(0, 2**64 - 1)]
i8 = Annotated[int, IntRange(-(2**7), 2**7 - 1)]
i16 = Annotated[int, IntRange(-(2**15), 2**15 - 1)]
i32 = Annotated[int, IntRange(-(2**31), 2**31 - 1)]
i64 = Annotated[int, IntRange(-(2**63), 2**63 - 1)]
char = Annotated[str, Char()]


def parse_bool(raw: str) -> bool:
    if raw == "true":
        return True
    if raw == "false":
        return False
    raise ValueError("provided string was not `true` or `false`")


def parse_int(raw: str) -> int:
    if not raw:
        raise ValueError("cannot parse integer from empty string")
    if not INT_RE.fullmatch(raw):
        raise ValueError("invalid digit found in string")
    return int(raw)


def parse_unsigned(raw: str) -> int:
    if raw.startswith("-"):
        raise ValueError("invalid digit found in string")
    return parse_int(raw)


def parse_float(raw: str) -> float:
    if not raw:
        raise ValueError("cannot parse float from empty string")
    if not FLOAT_RE.fullmatch(raw):
        raise ValueError("invalid float literal")
    return float(raw)


def parse_char(raw: str) -> str:
    if not raw:
        raise ValueError("cannot parse char from empty string")
    if len(raw) != 1:
        raise ValueError("too many characters in string")
    return raw


def parse_decimal(raw: str) -> Decimal:
    if not raw or raw != raw.strip():
        raise ValueError("invalid decimal literal")
    try:
        return Decimal(raw)
    except InvalidOperation:
        raise ValueError("invalid decimal literal") from None


def _strict(parse: Callable[[str], Any]) -> Callable[[str], Any]:
    """Reject surrounding whitespace before delegating to ``parse``."""

    def wrapped(raw: str) -> Any:
        if raw != raw.strip():
            raise ValueError("unexpected whitespace")
        return parse(raw)

    return wrapped


def _native_int(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"invalid type: {type(value).__name__}, expected an integer")
    return value


def _native_float(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"invalid type: {type(value).__name__}, expected a float")
    return float(value)


def _native_bool(value: Any) -> bool:
    if not isinstance(value, bool):
        raise TypeError(f"invalid type: {type(value).__name__}, expected a boolean")
    return value


def _native_decimal(value: Any) -> Decimal:
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise TypeError(f"invalid type: {type(value).__name__}, expected a decimal")
    return value if isinstance(value, Decimal) else Decimal(str(value))


def _native_instance(cls: type) -> Callable[[Any], Any]:
    def accept(value: Any) -> Any:
        if not isinstance(value, cls):
            raise TypeError(f"invalid type: {type(value).__name__}, expected {cls.__name__}")
        return value

    return accept


@dataclass(frozen=True)
class ScalarType:
    """How to turn one raw string (or one native document value) into a scalar."""

    name: str
    parse: Callable[[str], Any]
    native: Callable[[Any], Any] | None = None
    borrow: bool = False

    def coerce(
        self, field_name: str, raw: str, *, source: str | None = None, start: int = 0
    ) -> Any:
        if self.borrow:
            if source is None:
                return TextSlice(raw)
            return TextSlice(source, start, start + len(raw))
        try:
            return self.parse(raw)
        except (ValueError, TypeError) as exc:
            raise CoercionFailure(field_name, raw, self.name, _reason(exc)) from exc

    def convert(self, field_name: str, value: Any) -> Any:
        """Accept a value taken from a structured document."""
        if isinstance(value, str):
            return self.coerce(field_name, value)
        if self.native is None:
            raise CoercionFailure(
                field_name, value, self.name, f"invalid type: {type(value).__name__}"
            )
        try:
            return self.native(value)
        except (ValueError, TypeError) as exc:
            raise CoercionFailure(field_name, value, self.name, _reason(exc)) from exc


def _reason(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


STR = ScalarType("str", str, native=_native_instance(str))
BORROWED = ScalarType("TextSlice", TextSlice, borrow=True)
ANY = ScalarType("any", str, native=lambda value: value)
BOOL = ScalarType("bool", parse_bool, native=_native_bool)
INT = ScalarType("int", parse_int, native=_native_int)
FLOAT = ScalarType("float", parse_float, native=_native_float)
CHAR = ScalarType("char", parse_char)
DECIMAL = ScalarType("Decimal", parse_decimal, native=_native_decimal)
DATE = ScalarType("date", _strict(date.fromisoformat), native=_native_instance(date))
DATETIME = ScalarType(
    "datetime", _strict(datetime.fromisoformat), native=_native_instance(datetime)
)
TIME = ScalarType("time", _strict(time.fromisoformat), native=_native_instance(time))
UUID = ScalarType("UUID", _strict(uuid.UUID), native=_native_instance(uuid.UUID))

SCALARS: dict[Any, ScalarType] = {
    str: STR,
    TextSlice: BORROWED,
    Any: ANY,
    bool: BOOL,
    int: INT,
    float: FLOAT,
    Decimal: DECIMAL,
    date: DATE,
    datetime: DATETIME,
    time: TIME,
    uuid.UUID: UUID,
}


def bounded_int(bounds: IntRange) -> ScalarType:
    name = f"int[{bounds.low}..{bounds.high}]"

    def check(value: int) -> int:
        if bounds.high is not None and value > bounds.high:
            raise ValueError("number too large to fit in target type")
        if bounds.low is not None and value < bounds.low:
            raise ValueError("number too small to fit in target type")
        return value

    return ScalarType(
        name,
        lambda raw: check(parse_unsigned(raw) if bounds.low == 0 else parse_int(raw)),
        native=lambda value: check(_native_int(value)),
    )


def enum_scalar(enum_cls: type[enum.Enum]) -> ScalarType:
    """Enum members are looked up by name first, then by value."""

    def parse(raw: str) -> enum.Enum:
        if raw in enum_cls.__members__:
            return enum_cls[raw]
        for member in enum_cls:
            if member.value == raw or str(member.value) == raw:
                return member
        expected = ", ".join(f"`{name}`" for name in enum_cls.__members__)
        raise ValueError(f"unknown variant `{raw}`, expected one of {expected}")

    def native(value: Any) -> enum.Enum:
        if isinstance(value, enum_cls):
            return value
        try:
            return enum_cls(value)
        except ValueError:
            raise ValueError(f"unknown variant value {value!r}") from None

    return ScalarType(enum_cls.__name__, parse, native=native)


def scalar_for(target: Any, metadata: tuple[Any, ...] = ()) -> ScalarType | None:
    """Resolve a Python type (plus ``Annotated`` metadata) to its scalar kind."""
    if isinstance(target, ScalarType):
        return target
    for meta in metadata:
        if isinstance(meta, IntRange) and target is int:
            return bounded_int(meta)
        if isinstance(meta, Char) and target is str:
            return CHAR
    if isinstance(target, type) and issubclass(target, enum.Enum):
        return enum_scalar(target)
    return SCALARS.get(target)


def coerce(
    field_name: str,
    raw: str,
    target: Any,
    *,
    source: str | None = None,
    start: int = 0,
) -> Any:
    """Convert ``raw`` into ``target`` or raise ``CoercionFailure``.

    ``target`` may be a Python type, an ``Annotated`` alias such as ``u32`` or
    ``char``, or a ``ScalarType``.
    """
    metadata: tuple[Any, ...] = ()
    if get_origin(target) is Annotated:
        target, *extra = get_args(target)
        metadata = tuple(extra)
    scalar = scalar_for(target, metadata)
    if scalar is None:
        raise TypeError(f"{target!r} is not a supported scalar type")
    return scalar.coerce(field_name, raw, source=source, start=start)
