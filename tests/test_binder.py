import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional

import pytest

from recap import (
    CoercionFailure,
    MissingField,
    NoMatch,
    TextSlice,
    bind_from_string,
    from_captures,
    record,
)
from recap.registry import build_shape


@dataclass
class Greeting:
    foo: str
    bar: str


@dataclass
class Triple:
    foo: str
    bar: str
    baz: Optional[str]


@dataclass
class Counted:
    name: str
    count: int = 7


@dataclass
class Noted:
    name: str
    note: Optional[str]


@dataclass
class Pairs:
    a: int
    b: int


@record(r"^(?P<n>-?\d+) (?P<flag>true|false) (?P<word>\w+)$")
@dataclass
class Row:
    n: int
    flag: bool
    word: str


@record(r"(?P<key>\w+)=(?P<value>\S+)")
@dataclass
class Pair:
    key: TextSlice
    value: str


def test_bind_two_fields():
    bound = from_captures(r"(?P<foo>\S+)\s(?P<bar>\S+)", "hello there", Greeting)
    assert bound == Greeting(foo="hello", bar="there")


def test_absent_group_binds_optional_as_none():
    bound = from_captures(
        r"(?P<foo>\S+)\s+(?P<bar>\S+)\s+(?P<baz>\S+)?", "one two ", Triple
    )
    assert bound == Triple(foo="one", bar="two", baz=None)


def test_pattern_without_groups_reports_missing_field():
    with pytest.raises(MissingField) as info:
        from_captures(r".+", "anything at all", Greeting)
    assert info.value.field == "foo"
    assert info.value.record == "Greeting"


def test_non_matching_input_is_exactly_no_match():
    with pytest.raises(NoMatch) as info:
        from_captures(r"(?P<foo>\d+) (?P<bar>\d+)", "letters only", Greeting)
    assert type(info.value) is NoMatch


def test_captures_without_target_come_back_as_mapping():
    assert from_captures(r"(?P<x>\d+)-(?P<y>\d+)", "3-4") == {"x": "3", "y": "4"}


def test_default_fills_absent_field():
    pattern = r"(?P<name>\w+)(?: (?P<count>\d+))?"
    assert from_captures(pattern, "apples", Counted) == Counted("apples", 7)
    assert from_captures(pattern, "apples 3", Counted) == Counted("apples", 3)


def test_empty_capture_is_present_not_absent():
    assert from_captures(r"(?P<name>\w+)=(?P<note>\w*)", "a=", Noted) == Noted("a", "")
    assert from_captures(r"(?P<name>\w+)(=(?P<note>\w*))?", "a", Noted) == Noted("a", None)


def test_extra_captures_are_ignored():
    bound = from_captures(r"(?P<foo>\S+) (?P<bar>\S+) (?P<extra>\S+)", "a b c", Greeting)
    assert bound == Greeting("a", "b")


def test_first_failing_field_in_declaration_order():
    with pytest.raises(CoercionFailure) as info:
        from_captures(r"(?P<b>\S+) (?P<a>\S+)", "x y", Pairs)
    assert info.value.field == "a"
    assert info.value.raw == "y"


def test_explicit_pattern_overrides_registered_one():
    shape = build_shape(Greeting)
    bound = bind_from_string(re.compile(r"(?P<bar>\w+)/(?P<foo>\w+)"), shape, "x/y")
    assert bound == Greeting(foo="y", bar="x")


def test_shape_without_pattern_needs_one():
    with pytest.raises(TypeError):
        bind_from_string(None, build_shape(Greeting), "a b")


def test_registered_record_parses_and_checks_match():
    assert Row.parse("-3 true abc") == Row(n=-3, flag=True, word="abc")
    assert Row.is_match("1 false x")
    assert not Row.is_match("1 maybe x")


def test_format_then_bind_round_trips():
    rows = [Row(0, False, "a"), Row(-12, True, "word_1"), Row(99999, False, "Z")]
    for row in rows:
        line = f"{row.n} {str(row.flag).lower()} {row.word}"
        assert Row.parse(line) == row


def test_binding_is_deterministic():
    assert Row.parse("5 true same") == Row.parse("5 true same")


def test_borrowed_field_points_into_input():
    line = "  name=bob"
    pair = Pair.parse(line)
    assert pair.key == "name"
    assert pair.key.source is line
    assert pair.key.start == 2
    assert pair.value == "bob"


def test_concurrent_binding_shares_the_registry():
    lines = [f"{i} {'true' if i % 2 else 'false'} w{i}" for i in range(200)]
    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(Row.parse, lines))
    assert [r.n for r in results] == list(range(200))
    assert results[3].flag is True
