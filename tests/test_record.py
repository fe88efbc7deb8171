import enum
import re
from dataclasses import dataclass
from typing import Optional

import pytest

from recap import (
    REGISTRY,
    CoercionFailure,
    NoMatch,
    field,
    iter_records,
    record,
)
from recap.shape import OptionalType, SequenceType, rename_key


class Level(enum.Enum):
    INFO = "info"
    ERROR = "error"


@record(r"(?P<foo>\d+)\s+(?P<bar>true|false)\s+(?P<baz>\S+)")
@dataclass
class LogEntry:
    foo: int
    bar: bool
    baz: str


@record(r"(?P<name>\w+) (?P<scores>\S*) (?P<tags>.*)")
@dataclass
class Player:
    name: str
    scores: list[int]
    tags: tuple[str, ...] = field(delimiter=r"\s*;\s*")


@record(r"\[(?P<level>\w+)\] (?P<message>.*)")
@dataclass
class Message:
    level: Level
    message: str


@record(r"(?P<id>\d+)(?: (?P<aliases>\S+))?")
@dataclass
class Aliased:
    id: int
    aliases: Optional[list[str]]


@record(r"(?P<child>\S+)")
@dataclass
class Parent:
    child: "Child"


@record(r"(?P<name>\w+)/(?P<age>\d+)")
@dataclass
class Child:
    name: str
    age: int


def test_group_count_is_checked_when_decorating():
    with pytest.raises(TypeError, match="expected a pattern with 2 named capture groups"):

        @record(r"(?P<a>\w+)")
        @dataclass
        class TooFew:
            a: str
            b: str


def test_record_requires_a_dataclass():
    with pytest.raises(TypeError):

        @record(r"(?P<a>\w+)")
        class Plain:
            a: str


def test_unknown_rename_rule_is_rejected():
    with pytest.raises(ValueError):

        @record(r"(?P<a>\w+)", rename_all="Title Case")
        @dataclass
        class Renamed:
            a: str


def test_invalid_delimiter_is_rejected_at_definition():
    with pytest.raises(re.error):
        field(delimiter="(")


def test_unsupported_annotation_fails_when_decorating():
    with pytest.raises(TypeError, match="Unsupported field type"):

        @record(r"(?P<z>\S+)")
        @dataclass
        class Weird:
            z: complex


def test_forward_references_resolve_on_first_use():
    assert Parent.parse("bo/3") == Parent(Child("bo", 3))
    assert REGISTRY.shape(Parent).fields[0].kind.cls is Child


def test_iter_records_skips_unmatched_lines():
    logs = ["1 true hello", "  2 false world", "not a log"]
    assert list(iter_records(LogEntry, logs)) == [
        (1, LogEntry(1, True, "hello")),
        (2, LogEntry(2, False, "world")),
    ]
    with pytest.raises(NoMatch):
        list(iter_records(LogEntry, logs, skip_unmatched=False))


def test_sequence_fields_and_custom_delimiter():
    assert Player.parse("ann 1,2,3 red; blue") == Player("ann", [1, 2, 3], ("red", "blue"))
    assert Player.parse("ann  x") == Player("ann", [], ("x",))
    with pytest.raises(CoercionFailure) as info:
        Player.parse("ann 1,b x")
    assert info.value.field == "scores"


def test_optional_sequence():
    assert Aliased.parse("7") == Aliased(7, None)
    assert Aliased.parse("7 a,b") == Aliased(7, ["a", "b"])


def test_enum_field():
    assert Message.parse("[ERROR] disk full") == Message(Level.ERROR, "disk full")
    assert Message.parse("[info] ok").level is Level.INFO


def test_shapes_are_derived_once():
    shape = REGISTRY.shape(Player)
    assert REGISTRY.shape(Player) is shape
    assert [spec.name for spec in shape.fields] == ["name", "scores", "tags"]
    assert isinstance(shape.fields[1].kind, SequenceType)
    assert shape.fields[2].delimiter.pattern == r"\s*;\s*"
    assert isinstance(REGISTRY.shape(Aliased).fields[1].kind, OptionalType)
    assert REGISTRY.pattern(LogEntry).groupindex.keys() == {"foo", "bar", "baz"}


def test_rename_rules():
    assert rename_key("second_attribute", "PascalCase") == "SecondAttribute"
    assert rename_key("second_attribute", "camelCase") == "secondAttribute"
    assert rename_key("second_attribute", "kebab-case") == "second-attribute"
    assert rename_key("second_attribute", "SCREAMING_SNAKE_CASE") == "SECOND_ATTRIBUTE"
    assert rename_key("second_attribute", None) == "second_attribute"
