import json
from dataclasses import dataclass
from typing import Optional

import pytest

from recap import (
    CoercionFailure,
    StructuralMismatch,
    field,
    from_mapping,
    record,
    u32,
)


@record(
    r"((?P<FirstAttribute>\w+):)?(?P<second_rename>\d+):(?P<ThirdAttribute>\w+)",
    rename_all="PascalCase",
)
@dataclass(kw_only=True)
class Inner:
    first_attribute: str = field(default="Some default")
    second_attribute: u32 = field(rename="second_rename")
    third_attribute: str


@record(r"(?P<first>[^ ]+)( (?P<second>[^ ]+))? (?P<third>[^ ]+)")
@dataclass
class Outer:
    first: Inner
    second: Optional[Inner]
    third: Optional[Inner]


@record(r"(?P<name>\w+) (?P<scores>\S+)")
@dataclass
class Scores:
    name: str
    scores: list[int]


DOCUMENT = """
{
    "first": {
        "FirstAttribute": "something",
        "second_rename": 123,
        "ThirdAttribute": "some_third"
    },
    "third": {
        "second_rename": 456,
        "ThirdAttribute": "the_third"
    }
}
"""


def test_document_binding_honours_renames_and_defaults():
    bound = Outer.from_mapping(json.loads(DOCUMENT))
    assert bound.first == Inner(
        first_attribute="something", second_attribute=123, third_attribute="some_third"
    )
    assert bound.second is None
    assert bound.third == Inner(
        first_attribute="Some default", second_attribute=456, third_attribute="the_third"
    )


def test_document_and_text_bind_the_same_record():
    from_text = Outer.parse("something:123:some_third 456:the_third")
    from_doc = Outer.from_mapping(json.loads(DOCUMENT))
    assert from_text.first == from_doc.first
    assert from_text.third == from_doc.third


def test_string_values_inside_documents_are_parsed_as_text():
    document = {"first": "a:1:b", "third": {"second_rename": "2", "ThirdAttribute": "c"}}
    bound = from_mapping(Outer, document)
    assert bound.first == Inner(first_attribute="a", second_attribute=1, third_attribute="b")
    assert bound.third.second_attribute == 2


def test_sequences_from_lists_and_text():
    assert Scores.from_mapping({"name": "ann", "scores": [1, 2]}) == Scores("ann", [1, 2])
    assert Scores.from_mapping({"name": "ann", "scores": "3,4"}) == Scores("ann", [3, 4])


def test_missing_required_key_is_structural():
    with pytest.raises(StructuralMismatch) as info:
        Scores.from_mapping({"name": "ann"})
    assert info.value.field == "scores"
    assert info.value.record == "Scores"


def test_wrong_native_type_is_a_coercion_failure():
    with pytest.raises(CoercionFailure) as info:
        Scores.from_mapping({"name": 5, "scores": []})
    assert info.value.field == "name"


def test_non_mapping_document_is_rejected():
    with pytest.raises(StructuralMismatch):
        Scores.from_mapping([1, 2, 3])
    with pytest.raises(StructuralMismatch):
        Outer.from_mapping({"first": 12, "third": "x:1:y"})
