import re

import pytest

from recap.errors import CoercionFailure
from recap.scalars import INT
from recap.sequences import expand_sequence, split_spans


def test_empty_string_expands_to_empty_sequence():
    assert expand_sequence("tags", "") == []
    assert split_spans("") == []


def test_comma_split_keeps_order():
    assert expand_sequence("tags", "a,b,c") == ["a", "b", "c"]
    assert expand_sequence("tags", "solo") == ["solo"]


def test_empty_elements_between_delimiters_are_kept():
    assert expand_sequence("tags", "a,,b,") == ["a", "", "b", ""]


def test_custom_delimiter_overrides_comma():
    assert expand_sequence("tags", "a, b;c", delimiter=r"\s*;\s*") == ["a, b", "c"]
    assert expand_sequence("tags", "1  2 3", delimiter=re.compile(r"\s+")) == ["1", "2", "3"]


def test_element_coercion_names_the_field():
    assert expand_sequence("ids", "1,2,3", element=INT) == [1, 2, 3]
    with pytest.raises(CoercionFailure) as info:
        expand_sequence("ids", "1,x,3", element=INT)
    assert info.value.field == "ids"
    assert info.value.raw == "x"


def test_split_spans_report_offsets():
    raw = "ab,c,def"
    spans = split_spans(raw)
    assert spans == [(0, 2), (3, 4), (5, 8)]
    assert [raw[s:e] for s, e in spans] == ["ab", "c", "def"]
