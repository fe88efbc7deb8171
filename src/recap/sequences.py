"""Delimiter-separated sequences.

A captured string such as ``"a,b,c"`` expands to ``["a", "b", "c"]``. The
default delimiter is a literal comma; a field may supply its own delimiter
pattern instead. An empty string expands to an empty sequence rather than a
single empty element.
"""

from __future__ import annotations

import re
from typing import Any

from recap.scalars import ScalarType

COMMA = ","


def split_spans(raw: str, delimiter: re.Pattern[str] | None = None) -> list[tuple[int, int]]:
    """Return ``(start, end)`` offsets of each element of ``raw``."""
    if raw == "":
        return []
    spans: list[tuple[int, int]] = []
    pos = 0
    if delimiter is None:
        while True:
            idx = raw.find(COMMA, pos)
            if idx < 0:
                break
            spans.append((pos, idx))
            pos = idx + len(COMMA)
    else:
        for found in delimiter.finditer(raw):
            if found.start() == found.end():
                continue  # zero-width matches never split
            spans.append((pos, found.start()))
            pos = found.end()
    spans.append((pos, len(raw)))
    return spans


def expand_sequence(
    field_name: str,
    raw: str,
    delimiter: str | re.Pattern[str] | None = None,
    element: ScalarType | None = None,
) -> list[Any]:
    """Split ``raw`` and, when ``element`` is given, coerce every item.

    Coercion errors name ``field_name``, the field the sequence came from.
    """
    if isinstance(delimiter, str):
        delimiter = re.compile(delimiter)
    items = [raw[start:end] for start, end in split_spans(raw, delimiter)]
    if element is None:
        return items
    return [element.coerce(field_name, item) for item in items]
