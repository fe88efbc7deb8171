"""Named capture extraction.

A single search of a compiled pattern against a line of text yields an ordered
``CaptureSet``: one ``Capture`` per named group that took part in the match,
in the order the groups are declared. Groups that exist in the pattern but did
not participate (an optional alternative that was skipped) are left out, which
is how absent values stay distinguishable from present-but-empty ones.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass

from recap.errors import NoMatch


@dataclass(frozen=True)
class Capture:
    name: str
    value: str
    start: int
    end: int


@dataclass(frozen=True)
class CaptureSet:
    source: str
    captures: tuple[Capture, ...]

    def get(self, name: str) -> Capture | None:
        for capture in self.captures:
            if capture.name == name:
                return capture
        return None

    def names(self) -> list[str]:
        return [capture.name for capture in self.captures]

    def as_dict(self) -> dict[str, str]:
        return {capture.name: capture.value for capture in self.captures}

    def __contains__(self, name: object) -> bool:
        return any(capture.name == name for capture in self.captures)

    def __iter__(self) -> Iterator[Capture]:
        return iter(self.captures)

    def __len__(self) -> int:
        return len(self.captures)


def compile_pattern(pattern: str | re.Pattern[str]) -> re.Pattern[str]:
    if isinstance(pattern, re.Pattern):
        return pattern
    return re.compile(pattern)


def group_names(pattern: re.Pattern[str]) -> list[str]:
    """Named groups in declaration order."""
    return [name for name, _index in sorted(pattern.groupindex.items(), key=lambda kv: kv[1])]


def extract(
    pattern: str | re.Pattern[str],
    text: str,
    *,
    source: str | None = None,
    offset: int = 0,
) -> CaptureSet:
    """Match ``pattern`` once against ``text`` and collect its named groups.

    ``source`` and ``offset`` describe where ``text`` sits inside a larger
    input, so nested extractions report offsets into the outermost string.
    Raises ``NoMatch`` when the pattern does not match at all.
    """
    compiled = compile_pattern(pattern)
    found = compiled.search(text)
    if found is None:
        raise NoMatch(text, compiled.pattern)
    captures: list[Capture] = []
    for name in group_names(compiled):
        start, end = found.span(name)
        if start < 0:
            continue  # group did not participate
        captures.append(Capture(name, found.group(name), start + offset, end + offset))
    return CaptureSet(source=text if source is None else source, captures=tuple(captures))


def matches(pattern: str | re.Pattern[str], text: str) -> bool:
    return compile_pattern(pattern).search(text) is not None
