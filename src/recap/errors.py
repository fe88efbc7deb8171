"""Binding errors.

Every failure to bind text into a record is raised as a ``RecapError``
subclass. Errors are plain data: they carry the field name, the raw value and
the expected type where one field is to blame, and ``to_dict`` renders them
for reports.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any


class RecapError(ValueError):
    """Base class for binding failures."""

    kind = "error"
    field: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"kind": self.kind, "message": str(self)}
        if self.field is not None:
            payload["field"] = self.field
        return payload


class NoMatch(RecapError):
    kind = "no_match"

    def __init__(self, text: str, pattern: str | None = None) -> None:
        super().__init__(f"No captures resolved in string {text!r}")
        self.text = text
        self.pattern = pattern

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["text"] = self.text
        if self.pattern is not None:
            payload["pattern"] = self.pattern
        return payload


class MissingField(RecapError):
    kind = "missing_field"

    def __init__(self, field: str, record: str | None = None) -> None:
        where = f" in {record}" if record else ""
        super().__init__(f"missing value for field {field}{where}")
        self.field = field
        self.record = record


class CoercionFailure(RecapError):
    kind = "coercion_failure"

    def __init__(self, field: str, raw: Any, expected: str, message: str) -> None:
        super().__init__(
            f"{message} while parsing value {raw!r} provided by {field} (expected {expected})"
        )
        self.field = field
        self.raw = raw
        self.expected = expected
        self.reason = message

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload.update(raw=self.raw, expected=self.expected, reason=self.reason)
        return payload


class NoVariantMatched(RecapError):
    kind = "no_variant_matched"

    def __init__(
        self,
        text: str,
        union: str,
        variants: Sequence[str],
        field: str | None = None,
    ) -> None:
        names = ", ".join(variants) or "<none>"
        super().__init__(f"no variant of {union} matched {text!r} (tried {names})")
        self.text = text
        self.union = union
        self.variants = tuple(variants)
        self.field = field

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload.update(text=self.text, union=self.union, variants=list(self.variants))
        return payload


class StructuralMismatch(RecapError):
    kind = "structural_mismatch"

    def __init__(self, field: str, record: str, detail: str) -> None:
        super().__init__(f"{record}.{field}: {detail}")
        self.field = field
        self.record = record
        self.detail = detail
