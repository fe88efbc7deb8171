"""Declarative record schemas loaded from YAML or JSON.

A schema file describes records (pattern plus typed fields) and tagged unions
without writing Python classes. Each record becomes a registered dataclass,
so binding behaves exactly as it does for ``@record`` classes.::

    root: Outer
    records:
      - name: Inner
        regex: '(?P<foo>\\w+):(?P<bar>\\d+)'
        fields: {foo: str, bar: u32}
      - name: Outer
        regex: '(?P<first>[^ ]+)( (?P<second>[^ ]+))?'
        fields:
          first: Inner
          second: Inner?
    unions:
      - name: Either
        variants: [Inner, Outer]

Field types are scalar names (see ``SCALAR_TYPES``), names of records
and unions defined earlier in the file (a union is defined once all of its
variants are), ``list[T]`` / ``tuple[T]``, and a
trailing ``?`` for optional fields. A field may also be a mapping with
``type``, ``rename``, ``delimiter`` and ``default`` keys.

``Schema.release`` removes a loaded schema's record types from the shared
registry again.
"""

from __future__ import annotations

import copy
import dataclasses
import functools
import json
import re
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional, Union

import yaml

from recap.record import field, from_mapping, from_str, is_match, record
from recap.registry import REGISTRY
from recap.scalars import TextSlice, char, i8, i16, i32, i64, u8, u16, u32, u64
from recap.union import TaggedUnion

SCALAR_TYPES: dict[str, Any] = {
    "str": str,
    "borrowed": TextSlice,
    "any": Any,
    "bool": bool,
    "int": int,
    "float": float,
    "char": char,
    "decimal": Decimal,
    "date": date,
    "datetime": datetime,
    "time": time,
    "uuid": uuid.UUID,
    "u8": u8,
    "u16": u16,
    "u32": u32,
    "u64": u64,
    "i8": i8,
    "i16": i16,
    "i32": i32,
    "i64": i64,
}
SEQUENCE_RE = re.compile(r"(list|tuple)\[(.+)\]")
_UNSET: Any = object()


@dataclass
class FieldSchema:
    type: str
    rename: str | None = None
    delimiter: str | None = None
    default: Any = _UNSET

    @staticmethod
    def from_value(name: str, value: Any) -> FieldSchema:
        if isinstance(value, str):
            return FieldSchema(type=value)
        if not isinstance(value, Mapping) or "type" not in value:
            raise ValueError(f"Field {name!r} must be a type string or a mapping with 'type'")
        return FieldSchema(
            type=str(value["type"]),
            rename=value.get("rename"),
            delimiter=value.get("delimiter"),
            default=value.get("default", _UNSET),
        )


@dataclass
class RecordSchema:
    name: str
    regex: str
    fields: dict[str, FieldSchema]
    rename_all: str | None = None

    @staticmethod
    def from_mapping(payload: Mapping[str, Any]) -> RecordSchema:
        fields = payload.get("fields") or {}
        if not isinstance(fields, Mapping):
            raise ValueError(f"Record {payload.get('name')!r}: 'fields' must be a mapping")
        return RecordSchema(
            name=str(payload["name"]),
            regex=str(payload["regex"]),
            fields={str(k): FieldSchema.from_value(str(k), v) for k, v in fields.items()},
            rename_all=payload.get("rename_all"),
        )


@dataclass
class UnionSchema:
    name: str
    variants: list[str]

    @staticmethod
    def from_mapping(payload: Mapping[str, Any]) -> UnionSchema:
        return UnionSchema(
            name=str(payload["name"]), variants=[str(v) for v in payload["variants"]]
        )


def parse_type(text: str, known: Mapping[str, Any]) -> Any:
    """Resolve a schema type string to a Python annotation."""
    text = text.strip()
    if text.endswith("?"):
        return Optional[parse_type(text[:-1], known)]
    sequence = SEQUENCE_RE.fullmatch(text)
    if sequence:
        element = parse_type(sequence.group(2), known)
        return list[element] if sequence.group(1) == "list" else tuple[element, ...]
    if text in known:
        return known[text]
    if text in SCALAR_TYPES:
        return SCALAR_TYPES[text]
    raise ValueError(f"Unknown field type {text!r}")


def build_record(spec: RecordSchema, known: Mapping[str, Any]) -> type:
    """Create and register a dataclass for one record schema."""
    definitions: list[tuple[str, Any, Any]] = []
    for name, fs in spec.fields.items():
        extra: dict[str, Any] = {}
        if fs.default is not _UNSET:
            extra["default_factory"] = functools.partial(copy.deepcopy, fs.default)
        options = field(rename=fs.rename, delimiter=fs.delimiter, **extra)
        definitions.append((name, parse_type(fs.type, known), options))
    cls = dataclasses.make_dataclass(spec.name, definitions, kw_only=True)
    return record(spec.regex, rename_all=spec.rename_all)(cls)


@dataclass
class Schema:
    root: str
    records: dict[str, type]
    unions: dict[str, TaggedUnion]

    @staticmethod
    def from_mapping(payload: Mapping[str, Any]) -> Schema:
        records: dict[str, type] = {}
        unions: dict[str, TaggedUnion] = {}
        known: dict[str, Any] = {}
        pending = [UnionSchema.from_mapping(entry) for entry in payload.get("unions") or []]
        pending_names = [spec_u.name for spec_u in pending]
        if len(set(pending_names)) != len(pending_names):
            raise ValueError(f"Duplicate union names in {pending_names}")

        def define_ready_unions() -> None:
            # a union becomes a field type once all of its variants exist
            for spec_u in list(pending):
                if not all(v in records for v in spec_u.variants):
                    continue
                if spec_u.name in known:
                    raise ValueError(f"Duplicate schema name {spec_u.name!r}")
                variants = tuple(records[v] for v in spec_u.variants)
                unions[spec_u.name] = TaggedUnion(spec_u.name, variants)
                known[spec_u.name] = Union[variants]
                pending.remove(spec_u)

        for entry in payload.get("records") or []:
            define_ready_unions()
            spec = RecordSchema.from_mapping(entry)
            if spec.name in known or spec.name in pending_names:
                raise ValueError(f"Duplicate schema name {spec.name!r}")
            cls = build_record(spec, known)
            records[spec.name] = known[spec.name] = cls
        define_ready_unions()
        if pending:
            spec_u = pending[0]
            missing = [v for v in spec_u.variants if v not in records]
            raise ValueError(f"Union {spec_u.name!r} names unknown records: {missing}")
        if not records:
            raise ValueError("Schema defines no records")
        root = str(payload.get("root") or next(reversed(records)))
        if root not in records and root not in unions:
            raise ValueError(f"Schema root {root!r} is not a defined record or union")
        return Schema(root=root, records=records, unions=unions)

    @property
    def target(self) -> Any:
        if self.root in self.unions:
            return self.unions[self.root]
        return self.records[self.root]

    def parse(self, text: str) -> Any:
        return from_str(self.target, text)

    def parse_document(self, document: Any) -> Any:
        return from_mapping(self.target, document)

    def is_match(self, text: str) -> bool:
        return is_match(self.target, text)

    def release(self) -> None:
        """Drop this schema's record types from the shared registry."""
        for cls in self.records.values():
            REGISTRY.unregister(cls)

    def describe(self) -> list[dict[str, Any]]:
        """One row per record field, for display."""
        rows: list[dict[str, Any]] = []
        for name, cls in self.records.items():
            shape = REGISTRY.shape(cls)
            pattern = shape.pattern.pattern if shape.pattern is not None else ""
            for spec in shape.fields:
                rows.append(
                    {
                        "record": name,
                        "field": spec.name,
                        "key": spec.key,
                        "shape": spec.shape,
                        "default": spec.default is not None,
                        "pattern": pattern,
                    }
                )
        for name, union in self.unions.items():
            rows.append(
                {
                    "record": name,
                    "field": "",
                    "key": "",
                    "shape": "union",
                    "default": False,
                    "pattern": " | ".join(union.variant_names),
                }
            )
        return rows


def load_schema(path: Path) -> Schema:
    if path.suffix.lower() in {".yml", ".yaml"}:
        payload = yaml.safe_load(path.read_text())
    else:
        payload = json.loads(path.read_text())
    if not isinstance(payload, Mapping):
        raise ValueError(f"Schema file {path} must contain a mapping")
    return Schema.from_mapping(payload)
