"""Writers for bound records: JSONL, CSV and Arrow IPC."""

from __future__ import annotations

import csv
import dataclasses
import enum
import uuid
from collections.abc import Iterable, Mapping
from datetime import date, time
from decimal import Decimal
from pathlib import Path
from typing import Any

import orjson
import pyarrow as pa

from recap.scalars import TextSlice


def to_plain(value: Any) -> Any:
    """Convert a bound record (or any field value) into JSON-friendly data."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_plain(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Mapping):
        return {str(k): to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(item) for item in value]
    if isinstance(value, enum.Enum):
        return value.name
    if isinstance(value, (TextSlice, Decimal, uuid.UUID)):
        return str(value)
    if isinstance(value, (date, time)):
        return value.isoformat()
    return value


def _flatten(row: Mapping[str, Any]) -> dict[str, Any]:
    # nested values are stored as JSON text to keep tabular schemas flat
    return {
        key: orjson.dumps(value).decode() if isinstance(value, (dict, list)) else value
        for key, value in row.items()
    }


def records_to_jsonl(rows: Iterable[Any], path: Path) -> int:
    """Write one JSON object per line; returns the number of rows written."""
    path.parent.mkdir(parents=True, exist_ok=True)
    count = 0
    with path.open("wb") as f:
        for row in rows:
            f.write(orjson.dumps(to_plain(row)) + b"\n")
            count += 1
    return count


def records_to_csv(rows: Iterable[Any], path: Path) -> int:
    """Write rows as CSV with headers taken from the union of row keys."""
    flat = [_flatten(to_plain(row)) for row in rows]
    fieldnames: list[str] = []
    for row in flat:
        for key in row:
            if key not in fieldnames:
                fieldnames.append(key)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()
        writer.writerows(flat)
    return len(flat)


def records_to_arrow(rows: Iterable[Any], path: Path) -> int:
    """Write rows to an Arrow IPC file for analytics-friendly consumption."""
    flat = [_flatten(to_plain(row)) for row in rows]
    path.parent.mkdir(parents=True, exist_ok=True)
    table = pa.Table.from_pylist(flat)
    with pa.OSFile(str(path), "wb") as sink:
        with pa.ipc.new_file(sink, table.schema) as writer:
            writer.write_table(table)
    return len(flat)


WRITERS = {
    "jsonl": records_to_jsonl,
    "csv": records_to_csv,
    "arrow": records_to_arrow,
}
