import csv
import enum
import json
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from pathlib import Path

import pyarrow.ipc as pa_ipc

from recap import TextSlice
from recap.report import records_to_arrow, records_to_csv, records_to_jsonl, to_plain


class Color(enum.Enum):
    RED = 1


@dataclass
class Point:
    x: int
    y: int


@dataclass
class Sample:
    name: TextSlice
    color: Color
    price: Decimal
    day: date
    points: list[Point]


def sample() -> Sample:
    return Sample(
        name=TextSlice("name=widget", 5),
        color=Color.RED,
        price=Decimal("9.50"),
        day=date(2024, 1, 2),
        points=[Point(1, 2)],
    )


def test_to_plain_converts_field_values() -> None:
    assert to_plain(sample()) == {
        "name": "widget",
        "color": "RED",
        "price": "9.50",
        "day": "2024-01-02",
        "points": [{"x": 1, "y": 2}],
    }


def test_records_to_jsonl(tmp_path: Path) -> None:
    path = tmp_path / "out" / "records.jsonl"
    assert records_to_jsonl([sample(), {"line": 2}], path) == 2
    lines = path.read_text().splitlines()
    assert json.loads(lines[0])["name"] == "widget"
    assert json.loads(lines[1]) == {"line": 2}


def test_records_to_csv_flattens_nested_values(tmp_path: Path) -> None:
    path = tmp_path / "records.csv"
    assert records_to_csv([{"a": 1}, {"a": 2, "b": [1, 2]}], path) == 2
    with path.open(newline="") as f:
        rows = list(csv.DictReader(f))
    assert rows[0] == {"a": "1", "b": ""}
    assert json.loads(rows[1]["b"]) == [1, 2]


def test_records_to_arrow(tmp_path: Path) -> None:
    path = tmp_path / "records.arrow"
    assert records_to_arrow([sample(), sample()], path) == 2
    with pa_ipc.open_file(path) as reader:
        table = reader.read_all()
    assert table.num_rows == 2
    assert table.column("name").to_pylist() == ["widget", "widget"]
    assert json.loads(table.column("points")[0].as_py()) == [{"x": 1, "y": 2}]
