import re
from collections import Counter
from pathlib import Path
from typing import Any

import orjson
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from recap.captures import compile_pattern, extract, matches
from recap.errors import NoMatch, RecapError
from recap.report import WRITERS, records_to_jsonl, to_plain
from recap.schema import Schema, load_schema

app = typer.Typer(help="Bind regex named captures from text lines into typed records.")
console = Console()
SUPPORTED_FORMATS = {"json", "jsonl", "csv", "arrow"}


def _read_lines(path: Path) -> list[str]:
    if not path.is_file():
        raise typer.BadParameter(f"Input file not found: {path}")
    return path.read_text().splitlines()


def _check_format(format: str) -> str:
    fmt = format.lower()
    if fmt not in SUPPORTED_FORMATS:
        raise typer.BadParameter(f"Unsupported format '{format}'. Choose from {SUPPORTED_FORMATS}.")
    return fmt


def _compile(pattern: str) -> re.Pattern[str]:
    try:
        return compile_pattern(pattern)
    except re.error as exc:
        raise typer.BadParameter(f"Invalid pattern: {exc}") from exc


def _load_schema(path: Path) -> Schema:
    if not path.is_file():
        raise typer.BadParameter(f"Schema file not found: {path}")
    try:
        return load_schema(path)
    except (ValueError, TypeError, KeyError) as exc:
        raise typer.BadParameter(f"Invalid schema {path}: {exc}") from exc


def _emit(rows: list[dict[str, Any]], output: Path | None, fmt: str, label: str) -> None:
    if output is None:
        console.print(escape(orjson.dumps(rows, option=orjson.OPT_INDENT_2).decode()))
        return
    if fmt == "json":
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_bytes(orjson.dumps(rows, option=orjson.OPT_INDENT_2))
    else:
        WRITERS[fmt](rows, output)
    console.print(f"[bold green]Wrote {len(rows)} {label}[/] to {output}")


@app.command("match")
def match_lines(
    pattern: str = typer.Argument(..., help="Regular expression to test each line against."),
    input: Path = typer.Argument(..., help="Text file, one candidate per line."),
    show: bool = typer.Option(False, "--show", help="Print the matching lines."),
) -> None:
    """Count the lines a pattern matches, without binding anything."""
    compiled = _compile(pattern)
    lines = _read_lines(input)
    hits = [(number, line) for number, line in enumerate(lines, start=1) if matches(compiled, line)]
    console.print(f"[bold green]{len(hits)}[/] of {len(lines)} lines match")
    if show:
        for number, line in hits:
            console.print(f"{number}: {escape(line)}")


@app.command("extract")
def extract_captures(
    pattern: str = typer.Argument(..., help="Regular expression with named groups."),
    input: Path = typer.Argument(..., help="Text file, one record per line."),
    output: Path | None = typer.Option(None, "--output", "-o", help="Optional output path."),
    format: str = typer.Option(
        "json", "--format", "-f", help="Output format: json | jsonl | csv | arrow."
    ),
) -> None:
    """Emit the raw named captures of every matching line."""
    fmt = _check_format(format)
    compiled = _compile(pattern)
    rows: list[dict[str, Any]] = []
    unmatched = 0
    for number, line in enumerate(_read_lines(input), start=1):
        try:
            captures = extract(compiled, line)
        except NoMatch:
            unmatched += 1
            continue
        rows.append({"line": number, **captures.as_dict()})
    if unmatched:
        console.print(f"[yellow]Skipped {unmatched} unmatched lines[/]")
    _emit(rows, output, fmt, "capture sets")


@app.command("bind")
def bind_lines(
    schema: Path = typer.Argument(..., help="YAML/JSON schema describing the records."),
    input: Path = typer.Argument(..., help="Text file, one record per line."),
    output: Path | None = typer.Option(None, "--output", "-o", help="Optional output path."),
    format: str = typer.Option(
        "json", "--format", "-f", help="Output format: json | jsonl | csv | arrow."
    ),
    errors: Path | None = typer.Option(
        None, "--errors", help="Write binding failures to this JSONL file."
    ),
    strict: bool = typer.Option(False, "--strict", help="Stop at the first failing line."),
    keep_unmatched: bool = typer.Option(
        False,
        "--keep-unmatched",
        help="Report lines the root pattern does not match as failures instead of skipping them.",
    ),
) -> None:
    """Bind every line of INPUT using the schema's root record or union."""
    fmt = _check_format(format)
    spec = _load_schema(schema)
    lines = _read_lines(input)
    is_union = spec.root in spec.unions

    rows: list[dict[str, Any]] = []
    failures: list[dict[str, Any]] = []
    kinds: Counter[str] = Counter()
    skipped = 0
    for number, line in enumerate(lines, start=1):
        if not keep_unmatched and not spec.is_match(line):
            skipped += 1
            continue
        try:
            bound = spec.parse(line)
        except RecapError as exc:
            if strict:
                console.print(f"[bold red]Line {number}:[/] {escape(str(exc))}")
                raise typer.Exit(code=1) from exc
            kinds[exc.kind] += 1
            failures.append({"line": number, **exc.to_dict()})
            continue
        row: dict[str, Any] = {"line": number}
        if is_union:
            row["variant"] = type(bound).__name__
        row.update(to_plain(bound))
        rows.append(row)

    table = Table(title=f"Bind summary ({spec.root})")
    table.add_column("Outcome")
    table.add_column("Lines", justify="right")
    table.add_row("bound", str(len(rows)))
    table.add_row("skipped", str(skipped))
    for kind, count in kinds.most_common():
        table.add_row(kind, str(count))
    console.print(table)

    if errors and failures:
        records_to_jsonl(failures, errors)
        console.print(f"[bold yellow]Wrote {len(failures)} failures[/] to {errors}")
    _emit(rows, output, fmt, "records")


@app.command("check")
def check_schema(
    schema: Path = typer.Argument(..., help="YAML/JSON schema to validate."),
) -> None:
    """Load a schema, validate its patterns and show the derived fields."""
    spec = _load_schema(schema)
    table = Table(title=f"{schema.name} (root: {spec.root})")
    for column in ("Record", "Field", "Key", "Shape", "Default", "Pattern"):
        table.add_column(column)
    for row in spec.describe():
        table.add_row(
            row["record"],
            row["field"],
            row["key"],
            row["shape"],
            "yes" if row["default"] else "",
            escape(row["pattern"]),
        )
    console.print(table)
    console.print(f"[bold green]OK[/] {len(spec.records)} records, {len(spec.unions)} unions")


if __name__ == "__main__":
    app()
