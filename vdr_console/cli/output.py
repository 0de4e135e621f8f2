# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Printing console records from the CLI.

``json`` is compact and meant for piping, ``pretty`` is indented JSON,
``table`` renders records with rich. Errors always go to stderr as a
JSON object ``{error, code, message, details?}``.
"""
import json
import sys
from enum import Enum
from typing import Any, NoReturn, Optional, Sequence

import typer
from rich.console import Console
from rich.table import Table


class OutputFormat(str, Enum):
    json = "json"
    pretty = "pretty"
    table = "table"


def _dumps(data: Any, indent: Optional[int] = None) -> str:
    return json.dumps(data, indent=indent, default=str, ensure_ascii=False)


def _cell(value: Any) -> str:
    """Table cell text; lists and nested records are shown as compact JSON."""
    if value is None:
        return ""
    if isinstance(value, (list, dict)):
        return _dumps(value)
    return str(value)


def render_records(
    records: Sequence[dict[str, Any]],
    columns: Optional[list[str]] = None,
    title: Optional[str] = None,
) -> None:
    """Render records as a rich table, one row per record.

    Args:
        records: Records to show.
        columns: Record keys to show; defaults to the keys of the first record.
        title: Table caption, usually the collection name.
    """
    if not records:
        typer.echo(f"No {title or 'records'} found.", err=True)
        return

    columns = columns or list(records[0])
    table = Table(title=title, header_style="bold")
    for column in columns:
        table.add_column(column)
    for record in records:
        table.add_row(*(_cell(record.get(column)) for column in columns))
    Console().print(table)


def output(
    data: Any,
    format: OutputFormat = OutputFormat.json,
    table_columns: Optional[list[str]] = None,
    table_title: Optional[str] = None,
) -> None:
    """Print a record, a list of records, or a parse result."""
    if format == OutputFormat.table:
        if isinstance(data, dict):
            data = [{"field": key, "value": value} for key, value in data.items()]
            table_columns = ["field", "value"]
        render_records(data, columns=table_columns, title=table_title)
        return

    try:
        typer.echo(_dumps(data, indent=2 if format == OutputFormat.pretty else None))
    except TypeError as e:
        typer.echo(f"Cannot print result as JSON: {e}", err=True)
        raise typer.Exit(2) from e


def output_error(
    code: str,
    message: str,
    details: Optional[dict[str, Any]] = None,
    exit_code: int = 1,
) -> NoReturn:
    """Report a failure on stderr and exit with ``exit_code``."""
    error: dict[str, Any] = {"error": True, "code": code, "message": message}
    if details:
        error["details"] = details
    print(_dumps(error), file=sys.stderr)
    raise typer.Exit(exit_code)
