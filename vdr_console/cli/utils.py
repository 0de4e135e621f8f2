# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Shared helpers for the vdr-console CLI."""
import asyncio
import sys
from pathlib import Path
from typing import Any, Coroutine, TypeVar

import typer

# Exit codes
EXIT_VALIDATION_FAILURE = 1
EXIT_PARSE_ERROR = 2
EXIT_IO_ERROR = 3

T = TypeVar("T")


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Run an async function from the sync CLI context."""
    return asyncio.run(coro)


def is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def read_input(source: str, encoding: str = "utf-8") -> str:
    """Read text from stdin (``-``) or a file.

    Raises:
        typer.Exit: On I/O errors, with EXIT_IO_ERROR.
    """
    try:
        if source == "-":
            return sys.stdin.read()
        return Path(source).read_text(encoding=encoding)
    except OSError as e:
        typer.echo(f"Error reading input: {e}", err=True)
        raise typer.Exit(EXIT_IO_ERROR) from e

