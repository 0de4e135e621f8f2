# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Ledger explorer page parsing commands.

Commands:
    vdr-console indyscan schema <url|file|->    Parse a schema transaction page
    vdr-console indyscan creddef <url|file|->   Parse a cred-def transaction page
"""
from typing import Callable, Optional

import typer

from vdr_console.catalogue.fetch import LedgerPageFetcher, PageFetchError
from vdr_console.catalogue.indyscan import parse_cred_def_from_html, parse_schema_from_html
from vdr_console.cli.output import OutputFormat, output, output_error
from vdr_console.cli.utils import EXIT_IO_ERROR, EXIT_VALIDATION_FAILURE, is_url, read_input, run_async

app = typer.Typer(
    name="indyscan",
    help="Parse IndyScan / CandyScan transaction pages.",
    no_args_is_help=True,
)


async def _fetch(url: str) -> str:
    from vdr_console.config import SCRAPE_TIMEOUT, SCRAPE_USER_AGENT

    fetcher = LedgerPageFetcher(timeout=SCRAPE_TIMEOUT, user_agent=SCRAPE_USER_AGENT)
    try:
        return await fetcher.fetch(url)
    finally:
        await fetcher.close()


def _load_page(source: str, source_url: Optional[str]) -> tuple[str, str]:
    """HTML and the URL used for ledger / seqNo detection."""
    if is_url(source):
        try:
            return run_async(_fetch(source)), source
        except PageFetchError as e:
            output_error("FETCH_FAILED", e.message, exit_code=EXIT_IO_ERROR)
    return read_input(source), source_url or ""


def _parse(
    parser: Callable[[str, str], dict],
    source: str,
    source_url: Optional[str],
    required: tuple[str, ...],
    format: OutputFormat,
) -> None:
    html, url = _load_page(source, source_url)
    result = parser(html, url)
    missing = [key for key in required if not result.get(key)]
    if missing:
        output_error(
            "PARSE_FAILED",
            f"Could not parse {', '.join(missing)} from page",
            details=result,
            exit_code=EXIT_VALIDATION_FAILURE,
        )
    output(result, format)


@app.command("schema")
def schema_cmd(
    source: str = typer.Argument(..., help="Page URL, HTML file path, or '-' for stdin"),
    url: Optional[str] = typer.Option(
        None,
        "--url",
        help="Original page URL when reading a saved file (sets ledger and seqNo)",
    ),
    format: OutputFormat = typer.Option(OutputFormat.json, "--format", "-f", help="Output format"),
) -> None:
    """Parse a schema page into name, version, schemaId and attributes.

    Examples:
        vdr-console indyscan schema https://indyscan.io/tx/SOVRIN_MAINNET/domain/12345
        vdr-console indyscan schema page.html --url https://candyscan.idlab.org/tx/CANDY_DEV/domain/9
    """
    _parse(parse_schema_from_html, source, url, ("name", "version"), format)


@app.command("creddef")
def creddef_cmd(
    source: str = typer.Argument(..., help="Page URL, HTML file path, or '-' for stdin"),
    url: Optional[str] = typer.Option(
        None,
        "--url",
        help="Original page URL when reading a saved file (sets ledger and seqNo)",
    ),
    format: OutputFormat = typer.Option(OutputFormat.json, "--format", "-f", help="Output format"),
) -> None:
    """Parse a credential definition page into credDefId, schemaId and tag."""
    _parse(parse_cred_def_from_html, source, url, ("credDefId",), format)
