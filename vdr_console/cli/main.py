# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""vdr-console CLI entry point.

Commands:
    vdr-console serve                      Run the API server
    vdr-console indyscan schema|creddef    Parse ledger explorer pages
    vdr-console export <collection>        Dump a record collection
    vdr-console seed entities <file>       Load entities from a seed file
"""
from pathlib import Path

import typer

from vdr_console import __version__
from vdr_console.cli import indyscan
from vdr_console.cli.output import OutputFormat, output, output_error
from vdr_console.cli.utils import EXIT_IO_ERROR, EXIT_PARSE_ERROR

app = typer.Typer(
    name="vdr-console",
    help="VDR Console - administrative console for the verifiable data registry.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
seed_app = typer.Typer(name="seed", help="Load initial records.", no_args_is_help=True)

app.add_typer(indyscan.app, name="indyscan", help="Parse IndyScan / CandyScan pages")
app.add_typer(seed_app, name="seed")

# Collection name -> columns shown by ``--format table``
COLLECTIONS: dict[str, list[str]] = {
    "entities": ["id", "name", "entityTypes", "status"],
    "catalogue-credentials": ["id", "name", "version", "ledger", "ecosystemTag"],
    "ecosystem-tags": ["id", "name"],
    "vocab-types": ["id", "name", "category"],
    "vocab-categories": ["id", "name", "order"],
    "field-mappings": ["id", "fieldPath", "vocabTypeId", "vocabPropertyId"],
    "managed-assets": ["id", "name", "type", "entityId", "filename"],
    "badges": ["id", "name", "categoryId", "status"],
    "schema-projects": ["id", "title", "vct"],
}


def version_callback(value: bool) -> None:
    if value:
        typer.echo(f"vdr-console version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """VDR Console tools.

    Examples:
        vdr-console serve --port 5174
        vdr-console indyscan schema https://indyscan.io/tx/SOVRIN_MAINNET/domain/12345
        vdr-console export entities --format table
    """


@app.command("serve")
def serve_cmd(
    host: str = typer.Option(None, "--host", help="Bind address (default from config)"),
    port: int = typer.Option(None, "--port", "-p", help="Port (default from config)"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
) -> None:
    """Run the API server with uvicorn."""
    import uvicorn

    from vdr_console import config

    uvicorn.run(
        "vdr_console.main:app",
        host=host or config.HTTP_HOST,
        port=port or config.HTTP_PORT,
        reload=reload,
        log_config=None,
    )


@app.command("export")
def export_cmd(
    collection: str = typer.Argument(..., help=f"One of: {', '.join(COLLECTIONS)}"),
    format: OutputFormat = typer.Option(OutputFormat.json, "--format", "-f", help="Output format"),
) -> None:
    """Print every record of a collection."""
    if collection not in COLLECTIONS:
        output_error(
            "UNKNOWN_COLLECTION",
            f"Unknown collection: {collection}",
            details={"collections": list(COLLECTIONS)},
        )

    from vdr_console.db.session import init_database
    from vdr_console.store import DocumentStore

    init_database()
    records = DocumentStore(collection).all()
    output(records, format, table_columns=COLLECTIONS[collection], table_title=collection)


@seed_app.command("entities")
def seed_entities_cmd(
    path: Path = typer.Argument(..., help="Seed file: {\"entities\": [...]}"),
) -> None:
    """Seed an empty entity registry from a file (once per database)."""
    from vdr_console.db.session import init_database
    from vdr_console.entities import read_seed_file, seed_entities

    if not path.is_file():
        output_error("NOT_FOUND", f"Seed file not found: {path}", exit_code=EXIT_IO_ERROR)
    try:
        count = len(read_seed_file(path))
    except ValueError as e:
        output_error("INVALID_SEED", f"Invalid seed file: {e}", exit_code=EXIT_PARSE_ERROR)

    init_database()
    seeded = seed_entities(path)
    output({"seeded": seeded, "entities": count if seeded else 0})


if __name__ == "__main__":
    app()
