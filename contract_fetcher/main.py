"""Command-line entry point for the contract fetcher."""
from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from typing import Callable, Iterator, NoReturn, Optional

import typer

from . import csv_store
from .addresses import read_address_file, read_metadata_csv
from .config import DEFAULT_BATCH_SIZE, DatabaseSettings, ExplorerSettings
from .db import ContractStore
from .errors import SetupError
from .explorer import MetadataClient
from .importer import BatchImporter, ImportOutcome
from .models import AddressEntry
from .pipeline import ContractPipeline, FetchOutcome, RunSummary, import_records
from .stats import compute_stats


app = typer.Typer(
    add_completion=False,
    help="Fetch verified contract metadata from a block explorer and manage CSV datasets.",
)

_API_KEY_HELP = "Explorer API key (or set ETHERSCAN_API_KEY)."
_DATABASE_URL_HELP = "Database URL (or set DATABASE_URL)."
_BATCH_SIZE_HELP = "Records per database batch."
_LOG_LEVEL_HELP = "Logging level (DEBUG, INFO, WARNING)."


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _abort(exc: SetupError) -> NoReturn:
    typer.secho(f"Error: {exc}", err=True, fg=typer.colors.RED)
    raise typer.Exit(code=1)


@contextmanager
def _fetch_progress(total: int) -> Iterator[Callable[[FetchOutcome], None]]:
    with typer.progressbar(length=total, label="Fetching") as bar:

        def report(outcome: FetchOutcome) -> None:
            if outcome.record is not None:
                typer.echo(f"✓ {outcome.record.name} - {outcome.record.address}")
            else:
                typer.echo(f"✗ {outcome.entry.address} - Error: {outcome.error}", err=True)
            bar.update(1)

        yield report


def _report_import_failure(outcome: ImportOutcome) -> None:
    if not outcome.ok:
        typer.echo(f"✗ {outcome.error}", err=True)


def _print_summary(summary: RunSummary, sunk_label: str) -> None:
    typer.echo(f"\nDone: {summary.describe()}")
    typer.echo(f"✅ {sunk_label}: {summary.sunk}")


def _fetch_into_store(
    entries: list[AddressEntry],
    explorer: ExplorerSettings,
    database: DatabaseSettings,
) -> RunSummary:
    with ContractStore(database.url) as store, MetadataClient(explorer) as client:
        importer = BatchImporter(store, database.batch_size, on_outcome=_report_import_failure)
        with _fetch_progress(len(entries)) as report:
            pipeline = ContractPipeline(client, on_fetch=report)
            return pipeline.run_to_store(entries, importer)


@app.command()
def fetch(
    input_path: str = typer.Option("curated-addresses.txt", "--input", "-i", help="Curated address list."),
    output: str = typer.Option("contracts.csv", "--output", "-o", help="Output CSV file."),
    api_key: Optional[str] = typer.Option(None, "--api-key", "-a", help=_API_KEY_HELP),
    append: bool = typer.Option(False, help="Append to an existing CSV instead of rewriting it."),
    log_level: str = typer.Option("WARNING", help=_LOG_LEVEL_HELP),
) -> None:
    """Fetch contracts from the explorer and save them to CSV."""
    configure_logging(log_level)
    try:
        explorer = ExplorerSettings.from_env(api_key)
        typer.echo(f"📖 Reading curated addresses from: {input_path}")
        entries = read_address_file(input_path)
    except SetupError as exc:
        _abort(exc)
    typer.echo(f"✓ Found {len(entries)} addresses to fetch\n")

    with MetadataClient(explorer) as client:
        with _fetch_progress(len(entries)) as report:
            pipeline = ContractPipeline(client, on_fetch=report)
            summary = pipeline.run_to_file(entries, output, append=append)

    _print_summary(summary, f"Contracts saved to {output}")


@app.command("fetch-to-db")
def fetch_to_db(
    input_path: str = typer.Option("curated-addresses.txt", "--input", "-i", help="Curated address list."),
    api_key: Optional[str] = typer.Option(None, "--api-key", "-a", help=_API_KEY_HELP),
    database_url: Optional[str] = typer.Option(None, "--database-url", "-d", help=_DATABASE_URL_HELP),
    batch_size: int = typer.Option(DEFAULT_BATCH_SIZE, "--batch-size", "-b", help=_BATCH_SIZE_HELP),
    log_level: str = typer.Option("WARNING", help=_LOG_LEVEL_HELP),
) -> None:
    """Fetch contracts from the explorer and upsert them straight into the database."""
    configure_logging(log_level)
    try:
        explorer = ExplorerSettings.from_env(api_key)
        database = DatabaseSettings.from_env(database_url, batch_size)
        typer.echo(f"📖 Reading curated addresses from: {input_path}")
        entries = read_address_file(input_path)
        typer.echo(f"✓ Found {len(entries)} addresses to fetch\n")
        summary = _fetch_into_store(entries, explorer, database)
    except SetupError as exc:
        _abort(exc)
    _print_summary(summary, "Contracts imported to database")


@app.command("import")
def import_csv(
    input_path: str = typer.Option("contracts.csv", "--input", "-i", help="Contracts CSV file."),
    database_url: Optional[str] = typer.Option(None, "--database-url", "-d", help=_DATABASE_URL_HELP),
    batch_size: int = typer.Option(DEFAULT_BATCH_SIZE, "--batch-size", "-b", help=_BATCH_SIZE_HELP),
    log_level: str = typer.Option("WARNING", help=_LOG_LEVEL_HELP),
) -> None:
    """Upsert the rows of a contracts CSV into the database."""
    configure_logging(log_level)
    try:
        database = DatabaseSettings.from_env(database_url, batch_size)
        typer.echo(f"📖 Reading contracts from: {input_path}")
        records = csv_store.read_records(input_path)
        typer.echo(f"✓ Found {len(records)} contracts in CSV\n")
        with ContractStore(database.url) as store:
            importer = BatchImporter(store, database.batch_size, on_outcome=_report_import_failure)
            summary = import_records(records, importer)
    except SetupError as exc:
        _abort(exc)
    _print_summary(summary, "Contracts imported to database")


@app.command()
def stats(
    input_path: str = typer.Option("contracts.csv", "--input", "-i", help="Contracts CSV file."),
    log_level: str = typer.Option("WARNING", help=_LOG_LEVEL_HELP),
) -> None:
    """Show statistics about a contracts CSV."""
    configure_logging(log_level)
    typer.echo(f"📊 Reading statistics from: {input_path}")
    try:
        result = compute_stats(csv_store.read_records(input_path))
    except SetupError as exc:
        _abort(exc)

    typer.echo("\n📈 Contract Statistics:")
    typer.echo(f"  Total contracts: {result.total}")
    typer.echo(f"  With symbols:    {result.with_symbol}")
    typer.echo(f"  Proxies:         {result.proxies}")
    typer.echo(f"  With protocol:   {result.with_protocol}")

    if result.by_protocol:
        typer.echo("\n📦 By Protocol:")
        for protocol, count in result.by_protocol:
            typer.echo(f"  {protocol}: {count}")

    typer.echo("\n🔗 By Chain:")
    for line in result.chain_lines():
        typer.echo(f"  {line}")


@app.command("fetch-from-metadata-csv")
def fetch_from_metadata_csv(
    input_path: str = typer.Option("contracts-metadata.csv", "--input", "-i", help="Metadata CSV file."),
    api_key: Optional[str] = typer.Option(None, "--api-key", "-a", help=_API_KEY_HELP),
    database_url: Optional[str] = typer.Option(None, "--database-url", "-d", help=_DATABASE_URL_HELP),
    batch_size: int = typer.Option(DEFAULT_BATCH_SIZE, "--batch-size", "-b", help=_BATCH_SIZE_HELP),
    log_level: str = typer.Option("WARNING", help=_LOG_LEVEL_HELP),
) -> None:
    """Re-fetch source and ABI for every address in a metadata CSV and import them."""
    configure_logging(log_level)
    try:
        explorer = ExplorerSettings.from_env(api_key)
        database = DatabaseSettings.from_env(database_url, batch_size)
        typer.echo(f"📖 Reading metadata CSV from: {input_path}")
        entries = read_metadata_csv(input_path)
        typer.echo(f"✓ Found {len(entries)} addresses to fetch\n")
        summary = _fetch_into_store(entries, explorer, database)
    except SetupError as exc:
        _abort(exc)
    _print_summary(summary, "Contracts imported to database")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
