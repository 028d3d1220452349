"""process-scan - stage the album groups of a scan ledger."""
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table
from sqlalchemy import text
from sqlalchemy.engine import URL
from sqlalchemy.exc import SQLAlchemyError

from melodee.cli.signals import cancel_on_interrupt
from melodee.config import settings
from melodee.database import make_session_factory
from melodee.logging_config import setup_logging
from melodee.processor.directory_codes import DirectoryCodeGenerator
from melodee.processor.processor import Processor, ProcessorConfig
from melodee.scanner.ledger import LedgerError, ScanLedger

app = typer.Typer(
    name="process-scan",
    help="Move scanned albums into the staging tree for review",
    add_completion=False,
)
console = Console()


def build_database_url(
    db_url: Optional[str],
    db_host: Optional[str],
    db_port: int,
    db_name: str,
    db_user: Optional[str],
    db_pass: Optional[str],
) -> Optional[str]:
    """Database URL from the CLI flags, or None when no database was given."""
    if db_url:
        return db_url
    if not db_host:
        return None
    return URL.create(
        "postgresql",
        username=db_user,
        password=db_pass,
        host=db_host,
        port=db_port,
        database=db_name,
    ).render_as_string(hide_password=False)


def format_size(size: int) -> str:
    for unit in ("B", "KB", "MB", "GB"):
        if size < 1024:
            return f"{size:.0f} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"


@app.command()
def process(
    scan: Path = typer.Option(..., "--scan", "-s", help="Scan ledger file"),
    staging: Path = typer.Option(None, "--staging", help="Staging root directory"),
    workers: int = typer.Option(None, "--workers", "-w", help="Processing workers"),
    rate_limit: int = typer.Option(None, "--rate-limit", help="Max file moves per second (0 = unlimited)"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Plan everything, move nothing"),
    quarantine_dir: Path = typer.Option(None, "--quarantine-dir", help="Quarantine root directory"),
    library_id: int = typer.Option(None, "--library-id", help="Library owning quarantine records"),
    db_url: str = typer.Option(None, "--db-url", help="Database URL (overrides --db-* flags)"),
    db_host: str = typer.Option(None, "--db-host", help="PostgreSQL host"),
    db_port: int = typer.Option(5432, "--db-port", help="PostgreSQL port"),
    db_name: str = typer.Option("melodee", "--db-name", help="PostgreSQL database"),
    db_user: str = typer.Option(None, "--db-user", help="PostgreSQL user"),
    db_pass: str = typer.Option(None, "--db-pass", help="PostgreSQL password"),
):
    """Stage every album in SCAN. With database flags, staged albums are recorded for review."""
    setup_logging()

    staging = staging or Path(settings.staging_root)
    config = ProcessorConfig(
        staging_root=staging,
        workers=workers or settings.process_workers,
        rate_limit=settings.process_rate_limit if rate_limit is None else rate_limit,
        dry_run=dry_run,
        quarantine_root=quarantine_dir or Path(settings.quarantine_root),
        library_id=library_id or settings.library_id,
    )

    try:
        ledger = ScanLedger.open(scan)
    except LedgerError as e:
        console.print(f"[red]Cannot open scan ledger: {e}[/red]")
        raise typer.Exit(1)

    session_factory = None
    database_url = build_database_url(db_url, db_host, db_port, db_name, db_user, db_pass)
    if database_url:
        try:
            session_factory = make_session_factory(database_url)
            with session_factory() as db:
                db.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            console.print(f"[red]Cannot connect to database: {e}[/red]")
            ledger.close()
            raise typer.Exit(1)
    else:
        console.print("[yellow]No database given; staged albums will not be recorded[/yellow]")

    codes = DirectoryCodeGenerator(
        session_factory=None if dry_run else session_factory,
        max_length=settings.directory_code_max_length,
        min_length=settings.directory_code_min_length,
        suffix_pattern=settings.directory_code_suffix_pattern,
    )

    with ledger, cancel_on_interrupt() as cancel:
        if dry_run:
            console.print("[yellow]DRY RUN - no files will be moved[/yellow]")
        processor = Processor(config, ledger, code_generator=codes, session_factory=session_factory, cancel_event=cancel)
        results = processor.process_all()
        stats = processor.stats

    table = Table(title=f"Staged albums ({ledger.scan_id})")
    table.add_column("Artist", style="cyan")
    table.add_column("Album")
    table.add_column("Year", justify="right")
    table.add_column("Tracks", justify="right")
    table.add_column("Size", justify="right")
    table.add_column("Status")
    for result in results:
        if result.success:
            status = "[green]OK[/green]"
        else:
            status = f"[red]{result.error or f'{len(result.errors)} error(s)'}[/red]"
        table.add_row(
            result.artist_name,
            result.album_name,
            str(result.year or ""),
            str(result.track_count),
            format_size(result.total_size),
            status,
        )
    console.print(table)

    for result in results:
        for error in result.errors:
            console.print(f"  [red]{result.artist_name} - {result.album_name}: {error}[/red]")

    console.print(
        f"\n{stats.success_albums}/{stats.total_albums} albums staged, "
        f"{stats.failed_albums} with errors, {stats.total_tracks} tracks, "
        f"{format_size(stats.total_size)}, {stats.quarantined} quarantined "
        f"in {stats.duration:.1f}s"
    )

    if stats.cancelled:
        console.print("[yellow]Processing cancelled[/yellow]")
    if stats.has_errors or stats.cancelled:
        raise typer.Exit(2)


def main():
    app()


if __name__ == "__main__":
    main()
