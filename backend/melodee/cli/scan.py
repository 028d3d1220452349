"""scan-inbound - walk an inbound directory into a new scan ledger."""
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from melodee.cli.signals import cancel_on_interrupt
from melodee.config import settings
from melodee.logging_config import setup_logging
from melodee.scanner.ledger import LedgerError, ScanLedger, cleanup_expired_ledgers
from melodee.scanner.scanner import FileScanner, ScanRootError

app = typer.Typer(
    name="scan-inbound",
    help="Scan an inbound directory and record every audio file in a ledger",
    add_completion=False,
)
console = Console()


@app.command()
def scan(
    path: Path = typer.Option(..., "--path", "-p", help="Inbound directory to scan"),
    output: Path = typer.Option(None, "--output", "-o", help="Directory for the scan ledger"),
    workers: int = typer.Option(None, "--workers", "-w", help="Extraction workers"),
    top: int = typer.Option(10, "--top", help="Album groups to show"),
    cleanup: bool = typer.Option(True, "--cleanup/--no-cleanup", help="Remove expired ledgers"),
):
    """Scan PATH and write scan_YYYYMMDD_HHMMSS.db into OUTPUT."""
    setup_logging()

    output = output or Path(settings.scan_output)
    workers = workers or settings.scan_workers

    if not path.is_dir():
        console.print(f"[red]Path not found: {path}[/red]")
        raise typer.Exit(1)

    if cleanup:
        removed = cleanup_expired_ledgers(output, settings.ledger_retention_days)
        if removed:
            console.print(f"[dim]Removed {len(removed)} expired ledger(s)[/dim]")

    try:
        ledger = ScanLedger.create(output)
    except LedgerError as e:
        console.print(f"[red]Cannot create ledger: {e}[/red]")
        raise typer.Exit(1)

    with ledger, cancel_on_interrupt() as cancel:
        console.print(f"[cyan]Scanning {path} with {workers} workers...[/cyan]")
        try:
            stats = FileScanner(ledger, workers=workers, cancel_event=cancel).scan_directory(path)
            stats.albums_found = ledger.compute_album_grouping()
            groups = ledger.get_album_groups()
        except ScanRootError as e:
            console.print(f"[red]{e}[/red]")
            raise typer.Exit(1)
        except LedgerError as e:
            console.print(f"[red]Scan aborted: {e}[/red]")
            console.print(f"[dim]Partial ledger kept at {ledger.path}[/dim]")
            raise typer.Exit(1)

    table = Table(title=f"Scan {ledger.scan_id}")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Files", str(stats.total_files))
    table.add_row("Valid", f"[green]{stats.valid_files}[/green]")
    table.add_row("Invalid", f"[red]{stats.invalid_files}[/red]" if stats.invalid_files else "0")
    table.add_row("Albums", str(stats.albums_found))
    table.add_row("Duration", f"{stats.duration:.1f}s")
    table.add_row("Throughput", f"{stats.files_per_second:.1f} files/s")
    console.print(table)

    if groups and top > 0:
        albums = Table(title=f"Top {min(top, len(groups))} album groups")
        albums.add_column("Artist", style="cyan")
        albums.add_column("Album")
        albums.add_column("Year", justify="right")
        albums.add_column("Tracks", justify="right")
        for group in sorted(groups, key=lambda g: -g.track_count)[:top]:
            albums.add_row(group.artist_name, group.album_name, str(group.year or ""), str(group.track_count))
        console.print(albums)

    console.print(f"Ledger: {ledger.path}")

    if stats.cancelled:
        console.print("[yellow]Scan cancelled; ledger holds the files scanned so far[/yellow]")
        raise typer.Exit(2)


def main():
    app()


if __name__ == "__main__":
    main()
