"""Melodee CLI - Staging review commands."""
import typer
from rich.console import Console
from rich.table import Table

from melodee.config import settings
from melodee.database import SessionLocal
from melodee.models.staging_item import StagingStatus
from melodee.services.errors import PipelineError
from melodee.services.promotion import PromotionService
from melodee.services.staging import StagingRepository

app = typer.Typer()
console = Console()


@app.command("list")
def list_items(
    status: StagingStatus = typer.Option(None, "--status", "-s", help="Filter by status"),
    scan_id: str = typer.Option(None, "--scan", help="Filter by scan id"),
    page: int = typer.Option(1, "--page", "-p", help="Page number"),
    limit: int = typer.Option(20, "--limit", "-n", help="Items per page"),
):
    """List staged albums."""
    db = SessionLocal()
    try:
        result = StagingRepository(db).list(status=status, scan_id=scan_id, page=page, limit=limit)

        table = Table(title=f"Staging (Page {result['page']}, Total: {result['total']})")
        table.add_column("ID", style="dim")
        table.add_column("Artist", style="cyan")
        table.add_column("Album")
        table.add_column("Tracks", justify="right")
        table.add_column("Status")
        table.add_column("Scan", style="dim")

        for item in result["items"]:
            table.add_row(
                str(item.id),
                item.artist_name,
                item.album_name,
                str(item.track_count),
                item.status.value,
                item.scan_id,
            )

        console.print(table)
    finally:
        db.close()


@app.command()
def approve(
    item_id: int = typer.Argument(..., help="Staging item ID"),
    notes: str = typer.Option(None, "--notes", help="Review notes"),
):
    """Approve a staged album for promotion."""
    db = SessionLocal()
    try:
        item = StagingRepository(db).approve(item_id, notes=notes)
        console.print(f"[green]Approved {item.artist_name} - {item.album_name}[/green]")
    except PipelineError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    finally:
        db.close()


@app.command()
def reject(
    item_id: int = typer.Argument(..., help="Staging item ID"),
    notes: str = typer.Option(..., "--notes", help="Why the album was rejected"),
):
    """Reject a staged album."""
    db = SessionLocal()
    try:
        item = StagingRepository(db).reject(item_id, notes=notes)
        console.print(f"[yellow]Rejected {item.artist_name} - {item.album_name}[/yellow]")
    except PipelineError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    finally:
        db.close()


@app.command()
def promote(
    item_ids: list[int] = typer.Argument(..., help="Staging item ID(s)"),
):
    """Promote approved albums into the production catalog."""
    db = SessionLocal()
    try:
        results = PromotionService(db, settings.production_root).promote_batch(item_ids)
    finally:
        db.close()

    failed = 0
    for result in results:
        if result["success"]:
            console.print(f"[green]Promoted item {result['id']} as album {result['album_id']}[/green]")
        else:
            failed += 1
            console.print(f"[red]Item {result['id']}: {result['error']}[/red]")

    if failed:
        raise typer.Exit(1 if failed == len(results) else 2)


@app.command()
def delete(
    item_id: int = typer.Argument(..., help="Staging item ID"),
    delete_files: bool = typer.Option(False, "--delete-files", help="Also remove the staged files"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation"),
):
    """Delete a rejected album."""
    db = SessionLocal()
    try:
        repo = StagingRepository(db)
        item = repo.get(item_id)

        if not force:
            what = "and its files " if delete_files else ""
            confirm = typer.confirm(f"Delete {item.artist_name} - {item.album_name} {what}?")
            if not confirm:
                raise typer.Abort()

        repo.delete(item_id, delete_files=delete_files)
        console.print(f"[green]Deleted staging item {item_id}[/green]")
    except PipelineError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    finally:
        db.close()


@app.command()
def stats():
    """Show staging counts."""
    db = SessionLocal()
    try:
        counts = StagingRepository(db).stats()
    finally:
        db.close()

    table = Table(title="Staging")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    for key in ("pending_review", "approved", "rejected", "total", "total_tracks", "total_size"):
        table.add_row(key.replace("_", " ").title(), str(counts[key]))
    console.print(table)
