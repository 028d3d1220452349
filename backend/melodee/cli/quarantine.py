"""Melodee CLI - Quarantine commands."""
import typer
from rich.console import Console
from rich.table import Table

from melodee.config import settings
from melodee.database import SessionLocal
from melodee.models.quarantine import QuarantineReason
from melodee.services.errors import PipelineError
from melodee.services.quarantine import QuarantineService

app = typer.Typer()
console = Console()


@app.command("list")
def list_records(
    reason: QuarantineReason = typer.Option(None, "--reason", "-r", help="Filter by reason"),
    library_id: int = typer.Option(None, "--library", help="Filter by library ID"),
    show_resolved: bool = typer.Option(False, "--all", help="Include resolved records"),
    page: int = typer.Option(1, "--page", "-p", help="Page number"),
    limit: int = typer.Option(20, "--limit", "-n", help="Items per page"),
):
    """List quarantined files."""
    db = SessionLocal()
    try:
        result = QuarantineService(db, settings.quarantine_root).list(
            reason=reason,
            library_id=library_id,
            resolved=None if show_resolved else False,
            page=page,
            limit=limit,
        )

        table = Table(title=f"Quarantine (Page {result['page']}, Total: {result['total']})")
        table.add_column("ID", style="dim")
        table.add_column("Reason", style="yellow")
        table.add_column("Original path", style="cyan")
        table.add_column("Message")
        table.add_column("Resolved", justify="center")

        for record in result["items"]:
            table.add_row(
                str(record.id),
                record.reason.value,
                record.original_path,
                record.message or "",
                "[green]Y[/green]" if record.resolved else "",
            )

        console.print(table)
    finally:
        db.close()


@app.command()
def resolve(record_id: int = typer.Argument(..., help="Quarantine record ID")):
    """Mark a quarantined file as handled."""
    db = SessionLocal()
    try:
        QuarantineService(db, settings.quarantine_root).resolve(record_id)
        console.print(f"[green]Resolved quarantine record {record_id}[/green]")
    except PipelineError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    finally:
        db.close()


@app.command()
def requeue(
    record_id: int = typer.Argument(..., help="Quarantine record ID"),
    target_dir: str = typer.Option(None, "--to", help="Directory to move the file into"),
):
    """Move a quarantined file back for the next scan."""
    db = SessionLocal()
    try:
        record = QuarantineService(db, settings.quarantine_root).requeue(record_id, target_dir=target_dir)
        console.print(f"[green]Requeued {record.file_path}[/green]")
    except PipelineError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    finally:
        db.close()
