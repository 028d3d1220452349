"""Melodee CLI - Main entry point."""
import typer
from rich.console import Console
from rich.table import Table

from melodee.cli import quarantine, staging

app = typer.Typer(
    name="melodee",
    help="Melodee - Staging review, promotion and quarantine",
    add_completion=True,
)

console = Console()

# Add subcommands
app.add_typer(staging.app, name="staging", help="Staging review commands")
app.add_typer(quarantine.app, name="quarantine", help="Quarantine commands")


@app.command()
def version():
    """Show version information."""
    from melodee import __version__
    console.print(f"Melodee ingest v{__version__}")


@app.command()
def status():
    """Check database and storage paths."""
    from pathlib import Path
    from sqlalchemy import text
    from sqlalchemy.exc import SQLAlchemyError
    from melodee.config import settings
    from melodee.database import engine

    table = Table(title="Melodee Status")
    table.add_column("Component", style="cyan")
    table.add_column("Status", style="green")

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        table.add_row("Database", "Connected")
    except SQLAlchemyError as e:
        table.add_row("Database", f"[red]Error: {e}[/red]")

    for name, path in [
        ("Staging", settings.staging_root),
        ("Production", settings.production_root),
        ("Quarantine", settings.quarantine_root),
        ("Scan ledgers", settings.scan_output),
    ]:
        if Path(path).exists():
            table.add_row(name, f"OK ({path})")
        else:
            table.add_row(name, f"[yellow]Missing ({path})[/yellow]")

    console.print(table)


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", help="Bind port"),
):
    """Run the review API."""
    import uvicorn
    uvicorn.run("melodee.main:app", host=host, port=port)


if __name__ == "__main__":
    app()
