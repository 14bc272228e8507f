"""Main CLI entry point for WriteOff."""

from contextlib import contextmanager

import typer
from typer import Typer
import yaml
from rich.console import Console
from rich.table import Table
from rich.theme import Theme

from ..agents.deduction_analyzer import DeductionAnalyzer
from ..agents.response_parser import parse_deduction_response
from ..banking.plaid_client import PlaidClient
from ..db import crud, database
from ..db.user_lookup import UserLookup
from ..reports.dashboard import (
    calculate_stats,
    export_transactions_csv,
    summarize_by_category,
)
from ..services import profiles
from ..services.ingestion import TransactionIngestor
from ..utils.config import USER_PROFILE_FIELDS
from ..utils.logging_config import configure_logging
from ..utils.openai_client import OpenAIClient

custom_theme = Theme(
    {
        "fieldname": "cyan",
        "value": "magenta",
        "comment": "green",
        "normal": "white",
    }
)
console = Console(theme=custom_theme)

app = Typer(
    help="""WriteOff CLI - Import bank transactions and find tax write-offs.

This tool helps you:
1. Import the last 90 days of transactions from a connected bank
2. Classify each transaction as deductible using AI
3. Review dashboard totals and export the ledger

Use --help with any command for detailed information.
"""
)
profile_app = Typer(help="Show or import user profile settings.")
app.add_typer(profile_app, name="profile")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging")):
    configure_logging(level="DEBUG" if verbose else None, colored=True)


@contextmanager
def session_scope():
    db = database.SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _fail(message: str) -> None:
    console.print(f"[red]{message}[/red]")
    raise typer.Exit(code=1)


def _llm_or_exit() -> OpenAIClient:
    try:
        return OpenAIClient()
    except ValueError as e:
        _fail(str(e))


@app.command(name="init-db")
def init_db_command():
    """Create any missing database tables."""
    database.init_db()
    console.print("[green]✓ Database initialized[/green]")


@app.command()
def parse(text: str = typer.Argument(..., help="Model reply to parse")):
    """Parse a 'Yes/No, reason, NN%' reply and print the verdict."""
    verdict = parse_deduction_response(text)
    for key, value in verdict.model_dump().items():
        console.print(f"[fieldname]{key}[/fieldname]: [value]{value}[/value]")


@app.command()
def sync(user_id: str = typer.Argument(..., help="User whose bank to import")):
    """Import and classify the user's recent bank transactions."""
    try:
        plaid_client = PlaidClient()
    except ValueError as e:
        _fail(str(e))
    try:
        llm = OpenAIClient()
    except ValueError as e:
        console.print(f"[yellow]{e}; transactions will need manual review[/yellow]")
        llm = None

    with session_scope() as db:
        analyzer = DeductionAnalyzer(llm, db) if llm is not None else None
        read_db = database.ReadSessionLocal() if database.ReadSessionLocal else None
        try:
            ingestor = TransactionIngestor(
                plaid_client,
                analyzer,
                db,
                user_lookup=UserLookup.for_sessions(db, read_db),
            )
            result = ingestor.fetch_transactions(user_id)
        finally:
            if read_db is not None:
                read_db.close()

    if not result.success:
        _fail(result.error)
    console.print(f"[green]✓ Processed {result['count']} transactions[/green]")


@app.command()
def analyze(user_id: str = typer.Argument(..., help="User whose ledger to analyze")):
    """Re-run the deductibility analysis over every stored transaction."""
    llm = _llm_or_exit()
    with session_scope() as db:
        result = DeductionAnalyzer(llm, db).analyze_all_transactions(user_id)
    if not result.success:
        _fail(result.error)
    console.print(
        f"[green]✓ Analyzed {result['analyzed']} of {result['total']} transactions[/green]"
    )


@app.command()
def summary(user_id: str = typer.Argument(..., help="User to summarize")):
    """Ask the model for a plain-language tax summary."""
    llm = _llm_or_exit()
    with session_scope() as db:
        result = DeductionAnalyzer(llm, db).generate_tax_summary(user_id)
    if not result.success:
        _fail(result.error)
    console.print(
        f"[bold]Deductible:[/bold] ${result['total_deductible']:,.2f} "
        f"across {result['deductible_count']} transactions\n"
    )
    console.print(result["summary"])


@app.command()
def stats(user_id: str = typer.Argument(..., help="User to report on")):
    """Print dashboard totals and spend per category."""
    with session_scope() as db:
        transactions = crud.get_transactions(db, user_id)
        totals = calculate_stats(transactions)
        by_category = summarize_by_category(transactions)

    table = Table(title=f"Dashboard for {user_id}")
    table.add_column("Metric", style="cyan")
    table.add_column("Amount", style="magenta", justify="right")
    for key, value in totals.items():
        table.add_row(key.replace("_", " ").title(), f"${value:,.2f}")
    console.print(table)

    if by_category.empty:
        return
    categories = Table(title="By Category")
    categories.add_column("Category", style="cyan")
    categories.add_column("Total", style="magenta", justify="right")
    categories.add_column("Deductible", style="green", justify="right")
    categories.add_column("Count", justify="right")
    for row in by_category.itertuples(index=False):
        categories.add_row(
            str(row.category),
            f"${row.total:,.2f}",
            f"${row.deductible:,.2f}",
            str(row.count),
        )
    console.print(categories)


@app.command()
def export(
    user_id: str = typer.Argument(..., help="User whose ledger to export"),
    path: str = typer.Argument(..., help="Destination CSV file"),
):
    """Export the user's transactions to CSV."""
    with session_scope() as db:
        count = export_transactions_csv(crud.get_transactions(db, user_id), path)
    console.print(f"[green]✓ Exported {count} transactions to {path}[/green]")


@profile_app.command("show")
def profile_show(user_id: str = typer.Argument(...)):
    """Show a user's profile settings."""
    with session_scope() as db:
        result = profiles.get_profile(db, user_id)
    if not result.success:
        _fail(result.error)
    for key, value in result["user"].items():
        console.print(f"[fieldname]{key}[/fieldname]: [value]{value}[/value]")


@profile_app.command("import")
def profile_import(
    user_id: str = typer.Argument(...),
    config_path: str = typer.Argument(..., help="YAML file with profile fields"),
):
    """Create or update a user's profile from a YAML file."""
    with open(config_path) as f:
        config = yaml.safe_load(f) or {}

    unknown = sorted(set(config) - set(USER_PROFILE_FIELDS))
    if unknown:
        console.print(f"[yellow]Ignoring unknown fields: {', '.join(unknown)}[/yellow]")

    with session_scope() as db:
        if crud.user_exists(db, user_id):
            result = profiles.update_profile(db, user_id, config)
        else:
            result = profiles.create_profile(db, user_id, config)
    if not result.success:
        _fail(result.error)
    console.print(f"[green]✓ Saved profile for {user_id}[/green]")


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", help="Bind address"),
    port: int = typer.Option(8000, help="Port"),
    reload: bool = typer.Option(False, help="Reload on code changes"),
):
    """Run the API server."""
    import uvicorn

    uvicorn.run("writeoff.web.app:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
