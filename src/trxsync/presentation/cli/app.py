"""trxsync CLI application using Typer.

Runs imports from the terminal, lists profiles and ledger accounts, and
starts the HTTP API.
"""

import asyncio
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from trxsync import __version__
from trxsync.application.commands import ImportCommand
from trxsync.application.dtos import (
    AuthStatusEvent,
    ErrorEvent,
    ImportEvent,
    ProgressEvent,
    QRCodeEvent,
    SuccessEvent,
)
from trxsync.application.events import EventBus
from trxsync.domain.shared.exceptions import DomainException
from trxsync.infrastructure.banking import BankRegistry
from trxsync.infrastructure.configuration import ProfileRepository
from trxsync.infrastructure.ledger import create_ledger
from trxsync_config.settings import get_settings

app = typer.Typer(
    name="trxsync",
    help="trxsync - bank transaction importer for Actual Budget",
    no_args_is_help=True,
)
console = Console()


def _print_event(event: ImportEvent) -> None:
    if isinstance(event, ProgressEvent):
        console.print(f"[dim]•[/dim] {event.message}")
    elif isinstance(event, QRCodeEvent):
        console.print(
            Panel(
                event.token,
                title="BankID QR token",
                subtitle="Scan with the BankID app",
                border_style="cyan",
            ),
        )
    elif isinstance(event, AuthStatusEvent):
        if event.auto_start_token:
            console.print(f"[cyan]Autostart token:[/cyan] {event.auto_start_token}")
        elif event.status != "pending":
            console.print(f"[cyan]Authentication {event.status}[/cyan]")
    elif isinstance(event, SuccessEvent):
        console.print(f"\n[bold green]✓ {event.message}[/bold green]")
    elif isinstance(event, ErrorEvent):
        console.print(f"\n[bold red]✗ {event.message}[/bold red]")


@app.command("import")
def import_transactions(
    profile: str = typer.Option(..., "--profile", "-p", help="Profile name"),
    dry_run: Optional[bool] = typer.Option(
        None,
        "--dry-run/--no-dry-run",
        help="Skip the ledger write (default from DRY_RUN)",
    ),
) -> None:
    """Import new bank transactions for PROFILE into Actual Budget."""
    settings = get_settings()
    command = ImportCommand.from_settings(settings)
    bus: EventBus[ImportEvent] = EventBus()
    bus.subscribe(_print_event)

    outcome = asyncio.run(command.execute(profile, dry_run=dry_run, bus=bus))

    if outcome.dry_run and outcome.success:
        console.print("[yellow]Dry run: nothing was written to the ledger.[/yellow]")
    if outcome.errors and outcome.success:
        for error in outcome.errors:
            console.print(f"[yellow]Warning:[/yellow] {error}")
    if not outcome.success:
        raise typer.Exit(code=1)


@app.command("profiles")
def list_profiles() -> None:
    """List profiles from profiles.json."""
    settings = get_settings()
    repository = ProfileRepository.from_settings(
        settings,
        BankRegistry.default(settings),
    )
    try:
        profiles = repository.list_profiles()
    except DomainException as e:
        console.print(f"[red]{e.message}[/red]")
        raise typer.Exit(code=1) from e

    if not profiles:
        console.print(f"[yellow]No profiles in {repository.path}[/yellow]")
        return

    table = Table(title=f"Profiles ({repository.path})")
    table.add_column("Name", style="cyan")
    table.add_column("Bank")
    table.add_column("Actual account id", style="dim")
    for profile in profiles:
        table.add_row(profile.name, profile.bank, profile.actual_account_id)
    console.print(table)


async def _fetch_accounts():
    settings = get_settings()
    repository = ProfileRepository.from_settings(
        settings,
        BankRegistry.default(settings),
    )
    config = repository.global_ledger_config()
    ledger = create_ledger(settings)
    try:
        await ledger.connect(config)
        return await ledger.list_accounts()
    finally:
        await ledger.shutdown()


@app.command("accounts")
def list_accounts() -> None:
    """List accounts in the Actual Budget ledger."""
    try:
        accounts = asyncio.run(_fetch_accounts())
    except DomainException as e:
        console.print(f"[red]{e.message}[/red]")
        raise typer.Exit(code=1) from e

    table = Table(title="Actual Budget accounts")
    table.add_column("Id", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Closed")
    table.add_column("Off budget")
    for account in accounts:
        table.add_row(
            account.id,
            account.name,
            "yes" if account.closed else "",
            "yes" if account.offbudget else "",
        )
    console.print(table)


@app.command("serve")
def serve(
    host: Optional[str] = typer.Option(None, help="Bind address (API_HOST)"),
    port: Optional[int] = typer.Option(None, help="Port (API_PORT)"),
    reload: bool = typer.Option(False, help="Reload on code changes"),
) -> None:
    """Start the HTTP API."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "trxsync.presentation.api.app:create_app",
        factory=True,
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=reload,
    )


@app.command("version")
def version() -> None:
    """Print the trxsync version."""
    console.print(f"trxsync {__version__}")


def cli() -> None:
    """Entry point for the CLI application."""
    app()


if __name__ == "__main__":
    cli()
