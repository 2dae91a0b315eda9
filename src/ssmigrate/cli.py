"""
Command-line interface for ssmigrate.
"""

import asyncio
import sys
from functools import wraps
from pathlib import Path
from typing import List

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__
from .config import MigrateSettings
from .document import SchemaDocument, load_schema, write_default_schema
from .exceptions import SchemaError, SsMigrateError
from .logging_setup import configure_logging
from .schema.applier import Applier, ApplyResult, ApplyStatus
from .schema.models import Plan
from .schema.planner import Planner
from .store.factory import StoreFactory


console = Console()


def handle_errors(func):
    """Decorator to handle errors gracefully in CLI commands."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except SsMigrateError as e:
            console.print(f"[red]Error:[/red] {escape(str(e))}")
            sys.exit(1)
        except KeyboardInterrupt:
            console.print("\n[yellow]Interrupted by user[/yellow]")
            sys.exit(130)
        except Exception as e:
            console.print(f"[red]Unexpected error:[/red] {escape(str(e))}")
            ctx = click.get_current_context(silent=True)
            if ctx is not None and ctx.find_root().params.get("debug"):
                console.print_exception()
            sys.exit(1)
    return wrapper


@click.group()
@click.version_option(__version__, prog_name="ss-migrate")
@click.option(
    "--debug", is_flag=True, help="Enable debug logging"
)
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    help="Settings file path (YAML)",
)
@click.pass_context
def main(ctx, debug, config_path):
    """ss-migrate: Declarative schema migrations for spreadsheets."""
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = config_path


def _load_settings(ctx: click.Context) -> MigrateSettings:
    """Load settings once per invocation and configure logging from them."""
    if "settings" not in ctx.obj:
        settings = MigrateSettings.load(ctx.obj.get("config_path"))
        configure_logging(settings.logging, debug=ctx.obj.get("debug") or settings.debug)
        ctx.obj["settings"] = settings
    return ctx.obj["settings"]


@main.command()
@click.argument("schema_path", type=click.Path(dir_okay=False), default="schema.yaml")
@handle_errors
def init(schema_path: str):
    """Create a new schema document from the default template."""
    if Path(schema_path).exists():
        if not click.confirm(f"Schema file {schema_path} already exists. Overwrite?"):
            return

    write_default_schema(schema_path)
    console.print(f"[green]✓[/green] Schema file created: {schema_path}")
    console.print("\n[yellow]Next steps:[/yellow]")
    console.print("1. Edit the schema file with your spreadsheet URL and fields")
    console.print("2. Set SSMIGRATE_STORE__ACCESS_TOKEN to an OAuth2 access token")
    console.print(f"3. Run: ss-migrate plan {schema_path}")
    console.print(f"4. Run: ss-migrate apply {schema_path}")


@main.command()
@click.argument("schema_path", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
@handle_errors
def validate(ctx, schema_path: str):
    """Validate a schema document."""
    _load_settings(ctx)
    console.print(f"Validating schema: {schema_path}")

    try:
        document = load_schema(schema_path)
    except SchemaError as e:
        console.print(f"[red]✗[/red] Schema error: {escape(str(e))}")
        sys.exit(1)

    console.print("[green]✓[/green] Schema is valid")
    _display_schema_summary(document)


@main.command()
@click.argument("schema_path", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
@handle_errors
def plan(ctx, schema_path: str):
    """Show the changes needed to bring each sheet in line with the schema."""
    settings = _load_settings(ctx)
    document = load_schema(schema_path)

    plans = asyncio.run(_compute_plans(settings, document))
    _display_plans(plans)


@main.command()
@click.argument("schema_path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--dry-run",
    is_flag=True,
    help="Show what would be done without making changes",
)
@click.option(
    "--yes",
    "-y",
    is_flag=True,
    help="Apply without asking for confirmation",
)
@click.pass_context
@handle_errors
def apply(ctx, schema_path: str, dry_run: bool, yes: bool):
    """Apply the schema to the spreadsheet."""
    settings = _load_settings(ctx)
    dry_run = dry_run or settings.apply.dry_run
    auto_confirm = yes or settings.apply.auto_confirm

    document = load_schema(schema_path)
    plans = asyncio.run(_compute_plans(settings, document))
    _display_plans(plans)

    pending = [p for p in plans if p.has_changes]
    if not pending:
        console.print("\n[green]✓[/green] Nothing to apply")
        return

    if dry_run:
        console.print("\n[yellow]Dry run mode - no changes will be made[/yellow]")
    elif not auto_confirm and not click.confirm("\nDo you want to apply these changes?"):
        console.print("[yellow]Apply cancelled[/yellow]")
        return

    results = asyncio.run(_apply_plans(settings, document, pending, dry_run))
    _display_results(results)

    if any(result.errors for result in results):
        sys.exit(1)


async def _compute_plans(settings: MigrateSettings, document: SchemaDocument) -> List[Plan]:
    store = StoreFactory.create_store(settings.store)
    async with store:
        planner = Planner(store, sample_rows=settings.store.sample_rows)
        return await planner.plan_all(document)


async def _apply_plans(
    settings: MigrateSettings,
    document: SchemaDocument,
    plans: List[Plan],
    dry_run: bool,
) -> List[ApplyResult]:
    cancel_event = asyncio.Event()
    deadline = None
    if settings.apply.timeout_seconds:
        deadline = asyncio.get_running_loop().call_later(
            settings.apply.timeout_seconds, cancel_event.set
        )

    store = StoreFactory.create_store(settings.store)
    try:
        async with store:
            applier = Applier(
                store,
                dry_run=dry_run,
                create_missing_resources=settings.apply.create_missing_resources,
            )
            return await applier.apply_all(document, plans, cancel_event)
    finally:
        if deadline is not None:
            deadline.cancel()


def _display_schema_summary(document: SchemaDocument):
    """Display a summary of the schema document."""
    table = Table(title="Resources")
    table.add_column("Sheet", style="cyan")
    table.add_column("Spreadsheet ID", style="magenta")
    table.add_column("Header Row", style="green")
    table.add_column("Fields", style="yellow")

    for resource in document.resources:
        table.add_row(
            escape(resource.name),
            resource.store_id,
            str(resource.header_row),
            escape(", ".join(resource.field_names)),
        )

    console.print(table)


def _display_plans(plans: List[Plan]):
    """Display every plan, one table per sheet with changes."""
    for plan in plans:
        if not plan.has_changes:
            console.print(f"[green]✓[/green] {escape(plan.summary)}")
            continue

        console.print(f"\n[bold]{escape(plan.summary)}[/bold]")
        table = Table()
        table.add_column("", style="bold")
        table.add_column("Path", style="cyan")
        table.add_column("Change", style="white")

        for change in plan.changes:
            table.add_row(
                _symbol_markup(change.symbol),
                escape(change.path),
                escape(change.description),
            )

        console.print(table)


def _symbol_markup(symbol: str) -> str:
    colors = {"+": "green", "-": "red", "~": "yellow"}
    color = colors.get(symbol, "blue")
    return f"[{color}]{symbol}[/{color}]"


def _display_results(results: List[ApplyResult]):
    """Display per-sheet apply results and any failed changes."""
    table = Table(title="Apply Results")
    table.add_column("Sheet", style="cyan")
    table.add_column("Status", style="magenta")
    table.add_column("Applied", style="green")
    table.add_column("Manual", style="yellow")
    table.add_column("Failed", style="red")

    for result in results:
        status = result.status.value
        if result.status == ApplyStatus.PARTIALLY_FAILED:
            status = f"[red]{status}[/red]"
        table.add_row(
            escape(result.resource),
            status,
            str(result.changes_applied),
            str(result.changes_skipped),
            str(result.failed_changes),
        )

    console.print(table)

    for result in results:
        console.print(f"{escape(result.resource)}: {escape(result.message)}")
        for error in result.errors:
            console.print(f"  [red]✗[/red] {escape(str(error))}")


if __name__ == "__main__":
    main()
