"""CLI interface for sales recording and daily reports."""

import json
import logging
from contextlib import contextmanager
from enum import Enum
from typing import Iterator, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .catalog import seed_catalog
from .config import get_config
from .dependencies import build_repository
from .exceptions import ContractError
from .models import PaymentMethod, SalesReport
from .services.sales_service import SalesService

app = typer.Typer(
    name="posreport",
    help="""
    [bold]POS Sales Report CLI[/bold]

    Record point-of-sale transactions and build per-day financial reports.

    [cyan]Examples:[/cyan]
      posreport seed
      posreport add-sale --date 01-02-2024 --product "product 1" --payment-method Pix
      posreport report 01-02-2024
      posreport report 01-02-2024 --json
      posreport --mode api
    """,
    no_args_is_help=True,
)

console = Console()
logger = logging.getLogger(__name__)

REPORT_TABLE_MIN_WIDTH = 40


class RunMode(str, Enum):
    CLI = "cli"
    API = "api"


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    mode: RunMode = typer.Option(
        RunMode.CLI,
        "--mode",
        help="Run mode: cli (default) or api (serve HTTP with uvicorn)",
    ),
) -> None:
    if mode is RunMode.API:
        from .api import main as run_api

        run_api()
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else get_config().log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@contextmanager
def _sales_service(database_url: Optional[str]) -> Iterator[SalesService]:
    """Open the configured record store for the duration of one command."""
    config = get_config()
    if database_url:
        config = config.model_copy(update={"database_url": database_url})
    if config.storage_backend == "memory":
        console.print(
            "[bold red]✗ Error:[/bold red] STORAGE_BACKEND=memory keeps no data between "
            "commands; use the sql backend with the CLI"
        )
        raise typer.Exit(code=1)
    repository = build_repository(config)
    repository.initialize()
    try:
        yield SalesService(repository)
    finally:
        repository.close()


def _fail(exc: ContractError) -> None:
    console.print(f"[bold red]✗ Error:[/bold red] {escape(exc.message)}")
    if exc.details:
        console.print(json.dumps(exc.details), style="dim", markup=False)
    raise typer.Exit(code=1)


def _format_money(minor_units: int) -> str:
    return f"{minor_units / 100:.2f}"


def _print_report(report: SalesReport) -> None:
    table = Table(title=f"Sales report {report.date}", min_width=REPORT_TABLE_MIN_WIDTH)
    table.add_column("Field")
    table.add_column("Amount", justify="right")
    table.add_row("Cash", _format_money(report.total_cash))
    table.add_row("Pix", _format_money(report.total_pix))
    table.add_row("Debit", _format_money(report.total_debit))
    table.add_row("[bold]Total[/bold]", _format_money(report.total))
    table.add_row("Cost", _format_money(report.total_cost))
    table.add_row("[bold]Profit[/bold]", _format_money(report.profit))
    console.print(table)

    if report.frequencies:
        freq_table = Table(title="Sales per product")
        freq_table.add_column("Product")
        freq_table.add_column("Sales", justify="right")
        for name, count in report.frequencies.items():
            freq_table.add_row(name, str(count))
        console.print(freq_table)


def _database_url_option() -> Optional[str]:
    return typer.Option(
        None,
        "--database-url",
        help="Override DATABASE_URL for this command",
    )


@app.command()
def report(
    date: str = typer.Argument(..., help="Report date (dd-mm-yyyy)"),
    as_json: bool = typer.Option(False, "--json", help="Print the report as JSON"),
    database_url: Optional[str] = _database_url_option(),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """Show the sales report for one day."""
    _setup_logging(verbose)
    with _sales_service(database_url) as service:
        try:
            result = service.get_report(date)
        except ContractError as e:
            _fail(e)
            return

    if as_json:
        print(json.dumps(result.model_dump(mode="json", by_alias=True), indent=2))
    else:
        _print_report(result)


@app.command("add-sale")
def add_sale(
    date: str = typer.Option(..., "--date", help="Sale date (dd-mm-yyyy)"),
    product: str = typer.Option(..., "--product", help="Related product name"),
    payment_method: PaymentMethod = typer.Option(
        PaymentMethod.CASH, "--payment-method", help="Payment channel"
    ),
    quantity: int = typer.Option(1, "--quantity", "-q", help="Units sold"),
    database_url: Optional[str] = _database_url_option(),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """Record a sale."""
    _setup_logging(verbose)
    payload = {
        "date": date,
        "relatedProductName": product,
        "paymentMethod": payment_method.value,
        "quantity": quantity,
    }
    with _sales_service(database_url) as service:
        try:
            sale_id = service.record_sale(payload)
        except ContractError as e:
            _fail(e)
            return

    console.print(f"[bold green]✓ Sale recorded[/bold green] (id {sale_id})")


@app.command()
def products(database_url: Optional[str] = _database_url_option()):
    """List the product catalog."""
    with _sales_service(database_url) as service:
        try:
            catalog = service.list_products()
        except ContractError as e:
            _fail(e)
            return

    table = Table(title="Products")
    table.add_column("Name")
    table.add_column("Price", justify="right")
    table.add_column("Production cost", justify="right")
    for p in catalog:
        table.add_row(p.name, _format_money(p.price), _format_money(p.production_cost))
    console.print(table)


@app.command()
def seed(database_url: Optional[str] = _database_url_option()):
    """Insert the sample product catalog."""
    with _sales_service(database_url) as service:
        inserted = seed_catalog(service.repository)
    console.print(f"[bold green]✓ Catalog seeded[/bold green] ({inserted} new products)")


@app.command()
def version():
    """Show version information."""
    console.print("posreport version 0.1.0")


if __name__ == "__main__":
    app()
