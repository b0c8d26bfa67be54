"""Command line interface for generating Sankey diagrams from Firefly III."""

import asyncio
from pathlib import Path
from typing import Annotated, Any, Optional

import httpx
import typer
from rich.console import Console
from rich.markup import escape

from firefly_sankey.core import settings
from firefly_sankey.domain.periods import DateRange, resolve_date_range
from firefly_sankey.domain.tags import parse_tag_list
from firefly_sankey.domain.transactions import InvalidAmountError
from firefly_sankey.domain.versions import (
    MAX_API_VERSION,
    MIN_API_VERSION,
    is_api_version_supported,
    version_error_message,
)
from firefly_sankey.integration.firefly import FireflyClient, FireflyConfigError
from firefly_sankey.logger import get_logging_config, setup_logging
from firefly_sankey.models import SankeyDiagram, SankeyOptions
from firefly_sankey.sankey.formatters.render import OutputFormat, render
from firefly_sankey.services.sankey import generate_diagram

app = typer.Typer(
    name="firefly-sankey",
    help="Generate Sankey diagrams from Firefly III data",
    no_args_is_help=True,
)
console = Console(stderr=True)

_RULE = "━" * 44


def _fail(title: str, *lines: str) -> typer.Exit:
    console.print(f"\n[bold red]{escape(title)}[/bold red]")
    console.print(_RULE)
    for line in lines:
        console.print(escape(line))
    console.print("")
    return typer.Exit(code=1)


def _http_failure(exc: Exception) -> typer.Exit:
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        if status == 401:
            return _fail(
                "Authentication Failed",
                "The API token provided is invalid or has expired.",
                "",
                "Please check:",
                "  • Your API token is correct",
                "  • The token has not been revoked",
                "  • You have copied the entire token without extra spaces",
                "",
                "You can generate a new token in Firefly III:",
                "  Profile → OAuth → Personal Access Tokens",
            )
        if status == 404:
            return _fail(
                "Connection Failed",
                "Could not reach the Firefly III API.",
                "",
                "Please check:",
                "  • Your base URL is correct",
                "  • Firefly III is running and accessible",
                "  • The URL does not include /api (it will be added automatically)",
            )
        return _fail("Error", f"Firefly III returned HTTP {status}.")
    if isinstance(exc, httpx.RequestError):
        return _fail(
            "Network Error",
            "Could not connect to the Firefly III server.",
            "",
            "Please check:",
            "  • Your internet connection",
            "  • The Firefly III server is online",
            "  • There are no firewall or proxy issues",
        )
    return _fail("Error", str(exc))


def _display_connection_info(about: dict[str, Any], user: dict[str, Any]) -> None:
    attrs = user.get("attributes", {})
    console.print(_RULE)
    console.print("[bold green]Connected to Firefly III[/bold green]")
    console.print(_RULE)
    console.print("\nSystem Information:")
    console.print(f"  Firefly III Version: {escape(str(about.get('version', '?')))}")
    console.print(f"  API Version:         {escape(str(about.get('api_version', '?')))}")
    console.print(f"  OS:                  {escape(str(about.get('os', '?')))}")
    console.print(f"  PHP Version:         {escape(str(about.get('php_version', '?')))}")
    console.print("\nAuthenticated User:")
    console.print(f"  User ID:             {escape(str(user.get('id', '?')))}")
    console.print(f"  Email:               {escape(str(attrs.get('email', '?')))}")
    if attrs.get("role"):
        console.print(f"  Role:                {escape(str(attrs['role']))}")
    status = "Blocked" if attrs.get("blocked") else "Active"
    console.print(f"  Account Status:      {status}")
    console.print(f"\n{_RULE}\n")


def _warn_unsupported_version(about: dict[str, Any]) -> None:
    api_version = about.get("api_version")
    if api_version and not is_api_version_supported(str(api_version)):
        console.print(
            f"[yellow]Warning:[/yellow] {escape(version_error_message(str(api_version)))} "
            f"Supported: {MIN_API_VERSION} <= version < {MAX_API_VERSION}.\n"
        )


async def _run(client: FireflyClient, options: SankeyOptions) -> SankeyDiagram:
    try:
        console.print("\nConnecting to Firefly III...\n")
        about = await client.get_about()
        user = await client.get_about_user()
        _display_connection_info(about, user)
        _warn_unsupported_version(about)

        console.print(
            f"Fetching transactions from {options.start_date} to {options.end_date}...\n"
        )
        diagram = await generate_diagram(client, options, page_size=settings.FIREFLY_PAGE_SIZE)
    finally:
        await client.aclose()

    console.print(
        f"[green]✓[/green] Generated Sankey diagram with {len(diagram.nodes)} nodes "
        f"and {len(diagram.links)} links\n"
    )
    return diagram


def _list_option(raw: str | None) -> list[str] | None:
    return parse_tag_list(raw) if raw is not None else None


@app.command("generate")
def generate(
    base_url: Annotated[Optional[str], typer.Option(
        "--base-url", "-u", envvar="FIREFLY_URL",
        help="Firefly III base URL (e.g. https://firefly.example.com)",
    )] = None,
    api_token: Annotated[Optional[str], typer.Option(
        "--api-token", "-t", envvar="FIREFLY_TOKEN", help="Firefly III API bearer token",
    )] = None,
    start: Annotated[Optional[str], typer.Option(
        "--start", "-s", help="Start date (YYYY-MM-DD), defaults to start of this month",
    )] = None,
    end: Annotated[Optional[str], typer.Option(
        "--end", "-e", help="End date (YYYY-MM-DD), defaults to end of this month",
    )] = None,
    period: Annotated[Optional[str], typer.Option(
        "--period", "-p", help="Period: YYYY, YYYY-MM, YYYY-QN or YYYY-MM-DD",
    )] = None,
    output: Annotated[Optional[Path], typer.Option(
        "--output", "-o", help="Write output to a file instead of the console",
    )] = None,
    fmt: Annotated[OutputFormat, typer.Option(
        "--format", "-f", help="Output format",
    )] = OutputFormat.READABLE,
    with_accounts: Annotated[bool, typer.Option(
        "--with-accounts/--without-accounts", envvar="SANKEY_WITH_ACCOUNTS",
        help="Show individual revenue and expense accounts",
    )] = False,
    with_assets: Annotated[bool, typer.Option(
        "--with-assets/--without-assets", envvar="SANKEY_WITH_ASSETS",
        help="Break All Funds down into asset accounts and show transfers",
    )] = False,
    include_categories: Annotated[bool, typer.Option(
        "--categories/--no-categories", envvar="SANKEY_INCLUDE_CATEGORIES", help="Include category nodes",
    )] = True,
    include_budgets: Annotated[bool, typer.Option(
        "--budgets/--no-budgets", envvar="SANKEY_INCLUDE_BUDGETS", help="Include budget nodes",
    )] = True,
    exclude_accounts: Annotated[Optional[str], typer.Option(
        help="Comma-separated account names to exclude",
    )] = None,
    exclude_categories: Annotated[Optional[str], typer.Option(
        help="Comma-separated category names to exclude",
    )] = None,
    exclude_budgets: Annotated[Optional[str], typer.Option(
        help="Comma-separated budget names to exclude",
    )] = None,
    include_tags: Annotated[Optional[str], typer.Option(
        help="Only include splits carrying one of these comma-separated tags",
    )] = None,
    exclude_tags: Annotated[Optional[str], typer.Option(
        help="Exclude splits carrying any of these comma-separated tags",
    )] = None,
    min_amount_transaction: Annotated[Optional[float], typer.Option(
        min=0, help="Minimum split amount to include",
    )] = None,
    min_amount_account: Annotated[Optional[float], typer.Option(
        min=0, help="Drop revenue/expense accounts with a smaller total",
    )] = None,
    min_account_grouping: Annotated[Optional[float], typer.Option(
        min=0, help="Group accounts with a smaller total into [OTHER ACCOUNTS]",
    )] = None,
    min_category_grouping: Annotated[Optional[float], typer.Option(
        min=0, help="Group categories with a smaller total into [OTHER CATEGORIES]",
    )] = None,
    include_url: Annotated[bool, typer.Option(
        "--url/--no-url", help="Append a SankeyMatic link to sankeymatic output",
    )] = True,
    sankeymatic_url: Annotated[Optional[str], typer.Option(
        help="SankeyMatic base URL",
    )] = None,
) -> None:
    """Fetch transactions and print or save the Sankey diagram."""
    setup_logging(stream="ext://sys.stderr")

    if not base_url or not api_token:
        raise _fail(
            "Missing Required Parameters",
            "Base URL and API token are required.",
            "",
            "You can provide them via:",
            "  • Command line flags: --base-url and --api-token",
            "  • Environment variables: FIREFLY_URL and FIREFLY_TOKEN",
        )

    try:
        date_range: DateRange = resolve_date_range(start, end, period)
    except ValueError as exc:
        raise _fail("Invalid Date Range", str(exc)) from exc

    options = settings.default_options(
        start_date=date_range.start,
        end_date=date_range.end,
        with_accounts=with_accounts,
        with_assets=with_assets,
        include_categories=include_categories,
        include_budgets=include_budgets,
        exclude_accounts=_list_option(exclude_accounts),
        exclude_categories=_list_option(exclude_categories),
        exclude_budgets=_list_option(exclude_budgets),
        include_tags=_list_option(include_tags),
        exclude_tags=_list_option(exclude_tags),
        min_amount_transaction=min_amount_transaction,
        min_amount_account=min_amount_account,
        min_account_grouping_amount=min_account_grouping,
        min_category_grouping_amount=min_category_grouping,
    )

    client = FireflyClient(base_url=base_url, token=api_token)
    try:
        diagram = asyncio.run(_run(client, options))
    except (httpx.HTTPError, FireflyConfigError, InvalidAmountError) as exc:
        raise _http_failure(exc) from exc

    text = render(
        diagram,
        fmt,
        include_url=include_url,
        base_url=sankeymatic_url or settings.SANKEYMATIC_URL,
    )

    if output:
        try:
            output.write_text(text, encoding="utf-8")
        except OSError as exc:
            raise _fail("Error writing to file", str(exc)) from exc
        console.print(f"[green]✓[/green] Output written to: {escape(str(output.resolve()))}")
    else:
        typer.echo(text)


@app.command("serve")
def serve(
    host: Annotated[str, typer.Option(help="Interface to bind")] = "0.0.0.0",
    port: Annotated[int, typer.Option(help="Port to listen on")] = 8000,
) -> None:
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run("firefly_sankey.app:app", host=host, port=port, log_config=get_logging_config())


if __name__ == "__main__":
    app()
