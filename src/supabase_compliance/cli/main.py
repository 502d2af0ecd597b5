"""
Main CLI application using Typer.
"""

import asyncio
import json
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError as PydanticValidationError
from rich.console import Console
from rich.table import Table

from supabase_compliance import __version__
from supabase_compliance.core import ComplianceError, load_config, setup_logging
from supabase_compliance.core import sql
from supabase_compliance.core.checker import ComplianceAggregator, ComplianceContext
from supabase_compliance.reporting import (
    ComplianceReport,
    ComplianceStatus,
    SupabaseCredentials,
)

# Create Typer app
app = typer.Typer(
    name="supabase-compliance",
    help="Supabase Compliance Checker - MFA, RLS and PITR compliance for Supabase projects",
    add_completion=False,
)

console = Console()

STATUS_COLORS = {"pass": "green", "fail": "red"}


def version_callback(value: bool):
    """Show version and exit."""
    if value:
        console.print(f"Supabase Compliance Checker v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
):
    """
    Supabase Compliance Checker CLI.

    Serve the compliance dashboard, run one-off reports and print the SQL
    helpers the checks rely on.
    """
    pass


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Interface to bind"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port to listen on"),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration file",
        exists=True,
    ),
):
    """
    Run the compliance API and dashboard.

    Example:
        supabase-compliance serve --port 3001
    """
    from supabase_compliance.dashboard.server import create_app

    overrides = {"server": {}}
    if host:
        overrides["server"]["host"] = host
    if port:
        overrides["server"]["port"] = port

    try:
        config = load_config(config_file, overrides=overrides)
    except Exception as e:
        console.print(f"[red]Error loading config: {e}[/red]")
        raise typer.Exit(code=1)

    setup_logging(config)
    console.print(
        f"[bold blue]Supabase Compliance Checker[/bold blue] on "
        f"http://{config.server.host}:{config.server.port}"
    )
    create_app(config).run(
        host=config.server.host,
        port=config.server.port,
        debug=config.server.debug,
        threaded=True,
    )


@app.command()
def report(
    url: str = typer.Option(
        ..., "--url", envvar="SUPABASE_URL", help="Supabase project URL"
    ),
    service_key: str = typer.Option(
        ...,
        "--service-key",
        envvar="SUPABASE_SERVICE_ROLE_KEY",
        help="Service role key",
    ),
    management_key: Optional[str] = typer.Option(
        None,
        "--management-key",
        envvar="SUPABASE_MANAGEMENT_API_KEY",
        help="Management API key, needed for the PITR check",
    ),
    output_file: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Save the report as JSON",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration file",
        exists=True,
    ),
):
    """
    Run the compliance checks once and print the report.

    Exits with code 1 when the project is not compliant.

    Example:
        supabase-compliance report --url https://xyz.supabase.co --service-key ...
    """
    try:
        credentials = SupabaseCredentials(
            url=url, service_key=service_key, management_api_key=management_key
        )
        config = load_config(config_file)
    except PydanticValidationError as e:
        console.print(f"[red]Invalid credentials: {e.errors()[0]['msg']}[/red]")
        raise typer.Exit(code=1)
    except Exception as e:
        console.print(f"[red]Error loading config: {e}[/red]")
        raise typer.Exit(code=1)

    setup_logging(config, console=False)
    context = ComplianceContext(credentials=credentials, config=config)

    try:
        result = asyncio.run(ComplianceAggregator(context).generate_report())
    except ComplianceError as e:
        console.print(f"[red]{e.error}: {e.message}[/red]")
        raise typer.Exit(code=1)
    finally:
        context.close()

    _display_report(result)

    if output_file:
        with open(output_file, "w") as f:
            json.dump(result.to_api(), f, indent=2)
        console.print(f"[green]✓[/green] Report saved to: {output_file}")

    if result.overall_status != ComplianceStatus.PASS:
        raise typer.Exit(code=1)


@app.command()
def setup_sql():
    """
    Print the SQL functions to install in the target database.

    Example:
        supabase-compliance setup-sql > setup.sql
    """
    typer.echo(sql.SETUP_SCRIPT)


@app.command()
def init_config(
    output_file: Path = typer.Option(
        Path("config.json"),
        "--output",
        "-o",
        help="Path for the config file",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        help="Overwrite existing file",
    ),
):
    """
    Create a default configuration file.

    Example:
        supabase-compliance init-config --output my-config.json
    """
    if output_file.exists() and not force:
        console.print(f"[yellow]File already exists: {output_file}[/yellow]")
        console.print("Use --force to overwrite")
        raise typer.Exit(code=1)

    try:
        from supabase_compliance.core.config import create_default_config

        create_default_config(output_file)
        console.print(f"[green]✓[/green] Configuration file created: {output_file}")
        console.print("[yellow]⚠[/yellow] Please edit the file to add your API keys")

    except Exception as e:
        console.print(f"[red]Error creating config: {e}[/red]")
        raise typer.Exit(code=1)


# Helper functions

def _status_cell(status: str) -> str:
    color = STATUS_COLORS.get(status, "white")
    return f"[{color}]{status.upper()}[/{color}]"


def _display_report(result: ComplianceReport) -> None:
    """Display a compliance report in the console."""
    overall = result.overall_status.value
    console.print("\n[bold]📊 Compliance Report[/bold]")
    console.print(f"Generated: {result.generated_at.isoformat()}")
    console.print(f"Overall: [bold]{_status_cell(overall)}[/bold]")

    table = Table(title="Checks")
    table.add_column("Check", style="bold")
    table.add_column("Status")
    table.add_column("Details")

    for name, check in (("MFA", result.mfa), ("RLS", result.rls), ("PITR", result.pitr)):
        table.add_row(name, _status_cell(check.status.value), check.details)

    console.print(table)

    offenders = (
        [f"user {u.email}" for u in result.mfa.users_without_mfa]
        + [f"table {t.name}" for t in result.rls.tables_without_rls]
        + [f"project {p.name}" for p in result.pitr.projects_without_pitr]
    )
    if offenders:
        console.print(f"\n[bold]🔍 Non-compliant items ({len(offenders)} total)[/bold]")
        for i, item in enumerate(offenders[:10], 1):
            console.print(f"{i}. {item}")
        if len(offenders) > 10:
            console.print(f"... and {len(offenders) - 10} more")


if __name__ == "__main__":
    app()
