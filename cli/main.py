"""
Mediator DI - Main CLI Application

Command-line interface for inspecting handler scanning.
"""
import json
from enum import Enum
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from config import get_config
from core.errors import MediatorError
from di.extensions import mediator_templates
from observability.logging import LoggingConfig, get_logger, setup_logging, shutdown_logging
from observability.tracing import TracingConfig, setup_tracing, shutdown_tracing
from scanning.descriptors import Binding
from scanning.reflection import TypeCatalog
from scanning.registration import RecordingRegistry, RegistrationEngine

# Initialize app
app = typer.Typer(
    name="mediator",
    help="Mediator DI - handler scanning and binding",
    add_completion=False
)

console = Console()

logger = get_logger("mediator.cli")


class OutputFormat(str, Enum):
    """Output format options."""
    JSON = "json"
    TABLE = "table"


@app.command()
def scan(
    targets: List[str] = typer.Argument(..., help="Modules or packages to scan (e.g., app.handlers)"),
    output: OutputFormat = typer.Option(OutputFormat.TABLE, "--format", "-f", help="Output format"),
    include_private: Optional[bool] = typer.Option(
        None, "--include-private/--exported-only", help="Include names starting with an underscore"
    ),
    recursive: Optional[bool] = typer.Option(
        None, "--recursive/--no-recursive", help="Walk sub-packages"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Dry-run a registration pass and show the bindings it produces."""
    _configure_logging(verbose)
    scanning = get_config().scanning

    catalog = TypeCatalog()
    registry = RecordingRegistry()
    try:
        candidates = catalog.scan(
            targets,
            include_private=scanning.include_private if include_private is None else include_private,
            recursive=scanning.recursive if recursive is None else recursive,
        )
        contracts, collectors = mediator_templates(catalog)
        bindings = RegistrationEngine(registry, closer=catalog.close).register(
            candidates, contracts, collectors, table=catalog.table
        )
    except MediatorError as e:
        logger.debug("Scan failed", error_code=e.error_code, targets=targets)
        console.print(f"[red]Error: {e.message}[/red]")
        raise typer.Exit(1)

    if output == OutputFormat.JSON:
        typer.echo(json.dumps([_binding_to_dict(b) for b in bindings], indent=2))
        return

    _display_bindings(bindings, len(candidates))


@app.command()
def templates(
    output: OutputFormat = typer.Option(OutputFormat.TABLE, "--format", "-f", help="Output format"),
):
    """List the contract templates handlers are scanned for."""
    _configure_logging(False)
    catalog = TypeCatalog()
    contracts, collectors = mediator_templates(catalog)
    rows = [(t, "handler") for t in contracts] + [(t, "collector") for t in collectors]

    if output == OutputFormat.JSON:
        typer.echo(json.dumps(
            [
                {
                    "name": template.identity.qualified_name,
                    "arity": template.arity,
                    "role": role,
                }
                for template, role in rows
            ],
            indent=2,
        ))
        return

    table = Table(title="Contract Templates")
    table.add_column("Contract", style="cyan")
    table.add_column("Arity", justify="right")
    table.add_column("Role", style="green")
    for template, role in rows:
        table.add_row(template.name, str(template.arity), role)
    console.print(table)


def _configure_logging(verbose: bool) -> None:
    level = "DEBUG" if verbose else "WARNING"
    setup_logging(LoggingConfig(level=level, json_format=False), force=True)


def _binding_to_dict(binding: Binding) -> dict:
    return {
        "contract": str(binding.contract),
        "implementation": f"{binding.implementation.module}.{binding.implementation}",
        "lifetime": binding.lifetime.value,
        "collector": binding.is_collector,
    }


def _display_bindings(bindings: List[Binding], candidate_count: int) -> None:
    """Display bindings as rich table."""
    table = Table(title=f"Bindings ({len(bindings)} from {candidate_count} types)")
    table.add_column("Contract", style="cyan")
    table.add_column("Implementation", style="green")
    table.add_column("Lifetime")

    for binding in bindings:
        table.add_row(str(binding.contract), str(binding.implementation), binding.lifetime.value)

    console.print(table)


def main():
    """Main entry point."""
    if TracingConfig().console_export:
        setup_tracing()
    try:
        app()
    finally:
        shutdown_tracing()
        shutdown_logging()


if __name__ == "__main__":
    main()
