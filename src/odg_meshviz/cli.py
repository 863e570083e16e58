"""meshviz command-line interface."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from odg_meshviz import __version__
from odg_meshviz.classifier import classify_registry
from odg_meshviz.compiler import available_domains, compile_registry
from odg_meshviz.config import MeshConfig, load_config
from odg_meshviz.dependency import build_dependency_graph, sorted_tables
from odg_meshviz.enums import EntityKind
from odg_meshviz.exceptions import MeshVizError
from odg_meshviz.loader import load_registry
from odg_meshviz.models import Filters, Selection
from odg_meshviz.resolver import build_index
from odg_meshviz.validation import get_default_validator, validate_registry

console = Console()
err_console = Console(stderr=True)

_registry_path = click.Path(exists=True, dir_okay=False, path_type=Path)


def _load(path: Path) -> tuple[list, str]:
    try:
        return load_registry(path)
    except MeshVizError as e:
        raise click.ClickException(str(e)) from e


@click.group()
@click.version_option(version=__version__, prog_name="meshviz")
@click.option("--config", "config_path", type=_registry_path, help="Path to config.yaml")
@click.option(
    "--log-level",
    default="WARNING",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging level",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None, log_level: str) -> None:
    """Data mesh registry graph compiler.

    Compile, validate and inspect data mesh registries from the command line.
    """
    logging.basicConfig(level=log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    ctx.ensure_object(dict)
    try:
        ctx.obj["config"] = load_config(config_path) if config_path else MeshConfig()
    except MeshVizError as e:
        raise click.ClickException(str(e)) from e


@cli.command("compile")
@click.argument("registry", type=_registry_path)
@click.option("--domain", "domains", multiple=True, help="Selected domain (repeatable)")
@click.option("--filter", "text", default="", help="Case-insensitive product name filter")
@click.option("--product", help="Show the lineage view of this data product")
@click.option("--contract", help="Show the table view of this data contract")
@click.option("--validate", is_flag=True, help="Attach the schema validation report")
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path), help="Write JSON here")
@click.pass_context
def compile_cmd(
    ctx: click.Context,
    registry: Path,
    domains: tuple[str, ...],
    text: str,
    product: str | None,
    contract: str | None,
    validate: bool,
    output: Path | None,
) -> None:
    """Compile a registry into renderer nodes and edges (JSON).

    Example:
        meshviz compile registry.yaml --domain Sales --filter orders
    """
    if product and contract:
        raise click.UsageError("--product and --contract are mutually exclusive")

    records, raw_text = _load(registry)
    selection = Selection()
    if product:
        selection = Selection(id=product, kind=EntityKind.DATA_PRODUCT)
    elif contract:
        selection = Selection(id=contract, kind=EntityKind.DATA_CONTRACT)

    result = compile_registry(
        records,
        ctx.obj["config"],
        Filters(domains=domains, text=text),
        selection,
        raw_text=raw_text,
        validator=get_default_validator() if validate else None,
    )

    for warning in result.warnings:
        err_console.print(f"[yellow]warning[/yellow] ({warning.type}) {warning.id}: {warning.message}")

    payload = json.dumps(result.to_dict(), indent=2)
    if output:
        output.write_text(payload + "\n")
        err_console.print(f"Wrote {len(result.nodes)} nodes and {len(result.edges)} edges to {output}")
    else:
        click.echo(payload)


@cli.command("validate")
@click.argument("registry", type=_registry_path)
def validate_cmd(registry: Path) -> None:
    """Validate registry records against their schemas.

    Exits with status 1 when any record is invalid.
    """
    records, raw_text = _load(registry)
    classified, warnings = classify_registry(records)
    issues = validate_registry(classified, raw_text)

    for warning in warnings:
        console.print(f"[yellow]Skipped[/yellow] {warning.id}: {warning.message}")

    if not issues:
        console.print(f"[green]All {len(classified)} records are valid[/green]")
        return

    table = Table(title="Validation Report")
    table.add_column("Line", style="dim")
    table.add_column("ID", style="cyan")
    table.add_column("Type", style="blue")
    table.add_column("Path", style="white")
    table.add_column("Message", style="red")

    for issue in issues:
        table.add_row(
            str(issue.line) if issue.line is not None else "",
            issue.id,
            issue.type,
            issue.path or "/",
            issue.message,
        )

    console.print(table)
    console.print(f"\nFound {len(issues)} issues")
    raise SystemExit(1)


@cli.command("order")
@click.argument("registry", type=_registry_path)
@click.argument("contract_id")
def order_cmd(registry: Path, contract_id: str) -> None:
    """Print the dependency order of a contract's tables."""
    records, _ = _load(registry)
    classified, _ = classify_registry(records)
    index, _ = build_index(classified)

    contract = index.contract(contract_id)
    if contract is None:
        raise click.ClickException(f"Data contract {contract_id} not found")

    for position, table in enumerate(sorted_tables(contract), start=1):
        console.print(f"{position}. {table.name}")
    for ref in build_dependency_graph(contract).unresolved:
        console.print(f"[yellow]unresolved[/yellow] {ref.table} -> {ref.reference}")


@cli.command("domains")
@click.argument("registry", type=_registry_path)
def domains_cmd(registry: Path) -> None:
    """List the data product domains of a registry."""
    records, _ = _load(registry)
    for domain in available_domains(records):
        console.print(domain)


if __name__ == "__main__":
    cli()
