"""Module commands: list, resolve and inspect discovered modules."""

from __future__ import annotations

import json
from typing import Any

import click
from rich.panel import Panel
from rich.table import Table

from ..console import console
from ..modules import DependencyState
from ..modules import LoadReport
from ..modules import LoggingActivator
from ..modules import ModuleDeduplicator
from ..modules import ModuleStatus
from ..modules import discover_modules
from ..modules import load_modules
from ..paths import GamePaths
from ..paths import create_filesystem
from ..utils.error_format import escape_markup
from ..utils.error_format import format_error_message

_STATE_STYLES = {
    DependencyState.RESOLVED: "green",
    DependencyState.PENDING: "yellow",
    DependencyState.NOT_FOUND: "red",
    DependencyState.OLD_VERSION: "red",
    DependencyState.CIRCULAR: "magenta",
}


def _paths(ctx: click.Context) -> GamePaths:
    return ctx.obj["paths"]


def _load(ctx: click.Context) -> LoadReport:
    """Run discovery and resolution, exiting with status 1 if discovery is impossible."""
    try:
        return load_modules(_paths(ctx), LoggingActivator())
    except FileNotFoundError as e:
        raise click.ClickException(format_error_message(e, include_type=False)) from e


def _summary(report: LoadReport) -> dict[str, Any]:
    resolution = report.resolution
    return {
        "load_order": resolution.load_order,
        "failed": [
            {
                "id": descriptor.id,
                "version": str(descriptor.version),
                "activation_error": resolution.activation_errors.get(descriptor.id),
                "requirements": [
                    {"target": requirement.target, "minimum": str(requirement.minimum), "state": state.kind.value}
                    for requirement, state in resolution.unresolved_requirements(descriptor.id)
                ],
            }
            for descriptor in resolution.failed_modules
        ],
        "cycles": [cycle.module_ids for cycle in resolution.cycles],
        "skipped": [{"path": item.path, "reason": item.reason} for item in report.discovery.skipped],
        "passes": resolution.passes,
    }


@click.group(invoke_without_command=True)
@click.pass_context
def modules(ctx: click.Context):
    """Inspect and resolve game modules."""
    if ctx.invoked_subcommand is None:
        click.echo("\n" + ctx.get_help())
        ctx.exit()


@modules.command("list")
@click.pass_context
def list_modules(ctx: click.Context):
    """List discovered modules (newest version of each identity)."""
    paths = _paths(ctx)
    try:
        with create_filesystem(paths) as filesystem:
            report = discover_modules(filesystem)
    except FileNotFoundError as e:
        raise click.ClickException(format_error_message(e, include_type=False)) from e

    deduplicator = ModuleDeduplicator()
    deduplicator.add_all(report.descriptors)

    if deduplicator.modules:
        table = Table(title=f"Modules in {escape_markup(paths.modules)}", show_header=True, header_style="bold cyan")
        table.add_column("ID", style="green", no_wrap=True)
        table.add_column("Version", style="yellow", no_wrap=True)
        table.add_column("Name")
        table.add_column("Dependencies")
        for descriptor in deduplicator.modules:
            table.add_row(
                escape_markup(descriptor.id),
                str(descriptor.version),
                escape_markup(descriptor.display_name),
                escape_markup(", ".join(str(r) for r in descriptor.dependencies)) or "-",
            )
        console.print(table)
    else:
        console.print("[dim]No modules found[/dim]")

    for descriptor in deduplicator.replaced + deduplicator.ignored:
        console.print(f"[dim]Shadowed: {escape_markup(descriptor)} at {escape_markup(descriptor.location)}[/dim]")
    for skipped in report.skipped:
        console.print(f"[yellow]Skipped {escape_markup(skipped.path)}:[/yellow] {escape_markup(skipped.reason)}")


@modules.command("resolve")
@click.option("--json", "as_json", is_flag=True, help="Print a JSON summary instead of tables")
@click.option("--strict", is_flag=True, help="Exit with status 1 if any module failed")
@click.pass_context
def resolve(ctx: click.Context, as_json: bool, strict: bool):
    """Resolve dependencies and load modules in dependency order."""
    report = _load(ctx)
    resolution = report.resolution

    if as_json:
        click.echo(json.dumps(_summary(report), indent=2))
    else:
        if resolution.modules:
            table = Table(title="Load order", show_header=True, header_style="bold green")
            table.add_column("#", justify="right")
            table.add_column("ID", style="green", no_wrap=True)
            table.add_column("Version", style="yellow", no_wrap=True)
            for position, descriptor in enumerate(resolution.modules.values(), start=1):
                table.add_row(str(position), escape_markup(descriptor.id), str(descriptor.version))
            console.print(table)
        else:
            console.print("[dim]No modules loaded[/dim]")

        if resolution.failed_modules:
            table = Table(title="Failed modules", show_header=True, header_style="bold red")
            table.add_column("ID", style="red", no_wrap=True)
            table.add_column("Reason")
            for descriptor in resolution.failed_modules:
                reasons = [
                    f"{escape_markup(requirement)}: {state}"
                    for requirement, state in resolution.unresolved_requirements(descriptor.id)
                ]
                if descriptor.id in resolution.activation_errors:
                    reasons.append(f"activation: {escape_markup(resolution.activation_errors[descriptor.id])}")
                table.add_row(escape_markup(descriptor.id), "\n".join(reasons))
            console.print(table)

        for skipped in report.discovery.skipped:
            console.print(f"[yellow]Skipped {escape_markup(skipped.path)}:[/yellow] {escape_markup(skipped.reason)}")

    if strict and resolution.failed_modules:
        ctx.exit(1)


@modules.command("show")
@click.argument("module_id")
@click.pass_context
def show(ctx: click.Context, module_id: str):
    """Show a module's metadata and the state of its dependencies."""
    report = _load(ctx)
    resolution = report.resolution
    descriptor = resolution.get(module_id)
    if descriptor is None:
        console.print(f"[red]Module '{escape_markup(module_id)}' not found[/red]")
        ctx.exit(1)
        return

    status = resolution.status_of(module_id)
    status_style = "green" if status is ModuleStatus.RESOLVED else "red"
    panel_content = f"""[bold]ID:[/bold] {escape_markup(descriptor.id)}
[bold]Name:[/bold] {escape_markup(descriptor.display_name)}
[bold]Version:[/bold] {descriptor.version}
[bold]Author:[/bold] {escape_markup(descriptor.author) or "-"}
[bold]Website:[/bold] {escape_markup(descriptor.website or "-")}
[bold]Location:[/bold] {escape_markup(descriptor.location)}
[bold]Status:[/bold] [{status_style}]{status.value if status else "unknown"}[/{status_style}]"""
    if descriptor.description:
        panel_content += f"\n\n{escape_markup(descriptor.description)}"
    console.print(Panel(panel_content, title=f"Module: {escape_markup(module_id)}", border_style="cyan"))

    requirements = resolution.requirements_of(module_id)
    if requirements:
        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("Requires", no_wrap=True)
        table.add_column("Minimum", no_wrap=True)
        table.add_column("State")
        for requirement, state in requirements:
            style = _STATE_STYLES[state.kind]
            table.add_row(escape_markup(requirement.target), str(requirement.minimum), f"[{style}]{state}[/{style}]")
        console.print(table)
    else:
        console.print("[dim]No dependencies[/dim]")

    if module_id in resolution.activation_errors:
        console.print(f"[red]Activation failed:[/red] {escape_markup(resolution.activation_errors[module_id])}")
