"""Settings commands for the Reversal Rooms CLI."""

from __future__ import annotations

import click
import yaml

from ..console import console
from ..settings import SettingsManager
from ..utils.error_format import escape_markup
from ..utils.yaml_io import dump_yaml
from ..utils.yaml_io import load_yaml


def _settings(ctx: click.Context) -> SettingsManager:
    return ctx.obj["settings"]


@click.group(invoke_without_command=True)
@click.pass_context
def config(ctx: click.Context):
    """Show and change settings."""
    if ctx.invoked_subcommand is None:
        click.echo("\n" + ctx.get_help())
        ctx.exit()


@config.command("show")
@click.pass_context
def config_show(ctx: click.Context):
    """Show merged settings from all scopes."""
    settings = _settings(ctx)
    merged = settings.get_merged_settings()
    if not merged:
        console.print("[dim]No settings configured[/dim]")
        return
    click.echo(dump_yaml(merged), nl=False)


@config.command("set")
@click.argument("key")
@click.argument("value")
@click.option(
    "--scope",
    type=click.Choice(["user", "project", "local"]),
    default="project",
    show_default=True,
    help="Settings file to write",
)
@click.pass_context
def config_set(ctx: click.Context, key: str, value: str, scope: str):
    """Set KEY (dotted, e.g. paths.modules) to VALUE (parsed as YAML)."""
    try:
        parsed = load_yaml(value)
    except yaml.YAMLError:
        parsed = value

    target = _settings(ctx).set_value(key, parsed, scope)  # type: ignore[arg-type]
    console.print(f"[green]✓ Set {escape_markup(key)}[/green]")
    console.print(f"  File: {escape_markup(target)}")
