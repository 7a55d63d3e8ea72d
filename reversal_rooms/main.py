"""Reversal Rooms CLI - inspect and load game modules."""

import logging
from pathlib import Path

import click

from . import __version__
from .commands.config import config as config_group
from .commands.modules import modules as modules_group
from .logging_setup import init_json_logging
from .paths import create_game_paths
from .paths import default_root
from .settings import SettingsManager

logger = logging.getLogger(__name__)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


@click.group(invoke_without_command=True)
@click.version_option(version=__version__)
@click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Game root directory (default: $REVERSAL_ROOMS_ROOT or the current directory)",
)
@click.option("--log-level", type=click.Choice(LOG_LEVELS, case_sensitive=False), default=None, help="Log level")
@click.option("--log-file", type=click.Path(dir_okay=False, path_type=Path), default=None, help="JSONL log file")
@click.pass_context
def cli(ctx: click.Context, root: Path | None, log_level: str | None, log_file: Path | None):
    """Reversal Rooms - module tooling for the game engine."""
    root = root.resolve() if root is not None else default_root()
    settings = SettingsManager(root=root)

    # Settings may override the env-var defaults; flags override both
    init_json_logging(
        path=log_file or settings.get_log_path(),
        level=log_level or settings.get_log_level(),
        default_dir=root,
    )
    logger.debug(f"Game root: {root}")

    ctx.obj = {
        "root": root,
        "settings": settings,
        "paths": create_game_paths(root, settings),
    }

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


cli.add_command(modules_group)
cli.add_command(config_group)


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
