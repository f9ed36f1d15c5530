"""tinywins command line."""

import sys

import click
from rich.console import Console

from cli.commands import export, habit, log, review, stats
from cli.config import get_paths, load_config_model
from cli.logging_config import setup_logging

console = Console()


@click.group()
@click.version_option(version="0.1.0")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def cli(verbose: bool):
    """tinywins - small daily habits, tracked locally."""
    try:
        config = load_config_model()
    except ValueError as e:
        console.print(f"[red]Config error:[/] {e}")
        sys.exit(1)
    level = "DEBUG" if verbose else config.logging.level
    paths = get_paths(config.to_dict())
    setup_logging(json_mode=config.logging.json_mode, level=level, log_file=paths["log_file"])


cli.add_command(habit)
cli.add_command(log)
cli.add_command(review)
cli.add_command(stats)
cli.add_command(export)


if __name__ == "__main__":
    cli()
