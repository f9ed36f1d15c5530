"""Backup and history export CLI commands."""

from pathlib import Path

import click
from rich.console import Console

from cli.utils import get_components, open_store, run
from habits.export import HabitExporter

console = Console()


@click.group()
def export():
    """Export and back up habit data."""
    pass


def _export(output, kind: str) -> Path:
    c = get_components()
    output_dir = Path(output).expanduser() if output else c["paths"]["export_dir"]

    async def _run():
        async with open_store(c) as store:
            exporter = HabitExporter(store)
            if kind == "backup":
                return exporter.export_backup(output_dir)
            return exporter.export_history(output_dir)

    return run(_run())


@export.command("backup")
@click.option("-o", "--output", type=click.Path(), help="Output directory")
def export_backup(output):
    """Full JSON backup of habits, logs and reviews."""
    with console.status("Backing up..."):
        path = _export(output, "backup")
    console.print(f"[green]Backup written:[/] {path}")


@export.command("history")
@click.option("-o", "--output", type=click.Path(), help="Output directory")
def export_history(output):
    """Completion history as CSV."""
    with console.status("Exporting..."):
        path = _export(output, "history")
    console.print(f"[green]History written:[/] {path}")
