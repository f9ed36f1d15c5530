"""Completion log CLI commands."""

import click
from rich.console import Console
from rich.table import Table

from cli.utils import get_components, open_store, run
from habits.dates import Clock

console = Console()

STATUS_STYLE = {"done": "green", "missed": "red", "partial": "yellow"}


@click.group()
def log():
    """Browse completion history."""
    pass


@log.command("list")
@click.option("-d", "--date", "day", help="Date YYYY-MM-DD (default: today)")
@click.option("-h", "--habit", "habit_id", help="Show every log for one habit instead")
def log_list(day, habit_id):
    """List logs for a date or a habit."""
    c = get_components()

    async def _list():
        async with open_store(c) as store:
            titles = {h.id: h.title for h in store.habits}
            if habit_id:
                return titles, store.get_logs_for_habit(habit_id)
            return titles, store.get_logs_for_date(day or Clock().today_str())

    titles, logs = run(_list())
    if not logs:
        console.print("[yellow]No logs found.[/]")
        return

    table = Table(show_header=True)
    table.add_column("Date", style="dim")
    table.add_column("Habit", style="cyan")
    table.add_column("Status")
    table.add_column("Note")

    for entry in sorted(logs, key=lambda e: e.timestamp):
        style = STATUS_STYLE.get(str(entry.status), "white")
        note = entry.evidence_note or entry.friction_reason or entry.reflection or ""
        table.add_row(
            entry.date,
            titles.get(entry.habit_id, "[dim]deleted habit[/]"),
            f"[{style}]{entry.status}[/]",
            note[:50],
        )

    console.print(table)
