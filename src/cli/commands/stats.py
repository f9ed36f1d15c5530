"""Statistics CLI commands."""

import click
from rich.console import Console
from rich.table import Table

from cli.utils import get_components, open_store, run
from habits.stats import find_review_for_week, week_summary

console = Console()


@click.group()
def stats():
    """Progress statistics."""
    pass


@stats.command("week")
def stats_week():
    """Show this week's activity."""
    c = get_components()

    async def _week():
        async with open_store(c) as store:
            summary = week_summary(store.habits, store.logs, store.clock.today())
            return summary, find_review_for_week(store.reviews, summary.week_start)

    summary, existing = run(_week())

    console.print(f"[bold]Week of {summary.week_start}[/]")
    console.print(
        f"Completed: [green]{summary.completed}[/]  |  Missed: [red]{summary.missed}[/]"
        f"  |  Best streak: {summary.best_streak}"
    )

    if summary.scores:
        table = Table(show_header=True)
        table.add_column("Habit", style="cyan")
        table.add_column("Done", justify="right")
        table.add_column("Today")
        for s in summary.scores:
            today = "[green]✓[/]" if s.habit_id in summary.completed_today else ""
            table.add_row(s.title, f"{s.done}/{s.total}", today)
        console.print(table)

    for habit_id, reasons in summary.friction.items():
        title = next((s.title for s in summary.scores if s.habit_id == habit_id), habit_id)
        console.print(f"[dim]{title} friction:[/] {'; '.join(reasons)}")

    if existing:
        console.print("[green]Review already written for this week.[/]")
    else:
        console.print("[yellow]No review yet this week.[/] Try [bold]tinywins review add[/].")
