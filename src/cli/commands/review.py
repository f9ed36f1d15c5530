"""Weekly review CLI commands."""

import sys

import click
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from cli.utils import get_components, open_store, run
from habits.dates import Clock, date_str, week_start
from shared_types import LawFailed

console = Console()


def _parse_ratings(pairs: tuple[str, ...]) -> dict[str, int]:
    ratings = {}
    for pair in pairs:
        habit_id, sep, value = pair.partition("=")
        if not sep:
            raise click.BadParameter(f"Expected HABIT_ID=N, got {pair}", param_hint="--rate")
        try:
            ratings[habit_id] = int(value)
        except ValueError:
            raise click.BadParameter(f"Rating must be a number: {pair}", param_hint="--rate")
    return ratings


@click.group()
def review():
    """Weekly reflections."""
    pass


@review.command("add")
@click.option("-w", "--worked", default="", help="What worked this week")
@click.option("-d", "--didnt", default="", help="What didn't")
@click.option(
    "-l",
    "--law",
    type=click.Choice([law.value for law in LawFailed]),
    help="Which law failed",
)
@click.option("-a", "--adjust", "adjustments", multiple=True, help="Adjustment (repeatable)")
@click.option("-r", "--rate", "rates", multiple=True, help="HABIT_ID=N rating (repeatable)")
@click.option("--week", "week", help="Week start YYYY-MM-DD (default: this Monday)")
def review_add(worked, didnt, law, adjustments, rates, week):
    """Record a weekly review."""
    ratings = _parse_ratings(rates)
    c = get_components()

    async def _add():
        async with open_store(c) as store:
            return store.add_review(
                {
                    "week_start": week or date_str(week_start(Clock().today())),
                    "what_worked": worked,
                    "what_didnt": didnt,
                    "law_failed": law,
                    "adjustments": list(adjustments),
                    "habit_ratings": ratings,
                }
            )

    try:
        r = run(_add())
    except ValidationError as e:
        console.print(f"[red]Invalid review:[/] {e.errors()[0]['msg']}")
        sys.exit(1)
    console.print(f"[green]Saved review[/] for week of {r.week_start}")


@review.command("list")
def review_list():
    """List weekly reviews."""
    c = get_components()

    async def _list():
        async with open_store(c) as store:
            return list(store.reviews)

    reviews = run(_list())
    if not reviews:
        console.print("[yellow]No reviews yet.[/]")
        return

    table = Table(show_header=True)
    table.add_column("Week", style="cyan")
    table.add_column("Worked")
    table.add_column("Didn't")
    table.add_column("Law", style="dim")

    for r in sorted(reviews, key=lambda r: r.week_start, reverse=True):
        table.add_row(r.week_start, r.what_worked[:40], r.what_didnt[:40], r.law_failed or "")

    console.print(table)
