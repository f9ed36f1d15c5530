"""Habit CLI commands."""

import sys

import click
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from cli.utils import find_habit, get_components, open_store, run
from habits.frequency import DAYS_LIST, build_custom_frequency, parse_custom_frequency
from habits.stats import completed_dates

console = Console()


def _week_bar(week_data: list[int]) -> str:
    peak = max(max(week_data), 1)
    blocks = " ▁▂▃▄▅▆▇█"
    return "".join(blocks[round(v / peak * (len(blocks) - 1))] for v in week_data)


def _split_days(value: str) -> list[str]:
    days = [d.strip().capitalize() for d in value.split(",") if d.strip()]
    unknown = [d for d in days if d not in DAYS_LIST]
    if unknown:
        raise click.BadParameter(f"Unknown day(s): {', '.join(unknown)}", param_hint="--on")
    return days


def _schedule(current: str, every, per, on) -> str:
    """Frequency text with any --every/--per/--on overrides applied to ``current``."""
    if current == "Daily":
        interval, period, days = "1", "days", []
    else:
        interval, period, days = parse_custom_frequency(current)
    if every is not None:
        interval = str(every)
    if per:
        period = per
    if on:
        period, days = "weeks", _split_days(on)
    return build_custom_frequency(interval, period, days)


def _schedule_options(f):
    f = click.option("--on", help="Days of the week, e.g. Mon,Wed,Fri (weekly)")(f)
    f = click.option("--per", type=click.Choice(["days", "weeks"]), help="Repeat period")(f)
    f = click.option("--every", type=int, help="Repeat every N days/weeks")(f)
    return f


@click.group()
def habit():
    """Manage habits and mark progress."""
    pass


@habit.command("add")
@click.argument("title")
@click.option("-g", "--goal", default=1, type=int, help="Units per day")
@click.option("-u", "--unit", default="", help="Unit label (pages, minutes...)")
@click.option("-f", "--frequency", default="Daily", help="Frequency text")
@_schedule_options
@click.option("--icon", default="checkmark", help="Icon name")
@click.option("--color", "icon_color", default="#4DA6FF", help="Icon color")
@click.option("--identity-area", "identity_area_id", help="Identity area id")
@click.option("--reminder", "reminder_time", help="Reminder time HH:MM")
def habit_add(
    title, goal, unit, frequency, every, per, on, icon, icon_color, identity_area_id, reminder_time
):
    """Create a habit."""
    if every is not None or per or on:
        frequency = _schedule(frequency, every, per, on)
    c = get_components()

    async def _add():
        async with open_store(c) as store:
            return store.add_habit(
                {
                    "title": title,
                    "goal": goal,
                    "unit": unit,
                    "frequency": frequency,
                    "icon": icon,
                    "icon_color": icon_color,
                    "identity_area_id": identity_area_id,
                    "reminder_time": reminder_time,
                }
            )

    try:
        h = run(_add())
    except ValidationError as e:
        console.print(f"[red]Invalid habit:[/] {e.errors()[0]['msg']}")
        sys.exit(1)
    console.print(f"[green]Created:[/] {h.title} [dim]({h.id}, {h.frequency})[/]")


@habit.command("list")
def habit_list():
    """List habits with today's progress."""
    c = get_components()

    async def _list():
        async with open_store(c) as store:
            return list(store.habits)

    habits = run(_list())
    if not habits:
        console.print("[yellow]No habits yet.[/] Add one with [bold]tinywins habit add[/].")
        return

    table = Table(show_header=True)
    table.add_column("ID", style="dim")
    table.add_column("Habit", style="cyan")
    table.add_column("Today", justify="right")
    table.add_column("Streak", justify="right", style="green")
    table.add_column("Best", justify="right")
    table.add_column("Week")

    for h in habits:
        today = f"{h.current}/{h.goal} {h.unit}".strip()
        if h.is_goal_met:
            today = f"[green]✓ {today}[/]"
        table.add_row(h.id, h.title, today, str(h.streak), str(h.best_streak), _week_bar(h.week_data))

    console.print(table)


@habit.command("show")
@click.argument("habit_id")
def habit_show(habit_id):
    """Show one habit and its recent logs."""
    c = get_components()

    async def _show():
        async with open_store(c) as store:
            h = find_habit(store, habit_id)
            return h, store.get_logs_for_habit(h.id) if h else []

    h, logs = run(_show())
    if not h:
        return

    console.print(f"[bold cyan]{h.title}[/] [dim]{h.id}[/]")
    console.print(f"Frequency: {h.frequency}  |  Goal: {h.goal} {h.unit}".rstrip())
    console.print(f"Streak: [green]{h.streak}[/]  |  Best: {h.best_streak}  |  Today: {h.current}/{h.goal}")
    console.print(" ".join(f"{d}:{v}" for d, v in zip(DAYS_LIST, h.week_data)))
    if h.stack_anchor:
        console.print(f"[dim]After:[/] {h.stack_anchor}")
    if h.reminder_time:
        console.print(f"[dim]Reminder:[/] {h.reminder_time}")
    console.print(f"Completed on {len(completed_dates(logs, h.id))} day(s)")

    for log in sorted(logs, key=lambda log: log.timestamp, reverse=True)[:10]:
        detail = log.evidence_note or log.friction_reason or ""
        console.print(f"  {log.date}  {log.status:<7} {detail}")


@habit.command("edit")
@click.argument("habit_id")
@click.option("--title", help="New title")
@click.option("-g", "--goal", type=int, help="New goal")
@click.option("-u", "--unit", help="New unit")
@click.option("-f", "--frequency", help="New frequency")
@_schedule_options
def habit_edit(habit_id, title, goal, unit, frequency, every, per, on):
    """Edit a habit's descriptive fields."""
    updates = {
        k: v
        for k, v in {"title": title, "goal": goal, "unit": unit, "frequency": frequency}.items()
        if v is not None
    }
    reschedule = every is not None or per or on
    if not updates and not reschedule:
        console.print("[yellow]Nothing to change.[/]")
        return
    if goal is not None and goal <= 0:
        console.print("[red]Goal must be positive.[/]")
        sys.exit(1)
    if on:
        _split_days(on)

    c = get_components()

    async def _edit():
        async with open_store(c) as store:
            h = find_habit(store, habit_id)
            if not h:
                return None
            if reschedule:
                updates["frequency"] = _schedule(updates.get("frequency", h.frequency), every, per, on)
            return store.update_habit(h.id, updates)

    h = run(_edit())
    if h:
        console.print(f"[green]Updated:[/] {h.title} [dim]({h.frequency})[/]")


@habit.command("rm")
@click.argument("habit_id")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
def habit_rm(habit_id, yes):
    """Delete a habit. Its history is kept."""
    c = get_components()

    async def _rm():
        async with open_store(c) as store:
            h = find_habit(store, habit_id)
            if not h:
                return None
            if not yes and not click.confirm(f"Delete '{h.title}'?"):
                return None
            store.remove_habit(h.id)
            return h

    h = run(_rm())
    if h:
        console.print(f"[green]Deleted:[/] {h.title}")


@habit.command("inc")
@click.argument("habit_id")
def habit_inc(habit_id):
    """Add one unit of progress for today."""
    c = get_components()

    async def _inc():
        async with open_store(c) as store:
            h = find_habit(store, habit_id)
            return store.increment_habit(h.id) if h else None

    h = run(_inc())
    if h:
        mark = " [green]goal reached[/]" if h.current == h.goal else ""
        console.print(f"{h.title}: {h.current}/{h.goal}{mark}")


@habit.command("done")
@click.argument("habit_id")
@click.option("-n", "--note", help="Evidence note")
@click.option("-r", "--reflection", help="Reflection")
@click.option("--image", help="Evidence image reference")
def habit_done(habit_id, note, reflection, image):
    """Mark a habit fully done today."""
    c = get_components()

    async def _done():
        async with open_store(c) as store:
            h = find_habit(store, habit_id)
            if not h:
                return None
            store.complete_habit(h.id, evidence_note=note, reflection=reflection, evidence_image=image)
            return store.get_habit(h.id)

    h = run(_done())
    if h:
        console.print(f"[green]Done:[/] {h.title}  streak {h.streak}")


@habit.command("undo")
@click.argument("habit_id")
def habit_undo(habit_id):
    """Undo today's completion."""
    c = get_components()

    async def _undo():
        async with open_store(c) as store:
            h = find_habit(store, habit_id)
            if not h:
                return None, 0
            removed = store.uncomplete_habit(h.id)
            return store.get_habit(h.id), removed

    h, removed = run(_undo())
    if h:
        console.print(f"[yellow]Undone:[/] {h.title}  streak {h.streak} ({removed} log(s) removed)")


@habit.command("miss")
@click.argument("habit_id")
@click.option("-r", "--reason", help="What got in the way")
def habit_miss(habit_id, reason):
    """Record a miss for today. Resets the streak."""
    c = get_components()

    async def _miss():
        async with open_store(c) as store:
            h = find_habit(store, habit_id)
            if not h:
                return None
            store.log_missed(h.id, friction_reason=reason)
            return h

    h = run(_miss())
    if h:
        console.print(f"[red]Missed:[/] {h.title}  streak reset")
