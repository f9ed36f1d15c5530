"""Read-only statistics derived from the store's collections."""

from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from shared_types import LogStatus

from .dates import date_str, week_start
from .models import Habit, HabitLog, ReviewLog


@dataclass
class HabitWeekScore:
    habit_id: str
    title: str
    done: int
    total: int = 7


@dataclass
class WeekSummary:
    week_start: str
    completed: int = 0
    missed: int = 0
    scores: list[HabitWeekScore] = field(default_factory=list)
    friction: dict[str, list[str]] = field(default_factory=dict)
    best_streak: int = 0
    completed_today: set[str] = field(default_factory=set)

    def to_dict(self) -> dict:
        return {
            "week_start": self.week_start,
            "completed": self.completed,
            "missed": self.missed,
            "scores": [s.__dict__ for s in self.scores],
            "friction": self.friction,
            "best_streak": self.best_streak,
            "completed_today": sorted(self.completed_today),
        }


def completed_today(logs: list[HabitLog], today: date) -> set[str]:
    """Habit ids with a ``done`` log dated today."""
    day = date_str(today)
    return {log.habit_id for log in logs if log.date == day and log.status == LogStatus.DONE}


def completed_dates(logs: list[HabitLog], habit_id: str) -> set[str]:
    return {log.date for log in logs if log.habit_id == habit_id and log.status == LogStatus.DONE}


def find_review_for_week(reviews: list[ReviewLog], start: str) -> Optional[ReviewLog]:
    return next((r for r in reviews if r.week_start == start), None)


def week_summary(habits: list[Habit], logs: list[HabitLog], today: date) -> WeekSummary:
    """Activity since Monday of the current week.

    Dates are ``YYYY-MM-DD`` strings, so lexical comparison is chronological.
    """
    start = date_str(week_start(today))
    week_logs = [log for log in logs if log.date >= start]

    summary = WeekSummary(week_start=start)
    summary.completed = sum(1 for log in week_logs if log.status == LogStatus.DONE)
    summary.missed = sum(1 for log in week_logs if log.status == LogStatus.MISSED)

    for h in habits:
        done = sum(
            1 for log in week_logs if log.habit_id == h.id and log.status == LogStatus.DONE
        )
        summary.scores.append(HabitWeekScore(habit_id=h.id, title=h.title, done=done))

    for log in week_logs:
        if log.status == LogStatus.MISSED and log.friction_reason:
            summary.friction.setdefault(log.habit_id, []).append(log.friction_reason)

    summary.best_streak = max((h.streak for h in habits), default=0)
    summary.completed_today = completed_today(logs, today)
    return summary
