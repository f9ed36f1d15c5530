"""Habit/log store: canonical in-memory state plus full-collection persistence.

Every mutation is applied to memory synchronously and then schedules a write
of the whole affected collection. Writes run one at a time in call order;
``flush()`` waits for them and reports failures.
"""

import asyncio
import json
from typing import Optional

import structlog
from pydantic import BaseModel, ValidationError
from pydantic.alias_generators import to_camel

from shared_types import LogStatus

from .dates import Clock, weekday_index
from .models import (
    Habit,
    HabitInput,
    HabitLog,
    ReviewInput,
    ReviewLog,
    WEEK_DAYS,
    generate_id,
)
from .storage import HABITS_KEY, LOGS_KEY, REVIEWS_KEY, KeyValueStore

logger = structlog.get_logger()

_RECORD_TYPES = {HABITS_KEY: Habit, LOGS_KEY: HabitLog, REVIEWS_KEY: ReviewLog}

# Fields callers may never overwrite through update_habit.
_IMMUTABLE_FIELDS = {"id", "created_at"}


class HabitsError(Exception):
    """Base error for the habit store."""


class PersistenceError(HabitsError):
    """One or more storage writes failed since the last flush."""

    def __init__(self, failures: dict[str, BaseException]):
        self.failures = failures
        keys = ", ".join(sorted(failures))
        super().__init__(f"Storage write failed for: {keys}")


class HabitStore:
    """Owns habits, logs and reviews for a single local user."""

    def __init__(
        self,
        storage: KeyValueStore,
        clock: Optional[Clock] = None,
        dedupe_same_day: bool = False,
    ):
        self.storage = storage
        self.clock = clock or Clock()
        self.dedupe_same_day = dedupe_same_day
        self.habits: list[Habit] = []
        self.logs: list[HabitLog] = []
        self.reviews: list[ReviewLog] = []
        self.is_loaded = False
        self._last_write: Optional[asyncio.Task] = None
        self._failures: dict[str, BaseException] = {}
        # Stored records that failed validation, written back untouched.
        self._unreadable: dict[str, list] = {}

    # -- hydration --

    async def load(self) -> None:
        """Read all three collections. Corrupt or missing data never raises."""
        (raw_habits, habits_ok), (raw_logs, _), (raw_reviews, _) = await asyncio.gather(
            self._read(HABITS_KEY),
            self._read(LOGS_KEY),
            self._read(REVIEWS_KEY),
        )

        habits = self._parse(HABITS_KEY, raw_habits)
        if habits is None:
            self.habits = []
            # A failed read says nothing about what is stored; leave it alone.
            if habits_ok:
                self._persist_habits()
        else:
            self.habits = habits

        self.logs = self._parse(LOGS_KEY, raw_logs) or []
        self.reviews = self._parse(REVIEWS_KEY, raw_reviews) or []
        self.is_loaded = True
        logger.info(
            "hydration_complete",
            habits=len(self.habits),
            logs=len(self.logs),
            reviews=len(self.reviews),
            unreadable=sum(len(v) for v in self._unreadable.values()),
        )

    async def _read(self, key: str) -> tuple[Optional[str], bool]:
        try:
            return await self.storage.get_item(key), True
        except Exception as e:
            logger.warning("hydration_read_failed", key=key, error=str(e))
            return None, False

    def _parse(self, key: str, raw: Optional[str]) -> Optional[list]:
        """Records from one stored collection, or None when it is absent or unparsable.

        Records that parse as JSON but fail validation are skipped and kept
        aside verbatim, so later writes of the collection carry them along.
        """
        self._unreadable[key] = []
        if not raw:
            return None
        try:
            items = json.loads(raw)
        except ValueError as e:
            logger.warning("hydration_corrupt", key=key, error=str(e))
            return None
        if not isinstance(items, list):
            logger.warning("hydration_corrupt", key=key, error="not a list")
            return None

        model = _RECORD_TYPES[key]
        records = []
        for index, item in enumerate(items):
            try:
                records.append(model.model_validate(item))
            except ValidationError as e:
                logger.warning("hydration_record_skipped", key=key, index=index, error=str(e))
                self._unreadable[key].append(item)
        return records

    # -- persistence --

    def _persist_habits(self) -> asyncio.Task:
        return self._enqueue(HABITS_KEY, self.habits)

    def _persist_logs(self) -> asyncio.Task:
        return self._enqueue(LOGS_KEY, self.logs)

    def _persist_reviews(self) -> asyncio.Task:
        return self._enqueue(REVIEWS_KEY, self.reviews)

    def _enqueue(self, key: str, records: list[BaseModel]) -> asyncio.Task:
        # Snapshot now: the payload is the collection as of this mutation.
        payload = json.dumps(
            [r.to_json_dict() for r in records] + self._unreadable.get(key, [])
        )
        previous = self._last_write
        task = asyncio.get_running_loop().create_task(self._write(previous, key, payload))
        self._last_write = task
        return task

    async def _write(self, previous: Optional[asyncio.Task], key: str, payload: str) -> None:
        if previous is not None:
            await asyncio.wait([previous])
        try:
            await self.storage.set_item(key, payload)
        except Exception as e:
            logger.error("storage_write_failed", key=key, error=str(e))
            self._failures[key] = e

    async def flush(self) -> None:
        """Wait for every scheduled write; raise PersistenceError if any failed."""
        while self._last_write is not None and not self._last_write.done():
            await asyncio.wait([self._last_write])
        if self._failures:
            failures, self._failures = self._failures, {}
            raise PersistenceError(failures)

    # -- habits --

    def get_habit(self, habit_id: str) -> Optional[Habit]:
        return next((h for h in self.habits if h.id == habit_id), None)

    def add_habit(self, data: HabitInput | dict) -> Habit:
        self._check_loaded("add_habit")
        fields = data if isinstance(data, HabitInput) else HabitInput.model_validate(data)
        existing = {h.id for h in self.habits}
        habit_id = generate_id()
        while habit_id in existing:
            habit_id = generate_id()

        habit = Habit.model_validate(
            {
                **fields.model_dump(),
                "id": habit_id,
                "current": 0,
                "streak": 0,
                "best_streak": 0,
                "week_data": [0] * WEEK_DAYS,
                "created_at": self.clock.timestamp_ms(),
            }
        )
        self.habits = [*self.habits, habit]
        self._persist_habits()
        logger.info("habit_added", habit_id=habit.id, title=habit.title)
        return habit

    def update_habit(self, habit_id: str, updates: dict) -> Optional[Habit]:
        """Merge ``updates`` (snake_case or camelCase keys) into a habit.

        Unknown ids are a no-op, but the collection is still written back.
        """
        self._check_loaded("update_habit")
        changes = _normalize_updates(updates)
        result = None
        updated = []
        for h in self.habits:
            if h.id == habit_id:
                h = Habit.model_validate({**h.model_dump(), **changes})
                result = h
            updated.append(h)
        self.habits = updated
        self._persist_habits()
        if result is None:
            logger.debug("habit_not_found", op="update_habit", habit_id=habit_id)
        return result

    def remove_habit(self, habit_id: str) -> None:
        """Drop the habit. Its logs stay where they are."""
        self._check_loaded("remove_habit")
        self.habits = [h for h in self.habits if h.id != habit_id]
        self._persist_habits()
        logger.info("habit_removed", habit_id=habit_id)

    def increment_habit(self, habit_id: str) -> Optional[Habit]:
        """Add one unit of progress for today.

        Crossing the goal (and only the crossing) bumps the streak and logs
        a ``done`` entry.
        """
        self._check_loaded("increment_habit")
        habit = self.get_habit(habit_id)
        if habit is None:
            logger.debug("habit_not_found", op="increment_habit", habit_id=habit_id)
            return None

        today = self.clock.today()
        new_current = habit.current + 1
        week = list(habit.week_data)
        week[weekday_index(today)] += 1

        just_reached_goal = habit.current < habit.goal <= new_current
        streak = habit.streak + 1 if just_reached_goal else habit.streak
        updated = habit.model_copy(
            update={
                "current": new_current,
                "week_data": week,
                "streak": streak,
                "best_streak": max(habit.best_streak, streak),
            }
        )
        self._replace(updated)
        self._persist_habits()

        if just_reached_goal:
            self.logs = [*self.logs, self._new_log(habit_id, LogStatus.DONE)]
            self._persist_logs()
            logger.info("habit_goal_reached", habit_id=habit_id, streak=streak)
        return updated

    def complete_habit(
        self,
        habit_id: str,
        evidence_note: Optional[str] = None,
        reflection: Optional[str] = None,
        evidence_image: Optional[str] = None,
    ) -> HabitLog:
        """Mark the habit fully done today. No same-day guard unless dedupe is on."""
        self._check_loaded("complete_habit")
        if self.dedupe_same_day:
            today = self.clock.today_str()
            existing = next(
                (
                    log
                    for log in self.logs
                    if log.habit_id == habit_id
                    and log.date == today
                    and log.status == LogStatus.DONE
                ),
                None,
            )
            if existing is not None:
                logger.info("habit_already_completed", habit_id=habit_id, date=today)
                return existing

        log = self._new_log(
            habit_id,
            LogStatus.DONE,
            evidence_note=evidence_note,
            evidence_image=evidence_image,
            reflection=reflection,
        )
        self.logs = [*self.logs, log]
        self._persist_logs()

        def complete(h: Habit) -> Habit:
            streak = h.streak + 1
            return h.model_copy(
                update={
                    "current": h.goal,
                    "streak": streak,
                    "best_streak": max(h.best_streak, streak),
                }
            )

        self.habits = [complete(h) if h.id == habit_id else h for h in self.habits]
        self._persist_habits()
        logger.info("habit_completed", habit_id=habit_id, log_id=log.id)
        return log

    def uncomplete_habit(self, habit_id: str) -> int:
        """Undo today's completion. Returns how many ``done`` logs were dropped."""
        self._check_loaded("uncomplete_habit")
        today = self.clock.today_str()
        kept = [
            log
            for log in self.logs
            if not (
                log.habit_id == habit_id and log.date == today and log.status == LogStatus.DONE
            )
        ]
        removed = len(self.logs) - len(kept)
        self.logs = kept
        self._persist_logs()

        self.habits = [
            h.model_copy(update={"current": 0, "streak": max(0, h.streak - 1)})
            if h.id == habit_id
            else h
            for h in self.habits
        ]
        self._persist_habits()
        logger.info("habit_uncompleted", habit_id=habit_id, removed=removed)
        return removed

    def log_missed(self, habit_id: str, friction_reason: Optional[str] = None) -> HabitLog:
        """Record a miss for today. The streak resets to zero."""
        self._check_loaded("log_missed")
        log = self._new_log(habit_id, LogStatus.MISSED, friction_reason=friction_reason)
        self.logs = [*self.logs, log]
        self._persist_logs()

        self.habits = [
            h.model_copy(update={"streak": 0}) if h.id == habit_id else h for h in self.habits
        ]
        self._persist_habits()
        logger.info("habit_missed", habit_id=habit_id, reason=friction_reason)
        return log

    # -- logs --

    def get_logs_for_date(self, date: str) -> list[HabitLog]:
        return [log for log in self.logs if log.date == date]

    def get_logs_for_habit(self, habit_id: str) -> list[HabitLog]:
        return [log for log in self.logs if log.habit_id == habit_id]

    # -- reviews --

    def add_review(self, data: ReviewInput | dict) -> ReviewLog:
        self._check_loaded("add_review")
        fields = data if isinstance(data, ReviewInput) else ReviewInput.model_validate(data)
        review = ReviewLog.model_validate(
            {
                **fields.model_dump(),
                "id": generate_id(),
                "timestamp": self.clock.timestamp_ms(),
            }
        )
        self.reviews = [*self.reviews, review]
        self._persist_reviews()
        logger.info("review_added", review_id=review.id, week_start=review.week_start)
        return review

    # -- helpers --

    def _new_log(self, habit_id: str, status: LogStatus, **evidence) -> HabitLog:
        return HabitLog(
            id=generate_id(),
            habit_id=habit_id,
            date=self.clock.today_str(),
            status=status,
            timestamp=self.clock.timestamp_ms(),
            **evidence,
        )

    def _replace(self, habit: Habit) -> None:
        self.habits = [habit if h.id == habit.id else h for h in self.habits]

    def _check_loaded(self, op: str) -> None:
        # Writes are scheduled on the running loop; fail before touching state.
        asyncio.get_running_loop()
        if not self.is_loaded:
            logger.warning("mutation_before_load", op=op)


def _normalize_updates(updates: dict) -> dict:
    """Map camelCase keys to field names and drop immutable fields."""
    by_alias = {to_camel(name): name for name in Habit.model_fields}
    changes = {}
    for key, value in updates.items():
        name = by_alias.get(key, key)
        if name in _IMMUTABLE_FIELDS:
            logger.debug("immutable_field_ignored", field=name)
            continue
        changes[name] = value
    return changes
