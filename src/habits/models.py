"""Data models for habits, completion logs and weekly reviews.

Persisted shapes use camelCase keys (``bestStreak``, ``weekData``, ``habitId``)
so stored records stay readable by every earlier version of the app. Python
code uses the snake_case field names.
"""

import secrets
import string
import time
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from shared_types import CueType, LawFailed, LogStatus, VersionLevel

WEEK_DAYS = 7

_ID_ALPHABET = string.digits + string.ascii_lowercase


def generate_id() -> str:
    """Client-side id: millisecond timestamp followed by 9 base36 chars."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"{int(time.time() * 1000)}{suffix}"


class _Record(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    def to_json_dict(self) -> dict:
        """Plain dict in the persisted (camelCase) shape, unset optionals dropped."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ImplementationIntention(_Record):
    behaviour: str = ""
    time: str = ""
    location: str = ""


class HabitVersions(_Record):
    two_min: str = ""
    standard: str = ""
    stretch: Optional[str] = None


class HabitFields(_Record):
    """Descriptive and linkage fields shared by new-habit input and stored habits."""

    title: str
    icon: str = ""
    icon_color: str = ""
    gradient_colors: list[str] = Field(default_factory=list)
    goal: int = 1
    unit: str = ""
    frequency: str = "Daily"
    identity_area_id: Optional[str] = None
    implementation_intention: Optional[ImplementationIntention] = None
    stack_anchor: Optional[str] = None
    versions: Optional[HabitVersions] = None
    current_version: Optional[VersionLevel] = None
    cue_type: Optional[CueType] = None
    cue_time: Optional[str] = None
    reminder_time: Optional[str] = None
    environment_actions: Optional[list[str]] = None
    is_guided: Optional[bool] = None


class HabitInput(HabitFields):
    """What a caller supplies to ``HabitStore.add_habit``."""

    title: str = Field(min_length=1)
    goal: int = Field(default=1, gt=0)


class Habit(HabitFields):
    id: str
    current: int = 0
    streak: int = 0
    best_streak: int = 0
    week_data: list[int] = Field(default_factory=lambda: [0] * WEEK_DAYS)
    created_at: int = 0

    @field_validator("week_data", mode="before")
    @classmethod
    def normalize_week(cls, v) -> list:
        """Exactly one slot per weekday, Monday first. Empty slots count as 0."""
        if not isinstance(v, list):
            v = []
        return ([0 if slot is None else slot for slot in v] + [0] * WEEK_DAYS)[:WEEK_DAYS]

    @property
    def is_goal_met(self) -> bool:
        return self.current >= self.goal


class HabitLog(_Record):
    id: str
    habit_id: str
    date: str
    status: LogStatus
    evidence_note: Optional[str] = None
    evidence_image: Optional[str] = None
    friction_reason: Optional[str] = None
    reflection: Optional[str] = None
    timestamp: int = 0


class ReviewInput(_Record):
    """What a caller supplies to ``HabitStore.add_review``."""

    week_start: str = Field(pattern=r"^\d{4}-\d{2}-\d{2}$")
    what_worked: str = ""
    what_didnt: str = ""
    law_failed: Optional[LawFailed] = None
    adjustments: list[str] = Field(default_factory=list)
    habit_ratings: dict[str, int | float] = Field(default_factory=dict)


class ReviewLog(_Record):
    id: str
    week_start: str
    what_worked: str = ""
    what_didnt: str = ""
    law_failed: Optional[LawFailed] = None
    adjustments: list[str] = Field(default_factory=list)
    habit_ratings: dict[str, int | float] = Field(default_factory=dict)
    timestamp: int = 0
