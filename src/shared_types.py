"""Shared enums and types for tinywins."""

from enum import StrEnum


class LogStatus(StrEnum):
    DONE = "done"
    MISSED = "missed"
    PARTIAL = "partial"


class LawFailed(StrEnum):
    OBVIOUS = "obvious"
    ATTRACTIVE = "attractive"
    EASY = "easy"
    SATISFYING = "satisfying"


class VersionLevel(StrEnum):
    TWO_MIN = "twoMin"
    STANDARD = "standard"
    STRETCH = "stretch"


class CueType(StrEnum):
    TIME = "time"
    AFTER_HABIT = "after-habit"
    LOCATION = "location"
