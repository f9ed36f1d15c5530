"""CLI command modules."""

from .export import export
from .habit import habit
from .log import log
from .review import review
from .stats import stats

__all__ = [
    "export",
    "habit",
    "log",
    "review",
    "stats",
]
