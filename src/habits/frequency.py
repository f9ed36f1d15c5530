"""Custom frequency strings ("Weekly on Mon, Wed", "Every 3 days").

The store keeps frequency as free text; these helpers are for input surfaces
that build or edit it.
"""

import re

DAYS_LIST = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]

DEFAULT_FREQUENCY = ("1", "weeks", [])

_WEEKLY_ON = re.compile(r"^Weekly on (.+)$")
_EVERY_WEEKS_ON = re.compile(r"^Every (\d+) weeks on (.+)$")
_EVERY = re.compile(r"^Every (\d+) (days|weeks)$")


def _interval(value: str) -> int:
    try:
        n = int(value)
    except (TypeError, ValueError):
        return 1
    return n if n >= 1 else 1


def build_custom_frequency(interval: str, period: str, days: list[str]) -> str:
    n = _interval(interval)
    if period == "days":
        return "Daily" if n == 1 else f"Every {n} days"

    base = "Weekly" if n == 1 else f"Every {n} weeks"
    ordered = [d for d in DAYS_LIST if d in days]
    if ordered:
        return f"{base} on {', '.join(ordered)}"
    return base


def parse_custom_frequency(text: str) -> tuple[str, str, list[str]]:
    """Inverse of build_custom_frequency. Unrecognised text gives the default."""
    text = (text or "").strip()

    m = _WEEKLY_ON.match(text)
    if m:
        return "1", "weeks", _split_days(m.group(1))

    m = _EVERY_WEEKS_ON.match(text)
    if m:
        return m.group(1), "weeks", _split_days(m.group(2))

    m = _EVERY.match(text)
    if m:
        return m.group(1), m.group(2), []

    interval, period, days = DEFAULT_FREQUENCY
    return interval, period, list(days)


def _split_days(part: str) -> list[str]:
    return [d.strip() for d in part.split(",") if d.strip() in DAYS_LIST]
