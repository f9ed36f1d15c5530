"""Device-local date helpers. All date bucketing goes through a ``Clock``."""

from datetime import date, datetime, timedelta


def date_str(d: date) -> str:
    """YYYY-MM-DD, zero padded."""
    return d.strftime("%Y-%m-%d")


def weekday_index(d: date) -> int:
    """Monday=0 ... Sunday=6."""
    return d.weekday()


def week_start(d: date) -> date:
    """Monday of the week containing ``d``."""
    return d - timedelta(days=d.weekday())


class Clock:
    """Local wall clock."""

    def now(self) -> datetime:
        return datetime.now()

    def today(self) -> date:
        return self.now().date()

    def today_str(self) -> str:
        return date_str(self.today())

    def timestamp_ms(self) -> int:
        return int(self.now().timestamp() * 1000)


class FixedClock(Clock):
    """Clock pinned to a given instant. Used by tests and replays."""

    def __init__(self, at: datetime | date):
        if not isinstance(at, datetime):
            at = datetime.combine(at, datetime.min.time()).replace(hour=12)
        self.at = at

    def now(self) -> datetime:
        return self.at

    def advance(self, days: int = 1) -> None:
        self.at = self.at + timedelta(days=days)
