"""Backup (JSON) and history (CSV) export. Never mutates the store."""

import json
from pathlib import Path

from .store import HabitStore

BACKUP_VERSION = "1.0.0"
CSV_HEADER = ["Date", "Habit", "Status", "Evidence Note", "Friction Reason", "Reflection"]


def _clean(text: str | None) -> str:
    """Keep a CSV cell on one line with no field separators."""
    return (text or "").replace(",", ";").replace("\n", " ")


class HabitExporter:
    """Export the store's current state to files."""

    def __init__(self, store: HabitStore):
        self.store = store

    def backup_data(self) -> dict:
        return {
            "version": BACKUP_VERSION,
            "exportedAt": self.store.clock.now().isoformat(),
            "habits": [h.to_json_dict() for h in self.store.habits],
            "logs": [log.to_json_dict() for log in self.store.logs],
            "reviews": [r.to_json_dict() for r in self.store.reviews],
        }

    def history_rows(self) -> list[str]:
        titles = {h.id: h.title for h in self.store.habits}
        rows = [",".join(CSV_HEADER)]
        for log in self.store.logs:
            habit_name = titles.get(log.habit_id, "Unknown").replace(",", ";")
            rows.append(
                ",".join(
                    [
                        log.date,
                        habit_name,
                        str(log.status),
                        _clean(log.evidence_note),
                        _clean(log.friction_reason),
                        _clean(log.reflection),
                    ]
                )
            )
        return rows

    def export_backup(self, output_dir: Path) -> Path:
        """Write ``tinywins_backup_<date>.json`` and return its path."""
        output_dir = Path(output_dir).expanduser()
        output_dir.mkdir(parents=True, exist_ok=True)
        path = output_dir / f"tinywins_backup_{self.store.clock.today_str()}.json"
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.backup_data(), f, indent=2)
        return path

    def export_history(self, output_dir: Path) -> Path:
        """Write ``tinywins_history_<date>.csv`` and return its path."""
        output_dir = Path(output_dir).expanduser()
        output_dir.mkdir(parents=True, exist_ok=True)
        path = output_dir / f"tinywins_history_{self.store.clock.today_str()}.csv"
        with open(path, "w", encoding="utf-8") as f:
            f.write("\n".join(self.history_rows()))
        return path
