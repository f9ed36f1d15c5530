"""CLI command tests using Click CliRunner.

Strategy: patch get_components in each command module so every invocation
shares one in-memory kv store; the store itself runs for real.
"""

import importlib
import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from cli.config import get_paths
from cli.config_models import TinyWinsConfig
from cli.main import cli
from habits.storage import HABITS_KEY, LOGS_KEY, REVIEWS_KEY, MemoryKeyValueStore

COMMAND_MODULES = ["habit", "log", "review", "stats", "export"]


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def components(tmp_path):
    config = TinyWinsConfig.from_dict(
        {
            "paths": {
                "data_db": str(tmp_path / "tinywins.db"),
                "export_dir": str(tmp_path / "exports"),
                "log_file": str(tmp_path / "tinywins.log"),
            }
        }
    )
    return {
        "config": config.to_dict(),
        "config_model": config,
        "paths": get_paths(config.to_dict()),
        "storage": MemoryKeyValueStore(),
    }


@pytest.fixture
def patch_components(components):
    patches = [
        patch.object(
            importlib.import_module(f"cli.commands.{name}"),
            "get_components",
            return_value=components,
        )
        for name in COMMAND_MODULES
    ]
    patches.append(patch("cli.main.load_config_model", return_value=components["config_model"]))
    for p in patches:
        p.start()
    yield components
    for p in patches:
        p.stop()


def _stored(components, key):
    return json.loads(components["storage"].data.get(key, "[]"))


def _add(runner, title="Stretch", *args):
    result = runner.invoke(cli, ["habit", "add", title, *args])
    assert result.exit_code == 0, result.output
    return result


def _first_id(components):
    return _stored(components, HABITS_KEY)[0]["id"]


class TestHabitCommands:
    def test_add_and_list(self, runner, patch_components):
        result = _add(runner, "Stretch", "--goal", "3", "--unit", "min")
        assert "Created" in result.output
        habits = _stored(patch_components, HABITS_KEY)
        assert habits[0]["title"] == "Stretch"
        assert habits[0]["goal"] == 3

        result = runner.invoke(cli, ["habit", "list"])
        assert result.exit_code == 0
        assert "Stretch" in result.output

    def test_list_empty(self, runner, patch_components):
        result = runner.invoke(cli, ["habit", "list"])
        assert result.exit_code == 0
        assert "No habits yet" in result.output

    def test_add_rejects_zero_goal(self, runner, patch_components):
        result = runner.invoke(cli, ["habit", "add", "Bad", "--goal", "0"])
        assert result.exit_code == 1
        assert "Invalid habit" in result.output
        assert _stored(patch_components, HABITS_KEY) == []

    def test_done_and_undo(self, runner, patch_components):
        _add(runner)
        habit_id = _first_id(patch_components)

        result = runner.invoke(cli, ["habit", "done", habit_id, "--note", "10 minutes"])
        assert result.exit_code == 0
        assert "streak 1" in result.output
        logs = _stored(patch_components, LOGS_KEY)
        assert logs[0]["status"] == "done"
        assert logs[0]["evidenceNote"] == "10 minutes"

        result = runner.invoke(cli, ["habit", "undo", habit_id])
        assert result.exit_code == 0
        assert "Undone" in result.output
        assert _stored(patch_components, LOGS_KEY) == []
        assert _stored(patch_components, HABITS_KEY)[0]["streak"] == 0

    def test_inc_reaches_goal(self, runner, patch_components):
        _add(runner, "Water", "--goal", "2")
        habit_id = _first_id(patch_components)

        first = runner.invoke(cli, ["habit", "inc", habit_id])
        assert "1/2" in first.output
        assert "goal reached" not in first.output

        second = runner.invoke(cli, ["habit", "inc", habit_id])
        assert "goal reached" in second.output
        assert len(_stored(patch_components, LOGS_KEY)) == 1
        assert _stored(patch_components, HABITS_KEY)[0]["streak"] == 1

    def test_miss(self, runner, patch_components):
        _add(runner)
        habit_id = _first_id(patch_components)
        runner.invoke(cli, ["habit", "done", habit_id])

        result = runner.invoke(cli, ["habit", "miss", habit_id, "--reason", "too tired"])
        assert result.exit_code == 0
        assert "streak reset" in result.output
        assert _stored(patch_components, HABITS_KEY)[0]["streak"] == 0
        assert _stored(patch_components, LOGS_KEY)[-1]["frictionReason"] == "too tired"

    def test_edit(self, runner, patch_components):
        _add(runner)
        habit_id = _first_id(patch_components)
        result = runner.invoke(cli, ["habit", "edit", habit_id, "--title", "Yoga"])
        assert result.exit_code == 0
        assert _stored(patch_components, HABITS_KEY)[0]["title"] == "Yoga"

    def test_add_weekly_on_days(self, runner, patch_components):
        _add(runner, "Gym", "--on", "wed,Mon")
        assert _stored(patch_components, HABITS_KEY)[0]["frequency"] == "Weekly on Mon, Wed"

    def test_add_every_n_days(self, runner, patch_components):
        _add(runner, "Plants", "--every", "3", "--per", "days")
        assert _stored(patch_components, HABITS_KEY)[0]["frequency"] == "Every 3 days"

    def test_add_unknown_day(self, runner, patch_components):
        result = runner.invoke(cli, ["habit", "add", "Gym", "--on", "Funday"])
        assert result.exit_code == 2
        assert _stored(patch_components, HABITS_KEY) == []

    def test_edit_days_keeps_interval(self, runner, patch_components):
        _add(runner, "Gym", "--every", "2", "--on", "Mon")
        habit_id = _first_id(patch_components)
        assert _stored(patch_components, HABITS_KEY)[0]["frequency"] == "Every 2 weeks on Mon"

        result = runner.invoke(cli, ["habit", "edit", habit_id, "--on", "Fri,Tue"])
        assert result.exit_code == 0
        assert _stored(patch_components, HABITS_KEY)[0]["frequency"] == "Every 2 weeks on Tue, Fri"

    def test_edit_interval_of_daily_habit(self, runner, patch_components):
        _add(runner)
        habit_id = _first_id(patch_components)
        runner.invoke(cli, ["habit", "edit", habit_id, "--every", "2"])
        assert _stored(patch_components, HABITS_KEY)[0]["frequency"] == "Every 2 days"

    def test_list_marks_goal_met(self, runner, patch_components):
        _add(runner)
        before = runner.invoke(cli, ["habit", "list"])
        assert "✓" not in before.output

        runner.invoke(cli, ["habit", "done", _first_id(patch_components)])
        after = runner.invoke(cli, ["habit", "list"])
        assert "✓" in after.output

    def test_show_completed_days(self, runner, patch_components):
        _add(runner)
        habit_id = _first_id(patch_components)
        runner.invoke(cli, ["habit", "done", habit_id])
        runner.invoke(cli, ["habit", "done", habit_id])
        result = runner.invoke(cli, ["habit", "show", habit_id])
        assert "Completed on 1 day(s)" in result.output

    def test_edit_nothing(self, runner, patch_components):
        result = runner.invoke(cli, ["habit", "edit", "anything"])
        assert "Nothing to change" in result.output

    def test_rm_keeps_logs(self, runner, patch_components):
        _add(runner)
        habit_id = _first_id(patch_components)
        runner.invoke(cli, ["habit", "done", habit_id])

        result = runner.invoke(cli, ["habit", "rm", habit_id, "-y"])
        assert result.exit_code == 0
        assert "Deleted" in result.output
        assert _stored(patch_components, HABITS_KEY) == []
        assert len(_stored(patch_components, LOGS_KEY)) == 1

    def test_unknown_id(self, runner, patch_components):
        result = runner.invoke(cli, ["habit", "done", "nope"])
        assert result.exit_code == 0
        assert "No habit with id" in result.output
        assert _stored(patch_components, LOGS_KEY) == []

    def test_id_prefix(self, runner, patch_components):
        _add(runner)
        habit_id = _first_id(patch_components)
        result = runner.invoke(cli, ["habit", "show", habit_id[:16]])
        assert result.exit_code == 0
        assert "Stretch" in result.output


class TestLogCommands:
    def test_list_for_habit(self, runner, patch_components):
        _add(runner)
        habit_id = _first_id(patch_components)
        runner.invoke(cli, ["habit", "done", habit_id])

        result = runner.invoke(cli, ["log", "list", "--habit", habit_id])
        assert result.exit_code == 0
        assert "done" in result.output

    def test_list_empty_date(self, runner, patch_components):
        result = runner.invoke(cli, ["log", "list", "--date", "1999-01-01"])
        assert "No logs found" in result.output


class TestReviewCommands:
    def test_add_and_list(self, runner, patch_components):
        result = runner.invoke(
            cli,
            [
                "review", "add",
                "--worked", "mornings",
                "--didnt", "evenings",
                "--law", "easy",
                "--adjust", "shoes by door",
                "--rate", "abc=4",
                "--week", "2026-01-12",
            ],
        )
        assert result.exit_code == 0, result.output
        review = _stored(patch_components, REVIEWS_KEY)[0]
        assert review["weekStart"] == "2026-01-12"
        assert review["lawFailed"] == "easy"
        assert review["adjustments"] == ["shoes by door"]
        assert review["habitRatings"] == {"abc": 4}

        result = runner.invoke(cli, ["review", "list"])
        assert "2026-01-12" in result.output

    def test_bad_rating(self, runner, patch_components):
        result = runner.invoke(cli, ["review", "add", "--rate", "oops"])
        assert result.exit_code == 2
        assert _stored(patch_components, REVIEWS_KEY) == []


class TestStatsAndExport:
    def test_stats_week(self, runner, patch_components):
        _add(runner)
        runner.invoke(cli, ["habit", "done", _first_id(patch_components)])
        result = runner.invoke(cli, ["stats", "week"])
        assert result.exit_code == 0
        assert "Week of" in result.output
        assert "Completed: 1" in result.output

    def test_export_backup(self, runner, patch_components, tmp_path):
        _add(runner)
        result = runner.invoke(cli, ["export", "backup", "-o", str(tmp_path / "out")])
        assert result.exit_code == 0
        files = list((tmp_path / "out").glob("tinywins_backup_*.json"))
        assert len(files) == 1
        assert json.loads(files[0].read_text())["habits"][0]["title"] == "Stretch"

    def test_export_history_default_dir(self, runner, patch_components):
        result = runner.invoke(cli, ["export", "history"])
        assert result.exit_code == 0
        export_dir = patch_components["paths"]["export_dir"]
        assert len(list(export_dir.glob("tinywins_history_*.csv"))) == 1


class TestMain:
    def test_config_error(self, runner):
        with patch("cli.main.load_config_model", side_effect=ValueError("Invalid YAML in config file: boom")):
            result = runner.invoke(cli, ["habit", "list"])
        assert result.exit_code == 1
        assert "Config error" in result.output

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output
