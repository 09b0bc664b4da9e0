"""
Minimal smoke tests for the pr-tracker CLI.

Tests basic functionality:
- App runs and shows help
- Workouts can be logged and listed
- PRs, trend and next-target are reported
- Workouts can be deleted with their PRs
- Schedule, muscle groups and reminders run
"""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from pr_tracker.cli.main import app

runner = CliRunner()


@pytest.fixture
def data_dir(tmp_path) -> Path:
    return tmp_path / "data"


def _invoke(data_dir: Path, *args: str):
    return runner.invoke(app, [*args, "--data-dir", str(data_dir)])


def _log(data_dir: Path, *exercise_args: str, date: str | None = None):
    args = ["log-workout", "--json"]
    for arg in exercise_args:
        args += ["--exercise", arg]
    if date is not None:
        args += ["--date", date]
    result = _invoke(data_dir, *args)
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


class TestCLISmoke:
    def test_app_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "log-workout" in result.output

    def test_log_workout_reports_prs(self, data_dir):
        out = _log(data_dir, "スクワット=5x3 @100kg", "ベンチプレス=5@80, 3@90")

        assert (data_dir / "workout_posts.jsonl").exists()
        types = {(p["exercise_name"], p["pr_type"]) for p in out["new_prs"]}
        assert ("session", "session_volume") in types
        assert ("スクワット", "5RM") in types
        assert ("ベンチプレス", "3RM") in types
        assert len(out["recommendations"]) == len(out["new_prs"])

    def test_log_workout_rich_output(self, data_dir):
        result = _invoke(data_dir, "log-workout", "-e", "スクワット=5@100")
        assert result.exit_code == 0
        assert "Logged workout" in result.output

    def test_invalid_sets_exit_code(self, data_dir):
        result = _invoke(data_dir, "log-workout", "-e", "スクワット=heavy")
        assert result.exit_code == 1

    def test_show_workouts(self, data_dir):
        _log(data_dir, "スクワット=5@100")
        result = _invoke(data_dir, "show-workouts", "--json")
        assert result.exit_code == 0
        posts = json.loads(result.stdout)
        assert len(posts) == 1
        assert posts[0]["exercises"][0]["name"] == "スクワット"

        result = _invoke(data_dir, "show-workouts")
        assert result.exit_code == 0

    def test_prs_and_filters(self, data_dir):
        _log(data_dir, "スクワット=5@100")
        _log(data_dir, "スクワット=5@105")

        result = _invoke(data_dir, "prs", "--json", "--exercise", "スクワット", "--type", "5RM")
        assert result.exit_code == 0
        assert [p["value"] for p in json.loads(result.stdout)] == [105, 100]

        result = _invoke(data_dir, "prs", "--weekly")
        assert result.exit_code == 0
        assert "Week of" in result.output

    def test_invalid_pr_type(self, data_dir):
        result = _invoke(data_dir, "prs", "--type", "10RM")
        assert result.exit_code == 1

    def test_trend_and_next_target(self, data_dir):
        _log(data_dir, "スクワット=5@100")
        _log(data_dir, "スクワット=5@105")

        result = _invoke(data_dir, "trend", "スクワット", "--type", "5RM", "--json")
        assert result.exit_code == 0
        assert [p["value"] for p in json.loads(result.stdout)] == [100, 105]

        result = _invoke(data_dir, "next-target", "スクワット", "--type", "5RM", "--json")
        assert result.exit_code == 0
        assert json.loads(result.stdout)["recommendation"]["next_target"] == 107.0

    def test_next_target_without_record(self, data_dir):
        result = _invoke(data_dir, "next-target", "デッドリフト")
        assert result.exit_code == 1

    def test_delete_workout(self, data_dir):
        out = _log(data_dir, "スクワット=5@100")
        post_id = out["post"]["id"]

        result = _invoke(data_dir, "delete-workout", post_id, "--user", "someone-else", "--force")
        assert result.exit_code == 1

        result = _invoke(data_dir, "delete-workout", post_id, "--force", "--json")
        assert result.exit_code == 0
        assert json.loads(result.stdout)["pr_records_removed"] == len(out["new_prs"])

        result = _invoke(data_dir, "prs", "--json")
        assert json.loads(result.stdout) == []

    def test_comment(self, data_dir):
        post_id = _log(data_dir, "スクワット=5@100")["post"]["id"]

        result = _invoke(data_dir, "comment", post_id, "ナイス！", "--user", "friend")
        assert result.exit_code == 0

        result = _invoke(data_dir, "comment", post_id, "--json")
        assert [c["text"] for c in json.loads(result.stdout)] == ["ナイス！"]

        result = _invoke(data_dir, "comment", "missing", "hello")
        assert result.exit_code == 1

    def test_schedule_and_remind(self, data_dir):
        _log(data_dir, "スクワット=5@100", date="2026-03-02")
        _log(data_dir, "スクワット=5@100", date="2026-03-09")

        result = _invoke(data_dir, "schedule", "--today", "2026-03-20", "--json")
        assert result.exit_code == 0
        (rec,) = json.loads(result.stdout)
        assert rec["next_recommended_date"] == "2026-03-16"
        assert rec["status"] == "overdue"

        result = _invoke(data_dir, "schedule", "--today", "2026-03-20")
        assert result.exit_code == 0

        result = _invoke(data_dir, "remind", "--today", "2026-03-20", "--json")
        assert result.exit_code == 0
        (reminder,) = json.loads(result.stdout)
        assert reminder["days_overdue"] == 4

    def test_muscle_groups(self, data_dir):
        result = runner.invoke(app, ["muscle-groups", "--classify", "ベンチプレス", "--json"])
        assert result.exit_code == 0
        out = json.loads(result.stdout)
        assert out["group_name"] == "胸"
        assert out["source"] == "catalog"

        _log(data_dir, "スクワット=5@100")
        result = _invoke(data_dir, "muscle-groups", "--json")
        assert result.exit_code == 0
        assert json.loads(result.stdout)[0]["muscle_group"] == "脚"

    def test_invalid_log_level(self, data_dir):
        result = runner.invoke(app, ["--log-level", "LOUD", "show-workouts", "--data-dir", str(data_dir)])
        assert result.exit_code == 1
