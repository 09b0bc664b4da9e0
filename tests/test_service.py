"""
Integration tests for WorkoutTracker and TrainingReminderService.

Workouts go through the full path: post creation, PR detection,
recommendations and analytics recomputation on a temporary store.
"""

from datetime import date, datetime, timedelta

import pytest

from pr_tracker.core.exceptions import NotFoundError, PermissionDeniedError, StorageError
from pr_tracker.core.models import SetEntry, TrainingAnalytics, WorkoutExercise
from pr_tracker.core.reminders import TrainingReminderService
from pr_tracker.io.document_store import DocumentStore
from pr_tracker.io.serializers import ValidationError
from pr_tracker.service import WorkoutTracker

DAY1 = datetime(2026, 3, 2, 18, 0)


@pytest.fixture
def tracker(tmp_path):
    store = DocumentStore(tmp_path)
    store.init()
    return WorkoutTracker(store)


def _ex(name: str, reps: int, weight: float, sets: int = 1) -> WorkoutExercise:
    return WorkoutExercise(name=name, sets=[SetEntry(weight=weight, reps=reps) for _ in range(sets)])


def _log(tracker: WorkoutTracker, when: datetime, *exercises: WorkoutExercise, user: str = "u1"):
    return tracker.post_workout(user, list(exercises), now=when)


class TestPostWorkout:
    def test_first_workout_sets_prs_with_recommendations(self, tracker):
        result = _log(tracker, DAY1, _ex("スクワット", 5, 100, sets=3))

        assert result.post.id
        assert {(p.exercise_name, p.pr_type) for p in result.new_prs} == {
            ("session", "session_volume"),
            ("スクワット", "e1RM"),
            ("スクワット", "weight_reps"),
            ("スクワット", "5RM"),
        }
        assert all(p.workout_id == result.post.id for p in result.new_prs)
        assert len(result.recommendations) == len(result.new_prs)
        assert all(r.target_date == date(2026, 3, 9) for r in result.recommendations)

        volume = next(p for p in result.new_prs if p.pr_type == "session_volume")
        assert volume.value == 1500

    def test_repeat_workout_sets_no_prs(self, tracker):
        _log(tracker, DAY1, _ex("スクワット", 5, 100))
        result = _log(tracker, DAY1 + timedelta(days=3), _ex("スクワット", 5, 100))
        assert result.new_prs == []
        assert result.recommendations == []

    def test_rejects_empty_workout(self, tracker):
        with pytest.raises(ValidationError):
            tracker.post_workout("u1", [])

    def test_rejects_bad_record_date(self, tracker):
        with pytest.raises(ValidationError):
            tracker.post_workout("u1", [_ex("スクワット", 5, 100)], record_date="2026-13-01")
        assert tracker.get_posts("u1") == []


class TestAnalyticsTrigger:
    def test_single_day_is_a_no_op(self, tracker):
        _log(tracker, DAY1, _ex("スクワット", 5, 100))
        _log(tracker, DAY1 + timedelta(hours=2), _ex("スクワット", 5, 90))
        assert tracker.store.get_training_analytics("u1", "スクワット") is None

    def test_recomputed_from_full_history(self, tracker):
        for offset in (0, 3, 7):
            _log(tracker, DAY1 + timedelta(days=offset), _ex("スクワット", 5, 100))

        analytics = tracker.store.get_training_analytics("u1", "スクワット")
        # intervals [3, 4]
        assert analytics == TrainingAnalytics(average_frequency=3.5, last_updated=date(2026, 3, 9))

    def test_redundant_trigger_is_idempotent(self, tracker):
        for offset in (0, 7, 14):
            last = _log(tracker, DAY1 + timedelta(days=offset), _ex("スクワット", 5, 100))
        before = tracker.store.get_training_analytics("u1", "スクワット")

        tracker.on_workout_created(last.post, today=date(2026, 3, 16))
        tracker.on_workout_created(last.post, today=date(2026, 3, 16))

        assert tracker.store.get_training_analytics("u1", "スクワット") == before

    def test_backdated_record_counts_on_its_date(self, tracker):
        tracker.post_workout("u1", [_ex("スクワット", 5, 100)], record_date="2026-02-23", now=DAY1)
        tracker.post_workout("u1", [_ex("スクワット", 5, 100)], now=DAY1)
        analytics = tracker.store.get_training_analytics("u1", "スクワット")
        assert analytics is not None
        assert analytics.average_frequency == 7.0

    def test_failure_is_local_to_one_exercise(self, tracker, monkeypatch, log_messages):
        real = tracker.store.get_training_dates

        def flaky(user_id, exercise_name):
            if exercise_name == "ベンチプレス":
                raise StorageError("read failed")
            return real(user_id, exercise_name)

        _log(tracker, DAY1, _ex("スクワット", 5, 100), _ex("ベンチプレス", 5, 80))
        monkeypatch.setattr(tracker.store, "get_training_dates", flaky)
        _log(tracker, DAY1 + timedelta(days=2), _ex("スクワット", 5, 100), _ex("ベンチプレス", 5, 80))

        assert tracker.store.get_training_analytics("u1", "スクワット") is not None
        assert tracker.store.get_training_analytics("u1", "ベンチプレス") is None
        assert any("ベンチプレス" in m for m in log_messages)


class TestNextRecommendations:
    def test_sorted_by_urgency(self, tracker):
        # squat every 7 days, last on 03-09; bench every 2 days, last on 03-13
        for offset in (0, 7):
            _log(tracker, DAY1 + timedelta(days=offset), _ex("スクワット", 5, 100))
        for offset in (9, 11):
            _log(tracker, DAY1 + timedelta(days=offset), _ex("ベンチプレス", 5, 80))

        recs = tracker.get_next_recommendations("u1", today=date(2026, 3, 20))

        assert [r.exercise_name for r in recs] == ["ベンチプレス", "スクワット"]
        bench, squat = recs
        assert bench.next_recommended_date == date(2026, 3, 15)
        assert bench.days_until_next == -5
        assert bench.status == "overdue"
        assert squat.next_recommended_date == date(2026, 3, 16)
        assert squat.status == "overdue"

    def test_nothing_without_history(self, tracker):
        assert tracker.get_next_recommendations("u1") == []


class TestDeleteWorkout:
    def test_owner_delete_cascades(self, tracker):
        first = _log(tracker, DAY1, _ex("スクワット", 5, 100))
        second = _log(tracker, DAY1 + timedelta(days=7), _ex("スクワット", 5, 105))
        tracker.add_comment(second.post.id, "u2", "おめでとう！")

        removed = tracker.delete_workout(second.post.id, "u1")

        assert removed == len(second.new_prs)
        remaining = tracker.get_user_prs("u1")
        assert {p.workout_id for p in remaining} == {first.post.id}
        assert tracker.get_comments(second.post.id) == []

    def test_other_user_cannot_delete(self, tracker):
        result = _log(tracker, DAY1, _ex("スクワット", 5, 100))
        with pytest.raises(PermissionDeniedError):
            tracker.delete_workout(result.post.id, "u2")

    def test_missing_workout(self, tracker):
        with pytest.raises(NotFoundError):
            tracker.delete_workout("missing", "u1")

    def test_blank_comment_rejected(self, tracker):
        result = _log(tracker, DAY1, _ex("スクワット", 5, 100))
        with pytest.raises(ValidationError):
            tracker.add_comment(result.post.id, "u2", "   ")


class TestQueries:
    def test_trend_and_weekly(self, tracker):
        for i, weight in enumerate((100, 102.5, 105)):
            _log(tracker, DAY1 + timedelta(days=7 * i), _ex("スクワット", 5, weight))

        trend = tracker.get_pr_trend("u1", "スクワット", "5RM")
        assert [p.value for p in trend] == [100, 102.5, 105]

        weekly = tracker.get_weekly_prs("u1", now=DAY1 + timedelta(days=15))
        assert {p.value for p in weekly if p.pr_type == "5RM"} == {105}

    def test_muscle_group_summaries(self, tracker):
        _log(tracker, DAY1, _ex("スクワット", 5, 100), _ex("ベンチプレス", 5, 80))
        summaries = tracker.muscle_group_summaries("u1")
        assert {s.muscle_group for s in summaries} == {"脚", "胸"}


class TestReminderService:
    @pytest.fixture
    def overdue_tracker(self, tracker):
        for offset in (0, 7):
            _log(tracker, DAY1 + timedelta(days=offset), _ex("スクワット", 5, 100))
        return tracker

    def test_lifecycle(self, overdue_tracker):
        sent = []
        service = TrainingReminderService(overdue_tracker, sent.append, ["u1"])
        assert not service.is_running

        first = service.start(today=date(2026, 3, 20))
        assert service.is_running
        assert len(first) == 1
        assert first[0].exercise_name == "スクワット"
        assert first[0].days_overdue == 4
        assert sent == first

        # already running: no second immediate check
        assert service.start(today=date(2026, 3, 20)) == []

        service.stop()
        assert not service.is_running
        assert service.tick(today=date(2026, 3, 21)) == []
        assert service.status()["last_check"] == "2026-03-20"

    def test_once_per_day(self, overdue_tracker):
        sent = []
        service = TrainingReminderService(overdue_tracker, sent.append, ["u1"])
        service.start(today=date(2026, 3, 20))
        assert service.tick(today=date(2026, 3, 20)) == []
        assert service.check_and_notify(["u1"], today=date(2026, 3, 20)) == []
        assert len(service.tick(today=date(2026, 3, 21))) == 1
        assert len(sent) == 2

    def test_not_overdue_sends_nothing(self, overdue_tracker):
        sent = []
        service = TrainingReminderService(overdue_tracker, sent.append, ["u1"])
        assert service.check_and_notify(["u1"], today=date(2026, 3, 15)) == []
        assert sent == []

    def test_notifier_failure_is_logged(self, overdue_tracker, log_messages):
        def broken(reminder):
            raise ConnectionError("push gateway down")

        service = TrainingReminderService(overdue_tracker, broken, ["u1"])
        assert service.check_and_notify(["u1"], today=date(2026, 3, 20)) == []
        assert any("push gateway down" in m for m in log_messages)

    def test_test_reminder(self, tracker):
        sent = []
        service = TrainingReminderService(tracker, sent.append)
        reminder = service.send_test_reminder("u1")
        assert sent == [reminder]
        assert reminder.user_id == "u1"

    def test_storage_failure_for_one_user_does_not_block_others(self, overdue_tracker, log_messages):
        class FlakyTracker:
            def __init__(self, inner):
                self.inner = inner
                self.failures = {"bad"}

            def get_next_recommendations(self, user_id, today=None):
                if user_id in self.failures:
                    self.failures.discard(user_id)
                    raise StorageError("analytics unreadable")
                return self.inner.get_next_recommendations(user_id, today=today)

        sent = []
        service = TrainingReminderService(FlakyTracker(overdue_tracker), sent.append, ["bad", "u1"])

        delivered = service.start(today=date(2026, 3, 20))

        assert [r.user_id for r in delivered] == ["u1"]
        assert sent == delivered
        assert any("bad" in m and "analytics unreadable" in m for m in log_messages)

    def test_failed_check_is_retried_the_same_day(self, overdue_tracker):
        class BrokenOnceTracker:
            def __init__(self, inner):
                self.inner = inner
                self.calls = 0

            def get_next_recommendations(self, user_id, today=None):
                self.calls += 1
                if self.calls == 1:
                    raise RuntimeError("boom")
                return self.inner.get_next_recommendations(user_id, today=today)

        sent = []
        service = TrainingReminderService(BrokenOnceTracker(overdue_tracker), sent.append, ["u1"])

        with pytest.raises(RuntimeError):
            service.start(today=date(2026, 3, 20))
        assert service.status()["last_check"] is None

        assert len(service.tick(today=date(2026, 3, 20))) == 1
        assert service.status()["last_check"] == "2026-03-20"

    def test_sent_keys_only_cover_the_current_day(self, overdue_tracker):
        service = TrainingReminderService(overdue_tracker, lambda reminder: None, ["u1"])
        service.check_and_notify(["u1"], today=date(2026, 3, 20))
        service.check_and_notify(["u1"], today=date(2026, 3, 21))

        assert service._sent
        assert all(key[2] == date(2026, 3, 21) for key in service._sent)
