"""
Tests for the JSONL document store: PR queries, cascade deletion,
comments, analytics and failure handling.
"""

from datetime import date, datetime, timedelta

import pytest

from pr_tracker.core.exceptions import NotFoundError, PermissionDeniedError, StorageError
from pr_tracker.core.models import PRRecord, SetEntry, TrainingAnalytics, WorkoutExercise, WorkoutPost
from pr_tracker.io.document_store import DocumentStore

NOW = datetime(2026, 3, 4, 19, 30)


@pytest.fixture
def store(tmp_path):
    s = DocumentStore(tmp_path / "data")
    s.init()
    return s


def _post(user_id: str = "u1", created_at: datetime = NOW, record_date: str | None = None, name: str = "スクワット"):
    return WorkoutPost(
        id="",
        user_id=user_id,
        exercises=[WorkoutExercise(name=name, sets=[SetEntry(weight=100, reps=5)])],
        created_at=created_at,
        record_date=record_date,
    )


def _pr(value: float, when: datetime, *, pr_type: str = "e1RM", exercise: str = "スクワット",
        user_id: str = "u1", workout_id: str | None = None) -> PRRecord:
    return PRRecord(
        user_id=user_id,
        exercise_name=exercise,
        pr_type=pr_type,  # type: ignore[arg-type]
        value=value,
        date=when,
        workout_id=workout_id,
    )


class TestInit:
    def test_init_creates_files(self, tmp_path):
        s = DocumentStore(tmp_path / "new")
        assert not s.exists()
        s.init()
        assert s.exists()
        assert s.prs_path.exists()
        assert s.comments_path.exists()

    def test_missing_files_read_as_empty(self, tmp_path):
        s = DocumentStore(tmp_path / "never-created")
        assert s.get_posts() == []
        assert s.get_user_prs("u1") == []
        assert s.get_training_analytics("u1", "スクワット") is None


class TestPRQueries:
    def test_save_assigns_id(self, store):
        saved = store.save_pr(_pr(100, NOW))
        assert saved.id
        assert store.get_user_prs("u1")[0].id == saved.id

    def test_latest_is_by_date(self, store):
        store.save_pr(_pr(110, NOW))
        store.save_pr(_pr(100, NOW - timedelta(days=7)))
        latest = store.get_latest_pr_for_exercise("u1", "スクワット", "e1RM")
        assert latest is not None
        assert latest.value == 110

    def test_latest_filters_by_triple(self, store):
        store.save_pr(_pr(110, NOW, pr_type="5RM"))
        store.save_pr(_pr(90, NOW, exercise="ベンチプレス"))
        store.save_pr(_pr(120, NOW, user_id="u2"))
        assert store.get_latest_pr_for_exercise("u1", "スクワット", "e1RM") is None

    def test_user_prs_newest_first_with_filters(self, store):
        for i in range(3):
            store.save_pr(_pr(100 + i, NOW - timedelta(days=10 - i)))
        store.save_pr(_pr(80, NOW, exercise="ベンチプレス"))

        assert [p.value for p in store.get_user_prs("u1")] == [80, 102, 101, 100]
        assert [p.value for p in store.get_user_prs("u1", "スクワット")] == [102, 101, 100]
        assert store.get_user_prs("u1", pr_type="5RM") == []

    def test_weekly_prs(self, store):
        store.save_pr(_pr(100, NOW - timedelta(days=10)))
        store.save_pr(_pr(105, NOW - timedelta(days=3)))
        store.save_pr(_pr(110, NOW - timedelta(hours=1)))
        assert [p.value for p in store.get_weekly_prs("u1", now=NOW)] == [110, 105]

    def test_trend_is_chronological_and_limited(self, store):
        for i in range(8):
            store.save_pr(_pr(100 + i, NOW - timedelta(days=8 - i)))
        trend = store.get_pr_trend_data("u1", "スクワット", "e1RM", limit=6)
        assert [p.value for p in trend] == [102, 103, 104, 105, 106, 107]

    def test_optional_fields_round_trip(self, store):
        record = _pr(500, NOW, pr_type="weight_reps", workout_id="w1")
        record.weight, record.reps, record.previous_best, record.improvement = 100, 5, 450, 11.11
        store.save_pr(record)
        loaded = store.get_user_prs("u1")[0]
        assert (loaded.weight, loaded.reps, loaded.workout_id, loaded.previous_best, loaded.improvement) == (
            100, 5, "w1", 450, 11.11,
        )


class TestPostsAndCascade:
    def test_create_and_list_posts(self, store):
        older = store.create_post(_post(created_at=NOW - timedelta(days=1)))
        newer = store.create_post(_post(created_at=NOW))
        store.create_post(_post(user_id="u2"))

        assert older.id and newer.id and older.id != newer.id
        assert [p.id for p in store.get_posts("u1")] == [newer.id, older.id]
        assert len(store.get_posts()) == 3
        assert len(store.get_posts(limit=1)) == 1
        assert store.get_post(older.id) is not None
        assert store.get_post("missing") is None

    def test_delete_cascades_only_matching_records(self, store):
        post = store.create_post(_post())
        other = store.create_post(_post(created_at=NOW + timedelta(days=2)))
        store.save_pr(_pr(100, NOW, workout_id=post.id))
        store.save_pr(_pr(500, NOW, pr_type="session_volume", exercise="session", workout_id=post.id))
        store.save_pr(_pr(110, NOW + timedelta(days=2), workout_id=other.id))
        store.save_pr(_pr(90, NOW, exercise="ベンチプレス"))
        store.add_comment(post.id, "u2", "ナイス！", now=NOW)
        store.add_comment(other.id, "u2", "すごい", now=NOW)

        removed = store.delete_post(post.id, "u1")

        assert removed == 2
        assert store.get_post(post.id) is None
        assert sorted(p.value for p in store.get_user_prs("u1")) == [90, 110]
        assert store.get_comments(post.id) == []
        assert len(store.get_comments(other.id)) == 1

    def test_delete_requires_owner(self, store):
        post = store.create_post(_post())
        store.save_pr(_pr(100, NOW, workout_id=post.id))

        with pytest.raises(PermissionDeniedError):
            store.delete_post(post.id, "intruder")

        assert store.get_post(post.id) is not None
        assert len(store.get_user_prs("u1")) == 1

    def test_delete_missing_post(self, store):
        with pytest.raises(NotFoundError):
            store.delete_post("nope", "u1")


class TestComments:
    def test_comment_bumps_counter(self, store):
        post = store.create_post(_post())
        store.add_comment(post.id, "u2", "first", now=NOW)
        store.add_comment(post.id, "u3", "second", now=NOW + timedelta(minutes=5))

        assert [c.text for c in store.get_comments(post.id)] == ["first", "second"]
        assert store.get_post(post.id).comments == 2

    def test_comment_on_missing_post(self, store):
        with pytest.raises(NotFoundError):
            store.add_comment("nope", "u2", "hello")


class TestAnalytics:
    def test_save_and_load(self, store):
        analytics = TrainingAnalytics(average_frequency=3.5, last_updated=date(2026, 3, 4))
        store.save_training_analytics("u1", "スクワット", analytics)
        store.save_training_analytics("u1", "ベンチプレス", analytics)

        assert store.get_training_analytics("u1", "スクワット") == analytics
        assert store.get_training_analytics("u2", "スクワット") is None
        assert store.list_analytics_exercises("u1") == ["スクワット", "ベンチプレス"]

    def test_training_dates_use_record_date(self, store):
        store.create_post(_post(created_at=NOW))
        store.create_post(_post(created_at=NOW, record_date="2026-02-20"))
        store.create_post(_post(created_at=NOW, name="ベンチプレス"))

        assert store.get_training_dates("u1", "スクワット") == [date(2026, 2, 20), date(2026, 3, 4)]
        assert store.get_last_training_date("u1", "スクワット") == date(2026, 3, 4)
        assert store.get_last_training_date("u1", "デッドリフト") is None


class TestCorruptData:
    def test_corrupt_pr_file_raises_storage_error(self, store):
        store.prs_path.write_text('{"user_id": "u1"\n', encoding="utf-8")
        with pytest.raises(StorageError):
            store.get_latest_pr_for_exercise("u1", "スクワット", "e1RM")

    def test_invalid_pr_type_raises_storage_error(self, store):
        store.prs_path.write_text(
            '{"user_id":"u1","exercise_name":"x","pr_type":"10RM","value":1,"date":"2026-03-04T00:00:00"}\n',
            encoding="utf-8",
        )
        with pytest.raises(StorageError):
            store.get_user_prs("u1")

    def test_corrupt_analytics_raises_storage_error(self, store):
        store.analytics_path.write_text("[1, 2", encoding="utf-8")
        with pytest.raises(StorageError):
            store.list_analytics_exercises("u1")
