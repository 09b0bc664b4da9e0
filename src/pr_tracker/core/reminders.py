"""
Overdue-training reminders.

TrainingReminderService is constructed explicitly with the tracker it reads
from and the notifier it delivers through.  It has no timer of its own: the
host calls tick() (for example once a day) while the service is running.
"""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, Any, Callable, Iterable

from loguru import logger

from .exceptions import StorageError
from .frequency import format_recommendation_message
from .models import NextRecommendation, TrainingReminder

if TYPE_CHECKING:
    from ..service import WorkoutTracker

Notifier = Callable[[TrainingReminder], None]


def build_reminder(user_id: str, rec: NextRecommendation) -> TrainingReminder:
    """Reminder for one overdue recommendation."""
    return TrainingReminder(
        user_id=user_id,
        exercise_name=rec.exercise_name,
        days_overdue=max(0, -rec.days_until_next),
        message=f"{format_recommendation_message(rec)}. Time to log a session!",
    )


class TrainingReminderService:
    """
    Sends a reminder for each overdue exercise, at most once per day.

    Lifecycle: stopped -> start() -> running -> stop() -> stopped.
    """

    def __init__(self, tracker: WorkoutTracker, notifier: Notifier, user_ids: Iterable[str] = ()):
        self.tracker = tracker
        self.notifier = notifier
        self.user_ids = list(user_ids)
        self._running = False
        self._last_check: date | None = None
        self._sent: set[tuple[str, str, date]] = set()

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self, today: date | None = None) -> list[TrainingReminder]:
        """
        Start the service and run the first check immediately.

        Returns:
            Reminders sent by the first check (empty if already running)
        """
        if self._running:
            logger.info("Training reminder service is already running")
            return []
        self._running = True
        logger.info("Training reminder service started")
        return self.tick(today)

    def stop(self) -> None:
        self._running = False
        logger.info("Training reminder service stopped")

    def tick(self, today: date | None = None) -> list[TrainingReminder]:
        """Run the daily check if the service is running and today is unchecked."""
        today = today or date.today()
        if not self._running or self._last_check == today:
            return []
        sent = self.check_and_notify(self.user_ids, today)
        self._last_check = today
        return sent

    def check_and_notify(self, user_ids: Iterable[str], today: date | None = None) -> list[TrainingReminder]:
        """
        Notify every user about their overdue exercises.

        An exercise already reminded about today is skipped.  A storage
        failure for one user or a notifier failure is logged and does not
        stop the remaining reminders.

        Returns:
            Reminders that were delivered
        """
        today = today or date.today()
        sent: list[TrainingReminder] = []
        # keys from earlier days can never match again
        self._sent = {key for key in self._sent if key[2] == today}

        for user_id in user_ids:
            try:
                recs = self.tracker.get_next_recommendations(user_id, today=today)
            except StorageError as e:
                logger.warning(f"Skipping reminders for user {user_id}: {e}")
                continue
            for rec in recs:
                if rec.status != "overdue":
                    continue
                key = (user_id, rec.exercise_name, today)
                if key in self._sent:
                    continue
                reminder = build_reminder(user_id, rec)
                if self._deliver(reminder):
                    self._sent.add(key)
                    sent.append(reminder)

        logger.info(f"Reminder check for {today}: {len(sent)} sent")
        return sent

    def send_test_reminder(self, user_id: str, exercise_name: str = "training") -> TrainingReminder:
        """Deliver a reminder regardless of schedule, for checking the notifier."""
        reminder = TrainingReminder(
            user_id=user_id,
            exercise_name=exercise_name,
            days_overdue=0,
            message=f"Test reminder: time to log some {exercise_name}!",
        )
        self.notifier(reminder)
        return reminder

    def status(self) -> dict[str, Any]:
        return {
            "is_running": self._running,
            "last_check": self._last_check.isoformat() if self._last_check else None,
        }

    def _deliver(self, reminder: TrainingReminder) -> bool:
        try:
            self.notifier(reminder)
        except Exception as e:
            logger.error(f"Reminder to {reminder.user_id} for '{reminder.exercise_name}' failed: {e}")
            return False
        return True
