# app/tasks/notification_watcher.py
"""
Firestore listeners that turn document changes into Celery tasks.

Both listeners are bounded to a recent window (`since`, the start time minus
NOTIFICATION_CATCHUP_MINUTES) so attaching never pulls the whole collection:

- creation: documents with `createdAt >= since`. Every document entering the
  set is a new record; ones that already carry an outcome are skipped. On
  start this replays records created while the watcher was down, and the
  creation task's already-processed check makes that replay safe.
- read: documents with `readAt >= since` (readAt is written together with
  `isRead: true`). A document entering the set just went from unread to
  read. Badge updates recompute the count, so replaying them is harmless.

Run exactly one watcher process (`python watcher.py`); every extra process
enqueues its own copy of each task.
"""

import logging
import signal
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Any, Optional

from google.cloud.firestore_v1.base_query import FieldFilter

from app.core.config import settings

logger = logging.getLogger("khoi.watcher")


def _enqueue_created(notification_id: str) -> None:
    from app.tasks.push_tasks import send_push_notification
    send_push_notification.delay(notification_id)


def _enqueue_read(before: Dict[str, Any], after: Dict[str, Any]) -> None:
    from app.tasks.push_tasks import update_badge_on_read
    update_badge_on_read.delay(before, after)


class NotificationWatcher:
    def __init__(
        self,
        db,
        collection: str = settings.NOTIFICATIONS_COLLECTION,
        on_created: Callable[[str], None] = _enqueue_created,
        on_read: Callable[[Dict[str, Any], Dict[str, Any]], None] = _enqueue_read,
        catchup: timedelta = timedelta(minutes=settings.NOTIFICATION_CATCHUP_MINUTES),
    ):
        self.collection = db.collection(collection)
        self.on_created = on_created
        self.on_read = on_read
        self.catchup = catchup
        self._created_watch = None
        self._read_watch = None

    def start(self, now: Optional[datetime] = None) -> None:
        since = (now or datetime.now(timezone.utc)) - self.catchup

        self._created_watch = (
            self.collection
            .where(filter=FieldFilter("createdAt", ">=", since))
            .on_snapshot(self.handle_created_snapshot)
        )
        self._read_watch = (
            self.collection
            .where(filter=FieldFilter("readAt", ">=", since))
            .on_snapshot(self.handle_read_snapshot)
        )
        logger.info(f"👀 Notification watchers started (catching up from {since.isoformat()})")

    def stop(self) -> None:
        for watch in (self._created_watch, self._read_watch):
            if watch is not None:
                watch.unsubscribe()
        self._created_watch = None
        self._read_watch = None
        logger.info("Notification watchers stopped")

    def handle_created_snapshot(self, col_snapshot, changes, read_time) -> None:
        for change in changes:
            if change.type.name != "ADDED":
                continue

            data = change.document.to_dict() or {}
            if data.get("sentAt") is not None or data.get("error") is not None:
                continue

            try:
                self.on_created(change.document.id)
            except Exception as e:
                logger.error(f"Failed to enqueue push for {change.document.id}: {e}")

    def handle_read_snapshot(self, query_snapshot, changes, read_time) -> None:
        for change in changes:
            if change.type.name != "ADDED":
                continue

            data = change.document.to_dict() or {}
            if data.get("isRead") is not True:
                continue

            after = {"isRead": True, "recipientId": data.get("recipientId")}
            try:
                self.on_read({"isRead": False}, after)
            except Exception as e:
                logger.error(f"Failed to enqueue badge update for {change.document.id}: {e}")


_watcher: Optional[NotificationWatcher] = None


def start_notification_watchers(db) -> NotificationWatcher:
    global _watcher
    if _watcher is None:
        _watcher = NotificationWatcher(db)
        _watcher.start()
    return _watcher


def stop_notification_watchers() -> None:
    global _watcher
    if _watcher is not None:
        _watcher.stop()
        _watcher = None


def run_forever(db, stop_event: Optional[threading.Event] = None) -> None:
    """Block with the watchers attached until SIGINT/SIGTERM, or until `stop_event` is set."""
    if stop_event is None:
        stop_event = threading.Event()

        def _shutdown(signum, frame):
            logger.info(f"Received signal {signum}, shutting down watchers")
            stop_event.set()

        signal.signal(signal.SIGINT, _shutdown)
        signal.signal(signal.SIGTERM, _shutdown)

    start_notification_watchers(db)
    try:
        # Listener callbacks run on Firestore's own threads
        while not stop_event.wait(1):
            pass
    finally:
        stop_notification_watchers()
