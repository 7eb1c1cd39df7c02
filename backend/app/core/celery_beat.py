# app/core/celery_beat.py
from celery.schedules import crontab
from app.core.config import settings

# Times are read in the Celery app timezone, pinned in celery_app.py
beat_schedule = {
    "cleanup-old-notifications": {
        "task": "notifications.cleanup_old_notifications",
        "schedule": crontab(
            hour=settings.NOTIFICATION_CLEANUP_HOUR,
            minute=settings.NOTIFICATION_CLEANUP_MINUTE,
        ),
    },
}
