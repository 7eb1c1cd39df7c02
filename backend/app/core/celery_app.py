from celery import Celery
from app.core.config import settings
from app.core.celery_beat import beat_schedule

celery_app = Celery(
    "khoi",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["app.tasks.push_tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    # Daily sweep fires at local midnight regardless of where workers run
    timezone=settings.NOTIFICATION_CLEANUP_TIMEZONE,
    enable_utc=True,
    broker_connection_retry_on_startup=True,
    beat_schedule=beat_schedule,
)
