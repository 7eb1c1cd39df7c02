# app/tasks/push_tasks.py
import asyncio
import logging
from typing import Any, Dict, Optional

from celery import shared_task

from app.services import pipeline
from app.tasks.badge_updater import handle_read_state_change
from app.tasks.notification_cleanup import cleanup_old_notifications
from app.tasks.send_push import DeliveryState, process_notification

logger = logging.getLogger("khoi.tasks")

# No autoretry on any of these: a failed push is recorded on the document and
# callers who want another attempt create a new notification.


@shared_task(name="notifications.send_push_notification")
def send_push_notification(notification_id: str) -> str:
    """Creation trigger, one invocation per new notification document."""
    try:
        p = pipeline.build_pipeline()
        state = asyncio.run(
            process_notification(
                notification_id,
                store=p.store,
                resolver=p.resolver,
                dispatcher=p.dispatcher,
            )
        )
    except Exception as e:
        logger.exception(f"🔥 send_push_notification crashed for {notification_id}: {e}")
        state = DeliveryState.FAILED
    return state.value


@shared_task(name="notifications.update_badge_on_read")
def update_badge_on_read(before: Dict[str, Any], after: Dict[str, Any]) -> Optional[int]:
    try:
        p = pipeline.build_pipeline()
        return asyncio.run(
            handle_read_state_change(
                before,
                after,
                store=p.store,
                resolver=p.resolver,
                dispatcher=p.dispatcher,
            )
        )
    except Exception as e:
        logger.exception(f"🔥 update_badge_on_read crashed: {e}")
        return None


@shared_task(name="notifications.cleanup_old_notifications")
def cleanup_old_notifications_task() -> int:
    try:
        p = pipeline.build_pipeline()
        return asyncio.run(cleanup_old_notifications(p.store))
    except Exception as e:
        logger.error(f"Error cleaning up notifications: {e}")
        return 0
