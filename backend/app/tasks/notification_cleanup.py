# app/tasks/notification_cleanup.py
import logging
from datetime import datetime, timezone, timedelta
from typing import Optional

from app.core.config import settings

logger = logging.getLogger("khoi.cleanup")


async def cleanup_old_notifications(
    store,
    now: Optional[datetime] = None,
    retention_days: int = settings.NOTIFICATION_RETENTION_DAYS,
    limit: int = settings.NOTIFICATION_CLEANUP_BATCH_LIMIT,
) -> int:
    """
    Delete one batch of notifications created before the retention horizon.

    At most `limit` records go per run; whatever is left is picked up by the
    next scheduled run. A failed delete propagates so the run aborts as a whole.
    """
    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(days=retention_days)

    logger.info(f"🧹 Looking for notifications created before {cutoff.isoformat()}")
    old_ids = await store.find_created_before(cutoff, limit)

    if not old_ids:
        logger.info("No old notifications to delete")
        return 0

    await store.delete_batch(old_ids)
    logger.info(f"🗑️ Deleted {len(old_ids)} old notifications")
    return len(old_ids)
