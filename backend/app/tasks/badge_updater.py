# app/tasks/badge_updater.py
import logging
from typing import Any, Dict, Optional

from app.services.payload_builder import build_badge_message

logger = logging.getLogger("khoi.badge")


def became_read(before: Dict[str, Any], after: Dict[str, Any]) -> bool:
    """Only the unread -> read edge counts; repeats and other edits are ignored."""
    return not before.get("isRead") and bool(after.get("isRead"))


async def handle_read_state_change(
    before: Dict[str, Any],
    after: Dict[str, Any],
    *,
    store,
    resolver,
    dispatcher,
) -> Optional[int]:
    """
    Push the recipient's remaining unread count as a silent badge update.

    Returns the badge count that was sent, or None when nothing was sent.
    Errors are logged and swallowed.
    """
    if not became_read(before, after):
        return None

    recipient_id = after.get("recipientId")
    if not recipient_id:
        logger.warning("Read notification has no recipientId, skipping badge update")
        return None

    try:
        # The record that was just read is already excluded by the isRead filter
        unread_count = await store.count_unread(recipient_id)

        token = await resolver.resolve(recipient_id)
        if token is None:
            return None

        result = await dispatcher.send(
            build_badge_message(token, unread_count),
            recipient_id,
            prune_invalid_token=False,
        )
        if not result.ok:
            logger.error(f"Error updating badge for {recipient_id}: {result.failure.message}")
            return None

        logger.info(f"📛 Updated badge to {unread_count} for user {recipient_id}")
        return unread_count

    except Exception as e:
        logger.exception(f"Error updating badge for {recipient_id}: {e}")
        return None
