# app/tasks/send_push.py
"""
Creation trigger: one run per newly created notification record.

    created -> resolving -> no_target
                         -> building -> sending -> delivered | failed

A record that already carries an outcome is left alone, so a redelivered
trigger never pushes twice. Runs that overlap may both send, but the outcome
write is set-once: the loser reports already_processed and writes nothing.
"""

import logging
from enum import Enum

from app.models.notification_model import NotificationRecord
from app.services.payload_builder import build_push_message

logger = logging.getLogger("khoi.push")


class DeliveryState(str, Enum):
    CREATED = "created"
    RESOLVING = "resolving"
    BUILDING = "building"
    SENDING = "sending"
    NO_TARGET = "no_target"
    DELIVERED = "delivered"
    FAILED = "failed"
    ALREADY_PROCESSED = "already_processed"
    MISSING = "missing"


async def handle_notification_created(
    record: NotificationRecord,
    *,
    store,
    resolver,
    dispatcher,
) -> DeliveryState:
    state = DeliveryState.CREATED
    logger.info(f"📬 New notification {record.id} for user {record.recipient_id} | type={record.type}")

    if record.is_terminal:
        logger.info(f"⏭️ Notification {record.id} already processed, skipping")
        return DeliveryState.ALREADY_PROCESSED

    try:
        state = DeliveryState.RESOLVING
        token = await resolver.resolve(record.recipient_id)
        if token is None:
            return DeliveryState.NO_TARGET

        state = DeliveryState.BUILDING
        message = build_push_message(record, token)

        state = DeliveryState.SENDING
        logger.info(f"📱 Sending to token: {token[:20]}...")
        result = await dispatcher.send(message, record.recipient_id)

        if result.ok:
            written = await store.mark_sent(record.id, result.message_id)
            state = DeliveryState.DELIVERED
        else:
            written = await store.mark_failed(record.id, result.failure.message, result.failure.code)
            state = DeliveryState.FAILED

        # Another run for the same record recorded its outcome first
        if not written:
            return DeliveryState.ALREADY_PROCESSED
        return state

    except Exception as e:
        logger.exception(f"❌ Push pipeline for {record.id} stopped while {state.value}: {e}")
        return DeliveryState.FAILED


async def process_notification(notification_id: str, *, store, resolver, dispatcher) -> DeliveryState:
    """Load the record by id and run the creation trigger on its current state."""
    try:
        record = await store.get(notification_id)
    except Exception as e:
        logger.exception(f"❌ Could not load notification {notification_id}: {e}")
        return DeliveryState.FAILED

    if record is None:
        logger.info(f"Notification {notification_id} no longer exists, skipping")
        return DeliveryState.MISSING

    return await handle_notification_created(
        record, store=store, resolver=resolver, dispatcher=dispatcher
    )
