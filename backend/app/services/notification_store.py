# services/notification_store.py
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from firebase_admin import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from app.core.config import settings
from app.models.notification_model import NotificationRecord
from app.utils.firebase import firebase_run, firebase_stream

logger = logging.getLogger("khoi.store")

# Firestore rejects batches with more than 500 writes
MAX_BATCH_WRITES = 500

# Either field present means the creation trigger already recorded an outcome
OUTCOME_FIELDS = ("sentAt", "error")


def _write_outcome(transaction, ref, fields: Dict[str, Any]) -> bool:
    snap = ref.get(transaction=transaction)
    if not snap.exists:
        return False

    data = snap.to_dict() or {}
    if any(data.get(field) is not None for field in OUTCOME_FIELDS):
        return False

    transaction.update(ref, fields)
    return True


_write_outcome_once = firestore.transactional(_write_outcome)


class FirestoreNotificationStore:
    """
    The `notifications` collection.

    Creation is append-only, a delivery outcome is written at most once per
    record, and deletion only happens through the retention sweep.
    """

    def __init__(self, db, collection: str = settings.NOTIFICATIONS_COLLECTION):
        self.db = db
        self.collection = db.collection(collection)

    async def create(self, data: Dict[str, Any]) -> str:
        payload = {
            **data,
            "data": data.get("data") or {},
            "isRead": False,
            "createdAt": firestore.SERVER_TIMESTAMP,
        }
        _, ref = await firebase_run(self.collection.add, payload)
        return ref.id

    async def get(self, notification_id: str) -> Optional[NotificationRecord]:
        snap = await firebase_run(self.collection.document(notification_id).get)
        if not snap.exists:
            return None
        return NotificationRecord.from_firestore(snap.id, snap.to_dict())

    async def _record_outcome(self, notification_id: str, fields: Dict[str, Any]) -> bool:
        """
        Write a delivery outcome unless one is already there.

        Concurrent runs for the same record may all send, but only the first
        to commit records its outcome, so a record never carries both the
        success and the error pair. Returns False when the write was skipped.
        """
        ref = self.collection.document(notification_id)
        written = await firebase_run(_write_outcome_once, self.db.transaction(), ref, fields)
        if not written:
            logger.info(f"Outcome for {notification_id} already recorded (or record gone), not overwriting")
        return written

    async def mark_sent(self, notification_id: str, message_id: str) -> bool:
        return await self._record_outcome(
            notification_id,
            {"sentAt": firestore.SERVER_TIMESTAMP, "fcmMessageId": message_id},
        )

    async def mark_failed(self, notification_id: str, error: str, error_code: str) -> bool:
        return await self._record_outcome(
            notification_id,
            {"error": error, "errorCode": error_code},
        )

    async def mark_read(self, notification_id: str) -> None:
        await firebase_run(
            self.collection.document(notification_id).update,
            {"isRead": True, "readAt": firestore.SERVER_TIMESTAMP},
        )

    def _unread_query(self, recipient_id: str):
        return (
            self.collection
            .where(filter=FieldFilter("recipientId", "==", recipient_id))
            .where(filter=FieldFilter("isRead", "==", False))
        )

    async def mark_all_read(self, recipient_id: str) -> int:
        docs = await firebase_stream(self._unread_query(recipient_id))

        batch = self.db.batch()
        batch_counter = 0
        for doc in docs:
            batch.update(doc.reference, {"isRead": True, "readAt": firestore.SERVER_TIMESTAMP})
            batch_counter += 1
            if batch_counter >= MAX_BATCH_WRITES:
                await firebase_run(batch.commit)
                batch = self.db.batch()
                batch_counter = 0

        if batch_counter > 0:
            await firebase_run(batch.commit)

        return len(docs)

    async def count_unread(self, recipient_id: str) -> int:
        count_query = self._unread_query(recipient_id).count()
        result = await firebase_run(count_query.get)
        return result[0][0].value if result else 0

    async def list_for_recipient(
        self, recipient_id: str, unread_only: bool = False, limit: int = 50
    ) -> List[NotificationRecord]:
        query = self.collection.where(filter=FieldFilter("recipientId", "==", recipient_id))
        if unread_only:
            query = query.where(filter=FieldFilter("isRead", "==", False))
        query = query.order_by("createdAt", direction=firestore.Query.DESCENDING).limit(limit)

        docs = await firebase_stream(query)
        return [NotificationRecord.from_firestore(doc.id, doc.to_dict()) for doc in docs]

    async def find_created_before(self, cutoff: datetime, limit: int) -> List[str]:
        query = self.collection.where(filter=FieldFilter("createdAt", "<", cutoff)).limit(limit)
        docs = await firebase_stream(query)
        return [doc.id for doc in docs]

    async def delete_batch(self, notification_ids: List[str]) -> None:
        """Delete the given records in one atomic batch."""
        if len(notification_ids) > MAX_BATCH_WRITES:
            raise ValueError(f"Cannot delete {len(notification_ids)} records in one batch (max {MAX_BATCH_WRITES})")

        batch = self.db.batch()
        for notification_id in notification_ids:
            batch.delete(self.collection.document(notification_id))
        await firebase_run(batch.commit)


class FirestoreProfileStore:
    """Device token field on `users/{uid}`, owned by the auth/profile side."""

    def __init__(
        self,
        db,
        collection: str = settings.USERS_COLLECTION,
        token_field: str = settings.FCM_TOKEN_FIELD,
    ):
        self.db = db
        self.collection = db.collection(collection)
        self.token_field = token_field

    async def get_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        snap = await firebase_run(self.collection.document(user_id).get)
        if not snap.exists:
            return None
        return snap.to_dict() or {}

    async def clear_token(self, user_id: str) -> None:
        await firebase_run(
            self.collection.document(user_id).update,
            {self.token_field: firestore.DELETE_FIELD},
        )

    async def save_token(self, user_id: str, token: str, device_type: str = settings.DEFAULT_DEVICE_TYPE) -> None:
        await firebase_run(
            self.collection.document(user_id).update,
            {
                self.token_field: token,
                f"{self.token_field}UpdatedAt": firestore.SERVER_TIMESTAMP,
                "deviceType": device_type,
            },
        )

    async def remove_token(self, user_id: str) -> None:
        """Logout path: drop the token and its timestamp."""
        await firebase_run(
            self.collection.document(user_id).update,
            {
                self.token_field: firestore.DELETE_FIELD,
                f"{self.token_field}UpdatedAt": firestore.DELETE_FIELD,
            },
        )
