"""Shared fixtures: in-memory stand-ins for Firestore and FCM."""
import itertools
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pytest

from app.models.notification_model import NotificationRecord
from app.services.dispatcher import Dispatcher
from app.services.token_resolver import TokenResolver


class InMemoryNotificationStore:
    def __init__(self):
        self.docs: Dict[str, Dict[str, Any]] = {}
        self.updates: List[tuple] = []
        self._ids = itertools.count(1)
        self.fail_deletes = False

    def add(self, doc_id: Optional[str] = None, **fields) -> str:
        doc_id = doc_id or f"n{next(self._ids)}"
        fields.setdefault("isRead", False)
        fields.setdefault("createdAt", datetime.now(timezone.utc))
        self.docs[doc_id] = fields
        return doc_id

    def record(self, doc_id: str) -> NotificationRecord:
        return NotificationRecord.from_firestore(doc_id, self.docs[doc_id])

    async def create(self, data: Dict[str, Any]) -> str:
        return self.add(**{**data, "data": data.get("data") or {}})

    async def get(self, notification_id: str) -> Optional[NotificationRecord]:
        if notification_id not in self.docs:
            return None
        return self.record(notification_id)

    async def _update(self, notification_id: str, fields: Dict[str, Any]) -> None:
        self.updates.append((notification_id, fields))
        self.docs[notification_id].update(fields)

    async def _record_outcome(self, notification_id: str, fields: Dict[str, Any]) -> bool:
        doc = self.docs.get(notification_id)
        if doc is None or doc.get("sentAt") is not None or doc.get("error") is not None:
            return False
        await self._update(notification_id, fields)
        return True

    async def mark_sent(self, notification_id: str, message_id: str) -> bool:
        return await self._record_outcome(
            notification_id, {"sentAt": datetime.now(timezone.utc), "fcmMessageId": message_id}
        )

    async def mark_failed(self, notification_id: str, error: str, error_code: str) -> bool:
        return await self._record_outcome(notification_id, {"error": error, "errorCode": error_code})

    async def mark_read(self, notification_id: str) -> None:
        await self._update(notification_id, {"isRead": True, "readAt": datetime.now(timezone.utc)})

    async def mark_all_read(self, recipient_id: str) -> int:
        unread = [i for i, d in self.docs.items() if d.get("recipientId") == recipient_id and not d.get("isRead")]
        for doc_id in unread:
            await self.mark_read(doc_id)
        return len(unread)

    async def count_unread(self, recipient_id: str) -> int:
        return sum(1 for d in self.docs.values() if d.get("recipientId") == recipient_id and d.get("isRead") is False)

    async def list_for_recipient(self, recipient_id: str, unread_only: bool = False, limit: int = 50):
        ids = [
            i for i, d in self.docs.items()
            if d.get("recipientId") == recipient_id and not (unread_only and d.get("isRead"))
        ]
        ids.sort(key=lambda i: self.docs[i]["createdAt"], reverse=True)
        return [self.record(i) for i in ids[:limit]]

    async def find_created_before(self, cutoff: datetime, limit: int) -> List[str]:
        return [i for i, d in self.docs.items() if d["createdAt"] < cutoff][:limit]

    async def delete_batch(self, notification_ids: List[str]) -> None:
        if self.fail_deletes:
            raise RuntimeError("batch commit failed")
        for doc_id in notification_ids:
            self.docs.pop(doc_id, None)


class InMemoryProfileStore:
    def __init__(self):
        self.users: Dict[str, Dict[str, Any]] = {}
        self.fail_clear = False

    async def get_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        return self.users.get(user_id)

    async def clear_token(self, user_id: str) -> None:
        if self.fail_clear:
            raise RuntimeError("profile update failed")
        self.users.get(user_id, {}).pop("fcmToken", None)

    async def save_token(self, user_id: str, token: str, device_type: str = "iOS") -> None:
        self.users.setdefault(user_id, {}).update({"fcmToken": token, "deviceType": device_type})

    async def remove_token(self, user_id: str) -> None:
        self.users.get(user_id, {}).pop("fcmToken", None)


class FakePushClient:
    def __init__(self):
        self.sent = []
        self.error: Optional[Exception] = None
        self._ids = itertools.count(1)

    async def send(self, message) -> str:
        self.sent.append(message)
        if self.error is not None:
            raise self.error
        return f"projects/khoi/messages/{next(self._ids)}"


@pytest.fixture
def store():
    return InMemoryNotificationStore()


@pytest.fixture
def profiles():
    return InMemoryProfileStore()


@pytest.fixture
def push_client():
    return FakePushClient()


@pytest.fixture
def resolver(profiles):
    return TokenResolver(profiles)


@pytest.fixture
def dispatcher(push_client, profiles):
    return Dispatcher(push_client, profiles)


@pytest.fixture
def pipeline_kwargs(store, resolver, dispatcher):
    return {"store": store, "resolver": resolver, "dispatcher": dispatcher}
