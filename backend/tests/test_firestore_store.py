"""Firestore-backed stores against a mocked client: checks the calls, not Firestore."""
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from firebase_admin import firestore

from app.services import notification_store
from app.services.notification_store import FirestoreNotificationStore, FirestoreProfileStore


def _snapshot(doc_id, data, exists=True):
    return SimpleNamespace(id=doc_id, exists=exists, to_dict=lambda: data, reference=MagicMock(name=doc_id))


@pytest.fixture
def db():
    return MagicMock()


async def test_create_sets_server_fields(db):
    collection = db.collection.return_value
    collection.add.return_value = (None, SimpleNamespace(id="new-id"))
    store = FirestoreNotificationStore(db)

    notification_id = await store.create({"recipientId": "u1", "type": "test", "title": "t", "body": "b"})

    assert notification_id == "new-id"
    payload = collection.add.call_args.args[0]
    assert payload["isRead"] is False
    assert payload["data"] == {}
    assert payload["createdAt"] is firestore.SERVER_TIMESTAMP


async def test_get_parses_document(db):
    doc_ref = db.collection.return_value.document.return_value
    doc_ref.get.return_value = _snapshot("n1", {"recipientId": "u1", "type": "new_message", "fcmMessageId": "m1"})
    store = FirestoreNotificationStore(db)

    record = await store.get("n1")

    assert record.id == "n1"
    assert record.recipient_id == "u1"
    assert record.fcm_message_id == "m1"


async def test_get_missing_document(db):
    db.collection.return_value.document.return_value.get.return_value = _snapshot("n1", None, exists=False)

    assert await FirestoreNotificationStore(db).get("n1") is None


async def test_terminal_writes_go_through_a_transaction(db, monkeypatch):
    calls = []

    def fake_txn(transaction, ref, fields):
        calls.append((transaction, fields))
        return True

    monkeypatch.setattr(notification_store, "_write_outcome_once", fake_txn)
    store = FirestoreNotificationStore(db)

    assert await store.mark_sent("n1", "m1") is True
    assert await store.mark_failed("n2", "boom", "unknown") is True

    (sent_txn, sent), (_, failed) = calls
    assert sent_txn is db.transaction.return_value
    assert sent == {"sentAt": firestore.SERVER_TIMESTAMP, "fcmMessageId": "m1"}
    assert failed == {"error": "boom", "errorCode": "unknown"}


@pytest.mark.parametrize(
    "existing",
    [{"sentAt": datetime(2026, 10, 1, tzinfo=timezone.utc), "fcmMessageId": "m0"}, {"error": "boom", "errorCode": "unknown"}],
)
def test_outcome_is_never_written_twice(existing):
    ref, transaction = MagicMock(), MagicMock()
    ref.get.return_value = _snapshot("n1", {"recipientId": "u1", **existing})

    assert notification_store._write_outcome(transaction, ref, {"error": "late", "errorCode": "UNAVAILABLE"}) is False
    transaction.update.assert_not_called()


def test_first_outcome_is_written_inside_the_transaction():
    ref, transaction = MagicMock(), MagicMock()
    ref.get.return_value = _snapshot("n1", {"recipientId": "u1", "isRead": False})
    fields = {"sentAt": firestore.SERVER_TIMESTAMP, "fcmMessageId": "m1"}

    assert notification_store._write_outcome(transaction, ref, fields) is True
    ref.get.assert_called_once_with(transaction=transaction)
    transaction.update.assert_called_once_with(ref, fields)


def test_outcome_for_deleted_record_is_dropped():
    ref, transaction = MagicMock(), MagicMock()
    ref.get.return_value = _snapshot("n1", None, exists=False)

    assert notification_store._write_outcome(transaction, ref, {"error": "x", "errorCode": "unknown"}) is False
    transaction.update.assert_not_called()


async def test_count_unread_reads_aggregation(db):
    query = db.collection.return_value.where.return_value.where.return_value
    query.count.return_value.get.return_value = [[SimpleNamespace(value=7)]]

    assert await FirestoreNotificationStore(db).count_unread("u1") == 7


async def test_sweep_queries_and_deletes_in_one_batch(db):
    collection = db.collection.return_value
    collection.where.return_value.limit.return_value.stream.return_value = iter(
        [_snapshot("old-1", {}), _snapshot("old-2", {})]
    )
    store = FirestoreNotificationStore(db)
    cutoff = datetime(2026, 9, 18, tzinfo=timezone.utc)

    ids = await store.find_created_before(cutoff, 500)
    await store.delete_batch(ids)

    collection.where.return_value.limit.assert_called_once_with(500)
    assert ids == ["old-1", "old-2"]
    batch = db.batch.return_value
    assert batch.delete.call_count == 2
    batch.commit.assert_called_once()


async def test_delete_batch_rejects_oversized_batches(db):
    with pytest.raises(ValueError):
        await FirestoreNotificationStore(db).delete_batch([f"n{i}" for i in range(501)])


async def test_profile_token_writes(db):
    doc_ref = db.collection.return_value.document.return_value
    profiles = FirestoreProfileStore(db)

    await profiles.clear_token("u1")
    await profiles.save_token("u1", "tok", "iOS")

    cleared, saved = [c.args[0] for c in doc_ref.update.call_args_list]
    assert cleared == {"fcmToken": firestore.DELETE_FIELD}
    assert saved["fcmToken"] == "tok"
    assert saved["deviceType"] == "iOS"
    assert saved["fcmTokenUpdatedAt"] is firestore.SERVER_TIMESTAMP
