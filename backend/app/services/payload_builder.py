# services/payload_builder.py
from typing import Any, Dict, Optional

from firebase_admin import messaging

from app.models.notification_model import NotificationRecord, NotificationType

DEFAULT_TYPE = "general"
DEFAULT_CATEGORY = "DEFAULT"

# iOS notification categories registered by the app (UNNotificationCategory ids)
CATEGORY_BY_TYPE: Dict[str, str] = {
    NotificationType.NEW_MESSAGE.value: "CHAT_MESSAGE",
    NotificationType.NEW_COMMENT.value: "NEW_COMMENT",
    NotificationType.NEW_BOOKING_REQUEST.value: "NEW_BOOKING",
    NotificationType.BOOKING_CONFIRMED.value: "BOOKING_UPDATE",
    NotificationType.BOOKING_CANCELLED.value: "BOOKING_UPDATE",
    NotificationType.APPOINTMENT_REMINDER.value: "APPOINTMENT_REMINDER",
    NotificationType.PRO_APPLICATION_APPROVED.value: "PRO_APPLICATION",
    NotificationType.PRO_APPLICATION_REJECTED.value: "PRO_APPLICATION",
    NotificationType.POST_SAVED.value: "SOCIAL",
    NotificationType.NEW_FOLLOWER.value: "SOCIAL",
}

# The trigger does not know the unread total; only the read-state path does
INITIAL_BADGE = 1


def category_for_type(notification_type: Optional[str]) -> str:
    return CATEGORY_BY_TYPE.get(notification_type or "", DEFAULT_CATEGORY)


def stringify(value: Any) -> str:
    # FCM data payloads only accept string values
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return str(value)


def build_data(record: NotificationRecord) -> Dict[str, str]:
    data = {
        "type": record.type or DEFAULT_TYPE,
        "notificationId": record.id,
    }
    for key, value in (record.data or {}).items():
        data[str(key)] = stringify(value)
    return data


def build_push_message(record: NotificationRecord, token: str) -> messaging.Message:
    """Visible push for a freshly created notification record."""
    return messaging.Message(
        fid=token,
        notification=messaging.Notification(
            title=record.title,
            body=record.body,
        ),
        data=build_data(record),
        apns=messaging.APNSConfig(
            payload=messaging.APNSPayload(
                aps=messaging.Aps(
                    badge=INITIAL_BADGE,
                    sound="default",
                    mutable_content=True,
                    category=category_for_type(record.type),
                )
            )
        ),
    )


def build_badge_message(token: str, unread_count: int) -> messaging.Message:
    """Silent, background-only push that just sets the app icon badge."""
    return messaging.Message(
        fid=token,
        apns=messaging.APNSConfig(
            payload=messaging.APNSPayload(
                aps=messaging.Aps(
                    badge=unread_count,
                    content_available=True,
                )
            )
        ),
    )
