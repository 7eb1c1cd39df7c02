# services/notification_service.py
"""
Notification records on behalf of app features.

The `notify_*` helpers are the in-process library surface for other backend
features (chat, comments, bookings, reminders, pro applications, social).
They are not exposed over HTTP; a feature calls them after its own write:

    service = NotificationService(FirestoreNotificationStore(get_db()))
    await service.notify_booking_confirmed(appointment)

The HTTP surface (routers/notifications_router.py) only covers the inbox,
device tokens and the manual test trigger.
"""
import logging
from typing import Any, Dict, List, Optional, Union

from app.models.notification_model import (
    AppointmentSummary,
    NotificationRecord,
    NotificationType,
)

logger = logging.getLogger("khoi")

PREVIEW_LENGTH = 100

TEST_TITLE = "🎉 Test Notification"
TEST_BODY = "Push notifications are working!"


class InvalidArgumentError(ValueError):
    """Caller input that can never succeed (e.g. a missing userId)."""


def preview(text: str) -> str:
    return text[:PREVIEW_LENGTH]


class NotificationService:
    """
    Everything that writes notification records on behalf of app features.

    Writing a record is all it takes: the push itself is sent by the
    creation trigger once the document exists.
    """

    def __init__(self, store):
        self.store = store

    async def create_notification(
        self,
        recipient_id: str,
        type: Union[NotificationType, str],
        title: str,
        body: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> str:
        if not recipient_id:
            raise InvalidArgumentError("recipientId is required")

        type_value = type.value if isinstance(type, NotificationType) else type
        notification_id = await self.store.create({
            "recipientId": recipient_id,
            "type": type_value,
            "title": title,
            "body": body,
            "data": data or {},
        })
        logger.info(f"✅ Notification created for {recipient_id}: {type_value} ({notification_id})")
        return notification_id

    async def send_test_notification(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        user_id = (payload or {}).get("userId")
        if not user_id:
            raise InvalidArgumentError("userId is required")

        notification_id = await self.create_notification(
            recipient_id=user_id,
            type=NotificationType.TEST,
            title=TEST_TITLE,
            body=TEST_BODY,
        )
        return {"success": True, "notificationId": notification_id}

    # ---------------- Inbox ----------------

    async def list_notifications(self, user_id: str, unread_only: bool = False, limit: int = 50) -> List[NotificationRecord]:
        return await self.store.list_for_recipient(user_id, unread_only=unread_only, limit=limit)

    async def unread_count(self, user_id: str) -> int:
        return await self.store.count_unread(user_id)

    async def mark_as_read(self, user_id: str, notification_id: str) -> bool:
        """Returns False when the record does not exist or belongs to someone else."""
        record = await self.store.get(notification_id)
        if record is None or record.recipient_id != user_id:
            return False
        if not record.is_read:
            await self.store.mark_read(notification_id)
        return True

    async def mark_all_as_read(self, user_id: str) -> int:
        return await self.store.mark_all_read(user_id)

    # ---------------- Chat ----------------

    async def notify_new_message(
        self, recipient_id: str, sender_name: str, message_preview: str, conversation_id: str
    ) -> str:
        return await self.create_notification(
            recipient_id,
            NotificationType.NEW_MESSAGE,
            title=f"New message from {sender_name}",
            body=preview(message_preview),
            data={"conversationId": conversation_id, "senderName": sender_name},
        )

    # ---------------- Comments ----------------

    async def notify_new_comment(
        self, post_owner_id: str, commenter_name: str, comment_preview: str, post_id: str
    ) -> str:
        return await self.create_notification(
            post_owner_id,
            NotificationType.NEW_COMMENT,
            title=f"{commenter_name} commented on your post",
            body=preview(comment_preview),
            data={"postId": post_id, "commenterName": commenter_name},
        )

    # ---------------- Bookings ----------------

    async def notify_booking_confirmed(self, appointment: AppointmentSummary) -> str:
        return await self.create_notification(
            appointment.client_id,
            NotificationType.BOOKING_CONFIRMED,
            title="Booking Confirmed! ✓",
            body=(
                f"Your {appointment.service_name} appointment with {appointment.artist_name} "
                f"on {appointment.date_label} at {appointment.time_slot} has been confirmed."
            ),
            data={"appointmentId": appointment.id, "artistId": appointment.artist_id},
        )

    async def notify_booking_cancelled(self, appointment: AppointmentSummary, reason: Optional[str] = None) -> str:
        body = (
            f"Your {appointment.service_name} appointment with {appointment.artist_name} "
            f"on {appointment.date_label} has been cancelled."
        )
        if reason:
            body += f" Reason: {reason}"

        return await self.create_notification(
            appointment.client_id,
            NotificationType.BOOKING_CANCELLED,
            title="Booking Cancelled",
            body=body,
            data={"appointmentId": appointment.id, "reason": reason or ""},
        )

    async def notify_new_booking_request(self, appointment: AppointmentSummary) -> str:
        return await self.create_notification(
            appointment.artist_id,
            NotificationType.NEW_BOOKING_REQUEST,
            title="New Booking Request",
            body=(
                f"{appointment.client_name} wants to book {appointment.service_name} "
                f"on {appointment.date_label} at {appointment.time_slot}."
            ),
            data={
                "appointmentId": appointment.id,
                "clientId": appointment.client_id,
                "clientName": appointment.client_name,
            },
        )

    async def notify_appointment_reminder(self, appointment: AppointmentSummary, for_artist: bool) -> str:
        recipient_id = appointment.artist_id if for_artist else appointment.client_id
        with_name = appointment.client_name if for_artist else appointment.artist_name

        return await self.create_notification(
            recipient_id,
            NotificationType.APPOINTMENT_REMINDER,
            title="Appointment in 1 Hour",
            body=(
                f"Your {appointment.service_name} appointment with {with_name} "
                f"is coming up at {appointment.time_slot}."
            ),
            data={"appointmentId": appointment.id},
        )

    # ---------------- Pro applications ----------------

    async def notify_pro_application_status(self, user_id: str, status: str, business_name: str) -> Optional[str]:
        status = status.lower()
        if status == "approved":
            type = NotificationType.PRO_APPLICATION_APPROVED
            title = "Congratulations! 🎉"
            body = (
                f"Your pro application for {business_name} has been approved! "
                "You can now switch to Pro mode and start accepting bookings."
            )
        elif status == "rejected":
            type = NotificationType.PRO_APPLICATION_REJECTED
            title = "Application Update"
            body = (
                f"Your pro application for {business_name} was not approved at this time. "
                "Please review the feedback and try again."
            )
        else:
            # pending / in review: nothing to tell the user yet
            return None

        return await self.create_notification(
            user_id, type, title=title, body=body, data={"businessName": business_name}
        )

    # ---------------- Social ----------------

    async def notify_post_saved(self, post_owner_id: str, saver_name: str, post_id: str) -> str:
        return await self.create_notification(
            post_owner_id,
            NotificationType.POST_SAVED,
            title=f"{saver_name} saved your post",
            body="Your post is getting noticed! Keep creating great content.",
            data={"postId": post_id, "saverName": saver_name},
        )

    async def notify_new_follower(
        self, user_id: str, follower_name: str, follower_username: str, follower_id: str
    ) -> str:
        return await self.create_notification(
            user_id,
            NotificationType.NEW_FOLLOWER,
            title="New Follower",
            body=f"{follower_name} (@{follower_username}) started following you.",
            data={"followerId": follower_id, "followerName": follower_name},
        )
