# models/notification_model.py
from enum import Enum
from pydantic import BaseModel, Field
from typing import Any, Dict, Optional
from datetime import datetime


class NotificationType(str, Enum):
    NEW_MESSAGE = "new_message"
    NEW_COMMENT = "new_comment"
    NEW_BOOKING_REQUEST = "new_booking_request"
    BOOKING_CONFIRMED = "booking_confirmed"
    BOOKING_CANCELLED = "booking_cancelled"
    APPOINTMENT_REMINDER = "appointment_reminder"
    PRO_APPLICATION_APPROVED = "pro_application_approved"
    PRO_APPLICATION_REJECTED = "pro_application_rejected"
    POST_SAVED = "post_saved"
    NEW_FOLLOWER = "new_follower"
    TEST = "test"


class NotificationRecord(BaseModel):
    """A stored `notifications/{id}` document and its delivery outcome."""

    id: str
    recipient_id: str = Field(..., alias="recipientId")
    # Plain string: callers may introduce types this service does not know yet
    type: Optional[str] = None
    title: Optional[str] = None
    body: Optional[str] = None
    data: Optional[Dict[str, Any]] = None

    is_read: bool = Field(default=False, alias="isRead")
    read_at: Optional[datetime] = Field(default=None, alias="readAt")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")

    # ---------------- Delivery outcome (set once) ----------------
    sent_at: Optional[datetime] = Field(default=None, alias="sentAt")
    fcm_message_id: Optional[str] = Field(default=None, alias="fcmMessageId")
    error: Optional[str] = None
    error_code: Optional[str] = Field(default=None, alias="errorCode")

    class Config:
        populate_by_name = True
        from_attributes = True

    @classmethod
    def from_firestore(cls, doc_id: str, data: Dict[str, Any]) -> "NotificationRecord":
        return cls(id=doc_id, **data)

    @property
    def is_terminal(self) -> bool:
        """True once a send outcome (success or error) has been written."""
        return self.sent_at is not None or self.error is not None


class SendTestNotificationRequest(BaseModel):
    # Optional on purpose: a missing userId is reported as an invalid argument
    user_id: Optional[str] = Field(default=None, alias="userId")

    class Config:
        populate_by_name = True


class SendTestNotificationResponse(BaseModel):
    success: bool
    notification_id: str = Field(..., alias="notificationId")

    class Config:
        populate_by_name = True


class DeviceTokenUpdate(BaseModel):
    token: str = Field(..., min_length=1)
    device_type: str = Field(default="iOS", alias="deviceType")

    class Config:
        populate_by_name = True


class AppointmentSummary(BaseModel):
    """The slice of a booking the notification copy needs."""

    id: str
    client_id: str
    client_name: str
    artist_id: str
    artist_name: str
    service_name: str
    date_label: str
    time_slot: str
