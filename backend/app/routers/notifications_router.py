from fastapi import APIRouter, Depends, HTTPException, Query

from app.core.auth import get_current_user
from app.core.firebase import get_db
from app.models.notification_model import (
    DeviceTokenUpdate,
    SendTestNotificationRequest,
    SendTestNotificationResponse,
)
from app.models.user_model import User
from app.services.notification_service import InvalidArgumentError, NotificationService
from app.services.notification_store import FirestoreNotificationStore, FirestoreProfileStore

router = APIRouter(prefix="/notifications", tags=["Notifications"])


def get_notification_service() -> NotificationService:
    return NotificationService(FirestoreNotificationStore(get_db()))


def get_profile_store() -> FirestoreProfileStore:
    return FirestoreProfileStore(get_db())


@router.get("/")
async def get_notifications(
    unread_only: bool = False,
    limit: int = Query(50, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    records = await service.list_notifications(current_user.id, unread_only=unread_only, limit=limit)
    return [r.model_dump(by_alias=True) for r in records]


@router.get("/unread-count")
async def get_unread_count(
    current_user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    return {"count": await service.unread_count(current_user.id)}


@router.patch("/{notif_id}/read")
async def mark_notification_read(
    notif_id: str,
    current_user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    if not await service.mark_as_read(current_user.id, notif_id):
        raise HTTPException(404, "Notification not found")
    return {"message": "Marked as read"}


@router.post("/read-all")
async def mark_all_notifications_read(
    current_user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    updated = await service.mark_all_as_read(current_user.id)
    return {"message": "Marked all as read", "updated": updated}


@router.post("/test", response_model=SendTestNotificationResponse, response_model_by_alias=True)
async def send_test_notification(
    payload: SendTestNotificationRequest,
    current_user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    try:
        return await service.send_test_notification(payload.model_dump(by_alias=True, exclude_none=True))
    except InvalidArgumentError as e:
        raise HTTPException(400, str(e))


@router.put("/device-token")
async def register_device_token(
    payload: DeviceTokenUpdate,
    current_user: User = Depends(get_current_user),
    profiles: FirestoreProfileStore = Depends(get_profile_store),
):
    await profiles.save_token(current_user.id, payload.token, payload.device_type)
    return {"message": "Device token saved"}


@router.delete("/device-token")
async def remove_device_token(
    current_user: User = Depends(get_current_user),
    profiles: FirestoreProfileStore = Depends(get_profile_store),
):
    await profiles.remove_token(current_user.id)
    return {"message": "Device token removed"}
