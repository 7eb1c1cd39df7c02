from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class User(BaseModel):
    """KHOI user as seen by the push backend: identity plus device token."""

    # ---------------- Profile ----------------
    id: str = Field(..., alias="_id")
    email: Optional[str] = None
    full_name: Optional[str] = Field(default=None, alias="fullName")

    # ---------------- Push ----------------
    fcm_token: Optional[str] = Field(default=None, alias="fcmToken")
    fcm_token_updated_at: Optional[datetime] = Field(default=None, alias="fcmTokenUpdatedAt")
    device_type: Optional[str] = Field(default=None, alias="deviceType")

    class Config:
        populate_by_name = True
        from_attributes = True
