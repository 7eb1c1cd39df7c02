# core/config.py
from pydantic import Field
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # ────────────────────────────────
    # 1. APP & ENVIRONMENT
    # ────────────────────────────────
    PROJECT_NAME: str = "KHOI Push"
    ENVIRONMENT: str = Field(default="development", env="ENVIRONMENT")
    DEBUG: bool = Field(default=True, env="DEBUG")

    # ────────────────────────────────
    # 2. FIREBASE / FIRESTORE
    # ────────────────────────────────
    GOOGLE_APPLICATION_CREDENTIALS: Optional[str] = Field(
        default=None,
        env="GOOGLE_APPLICATION_CREDENTIALS",
        description="Path to Firebase service account JSON"
    )
    # Base64-encoded Firebase service account JSON
    KHOI_FIREBASE_KEY: Optional[str] = Field(
        default=None,
        env="KHOI_FIREBASE_KEY",
        description="Base64-encoded Firebase service account JSON"
    )

    NOTIFICATIONS_COLLECTION: str = "notifications"
    USERS_COLLECTION: str = "users"
    FCM_TOKEN_FIELD: str = "fcmToken"
    DEFAULT_DEVICE_TYPE: str = "iOS"

    # ────────────────────────────────
    # 3. RETENTION SWEEP
    # ────────────────────────────────
    NOTIFICATION_RETENTION_DAYS: int = 30
    NOTIFICATION_CLEANUP_BATCH_LIMIT: int = 500  # Firestore batch write ceiling
    NOTIFICATION_CLEANUP_TIMEZONE: str = "America/Los_Angeles"
    NOTIFICATION_CLEANUP_HOUR: int = 0
    NOTIFICATION_CLEANUP_MINUTE: int = 0

    # ────────────────────────────────
    # 4. TASK QUEUE (Celery)
    # ────────────────────────────────
    CELERY_BROKER_URL: str = Field(
        default="redis://localhost:6379/0",
        env="CELERY_BROKER_URL"
    )
    CELERY_RESULT_BACKEND: str = Field(
        default="redis://localhost:6379/0",
        env="CELERY_RESULT_BACKEND"
    )

    # ────────────────────────────────
    # 5. TRIGGER WATCHER (run as one dedicated process: `python watcher.py`)
    # ────────────────────────────────
    # On start the watcher replays records created (or read) this far back,
    # so records created during a short restart or redeploy still get pushed
    NOTIFICATION_CATCHUP_MINUTES: int = Field(default=60, env="NOTIFICATION_CATCHUP_MINUTES")

    class Config:
        case_sensitive = False
        env_file = ".env"
        env_file_encoding = "utf-8"


# Create singleton
settings = Settings()
