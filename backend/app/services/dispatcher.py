# services/dispatcher.py
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from firebase_admin import exceptions, messaging

from app.utils.firebase import firebase_run

logger = logging.getLogger("khoi.push")

UNKNOWN_ERROR_CODE = "unknown"
INVALID_TOKEN_CODE = "messaging/invalid-registration-token"
UNREGISTERED_TOKEN_CODE = "messaging/registration-token-not-registered"


class FailureKind(str, Enum):
    INVALID_TOKEN = "invalid_token"
    TRANSIENT = "transient"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class SendFailure:
    kind: FailureKind
    message: str
    code: str = UNKNOWN_ERROR_CODE


@dataclass(frozen=True)
class SendResult:
    """Exactly one of message_id / failure is set."""

    message_id: Optional[str] = None
    failure: Optional[SendFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


class ErrorClassifier:
    """Turns a provider exception into a SendFailure."""

    def classify(self, exc: Exception) -> SendFailure:
        code = getattr(exc, "code", None)
        return SendFailure(FailureKind.UNKNOWN, str(exc), code if isinstance(code, str) and code else UNKNOWN_ERROR_CODE)


class FirebaseErrorClassifier(ErrorClassifier):
    TRANSIENT_ERRORS = (
        exceptions.UnavailableError,
        exceptions.InternalError,
        exceptions.DeadlineExceededError,
        exceptions.ResourceExhaustedError,
        messaging.QuotaExceededError,
    )

    def classify(self, exc: Exception) -> SendFailure:
        if isinstance(exc, messaging.UnregisteredError):
            return SendFailure(FailureKind.INVALID_TOKEN, str(exc), UNREGISTERED_TOKEN_CODE)

        # FCM v1 reports malformed tokens as INVALID_ARGUMENT
        if isinstance(exc, exceptions.InvalidArgumentError) and "registration token" in str(exc).lower():
            return SendFailure(FailureKind.INVALID_TOKEN, str(exc), INVALID_TOKEN_CODE)

        if isinstance(exc, self.TRANSIENT_ERRORS):
            return SendFailure(FailureKind.TRANSIENT, str(exc), exc.code)

        if isinstance(exc, exceptions.FirebaseError):
            return SendFailure(FailureKind.UNKNOWN, str(exc), exc.code or UNKNOWN_ERROR_CODE)

        return super().classify(exc)


class FirebasePushClient:
    """FCM through the Firebase Admin SDK."""

    def __init__(self, app=None):
        self.app = app

    async def send(self, message: messaging.Message) -> str:
        return await firebase_run(messaging.send, message, app=self.app)


class Dispatcher:
    def __init__(self, push_client, profiles, classifier: Optional[ErrorClassifier] = None):
        self.push_client = push_client
        self.profiles = profiles
        self.classifier = classifier or FirebaseErrorClassifier()

    async def send(
        self,
        message: messaging.Message,
        recipient_id: str,
        prune_invalid_token: bool = True,
    ) -> SendResult:
        try:
            message_id = await self.push_client.send(message)
        except Exception as e:
            failure = self.classifier.classify(e)
            logger.error(f"❌ Error sending notification to {recipient_id}: [{failure.code}] {failure.message}")

            if failure.kind is FailureKind.INVALID_TOKEN and prune_invalid_token:
                await self._prune_token(recipient_id)

            return SendResult(failure=failure)

        logger.info(f"✅ Notification sent to {recipient_id}: {message_id}")
        return SendResult(message_id=message_id)

    async def _prune_token(self, recipient_id: str) -> None:
        logger.info(f"🗑️ Removing invalid token for user: {recipient_id}")
        try:
            await self.profiles.clear_token(recipient_id)
        except Exception as e:
            logger.error(f"Failed to remove invalid token for {recipient_id}: {e}")
