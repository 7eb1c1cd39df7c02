# services/token_resolver.py
import logging
from typing import Optional

from app.core.config import settings

logger = logging.getLogger("khoi.push")


class TokenResolver:
    """Finds the push token for a recipient, or None when there is nothing to deliver to."""

    def __init__(self, profiles, token_field: str = settings.FCM_TOKEN_FIELD):
        self.profiles = profiles
        self.token_field = token_field

    async def resolve(self, recipient_id: str) -> Optional[str]:
        profile = await self.profiles.get_profile(recipient_id)
        if profile is None:
            logger.info(f"❌ User not found: {recipient_id}")
            return None

        token = profile.get(self.token_field)
        if not isinstance(token, str) or not token.strip():
            logger.info(f"❌ No FCM token for user: {recipient_id}")
            return None

        return token
