"""Profile lookup for prefilling feedback identity."""

import json
import logging

from botocore.exceptions import BotoCoreError, ClientError
from pydantic import ValidationError

from models.feedback import UserProfile
from utils.constants import DEFAULT_PROFILE_NAME, PROFILE_SLOT_KEYS
from utils.slot_store import SlotStore

logger = logging.getLogger(__name__)


class ProfileService:
    """Reads and writes the per-role profile slots."""

    def __init__(self, slot_store: SlotStore):
        """Initialize the service with slot storage."""
        self.slot_store = slot_store

    @staticmethod
    def slot_key_for_role(role: str | None) -> str:
        """Admins read ``adminProfile``; every other role reads ``userProfile``."""
        return PROFILE_SLOT_KEYS.get(role or "user", PROFILE_SLOT_KEYS["user"])

    def get_profile(self, role: str | None) -> UserProfile:
        """Get the profile for ``role``.

        A missing or unreadable profile yields an empty one. A profile with
        an email but no name gets the name "User".
        """
        key = self.slot_key_for_role(role)
        try:
            raw = self.slot_store.get(key)
        except (ClientError, BotoCoreError) as e:
            logger.warning("Failed to read profile %s: %s", key, e)
            return UserProfile()

        if raw is None:
            return UserProfile()

        try:
            profile = UserProfile.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning("Invalid profile in %s: %s", key, e)
            return UserProfile()

        if not profile.email:
            return UserProfile()
        if not profile.name:
            profile = profile.model_copy(update={"name": DEFAULT_PROFILE_NAME})
        return profile

    def save_profile(self, role: str, profile: UserProfile) -> UserProfile:
        """Overwrite the profile slot for ``role``."""
        key = self.slot_key_for_role(role)
        try:
            self.slot_store.put(key, json.dumps(profile.model_dump()))
        except (ClientError, BotoCoreError) as e:
            raise Exception(f"Failed to save profile: {str(e)}")
        return profile
