"""In-process cache of Slack user profiles and channel names."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any

from src.config.logging_config import get_logger

__all__ = ["IdentityCache"]

logger = get_logger(__name__)

JSONDict = dict[str, Any]


class IdentityCache:
    """Explicit cache owned by an identity resolver.

    One instance lives for the whole process and is shared by every request;
    ``invalidate()`` drops everything so the next lookup refetches.
    """

    def __init__(self) -> None:
        self._users: dict[str, JSONDict] = {}
        self._channels: dict[str, str] = {}
        self._users_loaded_at: datetime | None = None
        self._channels_loaded_at: datetime | None = None

    @property
    def users_loaded(self) -> bool:
        return self._users_loaded_at is not None

    @property
    def channels_loaded(self) -> bool:
        return self._channels_loaded_at is not None

    def get_user(self, user_id: str) -> JSONDict | None:
        if not user_id:
            return None
        return self._users.get(user_id)

    def replace_users(self, members: Iterable[JSONDict]) -> int:
        """Replace cached profiles with a fresh users.list result."""
        self._users = {
            str(member["id"]): member for member in members if member.get("id")
        }
        self._users_loaded_at = datetime.now(UTC)
        logger.debug("identity_cache_users_loaded", users=len(self._users))
        return len(self._users)

    def get_channel(self, channel_id: str) -> str | None:
        if not channel_id:
            return None
        return self._channels.get(channel_id)

    def replace_channels(self, channels: Iterable[JSONDict]) -> int:
        """Replace cached channel names with a fresh conversations.list result."""
        self._channels = {
            str(channel["id"]): str(channel.get("name", ""))
            for channel in channels
            if channel.get("id")
        }
        self._channels_loaded_at = datetime.now(UTC)
        logger.debug("identity_cache_channels_loaded", channels=len(self._channels))
        return len(self._channels)

    def invalidate(self) -> None:
        """Forget all cached users and channels."""
        self._users = {}
        self._channels = {}
        self._users_loaded_at = None
        self._channels_loaded_at = None
        logger.info("identity_cache_invalidated")
