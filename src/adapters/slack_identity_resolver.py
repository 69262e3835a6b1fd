"""Identity resolver backed by the Slack Web API."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any, Final, cast

from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError

from src.adapters.identity_cache import IdentityCache
from src.config.logging_config import get_logger
from src.config.settings import (
    DEFAULT_UNKNOWN_ENTITY_LABEL,
    SLACK_CHANNEL_PAGE_LIMIT_DEFAULT,
    Settings,
)
from src.domain.exceptions import ResolutionFailure, SlackAPIError

__all__ = ["SlackIdentityResolver", "pick_display_name"]

logger = get_logger(__name__)

USERS_PAGE_SIZE: Final[int] = 200
CHANNEL_TYPES: Final[str] = "public_channel,private_channel"

JSONDict = dict[str, Any]


def pick_display_name(user: JSONDict, prefer_handle: bool = False) -> str:
    """Return the real name, or the handle when asked or when no real name is set."""
    handle = str(user.get("name", ""))
    real_name = (user.get("profile") or {}).get("real_name")
    if prefer_handle or not real_name:
        return handle
    return str(real_name)


class SlackIdentityResolver:
    """Resolves user and channel IDs through users.list / conversations.list.

    Lookups hit the shared ``IdentityCache`` first. A cache miss refetches the
    list once; IDs still missing afterwards resolve to the unknown label.
    Blocking WebClient calls run in a worker thread.
    """

    def __init__(
        self,
        bot_token: str | None = None,
        *,
        client: Any | None = None,
        cache: IdentityCache | None = None,
        unknown_label: str = DEFAULT_UNKNOWN_ENTITY_LABEL,
        channel_page_limit: int = SLACK_CHANNEL_PAGE_LIMIT_DEFAULT,
    ) -> None:
        """Initialize resolver.

        Args:
            bot_token: Slack bot user OAuth token (ignored when ``client`` is given)
            client: Pre-built WebClient-compatible object
            cache: Shared identity cache; a private one is created if omitted
            unknown_label: Sentinel returned for unresolvable IDs
            channel_page_limit: Page size for conversations.list

        Raises:
            ValueError: If neither a token nor a client is supplied
        """
        if client is None and not bot_token:
            raise ValueError("A Slack bot token or client is required")
        self.client = client if client is not None else WebClient(token=bot_token)
        self.cache = cache or IdentityCache()
        self._unknown_label = unknown_label
        self._channel_page_limit = channel_page_limit

    @classmethod
    def from_settings(
        cls, settings: Settings, cache: IdentityCache | None = None
    ) -> SlackIdentityResolver:
        """Build a resolver from application settings."""
        token = settings.slack_bot_token
        return cls(
            token.get_secret_value() if token is not None else None,
            cache=cache,
            unknown_label=settings.unknown_entity_label,
            channel_page_limit=settings.slack_channel_page_limit,
        )

    async def resolve_display_name(
        self, entity_id: str, prefer_handle: bool = False
    ) -> str:
        try:
            user = await self.get_user(entity_id)
        except ResolutionFailure as exc:
            logger.warning(
                "identity_resolution_failed", entity_id=entity_id, reason=exc.reason
            )
            return self._unknown_label
        return pick_display_name(user, prefer_handle)

    async def resolve_channel_name(self, channel_id: str) -> str:
        try:
            return await self.get_channel_name(channel_id)
        except ResolutionFailure as exc:
            logger.warning(
                "channel_resolution_failed", channel_id=channel_id, reason=exc.reason
            )
            return self._unknown_label

    async def get_user(self, user_id: str) -> JSONDict:
        """Return the Slack profile for a user ID.

        Raises:
            ResolutionFailure: If the user is unknown or Slack cannot be reached
        """
        fresh = not self.cache.users_loaded
        if fresh:
            await self._refresh(self._fetch_users, self.cache.replace_users, user_id)

        user = self.cache.get_user(user_id)
        if user is None and not fresh:
            await self._refresh(self._fetch_users, self.cache.replace_users, user_id)
            user = self.cache.get_user(user_id)

        if user is None:
            raise ResolutionFailure(user_id)
        return user

    async def get_channel_name(self, channel_id: str) -> str:
        """Return the name of a channel.

        Raises:
            ResolutionFailure: If the channel is unknown or Slack cannot be reached
        """
        fresh = not self.cache.channels_loaded
        if fresh:
            await self._refresh(
                self._fetch_channels, self.cache.replace_channels, channel_id
            )

        name = self.cache.get_channel(channel_id)
        if name is None and not fresh:
            await self._refresh(
                self._fetch_channels, self.cache.replace_channels, channel_id
            )
            name = self.cache.get_channel(channel_id)

        if not name:
            raise ResolutionFailure(channel_id)
        return name

    async def _refresh(
        self,
        fetch: Callable[[], list[JSONDict]],
        store: Callable[[list[JSONDict]], int],
        lookup_id: str,
    ) -> None:
        try:
            entries = await asyncio.to_thread(fetch)
        except SlackAPIError as exc:
            raise ResolutionFailure(lookup_id, reason=str(exc)) from exc
        store(entries)

    def _fetch_users(self) -> list[JSONDict]:
        logger.info("slack_user_list_fetch_started")
        members = self._paginate(
            lambda cursor: self.client.users_list(cursor=cursor, limit=USERS_PAGE_SIZE),
            key="members",
            action="users_list",
        )
        logger.info("slack_user_list_fetch_completed", users=len(members))
        return members

    def _fetch_channels(self) -> list[JSONDict]:
        return self._paginate(
            lambda cursor: self.client.conversations_list(
                exclude_archived=True,
                types=CHANNEL_TYPES,
                limit=self._channel_page_limit,
                cursor=cursor,
            ),
            key="channels",
            action="conversations_list",
        )

    def _paginate(
        self,
        call: Callable[[str | None], Any],
        *,
        key: str,
        action: str,
    ) -> list[JSONDict]:
        collected: list[JSONDict] = []
        cursor: str | None = None

        while True:
            try:
                data = self._extract_data(call(cursor))
            except SlackApiError as exc:
                logger.warning("slack_api_error", action=action, error=str(exc))
                raise SlackAPIError(f"{action} failed: {exc}") from exc

            if not data.get("ok", False):
                raise SlackAPIError(f"{action} failed: {data.get('error')}")

            collected.extend(cast(list[JSONDict], data.get(key, [])))

            metadata = data.get("response_metadata")
            cursor = metadata.get("next_cursor") if isinstance(metadata, dict) else None
            if not cursor:
                break

        return collected

    def _extract_data(self, response: Any) -> JSONDict:
        if hasattr(response, "data"):
            return cast(JSONDict, response.data)
        return cast(JSONDict, response)
