"""Protocol definitions for dependency inversion.

The engine never talks to storage or Slack directly. These interfaces define
the collaborators a request handler has to inject.
"""

from typing import Any, Protocol

from src.domain.models import (
    EntityKind,
    LedgerDirection,
    LedgerPage,
    ScoreEvent,
    TopScore,
)


class ScoreRetrieverProtocol(Protocol):
    """Read-only access to recorded karma.

    Implementations used by ``build_profile`` are called concurrently and
    must tolerate overlapping awaits.
    """

    async def retrieve_top_scores(
        self,
        start_date: str | None = None,
        end_date: str | None = None,
        channel_id: str | None = None,
    ) -> list[TopScore]:
        """Return one row per entity, sorted descending by score.

        Raises:
            RetrievalFailure: On data source errors
        """
        ...

    async def retrieve_ledger(
        self,
        direction: LedgerDirection,
        entity: str,
        channel_id: str | None = None,
        page: int | None = None,
        page_size: int | None = None,
        search: str | None = None,
    ) -> LedgerPage:
        """Return ledger rows for one entity and direction.

        ``entity`` is the entity's handle as stored with each score row, not
        the canonical ID returned by ``get_user_id``. Without ``page``/``page_size`` the full ledger is returned. ``count``
        is always the total number of matching rows.

        Raises:
            RetrievalFailure: On data source errors
        """
        ...

    async def retrieve_score_rows(
        self,
        start_date: str | None = None,
        end_date: str | None = None,
        channel_id: str | None = None,
    ) -> list[ScoreEvent]:
        """Return raw giver/receiver tallies for a scope.

        Raises:
            RetrievalFailure: On data source errors
        """
        ...

    async def retrieve_karma_feed(
        self,
        items_per_page: int,
        page: int,
        search: str | None = None,
        channel_id: str | None = None,
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> LedgerPage:
        """Return one page of the channel-wide karma feed.

        Raises:
            RetrievalFailure: On data source errors
        """
        ...

    async def list_channels(self) -> list[dict[str, Any]]:
        """Return channels that have recorded karma.

        Raises:
            RetrievalFailure: On data source errors
        """
        ...

    async def get_user_id(self, username: str) -> str | None:
        """Map a handle to its canonical entity ID, None if unknown.

        Raises:
            RetrievalFailure: On data source errors
        """
        ...

    async def get_name(self, username: str) -> str:
        """Return the stored real name for a handle.

        Raises:
            RetrievalFailure: On data source errors
        """
        ...


class IdentityResolverProtocol(Protocol):
    """Maps entity and channel IDs to human-readable names.

    Implementations never raise: unknown IDs resolve to a sentinel label.
    """

    async def resolve_display_name(
        self, entity_id: str, prefer_handle: bool = False
    ) -> str:
        """Return the real name (or handle) for a user ID."""
        ...

    async def resolve_channel_name(self, channel_id: str) -> str:
        """Return the channel name for a channel ID."""
        ...


class EntityClassifierProtocol(Protocol):
    """Decides whether an entity ID denotes a user or a named item."""

    def classify(self, entity_id: str) -> EntityKind:
        """Classify an entity ID."""
        ...
