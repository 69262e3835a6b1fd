"""Domain models for the karma leaderboard engine.

All models use Pydantic v2 for validation and serialization. Records that
leave the engine are dumped with ``by_alias=True`` so the camelCase field
names expected by the web frontend are kept on the wire.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, StrictInt


class EntityKind(str, Enum):
    """Kind of entity that can receive karma."""

    USER = "user"
    NAMED_ITEM = "named_item"


class RankFormat(str, Enum):
    """Output representation of a ranked leaderboard."""

    DISPLAY = "display"
    STRUCTURED = "structured"


class LedgerDirection(str, Enum):
    """Direction of a ledger lookup relative to the entity.

    ``FROM`` selects karma the entity received (rows keyed by giver),
    ``TO`` selects karma the entity gave away.
    """

    FROM = "from"
    TO = "to"


class ScoreEvent(BaseModel):
    """One net tally between a giver and a receiver in a channel."""

    model_config = ConfigDict(frozen=True)

    item: str = Field(..., description="Receiving entity ID or item name")
    score: StrictInt = Field(..., description="Signed karma tally")
    from_user_id: str = Field(..., description="Giving user ID")
    channel_id: str = Field(..., description="Slack channel ID")


class TopScore(BaseModel):
    """Aggregate score of one entity within a queried scope."""

    model_config = ConfigDict(frozen=True)

    item: str = Field(..., description="Entity ID or item name")
    score: StrictInt = Field(..., description="Summed karma")


class RankedItem(BaseModel):
    """Structured leaderboard row."""

    rank: int = Field(..., ge=1, description="Standard competition rank")
    item: str = Field(..., description="Title-cased display name")
    score: str = Field(..., description="Formatted score, e.g. '10 points'")
    item_id: str = Field(..., description="Original entity ID")


class UserLedgerRow(BaseModel):
    """Human-readable transaction derived from a ScoreEvent."""

    model_config = ConfigDict(populate_by_name=True)

    to_user: str = Field(..., alias="toUser")
    from_user: str = Field(..., alias="fromUser")
    score: int
    channel: str


class KarmaFeedEntry(BaseModel):
    """Timestamped ledger row as served by the score retriever."""

    model_config = ConfigDict(populate_by_name=True)

    timestamp: datetime
    to_user: str = Field(..., alias="toUser")
    from_user: str = Field(..., alias="fromUser")
    channel_name: str | None = None
    description: str | None = None


class LedgerPage(BaseModel):
    """A (possibly paginated) ledger with the total row count."""

    feed: list[KarmaFeedEntry] = Field(default_factory=list)
    count: int = Field(default=0, ge=0)


class ContributionSlice(BaseModel):
    """Number of karma events one giver sent to the profiled entity."""

    name: str
    value: int = Field(..., ge=1)


class DailyActivityPoint(BaseModel):
    """Sent/received event counts for one calendar date."""

    date: str = Field(..., description="ISO calendar date (YYYY-MM-DD)")
    received: int = Field(default=0, ge=0)
    sent: int = Field(default=0, ge=0)


class Profile(LedgerPage):
    """Per-entity aggregate served by the profile endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    name_surname: str = Field(..., alias="nameSurname")
    all_karma: int = Field(..., alias="allKarma")
    karma_given: int = Field(..., alias="karmaGiven")
    user_rank: int = Field(default=0, alias="userRank")
    karma_divided: list[ContributionSlice] = Field(
        default_factory=list, alias="karmaDivided"
    )
    activity: list[DailyActivityPoint] = Field(default_factory=list)
