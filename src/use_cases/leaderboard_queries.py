"""Use cases behind the leaderboard endpoints.

Every function returns plain JSON-ready records (dicts, lists, strings) so a
request handler can encode the result directly. Retriever errors surface
as RetrievalFailure; failures are logged and re-raised, and mapping them to an
HTTP response is up to the caller.
"""

from collections.abc import Sequence
from typing import Any, Final
from urllib.parse import urlencode

from src.config.logging_config import get_logger
from src.config.settings import (
    DEFAULT_UNKNOWN_ENTITY_LABEL,
    SLACK_LEADERBOARD_LIMIT_DEFAULT,
)
from src.domain.exceptions import KarmaEngineError
from src.domain.models import EntityKind, LedgerDirection, RankFormat
from src.domain.protocols import (
    EntityClassifierProtocol,
    IdentityResolverProtocol,
    ScoreRetrieverProtocol,
)
from src.services.formatting import link_channel
from src.services.ledger import resolve_ledger
from src.services.ranking import rank_items
from src.use_cases.build_profile import build_profile
from src.use_cases.retrieval import retrieve

logger = get_logger(__name__)

HTTP_SCHEME: Final[str] = "http://"
HTTPS_SCHEME: Final[str] = "https://"
COLOR_GOOD: Final[str] = "good"
COLOR_DANGER: Final[str] = "danger"
NO_USERS_TEXT: Final[str] = "No Users on Leaderboard."

JSONDict = dict[str, Any]


def _scheme(use_ssl: bool) -> str:
    return HTTPS_SCHEME if use_ssl else HTTP_SCHEME


def get_leaderboard_url(host: str, channel_id: str, *, use_ssl: bool = False) -> str:
    """URL of the JSON leaderboard served by this app for a channel.

    Example:
        >>> get_leaderboard_url("karma.example.com", "C123", use_ssl=True)
        'https://karma.example.com/leaderboard?channel=C123'
    """
    return f"{_scheme(use_ssl)}{host}/leaderboard?{urlencode({'channel': channel_id})}"


def get_leaderboard_web_url(
    frontend_url: str, channel_id: str, *, use_ssl: bool = False
) -> str:
    """URL of the web frontend showing the full leaderboard for a channel."""
    return f"{_scheme(use_ssl)}{frontend_url}?{urlencode({'channel': channel_id})}"


def build_slack_leaderboard_message(
    users: Sequence[str],
    *,
    channel_id: str,
    channel_name: str,
    web_url: str,
    limit: int = SLACK_LEADERBOARD_LIMIT_DEFAULT,
) -> JSONDict:
    """Build the ephemeral leaderboard payload posted back to Slack.

    Args:
        users: Ranked Slack lines, best first
        channel_id: Channel the leaderboard was requested in
        channel_name: Display name of that channel
        web_url: Link to the full web leaderboard
        limit: Number of lines shown in Slack

    Returns:
        Slack message payload with a single attachment
    """
    if not users:
        return {"attachments": [{"text": NO_USERS_TEXT, "color": COLOR_DANGER}]}

    text = (
        "Here you go. Best people this month in channel "
        f"{link_channel(channel_id, channel_name)}."
    )
    return {
        "attachments": [
            {
                "text": text,
                "color": COLOR_GOOD,
                "fields": [
                    {"value": "\n".join(users[:limit]), "short": True},
                    {"value": f"\nOr see the <{web_url}|whole list>. "},
                ],
            }
        ]
    }


async def get_for_slack(
    retriever: ScoreRetrieverProtocol,
    resolver: IdentityResolverProtocol,
    classifier: EntityClassifierProtocol,
    *,
    channel_id: str,
    web_url: str,
    limit: int = SLACK_LEADERBOARD_LIMIT_DEFAULT,
) -> JSONDict:
    """Top users of a channel as a Slack message payload."""
    try:
        scores = await retrieve(
            "retrieve_top_scores",
            retriever.retrieve_top_scores(None, None, channel_id),
        )
        users = await rank_items(
            scores, resolver=resolver, classifier=classifier, kind=EntityKind.USER
        )
        channel_name = await resolver.resolve_channel_name(channel_id)
    except KarmaEngineError as exc:
        logger.error("slack_leaderboard_failed", channel_id=channel_id, error=str(exc))
        raise

    logger.info("slack_leaderboard_built", channel_id=channel_id, users=len(users))
    return build_slack_leaderboard_message(
        users,
        channel_id=channel_id,
        channel_name=channel_name,
        web_url=web_url,
        limit=limit,
    )


async def get_for_web(
    retriever: ScoreRetrieverProtocol,
    resolver: IdentityResolverProtocol,
    classifier: EntityClassifierProtocol,
    *,
    start_date: str | None = None,
    end_date: str | None = None,
    channel_id: str | None = None,
    unknown_label: str = DEFAULT_UNKNOWN_ENTITY_LABEL,
) -> list[JSONDict]:
    """Full structured user leaderboard for a channel and/or date window."""
    try:
        scores = await retrieve(
            "retrieve_top_scores",
            retriever.retrieve_top_scores(start_date, end_date, channel_id),
        )
        users = await rank_items(
            scores,
            resolver=resolver,
            classifier=classifier,
            kind=EntityKind.USER,
            fmt=RankFormat.STRUCTURED,
            unknown_label=unknown_label,
        )
    except KarmaEngineError as exc:
        logger.error("web_leaderboard_failed", channel_id=channel_id, error=str(exc))
        raise

    return [user.model_dump(mode="json") for user in users]


async def get_for_channels(retriever: ScoreRetrieverProtocol) -> list[JSONDict]:
    """Channels with recorded karma."""
    try:
        channels = await retrieve("list_channels", retriever.list_channels())
    except KarmaEngineError as exc:
        logger.error("channel_list_failed", error=str(exc))
        raise

    logger.info("channel_list_sent", channels=len(channels))
    return list(channels)


async def get_all_scores_from_user(
    retriever: ScoreRetrieverProtocol,
    resolver: IdentityResolverProtocol,
    classifier: EntityClassifierProtocol,
    *,
    start_date: str | None = None,
    end_date: str | None = None,
    channel_id: str | None = None,
    unknown_label: str = DEFAULT_UNKNOWN_ENTITY_LABEL,
) -> list[JSONDict]:
    """Resolved giver/receiver ledger for a scope."""
    try:
        rows = await retrieve(
            "retrieve_score_rows",
            retriever.retrieve_score_rows(start_date, end_date, channel_id),
        )
        ledger = await resolve_ledger(
            rows, resolver=resolver, classifier=classifier, unknown_label=unknown_label
        )
    except KarmaEngineError as exc:
        logger.error("score_ledger_failed", channel_id=channel_id, error=str(exc))
        raise

    logger.info("score_ledger_sent", rows=len(ledger))
    return [row.model_dump(mode="json", by_alias=True) for row in ledger]


async def get_karma_feed(
    retriever: ScoreRetrieverProtocol,
    *,
    items_per_page: int,
    page: int,
    search: str | None = None,
    channel_id: str | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
) -> JSONDict:
    """One page of the karma feed with the total row count."""
    try:
        feed = await retrieve(
            "retrieve_karma_feed",
            retriever.retrieve_karma_feed(
                items_per_page, page, search, channel_id, start_date, end_date
            ),
        )
    except KarmaEngineError as exc:
        logger.error("karma_feed_failed", channel_id=channel_id, error=str(exc))
        raise

    return feed.model_dump(mode="json", by_alias=True)


async def get_user_profile(
    retriever: ScoreRetrieverProtocol,
    resolver: IdentityResolverProtocol,
    classifier: EntityClassifierProtocol,
    *,
    username: str,
    channel_id: str | None = None,
    from_to: str | LedgerDirection = LedgerDirection.FROM,
    page: int | None = None,
    items_per_page: int | None = None,
    search: str | None = None,
    unknown_label: str = DEFAULT_UNKNOWN_ENTITY_LABEL,
) -> JSONDict:
    """Profile of one user as a plain record.

    Raises:
        ValueError: If ``from_to`` is neither 'from' nor 'to'
    """
    direction = LedgerDirection(from_to)
    try:
        profile = await build_profile(
            retriever,
            resolver,
            classifier,
            username=username,
            channel_id=channel_id,
            from_to=direction,
            page=page,
            items_per_page=items_per_page,
            search=search,
            unknown_label=unknown_label,
        )
    except KarmaEngineError as exc:
        logger.error("user_profile_failed", username=username, error=str(exc))
        raise

    return profile.model_dump(mode="json", by_alias=True)
