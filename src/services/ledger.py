"""Turns raw giver/receiver tallies into human-readable ledger rows."""

from collections.abc import Sequence

from src.config.logging_config import get_logger
from src.config.settings import DEFAULT_UNKNOWN_ENTITY_LABEL
from src.domain.exceptions import ResolutionFailure
from src.domain.models import EntityKind, ScoreEvent, UserLedgerRow
from src.domain.protocols import EntityClassifierProtocol, IdentityResolverProtocol

logger = get_logger(__name__)

CHANNEL_PREFIX = "#"


async def _resolve_user(
    resolver: IdentityResolverProtocol, user_id: str, unknown_label: str
) -> str:
    try:
        return await resolver.resolve_display_name(user_id)
    except ResolutionFailure as exc:
        logger.warning(
            "identity_resolution_failed", entity_id=user_id, reason=exc.reason
        )
        return unknown_label


async def _resolve_channel(
    resolver: IdentityResolverProtocol, channel_id: str, unknown_label: str
) -> str:
    try:
        return await resolver.resolve_channel_name(channel_id)
    except ResolutionFailure as exc:
        logger.warning(
            "channel_resolution_failed", channel_id=channel_id, reason=exc.reason
        )
        return unknown_label


async def resolve_ledger(
    rows: Sequence[ScoreEvent],
    *,
    resolver: IdentityResolverProtocol,
    classifier: EntityClassifierProtocol,
    unknown_label: str = DEFAULT_UNKNOWN_ENTITY_LABEL,
) -> list[UserLedgerRow]:
    """Resolve giver, receiver and channel names for each score row.

    Rows received by a user get real names and a channel name; rows for
    named items keep their raw IDs. Output order matches input order.

    Args:
        rows: Score rows from the retriever
        resolver: Identity resolver for user and channel names
        classifier: Decides whether the receiver is a user
        unknown_label: Name used when a lookup fails

    Returns:
        One ledger row per input row
    """
    ledger: list[UserLedgerRow] = []

    for row in rows:
        to_user = row.item
        from_user = row.from_user_id
        channel = row.channel_id

        if classifier.classify(row.item) is EntityKind.USER:
            to_user = await _resolve_user(resolver, to_user, unknown_label)
            from_user = await _resolve_user(resolver, from_user, unknown_label)
            channel = await _resolve_channel(resolver, channel, unknown_label)

        resolved = UserLedgerRow(
            to_user=to_user,
            from_user=from_user,
            score=row.score,
            channel=f"{CHANNEL_PREFIX}{channel}",
        )
        ledger.append(resolved)
        logger.debug("ledger_row_resolved", **resolved.model_dump(by_alias=True))

    return ledger
