"""Display helpers shared by the leaderboard renderers."""

from typing import Final

from src.domain.models import EntityKind

POINT_WORD: Final[str] = "point"
USER_WINNER_MARKER: Final[str] = ":muscle:"
ITEM_WINNER_MARKER: Final[str] = ":tada:"

WINNER_MARKERS: Final[dict[EntityKind, str]] = {
    EntityKind.USER: USER_WINNER_MARKER,
    EntityKind.NAMED_ITEM: ITEM_WINNER_MARKER,
}


def is_plural(score: int) -> bool:
    """Return True unless the score magnitude is exactly one.

    Example:
        >>> [is_plural(s) for s in (1, -1, 0, 2, -5)]
        [False, False, True, True, True]
    """
    return abs(score) != 1


def format_points(score: int) -> str:
    """Render a score with a pluralized unit, e.g. '10 points' or '-1 point'."""
    suffix = "s" if is_plural(score) else ""
    return f"{score} {POINT_WORD}{suffix}"


def title_case_first(name: str) -> str:
    """Upper-case the first character only; the rest is left untouched."""
    return name[:1].upper() + name[1:]


def link_user(user_id: str) -> str:
    """Render a Slack mention for a user ID."""
    return f"<@{user_id}>"


def link_channel(channel_id: str, channel_name: str) -> str:
    """Render a Slack channel reference with a visible name."""
    return f"<#{channel_id}|{channel_name}>"


def format_leaderboard_line(
    rank: int, name: str, score: int, winner_kind: EntityKind | None = None
) -> str:
    """Render one Slack leaderboard line.

    ``winner_kind`` is set only for the first line and picks the marker.

    Example:
        >>> format_leaderboard_line(1, "<@U123>", 54, EntityKind.USER)
        '1. <@U123> [54 points] :muscle:'
    """
    line = f"{rank}. {name} [{format_points(score)}]"
    if winner_kind is not None:
        line += f" {WINNER_MARKERS[winner_kind]}"
    return line
