"""Exception hierarchy for the karma leaderboard engine.

Taxonomy: retryable (data source trouble), non-retryable (bad input,
unresolvable identities).
"""


class KarmaEngineError(Exception):
    """Base exception for all engine errors."""

    pass


class RetryableError(KarmaEngineError):
    """Errors a caller may retry (network issues, temporary failures)."""

    pass


class NonRetryableError(KarmaEngineError):
    """Errors that should not be retried (validation, logic errors)."""

    pass


class RetrievalFailure(RetryableError):
    """The score data source failed or timed out."""

    pass


class SlackAPIError(RetryableError):
    """Slack Web API communication errors."""

    pass


class ResolutionFailure(NonRetryableError):
    """An entity or channel ID could not be mapped to a display name."""

    def __init__(self, entity_id: str, reason: str = "not found") -> None:
        """Initialize with the unresolved ID and a short reason."""
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(f"Cannot resolve {entity_id!r}: {reason}")


class MalformedInput(NonRetryableError):
    """Score rows violate the ranking preconditions."""

    pass


class MalformedScoreRow(MalformedInput):
    """A score row carries a non-integer score."""

    def __init__(self, item: str, score: object) -> None:
        """Initialize with the offending row."""
        self.item = item
        self.score = score
        super().__init__(
            f"Score for {item!r} must be an integer, "
            f"got {type(score).__name__}: {score!r}"
        )


class UnsortedScoresError(MalformedInput):
    """Score rows are not in non-increasing score order."""

    def __init__(self, position: int, previous: int, current: int) -> None:
        """Initialize with the first out-of-order position."""
        self.position = position
        self.previous = previous
        self.current = current
        super().__init__(
            f"Scores must be sorted descending: row {position} has {current} "
            f"after {previous}"
        )
