"""Classifies entity IDs into Slack users and free-text named items."""

import re

from src.config.settings import DEFAULT_USER_ID_PATTERN
from src.domain.models import EntityKind


class RegexEntityClassifier:
    """Entity classifier driven by a user-ID regular expression.

    Anything matching the pattern is a user; every other string (including
    the empty string) is a named item.
    """

    def __init__(self, user_id_pattern: str = DEFAULT_USER_ID_PATTERN) -> None:
        """Initialize with the pattern for user IDs.

        Raises:
            ValueError: If the pattern does not compile
        """
        try:
            self._pattern = re.compile(user_id_pattern)
        except re.error as exc:
            raise ValueError(
                f"Invalid user ID pattern {user_id_pattern!r}: {exc}"
            ) from exc

    def classify(self, entity_id: str) -> EntityKind:
        if self._pattern.search(entity_id):
            return EntityKind.USER
        return EntityKind.NAMED_ITEM

    def is_user(self, entity_id: str) -> bool:
        return self.classify(entity_id) is EntityKind.USER
