"""Tests for the regex entity classifier."""

import pytest

from src.domain.models import EntityKind
from src.services.entity_classifier import RegexEntityClassifier


@pytest.mark.parametrize(
    ("entity_id", "expected"),
    [
        ("U0123ABCD", EntityKind.USER),
        ("W0123ABCDEF", EntityKind.USER),
        ("coffee", EntityKind.NAMED_ITEM),
        ("U12", EntityKind.NAMED_ITEM),
        ("u0123abcd", EntityKind.NAMED_ITEM),
        ("", EntityKind.NAMED_ITEM),
    ],
)
def test_default_pattern_matches_slack_user_ids(
    entity_id: str, expected: EntityKind
) -> None:
    assert RegexEntityClassifier().classify(entity_id) is expected


def test_custom_pattern() -> None:
    classifier = RegexEntityClassifier(r"^user:")

    assert classifier.is_user("user:42")
    assert not classifier.is_user("U0123ABCD")


def test_invalid_pattern_raises_value_error() -> None:
    with pytest.raises(ValueError, match="Invalid user ID pattern"):
        RegexEntityClassifier("[unclosed")
