"""Factory for the identity collaborators used by the leaderboard engine."""

from typing import cast

from src.adapters.identity_cache import IdentityCache
from src.adapters.slack_identity_resolver import SlackIdentityResolver
from src.config.logging_config import get_logger
from src.config.settings import Settings, get_settings
from src.domain.protocols import EntityClassifierProtocol, IdentityResolverProtocol
from src.services.entity_classifier import RegexEntityClassifier

logger = get_logger(__name__)


def create_classifier(settings: Settings | None = None) -> EntityClassifierProtocol:
    """Create the entity classifier configured in settings.

    Falls back to the process-wide settings when none are given.

    Raises:
        ValueError: If the configured user ID pattern is invalid
    """
    if settings is None:
        settings = get_settings()
    return RegexEntityClassifier(settings.user_id_pattern)


def create_identity_resolver(
    settings: Settings | None = None, cache: IdentityCache | None = None
) -> IdentityResolverProtocol:
    """Create the Slack-backed identity resolver.

    Args:
        settings: Application settings, process-wide settings when None
        cache: Process-wide identity cache to share between resolvers

    Raises:
        ValueError: If no Slack bot token is configured
    """
    if settings is None:
        settings = get_settings()

    if settings.slack_bot_token is None:
        raise ValueError(
            "SLACK_BOT_TOKEN environment variable must be set to resolve Slack names"
        )

    logger.info(
        "identity_resolver_slack_selected",
        shared_cache=cache is not None,
        channel_page_limit=settings.slack_channel_page_limit,
    )
    return cast(
        IdentityResolverProtocol, SlackIdentityResolver.from_settings(settings, cache)
    )
