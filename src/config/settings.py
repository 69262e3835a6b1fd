"""Application settings with Pydantic Settings validation.

Secrets (the Slack bot token) are loaded from the environment or a .env file.
Non-sensitive configuration is loaded from config/*.yaml files, validated
against JSON schemas in config/schemas/ when present. Environment values win
over YAML values.
"""

import json
from pathlib import Path
from typing import Any, Final, cast

import yaml
from jsonschema import ValidationError as JSONSchemaValidationError
from jsonschema import validate
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.config.logging_config import get_logger

DEFAULT_USER_ID_PATTERN: Final[str] = r"^[UW][A-Z0-9]{8,}$"
DEFAULT_UNKNOWN_ENTITY_LABEL: Final[str] = "(unknown)"
SLACK_LEADERBOARD_LIMIT_DEFAULT: Final[int] = 5
SLACK_CHANNEL_PAGE_LIMIT_DEFAULT: Final[int] = 1000

CONFIG_DIR: Final[Path] = Path("config")
SCHEMA_DIR: Final[Path] = CONFIG_DIR / "schemas"

logger = cast(Any, get_logger(__name__))


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries.

    Args:
        base: Base dictionary
        override: Dictionary to merge into base (takes precedence)

    Returns:
        Merged dictionary
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_schema(schema_name: str, schema_dir: Path = SCHEMA_DIR) -> dict[str, Any]:
    """Load a JSON Schema by name, empty dict if there is none."""
    schema_path = schema_dir / f"{schema_name}.schema.json"
    if not schema_path.exists():
        return {}

    try:
        with open(schema_path, encoding="utf-8") as f:
            return cast(dict[str, Any], json.load(f))
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("config_schema_load_failed", schema=schema_name, error=str(e))
        return {}


def validate_config_section(
    config: dict[str, Any],
    schema_name: str,
    file_path: str = "",
    schema_dir: Path = SCHEMA_DIR,
) -> None:
    """Validate a config section against its JSON Schema.

    Raises:
        ValueError: If validation fails
    """
    schema = load_schema(schema_name, schema_dir)
    if not schema:
        return

    try:
        validate(instance=config, schema=schema)
        logger.debug("config_validation_succeeded", schema=schema_name)
    except JSONSchemaValidationError as e:
        error_msg = f"Config validation failed for {schema_name}"
        if file_path:
            error_msg += f" (file: {file_path})"
        error_msg += f": {e.message}"
        raise ValueError(error_msg) from e


def load_all_configs(config_dir: Path = CONFIG_DIR) -> dict[str, Any]:
    """Load and merge all YAML configs from the config directory.

    main.yaml is loaded first, then every other *.yaml file in alphabetical
    order, each deep-merged over the previous result.

    Raises:
        ValueError: If a file fails schema validation
    """
    merged_config: dict[str, Any] = {}
    if not config_dir.is_dir():
        return merged_config

    schema_dir = config_dir / "schemas"
    main_path = config_dir / "main.yaml"
    yaml_files = sorted(f for f in config_dir.glob("*.yaml") if f != main_path)
    if main_path.exists():
        yaml_files.insert(0, main_path)

    for yaml_file in yaml_files:
        schema_name = yaml_file.stem
        try:
            with open(yaml_file, encoding="utf-8") as f:
                file_config = yaml.safe_load(f) or {}
        except (yaml.YAMLError, OSError) as e:
            logger.warning("config_file_load_failed", path=str(yaml_file), error=str(e))
            continue

        try:
            validate_config_section(
                file_config, schema_name, str(yaml_file), schema_dir
            )
        except ValueError as e:
            logger.error(
                "config_validation_failed",
                path=str(yaml_file),
                schema=schema_name,
                error=str(e),
            )
            raise

        merged_config = deep_merge(merged_config, file_config)
        logger.debug("config_file_loaded", path=str(yaml_file), schema=schema_name)

    logger.info("config_load_complete", file_count=len(yaml_files))
    return merged_config


class Settings(BaseSettings):
    """Application settings.

    Secrets come from the environment / .env file.
    Everything else falls back to config/*.yaml, then to the defaults below.
    """

    model_config = SettingsConfigDict(
        env_file=".env" if Path(".env").exists() else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === SECRETS (from .env) ===

    slack_bot_token: SecretStr | None = Field(
        default=None,
        description="Slack Bot User OAuth Token, only needed for Slack name lookups",
    )

    # === NON-SENSITIVE CONFIG (from YAML or defaults) ===

    # Leaderboard links
    use_ssl: bool = Field(default=False, description="Build https:// leaderboard links")
    leaderboard_url: str = Field(
        default="localhost:3000",
        description="Host (and path) of the web leaderboard frontend",
    )
    slack_leaderboard_limit: int = Field(
        default=SLACK_LEADERBOARD_LIMIT_DEFAULT,
        ge=1,
        description="Number of entries in the in-Slack leaderboard",
    )

    # Entities
    user_id_pattern: str = Field(
        default=DEFAULT_USER_ID_PATTERN,
        description="Regex matching Slack user IDs; other entities are named items",
    )
    unknown_entity_label: str = Field(
        default=DEFAULT_UNKNOWN_ENTITY_LABEL,
        description="Sentinel shown for IDs that cannot be resolved",
    )

    # Slack lookups
    slack_channel_page_limit: int = Field(
        default=SLACK_CHANNEL_PAGE_LIMIT_DEFAULT,
        ge=1,
        description="Page size for conversations.list channel lookups",
    )

    # Observability
    log_level: str = Field(default="INFO", description="Logging level")
    json_logs: bool = Field(default=False, description="Render logs as JSON")

    @field_validator("slack_bot_token", mode="before")
    @classmethod
    def _blank_token_is_none(cls, value: SecretStr | str | None) -> SecretStr | None:
        if value is None:
            return None
        secret_value = (
            value.get_secret_value() if isinstance(value, SecretStr) else str(value)
        )
        if not secret_value.strip():
            return None
        return value if isinstance(value, SecretStr) else SecretStr(secret_value)

    def __init__(self, **data: Any):
        """Initialize settings and layer YAML values under env values."""
        config = load_all_configs()

        super().__init__(**data)
        self._apply_yaml_defaults(config)

    def _apply_yaml_defaults(self, config: dict[str, Any]) -> None:
        """Apply YAML-sourced defaults without overriding env-provided values."""

        fields_from_env = set(self.model_fields_set)

        def _assign(field_name: str, value: Any) -> None:
            if value is None:
                return
            if field_name in fields_from_env:
                return

            object.__setattr__(self, field_name, value)
            self.model_fields_set.add(field_name)

        leaderboard_config = config.get("leaderboard") or {}
        _assign("use_ssl", leaderboard_config.get("use_ssl"))
        _assign("leaderboard_url", leaderboard_config.get("url"))
        _assign("slack_leaderboard_limit", leaderboard_config.get("slack_limit"))

        entities_config = config.get("entities") or {}
        _assign("user_id_pattern", entities_config.get("user_id_pattern"))
        _assign("unknown_entity_label", entities_config.get("unknown_label"))

        slack_config = config.get("slack") or {}
        _assign("slack_channel_page_limit", slack_config.get("channel_page_limit"))

        logging_config = config.get("logging") or {}
        _assign("log_level", logging_config.get("level"))
        _assign("json_logs", logging_config.get("json"))


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the process-wide settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next get_settings() reloads them."""
    global _settings
    _settings = None
