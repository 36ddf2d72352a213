"""
Base configuration settings.

Every PageWise settings class reads the same ``.env`` file and the
process environment, each under its own ``PAGEWISE_*`` prefix. Shared
fields (environment, log level) live on the base class.

Dependencies: pydantic_settings
System role: Foundation for all configuration classes
"""

from pydantic import Field
from pydantic_settings import BaseSettings as PydanticBaseSettings, SettingsConfigDict

ENV_FILE = ".env"
ENV_PREFIX = "PAGEWISE_"


def settings_config(section: str | None = None) -> SettingsConfigDict:
    """
    Build the settings config for one configuration section.

    Args:
        section: Section name appended to the prefix, e.g. ``"DB"`` reads
                 ``PAGEWISE_DB_URL`` into ``url``; None for the top level

    Returns:
        SettingsConfigDict: Shared env file options with the section prefix
    """
    prefix = f"{ENV_PREFIX}{section.upper()}_" if section else ENV_PREFIX
    return SettingsConfigDict(
        env_file=ENV_FILE,
        env_file_encoding="utf-8",
        env_prefix=prefix,
        case_sensitive=False,
        extra="ignore",
    )


class BaseSettings(PydanticBaseSettings):
    """Top-level PageWise settings shared by every section."""

    model_config = settings_config()

    environment: str = Field(default="development", description="Deployment name shown in startup logs")
    debug: bool = Field(default=False, description="Log at DEBUG regardless of log_level")
    log_level: str = Field(default="INFO", description="Root log level name")
