"""Configuration management for the Bonome character builder.

Settings are loaded with pydantic-settings from environment variables and
an optional .env file. The GitHub token is held as a SecretStr.

Example:
    >>> from bonome.core.config import get_settings
    >>> settings = get_settings()
    >>> settings.resolver.max_steps
    8

Environment Variables:
    BONOME_STORE_BACKEND: Document store backend ("local" or "github")
    BONOME_STORE_GITHUB_OWNER: Owner of the data repository
    BONOME_STORE_GITHUB_REPO: Name of the data repository
    BONOME_STORE_TOKEN: GitHub API token
    BONOME_STORE_CACHE_DIR: Directory for the on-disk document cache
    BONOME_STORE_LOCAL_ROOT: Root directory of the local data tree
    BONOME_RESOLVER_MAX_STEPS: Global step budget of the feature graph walk
    BONOME_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from bonome.core.constants import DEFAULT_MAX_STEPS, DEFAULT_RECHARGE, DEFAULT_SCAN_FOLDERS
from bonome.core.exceptions import ConfigurationError


class StoreSettings(BaseSettings):
    """Configuration for the document store.

    Attributes:
        backend: Which DocumentStore implementation to build.
        github_owner: Owner of the GitHub data repository.
        github_repo: Name of the GitHub data repository.
        branch: Branch to read documents from.
        token: Optional GitHub API token.
        cache_dir: Optional directory for the on-disk document cache.
        use_raw_fallback: Fall back to raw.githubusercontent.com on API failure.
        scan_folders: Folders listed to build the id -> path index.
        local_root: Root directory for the local backend.
        timeout_seconds: HTTP request timeout.
        max_retries: Attempts made on transport errors.
    """

    model_config = SettingsConfigDict(
        env_prefix="BONOME_STORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    backend: Literal["local", "github"] = Field(
        default="local",
        description="Document store backend",
    )
    github_owner: str | None = Field(
        default=None,
        description="Owner of the GitHub data repository",
    )
    github_repo: str | None = Field(
        default=None,
        description="Name of the GitHub data repository",
    )
    branch: str = Field(
        default="main",
        description="Branch to read documents from",
    )
    token: SecretStr | None = Field(
        default=None,
        description="GitHub API token",
    )
    cache_dir: Path | None = Field(
        default=None,
        description="Directory for the on-disk document cache",
    )
    use_raw_fallback: bool = Field(
        default=True,
        description="Fall back to raw content URLs when the contents API fails",
    )
    scan_folders: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SCAN_FOLDERS),
        description="Folders scanned to build the document index",
    )
    local_root: Path = Field(
        default=Path("data"),
        description="Root directory of the local data tree",
    )
    timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        le=300,
        description="HTTP request timeout",
    )
    max_retries: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts made on transport errors",
    )

    @model_validator(mode="after")
    def validate_github_repository(self) -> "StoreSettings":
        """Ensure the GitHub backend knows which repository to read.

        Returns:
            Self if validation passes.

        Raises:
            ConfigurationError: If owner or repo is missing for the github backend.
        """
        if self.backend == "github":
            if not self.github_owner:
                raise ConfigurationError(
                    "GitHub backend selected but BONOME_STORE_GITHUB_OWNER is not configured",
                    config_key="github_owner",
                )
            if not self.github_repo:
                raise ConfigurationError(
                    "GitHub backend selected but BONOME_STORE_GITHUB_REPO is not configured",
                    config_key="github_repo",
                )
        return self


class ResolverSettings(BaseSettings):
    """Configuration for feature resolution and effect application.

    Attributes:
        max_steps: Global step budget shared by the whole graph walk queue.
        default_recharge: Recharge used by resource pools that omit one.
    """

    model_config = SettingsConfigDict(
        env_prefix="BONOME_RESOLVER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    max_steps: int = Field(
        default=DEFAULT_MAX_STEPS,
        ge=1,
        le=10_000,
        description="Global step budget of the feature graph walk",
    )
    default_recharge: str = Field(
        default=DEFAULT_RECHARGE,
        description="Default recharge of resource pools",
    )


class Settings(BaseSettings):
    """Main application settings aggregating all configuration domains.

    Attributes:
        app_name: Application name.
        app_version: Application version string.
        debug: Enable debug mode.
        log_level: Application logging level.
        json_logs: Render logs as JSON instead of console output.
        store: Document store settings.
        resolver: Resolver settings.
    """

    model_config = SettingsConfigDict(
        env_prefix="BONOME_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    app_name: str = Field(
        default="Bonome Character Builder",
        description="Application name",
    )
    app_version: str = Field(
        default="0.1.0",
        description="Application version",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    json_logs: bool = Field(
        default=False,
        description="Render logs as JSON",
    )

    store: StoreSettings = Field(default_factory=StoreSettings)
    resolver: ResolverSettings = Field(default_factory=ResolverSettings)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the application settings singleton.

    Returns:
        The application Settings instance.

    Raises:
        ConfigurationError: If required configuration is missing or invalid.
    """
    try:
        return Settings()
    except ConfigurationError:
        raise
    except Exception as exc:
        raise ConfigurationError(
            f"Failed to load application settings: {exc}",
            details={"original_error": str(exc)},
        ) from exc


def clear_settings_cache() -> None:
    """Clear the settings cache, forcing a reload on next access.

    Example:
        >>> clear_settings_cache()
        >>> settings = get_settings()  # Reloads from environment
    """
    get_settings.cache_clear()


__all__ = [
    "StoreSettings",
    "ResolverSettings",
    "Settings",
    "get_settings",
    "clear_settings_cache",
]
