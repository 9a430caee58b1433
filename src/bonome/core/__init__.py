"""Core module providing configuration, logging, and base exceptions.

Exports:
    Exceptions:
        BonomeError: Base exception for all application errors.
        ConfigurationError: Configuration-related errors.
        ValidationError: Data validation errors.
        DocumentStoreError: Document store failures.
        EngineError: Resolution and application failures.

    Configuration:
        Settings: Main application settings class.
        get_settings: Get the settings singleton.
        clear_settings_cache: Force settings reload.

    Logging:
        configure_logging: Set up application logging.
        get_logger: Get a configured logger instance.
        log_context: Bind log context for a block.
"""

from __future__ import annotations

from bonome.core.config import (
    ResolverSettings,
    Settings,
    StoreSettings,
    clear_settings_cache,
    get_settings,
)
from bonome.core.exceptions import (
    BonomeError,
    ChoiceResolutionError,
    ConfigurationError,
    DocumentFetchError,
    DocumentNotFoundError,
    DocumentStoreError,
    EffectApplicationError,
    EffectPayloadError,
    EngineError,
    FeatureResolutionError,
    ValidationError,
)
from bonome.core.logging import (
    configure_logging,
    get_logger,
    log_context,
)


__all__ = [
    # Base exception
    "BonomeError",
    # Configuration exceptions
    "ConfigurationError",
    "ValidationError",
    # Store exceptions
    "DocumentStoreError",
    "DocumentNotFoundError",
    "DocumentFetchError",
    # Engine exceptions
    "EngineError",
    "FeatureResolutionError",
    "ChoiceResolutionError",
    "EffectApplicationError",
    "EffectPayloadError",
    # Configuration
    "Settings",
    "StoreSettings",
    "ResolverSettings",
    "get_settings",
    "clear_settings_cache",
    # Logging
    "configure_logging",
    "get_logger",
    "log_context",
]
