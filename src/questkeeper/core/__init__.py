"""Core module providing configuration, logging, and base exceptions.

Exports:
    Exceptions:
        QuestKeeperError: Base exception for all application errors.
        ConfigurationError: Configuration-related errors.
        ValidationError: Data validation errors.

    Configuration:
        Settings: Main application settings class.
        get_settings: Get the settings singleton.
        clear_settings_cache: Force settings reload.

    Logging:
        configure_logging: Set up application logging.
        get_logger: Get a configured logger instance.
        bind_context: Add context to log entries.
        clear_context: Clear logging context.
"""

from __future__ import annotations

from questkeeper.core.config import (
    AIProviderSettings,
    Settings,
    StorageSettings,
    StoreSettings,
    clear_settings_cache,
    get_settings,
)
from questkeeper.core.exceptions import (
    AIConnectionError,
    AIControlError,
    AIResponseError,
    ConfigurationError,
    PersistenceError,
    QuestKeeperError,
    RecordValidationError,
    ReferentialIntegrityError,
    StoreClosedError,
    StoreError,
    ValidationError,
)
from questkeeper.core.logging import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    log_context,
)


__all__ = [
    # Base exception
    "QuestKeeperError",
    # Configuration exceptions
    "ConfigurationError",
    "ValidationError",
    "RecordValidationError",
    # Store exceptions
    "StoreError",
    "ReferentialIntegrityError",
    "StoreClosedError",
    "PersistenceError",
    # AI control exceptions
    "AIControlError",
    "AIConnectionError",
    "AIResponseError",
    # Configuration
    "Settings",
    "AIProviderSettings",
    "StorageSettings",
    "StoreSettings",
    "get_settings",
    "clear_settings_cache",
    # Logging
    "configure_logging",
    "get_logger",
    "bind_context",
    "clear_context",
    "log_context",
]
