"""
Utility modules for configuration, logging, and error handling.
"""

from musicquiz.utils.errors import (
    QuizError,
    CatalogError,
    SampleNotFoundError,
    ConfigurationError,
    ScoreStoreError,
    PlaybackError,
    SessionStateError,
)
from musicquiz.utils.logging import (
    get_logger,
    setup_logging,
    setup_logging_from_config,
    create_logger_with_context,
    JSONFormatter,
)
from musicquiz.utils.config import ConfigManager, load_config, get_default_config

__all__ = [
    "QuizError",
    "CatalogError",
    "SampleNotFoundError",
    "ConfigurationError",
    "ScoreStoreError",
    "PlaybackError",
    "SessionStateError",
    "get_logger",
    "setup_logging",
    "setup_logging_from_config",
    "create_logger_with_context",
    "JSONFormatter",
    "ConfigManager",
    "load_config",
    "get_default_config",
]
