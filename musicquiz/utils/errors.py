"""
Custom exceptions for the music quiz.

This module defines a hierarchy of exceptions for handling the error
conditions raised by the catalog, score store, playback bridge and
session controller.
"""

from typing import Any, Optional


class QuizError(Exception):
    """Base exception for all music quiz errors."""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message


class CatalogError(QuizError):
    """Raised when the sample catalog cannot be loaded or parsed."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message, details={"path": path})
        self.path = path


class SampleNotFoundError(QuizError):
    """Raised when a sample ID has no entry in the catalog."""

    def __init__(self, sample_id: int):
        super().__init__(
            f"Sample not found: {sample_id}",
            details={"sample_id": sample_id},
        )
        self.sample_id = sample_id


class ConfigurationError(QuizError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, config_key: Optional[str] = None):
        super().__init__(message)
        self.config_key = config_key
        self.details = {"config_key": config_key}


class ScoreStoreError(QuizError):
    """Raised when score persistence fails."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        key: Optional[str] = None,
    ):
        super().__init__(message)
        self.operation = operation
        self.key = key
        self.details = {"operation": operation, "key": key}


class PlaybackError(QuizError):
    """
    Reported when the playback engine stalls or fails to decode.

    Never raised through the session controller: the bridge logs it and
    hands it to its error listener, and the round stays valid.
    """

    def __init__(
        self,
        message: str,
        uri: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.uri = uri
        self.original_error = original_error
        self.details = {
            "uri": uri,
            "original_error": str(original_error) if original_error else None,
        }


class SessionStateError(QuizError):
    """Raised when an operation is attempted on a session in the wrong phase."""

    def __init__(self, operation: str, phase: str):
        super().__init__(
            f"Cannot {operation} while session is in phase '{phase}'",
            details={"operation": operation, "phase": phase},
        )
        self.operation = operation
        self.phase = phase
