"""
Common Exception Classes

This module defines the exceptions raised by the personalization engine.
Session lifecycle errors are meant to reach the caller; storage errors are
caught at the repository boundary and never escape to analytics callers.
"""

from typing import Optional, Any, Dict


class BaseError(Exception):
    """Base class for all custom exceptions."""

    def __init__(self, message: str, original_exception: Optional[Exception] = None):
        """
        Initialize the exception.

        Args:
            message: Error message
            original_exception: Original exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.original_exception = original_exception


class SessionError(BaseError):
    """Base class for session lifecycle violations."""


class NoActiveSessionError(SessionError):
    """Raised when a response is recorded or a session ended with no live session."""

    def __init__(self, operation: str):
        super().__init__(f"No active session for '{operation}'; call start_session() first")
        self.operation = operation


class SessionAlreadyActiveError(SessionError):
    """Raised by start_session() while another session is still live."""

    def __init__(self, session_id: str):
        super().__init__(f"Session {session_id} is already active; end it before starting another")
        self.session_id = session_id


class NoMatchingTemplateError(BaseError):
    """Raised when a targeted generation request matches zero templates."""

    def __init__(self, focus: Any):
        super().__init__(f"No problem templates match focus: {focus}")
        self.focus = focus


class StorageError(BaseError):
    """Exception raised for key-value substrate failures."""

    def __init__(self, message: str, key: Optional[str] = None,
                 original_exception: Optional[Exception] = None):
        """
        Initialize the storage error.

        Args:
            message: Error message
            key: Storage key involved in the failed operation
            original_exception: Original backend exception
        """
        super().__init__(f"Storage error: {message}", original_exception)
        self.key = key


class ValidationError(BaseError):
    """Exception raised for invalid inbound events or arguments."""

    def __init__(self, message: str, errors: Optional[Dict[str, Any]] = None):
        """
        Initialize the validation error.

        Args:
            message: Error message
            errors: Dictionary of field-level validation errors
        """
        super().__init__(f"Validation error: {message}")
        self.errors = errors or {}


class ConfigurationError(BaseError):
    """Exception raised for configuration-related errors."""

    def __init__(self, message: str, config_key: Optional[str] = None):
        """
        Initialize the configuration error.

        Args:
            message: Error message
            config_key: The configuration key that caused the error
        """
        super().__init__(f"Configuration error: {message}")
        self.config_key = config_key
