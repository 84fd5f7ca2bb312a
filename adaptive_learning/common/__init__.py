"""
Common Components for the Adaptive Learning Engine

Shared infrastructure used by every subsystem:
1. Logging - Centralized logging configuration
2. Exceptions - Session, storage, validation and configuration errors
3. Serialization - JSON conversion and explicit timestamp handling
"""

from adaptive_learning.common.logger import app_logger, get_logger, with_context
from adaptive_learning.common.exceptions import (
    BaseError, SessionError, NoActiveSessionError, SessionAlreadyActiveError,
    NoMatchingTemplateError, StorageError, ValidationError, ConfigurationError
)
from adaptive_learning.common.serialization import (
    serialize, to_json, datetime_to_iso, parse_datetime
)

__all__ = [
    # Logging
    'app_logger', 'get_logger', 'with_context',

    # Exceptions
    'BaseError', 'SessionError', 'NoActiveSessionError', 'SessionAlreadyActiveError',
    'NoMatchingTemplateError', 'StorageError', 'ValidationError', 'ConfigurationError',

    # Serialization
    'serialize', 'to_json', 'datetime_to_iso', 'parse_datetime',
]
