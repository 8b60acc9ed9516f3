# Centralized error handling utilities
"""
Provides consistent error handling patterns across the editor.

This module defines:
- Custom exception classes for the failure kinds of an editing run
- An error handling decorator for recoverable side paths (preset files, batch)
- A helper that turns errors into short messages for the caller to display
"""

import functools
import traceback
from typing import Any, Callable, Optional, TypeVar, Union
from enum import Enum

from .logger import get_logger

logger = get_logger(__name__)

# Type variable for generic function signatures
F = TypeVar('F', bound=Callable[..., Any])


class ErrorCategory(Enum):
    """Categories of errors for consistent handling."""
    RECOVERABLE = "recoverable"      # Can continue with fallback
    USER_INPUT = "user_input"        # Invalid user input
    FILE_IO = "file_io"              # Decode/encode and file system errors
    CONFIGURATION = "configuration"  # Presets and settings errors
    FATAL = "fatal"                  # Unrecoverable errors


class AppError(Exception):
    """Base exception for application-specific errors."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.RECOVERABLE,
        original_error: Optional[Exception] = None,
        user_message: Optional[str] = None,
    ):
        super().__init__(message)
        self.category = category
        self.original_error = original_error
        self.user_message = user_message or message

    def __str__(self) -> str:
        if self.original_error:
            return f"{self.args[0]} (caused by: {type(self.original_error).__name__})"
        return self.args[0]


class FileIOError(AppError):
    """File I/O related errors."""

    def __init__(self, message: str, file_path: Optional[str] = None, **kwargs):
        kwargs.setdefault('category', ErrorCategory.FILE_IO)
        super().__init__(message, **kwargs)
        self.file_path = file_path


class ConfigurationError(AppError):
    """Preset/settings errors."""

    def __init__(self, message: str, setting_name: Optional[str] = None, **kwargs):
        kwargs.setdefault('category', ErrorCategory.CONFIGURATION)
        super().__init__(message, **kwargs)
        self.setting_name = setting_name


class DecodeFailure(FileIOError):
    """The source image is unreadable or corrupt. Fatal for the call."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault('user_message', "The image could not be read. It may be corrupt or in an unsupported format.")
        super().__init__(message, category=ErrorCategory.FATAL, **kwargs)


class EncodeFailure(FileIOError):
    """The processed image could not be serialized. Fatal for the call."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault('user_message', "The edited image could not be saved.")
        super().__init__(message, category=ErrorCategory.FATAL, **kwargs)


class InvalidParameter(ConfigurationError):
    """A setting has no safe interpretation (e.g. NaN, non-numeric, unknown filter)."""

    def __init__(self, message: str, setting_name: Optional[str] = None, **kwargs):
        super().__init__(message, setting_name=setting_name,
                         category=ErrorCategory.USER_INPUT, **kwargs)


def handle_errors(
    fallback_value: Any = None,
    category: ErrorCategory = ErrorCategory.RECOVERABLE,
    log_level: str = "warning",
    reraise: bool = False,
    user_message: Optional[str] = None,
) -> Callable[[F], F]:
    """
    Decorator for consistent error handling.

    Args:
        fallback_value: Value to return on error (can be callable for dynamic fallback).
        category: Error category for logging context.
        log_level: Logging level ('debug', 'info', 'warning', 'error', 'exception').
        reraise: If True, re-raise the exception after logging.
        user_message: Optional user-friendly message.

    Example:
        @handle_errors(fallback_value=None, category=ErrorCategory.CONFIGURATION)
        def load_preset_file(path):
            ...
    """
    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except AppError:
                # Re-raise our custom errors
                raise
            except Exception as e:
                log_func = getattr(logger, log_level, logger.warning)
                log_func(
                    "%s failed in %s.%s: %s",
                    category.value,
                    func.__module__,
                    func.__name__,
                    str(e),
                )

                if log_level == "exception":
                    logger.debug("Full traceback:\n%s", traceback.format_exc())

                if reraise:
                    raise AppError(
                        str(e),
                        category=category,
                        original_error=e,
                        user_message=user_message,
                    ) from e

                if callable(fallback_value):
                    return fallback_value()
                return fallback_value

        return wrapper  # type: ignore
    return decorator


def format_user_error(error: Union[Exception, str], context: Optional[str] = None) -> str:
    """
    Format an error message for user display.

    Args:
        error: The error or error message.
        context: Optional context about what operation failed.

    Returns:
        User-friendly error message.
    """
    if isinstance(error, AppError):
        return error.user_message

    error_str = str(error)

    if "No such file or directory" in error_str:
        return f"File not found{f' while {context}' if context else ''}"
    if "Permission denied" in error_str:
        return f"Permission denied{f' while {context}' if context else ''}"
    if "out of memory" in error_str.lower():
        return "Not enough memory to complete this operation. Try with a smaller image."

    if context:
        return f"Error {context}: {error_str}"
    return f"An error occurred: {error_str}"
