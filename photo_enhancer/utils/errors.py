# Centralized error handling utilities
"""
Provides consistent error handling patterns across the engine.

This module defines:
- The error taxonomy (decode, compute and cache failures)
- Decorators that turn a failing step into a skipped step
- Utility functions for error logging and user messaging
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
    USER_INPUT = "user_input"        # Invalid caller input
    DECODE = "decode"                # Malformed or unsupported image bytes
    PROCESSING = "processing"        # Pixel computation errors
    CACHE = "cache"                  # Preview cache factory failures
    CONFIGURATION = "configuration"  # Settings/config errors
    FATAL = "fatal"                  # Unrecoverable errors


class AppError(Exception):
    """Base exception for engine-specific errors."""

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


class DecodeError(AppError):
    """Source bytes could not be decoded into a pixel buffer.

    Always surfaced to the caller: corrupted input is never guessed at.
    """

    def __init__(self, message: str, source: Optional[str] = None, **kwargs):
        kwargs.setdefault("user_message", "The photo could not be read.")
        super().__init__(message, category=ErrorCategory.DECODE, **kwargs)
        self.source = source


class ComputeError(AppError):
    """Degenerate buffer or arithmetic edge case inside a processing step."""

    def __init__(self, message: str, step: Optional[str] = None, **kwargs):
        super().__init__(message, category=ErrorCategory.PROCESSING, **kwargs)
        self.step = step


class CacheComputeError(AppError):
    """A preview cache factory raised while computing an entry."""

    def __init__(self, message: str, key: Optional[str] = None, **kwargs):
        super().__init__(message, category=ErrorCategory.CACHE, **kwargs)
        self.key = key


class ConfigurationError(AppError):
    """Configuration/settings errors."""

    def __init__(self, message: str, setting_name: Optional[str] = None, **kwargs):
        super().__init__(message, category=ErrorCategory.CONFIGURATION, **kwargs)
        self.setting_name = setting_name


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
        @handle_errors(fallback_value=None, category=ErrorCategory.PROCESSING)
        def parse_response(text):
            # ... parsing code ...
            return result
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


def skip_step_on_error(step: str) -> Callable[[F], F]:
    """
    Decorator for pipeline steps that must degrade instead of abort.

    The wrapped function takes the working image as its first argument. When
    it raises anything other than a DecodeError, the failure is logged and a
    copy of the unchanged input is returned, so the pipeline continues with
    the best image obtained so far.

    Example:
        @skip_step_on_error("white_balance")
        def correct_white_balance(image):
            ...
    """
    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(image, *args, **kwargs):
            try:
                return func(image, *args, **kwargs)
            except DecodeError:
                raise
            except ComputeError as e:
                logger.warning("Skipping step '%s': %s", e.step or step, e)
            except Exception as e:
                logger.warning(
                    "Step '%s' failed (%s: %s). Skipping.",
                    step,
                    type(e).__name__,
                    e,
                )
                logger.debug("Full traceback:\n%s", traceback.format_exc())
            return image.copy()

        return wrapper  # type: ignore
    return decorator


def log_and_continue(
    message: str,
    category: ErrorCategory = ErrorCategory.RECOVERABLE,
    level: str = "warning",
) -> None:
    """
    Log an error and continue execution.

    Use this for non-critical errors that shouldn't stop processing.
    """
    log_func = getattr(logger, level, logger.warning)
    log_func("[%s] %s", category.value, message)


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

    if "out of memory" in error_str.lower():
        return "Not enough memory to complete this operation. Try with a smaller image."

    if context:
        return f"Error {context}: {error_str}"
    return f"An error occurred: {error_str}"
