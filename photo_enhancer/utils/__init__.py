# This file makes the 'utils' directory a Python package.

from .errors import (
    AppError,
    DecodeError,
    ComputeError,
    CacheComputeError,
    ConfigurationError,
    ErrorCategory,
    handle_errors,
    skip_step_on_error,
    log_and_continue,
    format_user_error,
)
from .imaging import PixelBuffer, to_working, from_working, luminance, channel_means

__all__ = [
    # Errors
    'AppError',
    'DecodeError',
    'ComputeError',
    'CacheComputeError',
    'ConfigurationError',
    'ErrorCategory',
    'handle_errors',
    'skip_step_on_error',
    'log_and_continue',
    'format_user_error',
    # Imaging
    'PixelBuffer',
    'to_working',
    'from_working',
    'luminance',
    'channel_means',
]
