"""Tests for centralized error handling utilities."""

import pytest
import numpy as np
from photo_enhancer.utils.errors import (
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


class TestAppError:
    """Tests for AppError base class."""

    def test_basic_error(self):
        """Basic error creation should work."""
        error = AppError("Test error")
        assert str(error) == "Test error"
        assert error.category == ErrorCategory.RECOVERABLE
        assert error.user_message == "Test error"

    def test_error_with_category(self):
        """Error with specific category."""
        error = AppError("Test", category=ErrorCategory.PROCESSING)
        assert error.category == ErrorCategory.PROCESSING

    def test_error_with_original(self):
        """Error wrapping original exception."""
        original = ValueError("Original")
        error = AppError("Wrapped", original_error=original)
        assert error.original_error is original
        assert "ValueError" in str(error)

    def test_error_with_user_message(self):
        """Error with custom user message."""
        error = AppError("Technical details", user_message="Something went wrong")
        assert error.user_message == "Something went wrong"
        assert str(error) == "Technical details"


class TestSpecificErrors:
    """Tests for specific error types."""

    def test_decode_error(self):
        error = DecodeError("Bad PNG header", source="upload")
        assert error.category == ErrorCategory.DECODE
        assert error.source == "upload"
        assert error.user_message == "The photo could not be read."

    def test_compute_error(self):
        error = ComputeError("Degenerate buffer", step="vignette")
        assert error.category == ErrorCategory.PROCESSING
        assert error.step == "vignette"

    def test_cache_compute_error(self):
        error = CacheComputeError("Factory failed", key="abc_neon_")
        assert error.category == ErrorCategory.CACHE
        assert error.key == "abc_neon_"

    def test_configuration_error(self):
        error = ConfigurationError("Invalid setting", setting_name="max_entries")
        assert error.category == ErrorCategory.CONFIGURATION
        assert error.setting_name == "max_entries"

    def test_all_derive_from_app_error(self):
        for cls in (DecodeError, ComputeError, CacheComputeError, ConfigurationError):
            assert issubclass(cls, AppError)


class TestHandleErrorsDecorator:
    """Tests for handle_errors decorator."""

    def test_successful_function(self):
        """Decorated function should work normally on success."""
        @handle_errors(fallback_value=None)
        def success_func():
            return "success"

        assert success_func() == "success"

    def test_fallback_on_error(self):
        """Should return fallback value on error."""
        @handle_errors(fallback_value="fallback")
        def failing_func():
            raise ValueError("Error")

        assert failing_func() == "fallback"

    def test_callable_fallback(self):
        """Should call fallback if it's callable."""
        @handle_errors(fallback_value=lambda: "dynamic")
        def failing_func():
            raise ValueError("Error")

        assert failing_func() == "dynamic"

    def test_reraise_option(self):
        """Should reraise as AppError when reraise=True."""
        @handle_errors(reraise=True, category=ErrorCategory.PROCESSING)
        def failing_func():
            raise ValueError("Original error")

        with pytest.raises(AppError) as exc_info:
            failing_func()
        assert exc_info.value.category == ErrorCategory.PROCESSING

    def test_app_errors_pass_through(self):
        @handle_errors(fallback_value="fallback")
        def failing_func():
            raise DecodeError("corrupt")

        with pytest.raises(DecodeError):
            failing_func()

    def test_preserves_function_metadata(self):
        """Decorator should preserve function name and docstring."""
        @handle_errors()
        def documented_func():
            """This is a docstring."""
            pass

        assert documented_func.__name__ == "documented_func"
        assert documented_func.__doc__ == "This is a docstring."


class TestSkipStepOnError:
    """Tests for skip_step_on_error decorator."""

    def test_successful_step(self):
        @skip_step_on_error("double")
        def double(image):
            return image * 2

        image = np.ones((2, 2, 4), dtype=np.float32)
        assert np.all(double(image) == 2)

    def test_compute_error_returns_copy(self):
        @skip_step_on_error("vignette")
        def failing_step(image, strength):
            raise ComputeError("Too small", step="vignette")

        image = np.ones((1, 1, 4), dtype=np.float32)
        result = failing_step(image, 0.3)
        assert result is not image
        assert np.array_equal(result, image)

    def test_unexpected_error_returns_copy(self):
        @skip_step_on_error("explode")
        def failing_step(image):
            raise ZeroDivisionError("division by zero")

        image = np.zeros((3, 3, 4), dtype=np.float32)
        assert np.array_equal(failing_step(image), image)

    def test_decode_error_propagates(self):
        @skip_step_on_error("decode")
        def failing_step(image):
            raise DecodeError("corrupt")

        with pytest.raises(DecodeError):
            failing_step(np.zeros((1, 1, 4), dtype=np.float32))


class TestFormatUserError:
    """Tests for format_user_error function."""

    def test_format_app_error(self):
        """AppError should use its user_message."""
        error = AppError("Technical", user_message="User friendly")
        assert format_user_error(error) == "User friendly"

    def test_format_decode_error(self):
        assert format_user_error(DecodeError("bad bytes")) == "The photo could not be read."

    def test_format_memory_error(self):
        """Memory errors should give helpful message."""
        error = MemoryError("out of memory")
        result = format_user_error(error)
        assert "memory" in result.lower()

    def test_format_generic_error(self):
        """Generic errors should include context."""
        error = ValueError("Some error")
        result = format_user_error(error, context="applying filter")
        assert "applying filter" in result
        assert "Some error" in result


class TestLogAndContinue:
    """Tests for log_and_continue function."""

    def test_does_not_raise(self):
        """Should log without raising."""
        log_and_continue("Test message")

    def test_accepts_all_categories(self):
        """Should accept all error categories."""
        for category in ErrorCategory:
            log_and_continue(f"Test {category.value}", category=category)


class TestErrorCategoryEnum:
    """Tests for ErrorCategory enum."""

    def test_all_categories_defined(self):
        """All expected categories should exist."""
        expected = ["RECOVERABLE", "USER_INPUT", "DECODE", "PROCESSING", "CACHE", "CONFIGURATION", "FATAL"]
        for name in expected:
            assert hasattr(ErrorCategory, name)

    def test_category_values(self):
        """Categories should have string values."""
        for category in ErrorCategory:
            assert isinstance(category.value, str)
