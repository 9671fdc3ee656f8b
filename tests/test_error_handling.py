"""Tests for error handling system."""

from unittest.mock import patch

import click
from click.testing import CliRunner

from keyrotator.utils.errors import (
    ConfigurationError,
    ErrorHandler,
    GitError,
    KeyRotatorError,
    LocationWriteError,
    ProviderError,
    VerificationError,
    VerificationTimeoutError,
    create_error_suggestions,
    format_validation_errors,
)


class TestKeyRotatorError:
    """Test custom error classes."""

    def test_keyrotator_error_basic(self):
        """Test basic KeyRotatorError functionality."""
        error = KeyRotatorError("Test error message")

        assert str(error) == "Test error message"
        assert error.message == "Test error message"
        assert error.details is None
        assert error.suggestions == []

    def test_keyrotator_error_with_details(self):
        """Test KeyRotatorError with details and suggestions."""
        suggestions = ["Try this", "Or try that"]
        error = KeyRotatorError("Test error", details="Detailed explanation", suggestions=suggestions)

        assert error.message == "Test error"
        assert error.details == "Detailed explanation"
        assert error.suggestions == suggestions

    def test_specific_error_types(self):
        """Test specific error type inheritance."""
        for error_type in (ConfigurationError, GitError, LocationWriteError, ProviderError, VerificationError):
            assert isinstance(error_type("error"), KeyRotatorError)

    def test_timeout_is_a_verification_error(self):
        assert isinstance(VerificationTimeoutError("timed out"), VerificationError)


class TestErrorHandler:
    """Test error handler functionality."""

    def setup_method(self):
        """Setup test environment."""
        self.handler = ErrorHandler(verbose=False)
        self.verbose_handler = ErrorHandler(verbose=True)

    def test_handle_keyrotator_error(self):
        """Test handling keyrotator-specific errors."""
        error = LocationWriteError(
            "Failed to update GCS for sa1",
            details="403 Forbidden",
            suggestions=["Suggestion 1", "Suggestion 2"],
        )

        with patch("click.echo") as mock_echo:
            self.handler.handle_error(error, "Key rotation")

        output = [str(call[0][0]) for call in mock_echo.call_args_list]
        assert output[0] == "✗ Failed to update GCS for sa1"
        assert "Context: Key rotation" in output
        assert "Details: 403 Forbidden" in output
        assert "  • Suggestion 2" in output

    def test_handle_generic_error_file_not_found(self):
        """Test handling FileNotFoundError."""
        with patch("click.echo") as mock_echo:
            self.handler.handle_error(FileNotFoundError("config.yaml"))

        assert "File not found" in str(mock_echo.call_args_list[0])

    def test_handle_generic_error_connection(self):
        with patch("click.echo") as mock_echo:
            self.handler.handle_error(ConnectionError("api.github.com"))

        assert "Connection failed" in str(mock_echo.call_args_list[0])

    def test_handle_unknown_error(self):
        with patch("click.echo") as mock_echo:
            self.handler.handle_error(ValueError("bad value"))

        assert mock_echo.call_args_list[0][0][0] == "✗ ValueError: bad value"

    def test_handle_error_with_verbose(self):
        """Test error handling with verbose output."""
        with patch("click.echo"):
            with patch("traceback.print_exc") as mock_traceback:
                self.verbose_handler.handle_error(KeyRotatorError("Test error"))

        mock_traceback.assert_called_once()

    def test_exit_with_error(self):
        """Test exit_with_error functionality."""
        with patch("click.echo"):
            with patch("sys.exit") as mock_exit:
                self.handler.exit_with_error(KeyRotatorError("Fatal error"), exit_code=2)

        mock_exit.assert_called_once_with(2)


class TestErrorUtilities:
    """Test error utility functions."""

    def test_create_error_suggestions_partial_propagation(self):
        suggestions = create_error_suggestions("partial_propagation")

        assert any("old key was not deleted" in suggestion for suggestion in suggestions)

    def test_create_error_suggestions_missing_key_location(self):
        suggestions = create_error_suggestions("missing_key_location")

        assert any("account_key_locations" in suggestion for suggestion in suggestions)

    def test_create_error_suggestions_unknown(self):
        """Test suggestions for unknown error type."""
        assert create_error_suggestions("unknown_error_type") == []

    def test_format_validation_errors_single(self):
        """Test formatting single validation error."""
        result = format_validation_errors(["Field 'name' is required"])

        assert result == "Validation error: Field 'name' is required"

    def test_format_validation_errors_multiple(self):
        """Test formatting multiple validation errors."""
        errors = [
            "At least one cloud provider must be configured",
            "Duplicate key locations for service account: sa1",
            "Invalid location for sa2: Unknown key location type: ftp",
        ]

        result = format_validation_errors(errors)

        assert result.startswith("Validation errors:")
        assert "  3. Invalid location for sa2" in result

    def test_format_validation_errors_empty(self):
        """Test formatting empty validation errors."""
        assert format_validation_errors([]) == "No validation errors"


class TestClickIntegration:
    """Test error handling integration with Click commands."""

    def test_cli_error_handling(self):
        """Test error handling in Click command context."""

        @click.command()
        def test_command():
            ErrorHandler().exit_with_error(ConfigurationError("Test config error"), "Test")

        runner = CliRunner()
        result = runner.invoke(test_command)

        assert result.exit_code == 1
        assert "✗ Test config error" in result.output
