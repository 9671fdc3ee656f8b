"""Error handling utilities for keyrotator."""

import sys
import traceback
from typing import Optional

import click


class KeyRotatorError(Exception):
    """Base exception for keyrotator errors."""

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        suggestions: Optional[list] = None,
    ):
        self.message = message
        self.details = details
        self.suggestions = suggestions or []
        super().__init__(message)


class ConfigurationError(KeyRotatorError):
    """Raised when configuration is invalid or missing."""

    pass


class ProviderError(KeyRotatorError):
    """Raised when listing, creating or deleting keys at a cloud provider fails."""

    pass


class LocationWriteError(KeyRotatorError):
    """Raised when writing a new key to a key location fails."""

    pass


class TranscodeError(KeyRotatorError):
    """Raised when key material cannot be converted for a location."""

    pass


class VerificationError(KeyRotatorError):
    """Raised when a downstream job triggered by a write did not succeed."""

    pass


class VerificationTimeoutError(VerificationError):
    """Raised when a downstream job did not reach a terminal state in time."""

    pass


class GitError(KeyRotatorError):
    """Raised when Git operations fail."""

    pass


class SecurityError(KeyRotatorError):
    """Raised when encryption or signing operations fail."""

    pass


class ErrorHandler:
    """Handles and formats errors for user-friendly display."""

    def __init__(self, verbose: bool = False):
        self.verbose = verbose

    def handle_error(self, error: Exception, context: Optional[str] = None) -> None:
        """
        Handle and display error with appropriate formatting.

        Args:
            error: Exception to handle
            context: Optional context about when/where error occurred
        """
        if isinstance(error, KeyRotatorError):
            self._handle_keyrotator_error(error, context)
        else:
            self._handle_generic_error(error, context)

    def _handle_keyrotator_error(self, error: KeyRotatorError, context: Optional[str]) -> None:
        """Handle keyrotator-specific errors."""
        click.echo(f"✗ {error.message}", err=True)

        if context:
            click.echo(f"Context: {context}", err=True)

        if error.details:
            click.echo(f"Details: {error.details}", err=True)

        if error.suggestions:
            click.echo("\nSuggestions:", err=True)
            for suggestion in error.suggestions:
                click.echo(f"  • {suggestion}", err=True)

        if self.verbose:
            click.echo("\nFull traceback:", err=True)
            traceback.print_exc()

    def _handle_generic_error(self, error: Exception, context: Optional[str]) -> None:
        """Handle generic Python exceptions."""
        error_type = type(error).__name__

        if isinstance(error, FileNotFoundError):
            message = f"File not found: {error}"
            suggestions = [
                "Check that the file path is correct",
                "Ensure the file exists and is readable",
            ]
        elif isinstance(error, PermissionError):
            message = f"Permission denied: {error}"
            suggestions = [
                "Check file/directory permissions",
                "Try running with appropriate privileges",
            ]
        elif isinstance(error, ConnectionError):
            message = f"Connection failed: {error}"
            suggestions = [
                "Check your internet connection",
                "Verify that the target service is reachable",
            ]
        else:
            message = f"{error_type}: {error}"
            suggestions = []

        click.echo(f"✗ {message}", err=True)

        if context:
            click.echo(f"Context: {context}", err=True)

        if suggestions:
            click.echo("\nSuggestions:", err=True)
            for suggestion in suggestions:
                click.echo(f"  • {suggestion}", err=True)

        if self.verbose:
            click.echo("\nFull traceback:", err=True)
            traceback.print_exc()

    def exit_with_error(self, error: Exception, context: Optional[str] = None, exit_code: int = 1) -> None:
        """Handle error and exit with specified code."""
        self.handle_error(error, context)
        sys.exit(exit_code)


def create_error_suggestions(error_type: str, **kwargs) -> list:
    """
    Create contextual error suggestions based on error type.

    Args:
        error_type: Type of error
        **kwargs: Additional context information

    Returns:
        list: List of suggestion strings
    """
    suggestions = {
        "missing_key_location": [
            "Add an account_key_locations entry for the service account",
            "Or exclude the account with an account_filter",
        ],
        "unsupported_filter_mode": [
            "Set account_filter.mode to 'include' or 'exclude'",
        ],
        "provider_auth_failed": [
            "Check the cloud provider credentials available to this process",
            "Verify the identity has permission to manage service-account keys",
        ],
        "configuration_invalid": [
            "Check YAML/JSON syntax in the configuration file",
            "Verify all required fields are present",
        ],
        "partial_propagation": [
            "Locations updated before the failure already hold the new key",
            "The old key was not deleted; fix the failing location and re-run",
        ],
    }

    return suggestions.get(error_type, [])


def format_validation_errors(errors: list) -> str:
    """
    Format validation errors for display.

    Args:
        errors: List of validation error messages

    Returns:
        str: Formatted error message
    """
    if not errors:
        return "No validation errors"

    if len(errors) == 1:
        return f"Validation error: {errors[0]}"

    formatted = "Validation errors:\n"
    for i, error in enumerate(errors, 1):
        formatted += f"  {i}. {error}\n"

    return formatted.strip()
