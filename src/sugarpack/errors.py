"""Error types and formatting utilities for sugarpack.

Provides clean, user-friendly error messages from Pydantic validation errors
and other exceptions.
"""

import zipfile

import yaml
from pydantic import ValidationError

from sugarpack import cli_logger, exit_codes
from sugarpack.phpsyntax import PhpSyntaxError


class IllegalStateError(RuntimeError):
    """Raised when the packager reaches an internally inconsistent state.

    Examples: a missing templates directory while templates are configured,
    or an empty manifest after resolution.
    """


def format_validation_errors(error: ValidationError) -> str:
    """Format Pydantic ValidationError into clean, user-friendly message.

    Removes Pydantic-specific URLs and technical jargon, producing a message
    suitable for CLI output.

    Args:
        error: The Pydantic ValidationError to format.

    Returns:
        A clean, human-readable error message.
    """
    messages = []

    for err in error.errors():
        # Get the field path (e.g., "acceptable_sugar_versions.regex_matches")
        loc = ".".join(str(part) for part in err["loc"])

        error_type = err["type"]
        msg = err["msg"]

        if error_type == "missing":
            messages.append(f"'{loc}': field is required")
        elif error_type in ("string_too_short", "too_short"):
            messages.append(f"'{loc}': must not be empty")
        elif error_type == "string_type":
            messages.append(f"'{loc}': expected string")
        elif error_type == "list_type":
            messages.append(f"'{loc}': expected list")
        elif error_type in ("dict_type", "model_type"):
            messages.append(f"'{loc}': expected mapping")
        elif error_type == "bool_type":
            messages.append(f"'{loc}': expected boolean")
        else:
            messages.append(f"'{loc}': {msg.lower()}")

    if len(messages) == 1:
        return messages[0]

    # Multiple errors: list them
    return "; ".join(messages)


def handle_cli_error(error: Exception) -> int:
    """Handle an unhandled exception at the CLI boundary.

    Formats the error into a clean user-friendly message and returns
    an appropriate exit code, so raw tracebacks never reach the user.

    Args:
        error: The exception to handle.

    Returns:
        An exit code from exit_codes.
    """
    if isinstance(error, ValidationError):
        cli_logger.error(f"Invalid configuration: {format_validation_errors(error)}")
        return exit_codes.GENERAL_ERROR

    if isinstance(error, IllegalStateError):
        cli_logger.error(str(error))
        return exit_codes.ILLEGAL_STATE

    if isinstance(error, PhpSyntaxError):
        cli_logger.error(f"Invalid PHP configuration: {error}")
        return exit_codes.GENERAL_ERROR

    if isinstance(error, (zipfile.BadZipFile, zipfile.LargeZipFile)):
        cli_logger.error(f"Failed to write archive: {error}")
        return exit_codes.ARCHIVE_ERROR

    if isinstance(error, OSError):
        if error.filename:
            cli_logger.error(f"{error.strerror}: {error.filename}")
        else:
            cli_logger.error(str(error))
        return exit_codes.GENERAL_ERROR

    if isinstance(error, yaml.YAMLError):
        cli_logger.error(f"Invalid YAML: {error}")
        return exit_codes.GENERAL_ERROR

    cli_logger.error(f"Unexpected error: {error}")
    return exit_codes.GENERAL_ERROR
