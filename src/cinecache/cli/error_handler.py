"""
CLI Error Handling Utilities

Consistent error output and exit codes for CLI commands.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import typer

from cinecache.shared.errors import (
    ApplicationError,
    CliError,
    DomainError,
    InfrastructureError,
    create_cli_error,
)

logger = logging.getLogger(__name__)


def format_json_output(
    command: str,
    *,
    success: bool,
    errors: list[str] | None = None,
    data: dict[str, Any] | None = None,
) -> str:
    """Format command output as a JSON document."""
    output: dict[str, Any] = {
        "success": success,
        "command": command,
    }

    if errors:
        output["errors"] = errors

    if data is not None:
        output["data"] = data

    return json.dumps(output, indent=2, default=str)


def handle_cli_error(
    error: Exception,
    command: str,
    *,
    json_output: bool = False,
) -> int:
    """Log and print an error; returns the exit code for the command."""
    cli_error = _map_error_to_cli_error(error, command)
    logger.error(
        "CLI error in %s: %s",
        command,
        cli_error.message,
        extra={"context": {"command": command, "error_type": type(error).__name__}},
    )

    if json_output:
        typer.echo(
            format_json_output(
                command,
                success=False,
                errors=[cli_error.message],
                data={"error_code": cli_error.code.value, "error_type": type(error).__name__},
            ),
        )
    else:
        typer.echo(f"Error: {cli_error.message}", err=True)

    return cli_error.exit_code


def _map_error_to_cli_error(error: Exception, command: str) -> CliError:
    """Map specific exception types to CLI errors."""
    if isinstance(error, CliError):
        return error

    if isinstance(error, DomainError):
        return create_cli_error(f"Invalid input: {error.message}", command, error)

    if isinstance(error, ApplicationError):
        return create_cli_error(f"Application error: {error.message}", command, error)

    if isinstance(error, InfrastructureError):
        return create_cli_error(f"Infrastructure error: {error.message}", command, error)

    if isinstance(error, (ValueError, KeyError, TypeError)):
        return create_cli_error(f"Data processing error: {error}", command, error)

    return create_cli_error(f"Unexpected error: {error}", command, error)
