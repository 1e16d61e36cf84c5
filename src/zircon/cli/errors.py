"""
Unified CLI Error Handling
==========================

Maps exceptions raised while running a CLI tool to a message on stderr and
an exit code.

| Exception                         | Exit code      |
|-----------------------------------|----------------|
| ZirconError (compile, decode)     | BUILD_ERROR    |
| BadParameter, missing/unreadable  | INVALID_ARGS   |
| anything else                     | INTERNAL_ERROR |
"""

import sys
import traceback
from enum import IntEnum
from typing import NoReturn

import click

from zircon.errors import ZirconError


class ExitCode(IntEnum):
    """Standard exit codes for CLI tools."""
    SUCCESS = 0
    BUILD_ERROR = 1      # Source did not compile, or could not be decoded
    INVALID_ARGS = 2     # Invalid arguments or missing files
    INTERNAL_ERROR = 3   # Unexpected internal error


# Errors caused by how the tool was invoked rather than by the source
USAGE_ERRORS = (click.BadParameter, FileNotFoundError, PermissionError)


def handle_cli_exception(
    error: Exception,
    verbose: bool = False,
    error_type: str | None = None
) -> NoReturn:
    """
    Report `error` and exit with the matching code.

    Args:
        error: The exception that was raised
        verbose: If True, print full traceback for internal errors
        error_type: Optional prefix for build errors (e.g., "Assembly")

    Raises:
        SystemExit: Always
    """
    if isinstance(error, ZirconError):
        prefix = f"{error_type} error" if error_type else "Error"
        click.echo(f"{prefix}: {error}", err=True)
        sys.exit(ExitCode.BUILD_ERROR)

    if isinstance(error, USAGE_ERRORS):
        click.echo(f"Error: {error}", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    click.echo(f"Internal error: {error}", err=True)
    if verbose:
        traceback.print_exc()
    sys.exit(ExitCode.INTERNAL_ERROR)
