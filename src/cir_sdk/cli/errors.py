"""
circ Exit Codes
===============

Maps exceptions raised during a circ run to a message on stderr and a
process exit code.
"""

import sys
import traceback
from enum import IntEnum
from typing import NoReturn

import click


class ExitCode(IntEnum):
    """Process exit status of circ."""
    SUCCESS = 0
    BUILD_ERROR = 1      # Lexing, parsing or generation error
    INVALID_ARGS = 2     # Invalid arguments or missing files
    INTERNAL_ERROR = 3   # Unexpected internal error


def handle_cli_exception(
    error: Exception,
    verbose: bool = False,
    error_type: str | None = None
) -> NoReturn:
    """
    Report ``error`` on stderr and exit.

    Compiler diagnostics are printed as formatted; internal errors get a
    traceback under ``verbose``. ``error_type`` prefixes non-compiler SDK
    errors, e.g. "Compilation error: ...".
    """
    from cir_sdk.skeleton.errors import SkeletonError, CirInternalError
    from cir_sdk.errors import CirError

    if isinstance(error, CirInternalError):
        # Compiler bug
        click.echo(f"Internal error: {error}", err=True)
        if verbose:
            traceback.print_exc()
        sys.exit(ExitCode.INTERNAL_ERROR)

    elif isinstance(error, SkeletonError):
        # Already formatted as "file:line:col: error: ..."
        click.echo(str(error), err=True)
        sys.exit(ExitCode.BUILD_ERROR)

    elif isinstance(error, CirError):
        prefix = f"{error_type} error: " if error_type else "Error: "
        click.echo(f"{prefix}{error}", err=True)
        sys.exit(ExitCode.BUILD_ERROR)

    elif isinstance(error, click.BadParameter):
        click.echo(f"Error: {error}", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    elif isinstance(error, (FileNotFoundError, PermissionError)):
        click.echo(f"Error: {error}", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    else:
        click.echo(f"Internal error: {error}", err=True)
        if verbose:
            traceback.print_exc()
        sys.exit(ExitCode.INTERNAL_ERROR)
