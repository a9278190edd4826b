"""
Unified CLI Error Handling
==========================

Consistent error messages and exit codes for chip8run and chip8disasm.
"""

import sys
import traceback
from enum import IntEnum
from typing import NoReturn

import click


class ExitCode(IntEnum):
    """Standard exit codes for CLI tools."""
    SUCCESS = 0
    EXECUTION_ERROR = 1  # Program halted on a fault
    INVALID_ARGS = 2     # Bad arguments, configuration or ROM file
    INTERNAL_ERROR = 3   # Unexpected internal error


def handle_cli_exception(error: Exception, verbose: bool = False) -> NoReturn:
    """
    Report an exception and exit with the matching exit code.

    Args:
        error: The exception that was raised
        verbose: If True, print full traceback for internal errors

    Raises:
        SystemExit: Always
    """
    from chip8_vm.errors import ConfigError, ExecutionError, RomLoadError

    if isinstance(error, ExecutionError):
        click.echo(f"Execution error: {error}", err=True)
        sys.exit(ExitCode.EXECUTION_ERROR)

    elif isinstance(error, ConfigError):
        click.echo(f"Configuration error: {error}", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    elif isinstance(error, (RomLoadError, click.BadParameter, FileNotFoundError, PermissionError)):
        click.echo(f"Error: {error}", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    else:
        click.echo(f"Internal error: {error}", err=True)
        if verbose:
            traceback.print_exc()
        sys.exit(ExitCode.INTERNAL_ERROR)
