"""
Error mapping and CLI utilities.

Provides centralized exception-to-exit-code mapping and the command wrapper
used by every Typer command.
"""
from __future__ import annotations

import logging
from typing import Callable, TypeVar

import typer

T = TypeVar('T')

logger = logging.getLogger(__name__)

EXIT_CODES = {
    "NotFound": 1,
    "FileNotFoundError": 1,
    "InvalidAddress": 2,
    "ValueError": 2,
    "TransportError": 3,
    "HTTPStatusError": 4,
    "MalformedManifest": 5,
    "NoLayers": 5,
    "MalformedLayer": 5,
    "DigestMismatch": 6,
}


def exit_code_for(exc: BaseException) -> int:
    """
    Map exception to standardized exit code.

    The exception's class hierarchy is searched most-specific first, so an
    InvalidAddress (also a ValueError) maps to 2 through its own entry.

    Exit codes:
    - 0: Success
    - 1: Tag, blob or local file not found
    - 2: Invalid address or argument
    - 3: Transport failure or unknown error
    - 4: Harbor API returned an unexpected status
    - 5: Manifest could not be interpreted
    - 6: Downloaded bytes did not match their digest

    Args:
        exc: Exception to map

    Returns:
        Exit code (3 as fallback for unknown exceptions)
    """
    for cls in type(exc).__mro__:
        code = EXIT_CODES.get(cls.__name__)
        if code is not None:
            return code
    return 3


def run_and_exit(func: Callable[[], T]) -> T:
    """
    Unified error wrapper for CLI commands.

    Executes the given function and maps any exception to an exit code via
    typer.Exit, printing the error message to stderr first.

    Args:
        func: Function to execute

    Returns:
        Function result if successful

    Raises:
        typer.Exit: With appropriate exit code if function raises exception
    """
    try:
        return func()
    except typer.Exit:
        raise
    except Exception as e:
        from .printers import print_error
        logger.debug("Command failed", exc_info=True)
        print_error(e)
        raise typer.Exit(code=exit_code_for(e)) from e
