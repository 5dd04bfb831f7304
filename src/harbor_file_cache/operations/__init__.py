"""
Operations package - error mapping and output formatting shared by CLI commands.

Keeps Typer commands thin: each command builds its FileStore call, hands it to
run_and_exit, and prints the result through the printers module.
"""
from .mappers import EXIT_CODES, exit_code_for, run_and_exit

__all__ = ["EXIT_CODES", "exit_code_for", "run_and_exit"]
