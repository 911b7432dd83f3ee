"""Utility functions for CLI operations in acmegodoc."""

from __future__ import annotations

import logging

import typer
from rich.markup import escape

from acmegodoc.utils.log_setup import console

logger = logging.getLogger(__name__)


def show_error(message: str, exception: BaseException | None = None) -> None:
	"""
	Print a one-line diagnostic to standard error.

	Args:
	        message: Context prefix, e.g. "cannot open window"
	        exception: Optional exception whose text completes the line

	"""
	line = f"{message}: {exception}" if exception is not None else message
	if exception is not None:
		logger.debug("Error details", exc_info=exception)
	# Plain text, no wrapping: acme shows this verbatim in +Errors
	console.print(escape(line), highlight=False, soft_wrap=True)


def exit_with_error(message: str, exit_code: int = 1, exception: BaseException | None = None) -> None:
	"""
	Display an error message and exit.

	Args:
	        message: Error message to display
	        exit_code: Exit code to use
	        exception: Optional exception that caused the error

	"""
	show_error(message, exception)
	raise typer.Exit(exit_code) from exception


def handle_keyboard_interrupt() -> None:
	"""Handles KeyboardInterrupt by printing a message and exiting cleanly."""
	console.print("\n[yellow]Operation cancelled by user.[/yellow]")
	raise typer.Exit(130)
