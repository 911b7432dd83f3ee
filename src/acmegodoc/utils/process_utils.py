"""Subprocess helpers for acmegodoc."""

from __future__ import annotations

import logging
import subprocess
from typing import TYPE_CHECKING

from acmegodoc.errors import CommandError

if TYPE_CHECKING:
	from pathlib import Path

logger = logging.getLogger(__name__)


def run_command(command: list[str], cwd: Path | None = None) -> str:
	"""Run a command and return its standard output.

	Args:
	    command: Command to run
	    cwd: Working directory (optional)

	Returns:
	    Command output as string

	Raises:
	    CommandError: If the command cannot be started or fails
	"""
	logger.debug("Running command: %s", " ".join(command))
	try:
		# The argument list is never passed through a shell
		result = subprocess.run(  # noqa: S603
			command,
			cwd=cwd,
			capture_output=True,
			text=True,
			check=True,
		)
	except FileNotFoundError as e:
		msg = f"Command not found: {command[0]}"
		raise CommandError(msg) from e
	except subprocess.CalledProcessError as e:
		error_msg = f"Command failed: {' '.join(command)}\nError: {e.stderr.strip()}"
		logger.debug(error_msg)
		raise CommandError(error_msg) from e
	else:
		return result.stdout
