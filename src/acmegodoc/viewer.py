"""Run the documentation viewer."""

from __future__ import annotations

import logging
import subprocess
from typing import TYPE_CHECKING

from acmegodoc.errors import ViewerLaunchError

if TYPE_CHECKING:
	from collections.abc import Sequence

	from acmegodoc.lookup.symbols import LookupKey

logger = logging.getLogger(__name__)

DEFAULT_VIEWER = ("go", "doc")


def build_viewer_args(key: LookupKey) -> list[str]:
	"""Arguments naming the package, and the identifier when there is one."""
	return [key.path, key.name] if key.name else [key.path]


def run_viewer(key: LookupKey, command: Sequence[str] = DEFAULT_VIEWER) -> None:
	"""
	Show the documentation for key.

	The viewer writes straight to this process's standard output and error.

	Args:
	        key: Package path and identifier to document
	        command: Viewer command and leading arguments

	Raises:
	        ViewerLaunchError: If the viewer cannot be started or exits with a failure status

	"""
	args = [*command, *build_viewer_args(key)]
	logger.debug("Running viewer: %s", " ".join(args))
	try:
		# The argument list is never passed through a shell
		result = subprocess.run(args, check=False)  # noqa: S603
	except OSError as e:
		msg = f"cannot run {command[0]}: {e}"
		raise ViewerLaunchError(msg) from e
	if result.returncode != 0:
		msg = f"{command[0]} exited with status {result.returncode}"
		raise ViewerLaunchError(msg, returncode=result.returncode)
