"""Work out the import path of the package in a directory."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path

logger = logging.getLogger(__name__)

_MODULE_DIRECTIVE = re.compile(r"^\s*module\s+(\"[^\"]+\"|`[^`]+`|\S+)", re.MULTILINE)


def find_module(directory: Path) -> tuple[Path, str] | None:
	"""
	Find the nearest enclosing go.mod.

	Returns:
	        tuple[Path, str] | None: The module root and module path, if any

	"""
	for candidate in (directory, *directory.parents):
		go_mod = candidate / "go.mod"
		if not go_mod.is_file():
			continue
		match = _MODULE_DIRECTIVE.search(go_mod.read_text(encoding="utf-8", errors="replace"))
		if match is None:
			logger.debug("No module directive in %s", go_mod)
			return None
		return candidate, match.group(1).strip("\"`")
	return None


def gopath_entries(environ: dict[str, str] | None = None) -> list[Path]:
	"""GOPATH entries, defaulting to ~/go as the go tool does."""
	env = os.environ if environ is None else environ
	gopath = env.get("GOPATH")
	if not gopath:
		return [Path.home() / "go"]
	return [Path(p) for p in gopath.split(os.pathsep) if p]


def current_import_path(directory: str | Path | None = None, environ: dict[str, str] | None = None) -> str:
	"""
	Get the import path of the package in directory.

	Tries, in order: the nearest go.mod module path joined with the
	directory's path below the module root; the directory's path below a
	GOPATH ``src`` directory; and ``_`` followed by the absolute directory,
	the name the go tool gives packages outside any workspace.

	Args:
	        directory: Package directory (defaults to the current directory)
	        environ: Environment to read GOPATH from (defaults to os.environ)

	Returns:
	        str: Import path

	"""
	directory = Path(directory or Path.cwd()).resolve()

	module = find_module(directory)
	if module is not None:
		root, module_path = module
		rel = directory.relative_to(root).as_posix()
		return module_path if rel == "." else f"{module_path}/{rel}"

	for entry in gopath_entries(environ):
		src = entry.expanduser().resolve() / "src"
		if directory.is_relative_to(src) and directory != src:
			return directory.relative_to(src).as_posix()

	return "_" + directory.as_posix()
