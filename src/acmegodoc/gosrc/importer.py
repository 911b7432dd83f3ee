"""Find the packages a Go file imports."""

from __future__ import annotations

import logging
import shutil
from typing import TYPE_CHECKING

from acmegodoc.errors import AcmeGodocError, CommandError
from acmegodoc.gosrc.objects import Package
from acmegodoc.gosrc.parser import default_package_name
from acmegodoc.utils.process_utils import run_command

if TYPE_CHECKING:
	from collections.abc import Iterable
	from pathlib import Path

logger = logging.getLogger(__name__)

IMPORTER_MODES = ("auto", "go-list", "guess")

# cgo's pseudo-package has no sources to list
_PSEUDO_PACKAGES = {"C", "unsafe"}

# Path, name, source directory, source files and error of each package
GO_LIST_TEMPLATE = (
	"{{.ImportPath}}\t{{.Name}}\t{{.Dir}}\t"
	"{{range .GoFiles}}{{.}} {{end}}{{range .CgoFiles}}{{.}} {{end}}\t"
	"{{if .Error}}{{.Error.Err}}{{end}}"
)


class ImportFailedError(AcmeGodocError):
	"""An import path does not name a package."""


class Importer:
	"""
	Maps import paths to package objects.

	Package names either come from ``go list``, which also verifies that
	the packages exist and reports their source files, or are guessed from
	the import path. Guessed packages have no sources.

	"""

	def __init__(self, mode: str = "auto", cwd: Path | None = None) -> None:
		"""
		Initialize the importer.

		Args:
		        mode: 'go-list', 'guess', or 'auto' to use go list when a go tool is on PATH
		        cwd: Directory go list runs in (defaults to the current directory)

		"""
		if mode not in IMPORTER_MODES:
			msg = f"Unknown importer mode: {mode!r}"
			raise ValueError(msg)
		if mode == "auto":
			mode = "go-list" if shutil.which("go") else "guess"
		self.mode = mode
		self.cwd = cwd
		self._packages: dict[str, Package] = {}
		self._failures: dict[str, str] = {}

	def prefetch(self, paths: Iterable[str]) -> None:
		"""Resolve many import paths with one go list run."""
		pending = sorted({p for p in paths if p not in self._packages and p not in self._failures})
		if not pending or self.mode != "go-list":
			return
		listable = [p for p in pending if p not in _PSEUDO_PACKAGES]
		if not listable:
			return
		output = self._go_list(listable)
		if output is None:
			return
		for line in output.splitlines():
			fields = line.split("\t", 4)
			import_path, name, directory, files, error = (fields + [""] * 5)[:5]
			if not import_path:
				# continuation of a multi-line error
				continue
			if error.strip() or not name:
				self._failures[import_path] = error.strip() or "no Go files"
			else:
				self._packages[import_path] = Package(
					path=import_path, name=name, dir=directory or None, files=files.split()
				)

	def _go_list(self, paths: list[str]) -> str | None:
		try:
			return run_command(["go", "list", "-e", "-f", GO_LIST_TEMPLATE, "--", *paths], cwd=self.cwd)
		except CommandError as e:
			# Outside a module go list can fail wholesale; names can still be guessed
			logger.warning("go list failed, guessing package names: %s", e)
			self.mode = "guess"
			return None

	def import_package(self, path: str) -> Package:
		"""
		Get the package for an import path.

		Raises:
		        ImportFailedError: If go list reported that the path is not a package

		"""
		if not path:
			msg = "empty import path"
			raise ImportFailedError(msg)
		if path in self._failures:
			raise ImportFailedError(self._failures[path])
		pkg = self._packages.get(path)
		if pkg is None:
			self.prefetch([path])
			if path in self._failures:
				raise ImportFailedError(self._failures[path])
			pkg = self._packages.get(path)
		if pkg is None:
			pkg = Package(path=path, name=default_package_name(path))
			self._packages[path] = pkg
		return pkg
