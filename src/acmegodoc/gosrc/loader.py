"""Load the Go package of the edited file."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from acmegodoc.errors import TypeCheckError
from acmegodoc.gosrc.checker import Checker, Info
from acmegodoc.gosrc.importer import Importer
from acmegodoc.gosrc.objects import GoObject, Package
from acmegodoc.gosrc.parser import SyntaxTree, is_ignored, parse_source

if TYPE_CHECKING:
	from acmegodoc.utils.config_loader import ConfigLoader

logger = logging.getLogger(__name__)


@dataclass
class SourceFile:
	"""One member of a source set."""

	filename: str
	source: bytes
	is_buffer: bool = False


@dataclass
class SourceSet:
	"""
	The edited buffer plus the other files of its package.

	Exactly one member is the live buffer; the rest are read from disk.

	"""

	buffer: SourceFile
	siblings: list[SourceFile] = field(default_factory=list)

	@classmethod
	def from_directory(cls, directory: str | Path, filename: str, text: str, pattern: str = "*.go") -> SourceSet:
		"""
		Collect the files of a directory, substituting the edited buffer for its on-disk copy.

		Args:
		        directory: Directory of the edited file
		        filename: Name of the edited file
		        text: Current contents of the edited buffer
		        pattern: Glob pattern matching the package's files

		Returns:
		        SourceSet: The buffer and its siblings, in name order

		"""
		directory = Path(directory)
		edited = Path(filename).name
		siblings = []
		for path in sorted(directory.glob(pattern)):
			if path.name == edited or not path.is_file():
				continue
			siblings.append(SourceFile(filename=str(path), source=path.read_bytes()))
		logger.debug("Found %d sibling files in %s", len(siblings), directory)
		buffer = SourceFile(filename=str(directory / edited), source=text.encode("utf-8"), is_buffer=True)
		return cls(buffer=buffer, siblings=siblings)

	def __iter__(self):  # noqa: ANN204
		yield self.buffer
		yield from self.siblings


@dataclass
class Program:
	"""The parsed and resolved package containing the edited buffer."""

	files: list[SyntaxTree]
	edited: SyntaxTree
	package: Package
	info: Info

	def import_names(self, filename: str) -> dict[str, GoObject]:
		"""Names the imports of a file bind, mapped to their package name objects."""
		return self.info.import_names.get(filename, {})


def load_program(
	source_set: SourceSet, importer: Importer | None = None, config: ConfigLoader | None = None
) -> Program:
	"""
	Parse every file of the source set and resolve the package's identifiers.

	Args:
	        source_set: The buffer and its sibling files
	        importer: Resolves import paths (defaults to one built from config)
	        config: Configuration loader (optional)

	Returns:
	        Program: Syntax trees and resolution tables

	Raises:
	        ParseError: If any file fails to parse
	        TypeCheckError: If files disagree on their package or identifiers fail to resolve

	"""
	skip_ignored = config.get("loader.skip_ignored", True) if config is not None else True
	if importer is None:
		mode = config.get_importer_mode() if config is not None else "auto"
		importer = Importer(mode=mode, cwd=Path(source_set.buffer.filename).parent)

	files: list[SyntaxTree] = []
	edited: SyntaxTree | None = None
	for member in source_set:
		if skip_ignored and not member.is_buffer and is_ignored(member.source):
			logger.debug("Skipping %s: excluded by build constraint", member.filename)
			continue
		tree = parse_source(member.filename, member.source)
		files.append(tree)
		if member.is_buffer:
			edited = tree

	if edited is None:
		msg = "edited buffer was not loaded"
		raise TypeCheckError([msg])

	names = sorted({f.package_name for f in files})
	if len(names) > 1:
		conflicting = next(f for f in files if f.package_name != edited.package_name)
		msg = (
			f"found packages {edited.package_name} ({Path(edited.filename).name}) "
			f"and {conflicting.package_name} ({Path(conflicting.filename).name})"
		)
		raise TypeCheckError([msg])

	importer.prefetch(spec.path for f in files for spec in f.imports)
	package = Package(path="", name=edited.package_name, is_local=True)
	checker = Checker(package, importer)
	info = checker.check(files)
	if checker.errors:
		raise TypeCheckError(checker.errors)

	logger.debug("Loaded package %s from %d files", package.name, len(files))
	return Program(files=files, edited=edited, package=package, info=info)
