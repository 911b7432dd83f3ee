"""Parse Go source files with tree-sitter."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from functools import cache
from typing import TYPE_CHECKING

from tree_sitter_language_pack import get_parser

from acmegodoc.errors import ParseError

if TYPE_CHECKING:
	from collections.abc import Iterator

	from tree_sitter import Node, Parser, Tree

logger = logging.getLogger(__name__)

TEST_PACKAGE_SUFFIX = "_test"

# Build constraint that excludes a file from every build
_IGNORE_CONSTRAINT = re.compile(rb"^\s*//\s*(?:go:build|\+build)\s+ignore\s*$", re.MULTILINE)
_PACKAGE_CLAUSE = re.compile(rb"^package\s", re.MULTILINE)


@dataclass(frozen=True)
class ImportSpec:
	"""One import of a Go file."""

	path: str
	"""Unquoted import path, e.g. ``net/http``."""

	alias: str | None
	"""Explicit name (``foo``, ``_`` or ``.``), or None."""

	start: int
	"""Byte offset of the spec (alias included)."""

	end: int
	"""Byte offset just past the path literal."""

	path_start: int
	"""Byte offset of the opening quote of the path literal."""

	node: Node = field(compare=False, repr=False)


@dataclass
class SyntaxTree:
	"""A parsed Go source file."""

	filename: str
	source: bytes
	tree: Tree = field(repr=False)
	package_name: str
	"""Package clause name with any ``_test`` suffix removed."""

	declared_package_name: str
	imports: list[ImportSpec] = field(default_factory=list)

	@property
	def root(self) -> Node:
		"""Root node of the tree."""
		return self.tree.root_node

	def text(self, node: Node) -> str:
		"""Source text of a node."""
		return self.source[node.start_byte : node.end_byte].decode("utf-8")


@cache
def _go_parser() -> Parser:
	return get_parser("go")


def normalize_package_name(name: str) -> str:
	"""Strip the test-package suffix so a test package resolves with its package."""
	if name.endswith(TEST_PACKAGE_SUFFIX) and len(name) > len(TEST_PACKAGE_SUFFIX):
		return name[: -len(TEST_PACKAGE_SUFFIX)]
	return name


def default_package_name(import_path: str) -> str:
	"""
	Guess the package name an import path binds when it has no alias.

	Go packages are conventionally named after the last path element.
	Major version suffixes (``/v2``), ``.vN`` gopkg.in suffixes and
	``go-`` or ``-go`` decorations are not part of the name.

	Args:
	        import_path: Unquoted import path

	Returns:
	        The package name

	"""
	elements = [e for e in import_path.split("/") if e]
	if not elements:
		return import_path
	name = elements[-1]
	if re.fullmatch(r"v[0-9]+", name) and len(elements) > 1:
		name = elements[-2]
	name = re.sub(r"\.v[0-9]+$", "", name)
	name = name.removeprefix("go-").removesuffix("-go")
	return re.sub(r"[^0-9A-Za-z_]", "_", name)


def is_ignored(source: bytes) -> bool:
	"""Report whether a file carries an ``ignore`` build constraint before its package clause."""
	clause = _PACKAGE_CLAUSE.search(source)
	head = source[: clause.start()] if clause else source
	return _IGNORE_CONSTRAINT.search(head) is not None


def iter_errors(node: Node) -> Iterator[Node]:
	"""Yield every error or missing node below node, in source order."""
	if node.type == "ERROR" or node.is_missing:
		yield node
		return
	if not node.has_error:
		return
	for child in node.children:
		yield from iter_errors(child)


def unquote(literal: str) -> str:
	"""Unquote a Go string literal (interpreted or raw)."""
	if len(literal) >= 2 and literal[0] == literal[-1] == "`":  # noqa: PLR2004
		return literal[1:-1]
	if len(literal) >= 2 and literal[0] == literal[-1] == '"':  # noqa: PLR2004
		body = literal[1:-1]
		if "\\" not in body:
			return body
		return body.encode("latin-1", "backslashreplace").decode("unicode_escape")
	return literal


def parse_source(filename: str, source: str | bytes) -> SyntaxTree:
	"""
	Parse one Go file.

	Args:
	        filename: Logical file name, used in diagnostics and as the tree key
	        source: File contents

	Returns:
	        The parsed syntax tree

	Raises:
	        ParseError: If the file has a syntax error or no package clause

	"""
	data = source.encode("utf-8") if isinstance(source, str) else source
	tree = _go_parser().parse(data)
	root = tree.root_node

	first_error = next(iter_errors(root), None)
	if first_error is not None:
		line, column = first_error.start_point
		if first_error.is_missing:
			message = f"syntax error: missing {first_error.type}"
		else:
			snippet = data[first_error.start_byte : first_error.end_byte].decode("utf-8", "replace")
			snippet = snippet.splitlines()[0] if snippet.strip() else snippet
			message = f"syntax error near {snippet[:20]!r}" if snippet else "syntax error"
		raise ParseError(filename, line + 1, column + 1, message)

	clause = next((c for c in root.named_children if c.type == "package_clause"), None)
	if clause is None:
		raise ParseError(filename, 1, 1, "expected 'package' clause")
	name_node = next(c for c in clause.named_children if c.type == "package_identifier")
	declared = data[name_node.start_byte : name_node.end_byte].decode("utf-8")

	syntax_tree = SyntaxTree(
		filename=filename,
		source=data,
		tree=tree,
		package_name=normalize_package_name(declared),
		declared_package_name=declared,
	)
	syntax_tree.imports = list(_collect_imports(syntax_tree))
	logger.debug(
		"Parsed %s: package %s, %d imports", filename, syntax_tree.package_name, len(syntax_tree.imports)
	)
	return syntax_tree


def _collect_imports(syntax_tree: SyntaxTree) -> Iterator[ImportSpec]:
	for decl in syntax_tree.root.named_children:
		if decl.type != "import_declaration":
			continue
		for child in decl.named_children:
			specs = child.named_children if child.type == "import_spec_list" else [child]
			for spec in specs:
				if spec.type != "import_spec":
					continue
				path_node = spec.child_by_field_name("path")
				name_node = spec.child_by_field_name("name")
				if path_node is None:
					continue
				yield ImportSpec(
					path=unquote(syntax_tree.text(path_node)),
					alias=syntax_tree.text(name_node) if name_node is not None else None,
					start=spec.start_byte,
					end=spec.end_byte,
					path_start=path_node.start_byte,
					node=spec,
				)
