"""Map the identifier under the cursor to a documentation lookup key."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from acmegodoc.errors import (
	NotFoundError,
	UnexportedIdentifierError,
	UnresolvedIdentifierError,
	UnsupportedSymbolKindError,
)
from acmegodoc.gosrc.checker import node_key, node_text
from acmegodoc.gosrc.objects import ObjectKind
from acmegodoc.lookup.locator import ident_at_offset, import_at_offset, is_qualified_by_import
from acmegodoc.lookup.symbols import Builtin, Declaration, LookupKey, PackageRef, ResolvedSymbol, Usage

if TYPE_CHECKING:
	from acmegodoc.gosrc.loader import Program

logger = logging.getLogger(__name__)

_DOCUMENTED_KINDS = frozenset(
	{ObjectKind.CONST, ObjectKind.FUNC, ObjectKind.TYPE, ObjectKind.VAR, ObjectKind.NIL, ObjectKind.MEMBER}
)


class Resolver:
	"""
	Resolves byte offsets in the edited file of a program.

	Every lookup reads the program's tables without modifying them, so the
	same offset always yields the same key.

	"""

	def __init__(self, program: Program, current_import_path: str, *, exported_only: bool = False) -> None:
		"""
		Initialize the resolver.

		Args:
		        program: The loaded program
		        current_import_path: Import path of the package being edited
		        exported_only: Reject unexported identifiers

		"""
		self.program = program
		self.current_import_path = current_import_path
		self.exported_only = exported_only

	def resolve(self, offset: int) -> ResolvedSymbol:
		"""
		Resolve the import path or identifier at a byte offset.

		Raises:
		        NotFoundError: If nothing resolvable spans the offset
		        UnresolvedIdentifierError: If the identifier is in neither table
		        UnsupportedSymbolKindError: If the identifier names something undocumented

		"""
		tree = self.program.edited
		spec = import_at_offset(tree, offset)
		if spec is not None:
			return PackageRef(spec.path)

		ident = ident_at_offset(tree, offset)
		if ident is None:
			msg = f"no identifier at offset {offset}"
			raise NotFoundError(msg)

		name = node_text(ident)
		key = node_key(tree.filename, ident)
		info = self.program.info
		obj = info.uses.get(key)
		is_definition = obj is None
		if obj is None:
			obj = info.defs.get(key)
		if obj is None:
			msg = f"cannot find identifier {name} in file"
			raise UnresolvedIdentifierError(msg)

		if obj.pkg is None:
			return Builtin(obj.name)
		if obj.kind is ObjectKind.PKG_NAME:
			return PackageRef(obj.imported.path)
		if obj.kind not in _DOCUMENTED_KINDS:
			msg = f"cannot print documentation of {obj.kind.name.lower()} {obj.name}"
			raise UnsupportedSymbolKindError(msg)
		if self.exported_only and not obj.exported:
			msg = f"cannot print documentation of unexported identifier {obj.name}"
			raise UnexportedIdentifierError(msg)

		from_import = not obj.pkg.is_local or is_qualified_by_import(tree, ident, info.uses)
		path = self.current_import_path if obj.pkg.is_local else obj.pkg.path
		logger.debug("Resolved %s to %s %s in %s", name, obj.kind.name, obj.name, path)
		if is_definition:
			return Declaration(obj.kind, obj.name, path)
		return Usage(obj.kind, obj.name, path, is_from_import=from_import)

	def lookup(self, offset: int) -> LookupKey:
		"""Get the documentation key for the symbol at a byte offset."""
		return self.resolve(offset).key()
