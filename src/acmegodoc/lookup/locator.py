"""Find the syntax node under a byte offset."""

from __future__ import annotations

import logging
from enum import Enum, auto
from typing import TYPE_CHECKING

from acmegodoc.gosrc.checker import IDENT_NODE_TYPES, node_key, node_text
from acmegodoc.gosrc.objects import ObjectKind

if TYPE_CHECKING:
	from collections.abc import Callable, Mapping

	from tree_sitter import Node

	from acmegodoc.gosrc.checker import NodeKey
	from acmegodoc.gosrc.objects import GoObject
	from acmegodoc.gosrc.parser import ImportSpec, SyntaxTree

logger = logging.getLogger(__name__)


class Visit(Enum):
	"""What a tree walk does after visiting a node."""

	DESCEND = auto()
	SKIP = auto()
	STOP = auto()


def walk(node: Node, visit: Callable[[Node], Visit]) -> bool:
	"""
	Walk the tree below node depth first, in source order.

	Returns:
	        bool: False if the visitor stopped the walk

	"""
	action = visit(node)
	if action is Visit.STOP:
		return False
	if action is Visit.SKIP:
		return True
	return all(walk(child, visit) for child in node.children)


def _spans(node: Node, offset: int) -> bool:
	# End bytes count as part of the token so a cursor just after it still selects it
	return node.start_byte <= offset <= node.end_byte


def import_at_offset(tree: SyntaxTree, offset: int) -> ImportSpec | None:
	"""Return the import spec, alias and path literal included, spanning offset."""
	for spec in tree.imports:
		if spec.start <= offset <= spec.end:
			return spec
	return None


def ident_at_offset(tree: SyntaxTree, offset: int) -> Node | None:
	"""Return the first identifier token, in depth-first order, spanning offset."""
	found: list[Node] = []

	def visit(node: Node) -> Visit:
		if not _spans(node, offset):
			return Visit.SKIP
		if node.type in IDENT_NODE_TYPES:
			found.append(node)
			return Visit.STOP
		return Visit.DESCEND

	walk(tree.root, visit)
	if found:
		logger.debug("Identifier at offset %d: %s", offset, node_text(found[0]))
	return found[0] if found else None


def qualifier_of(tree: SyntaxTree, ident: Node) -> Node | None:
	"""
	Find the package-like qualifier an identifier is selected through.

	Returns the left operand of the selector expression or qualified type
	whose selected identifier is ident, when that operand is a plain
	identifier.

	"""
	found: list[Node] = []

	def visit(node: Node) -> Visit:
		if not node.start_byte <= ident.start_byte < node.end_byte:
			return Visit.SKIP
		if node.type == "selector_expression":
			left, selected = node.child_by_field_name("operand"), node.child_by_field_name("field")
		elif node.type == "qualified_type":
			left, selected = node.child_by_field_name("package"), node.child_by_field_name("name")
		else:
			return Visit.DESCEND
		if selected is not None and selected.start_byte == ident.start_byte and left is not None:
			if left.type in {"identifier", "package_identifier"}:
				found.append(left)
			return Visit.STOP
		return Visit.DESCEND

	walk(tree.root, visit)
	return found[0] if found else None


def is_qualified_by_import(tree: SyntaxTree, ident: Node, uses: Mapping[NodeKey, GoObject]) -> bool:
	"""
	Report whether ident is written as ``pkg.Name`` with pkg an imported package name.

	The qualifier must resolve to the import in uses; a local variable or
	parameter of the same name hides the import.

	"""
	qualifier = qualifier_of(tree, ident)
	if qualifier is None:
		return False
	obj = uses.get(node_key(tree.filename, qualifier))
	return obj is not None and obj.kind is ObjectKind.PKG_NAME
