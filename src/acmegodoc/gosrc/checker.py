"""
Whole-package name resolution for Go.

The checker walks every file of one package and records, for each
identifier, the object it declares (``Info.defs``) or refers to
(``Info.uses``). It infers just enough of the type of each expression to
resolve field selectors and method calls.

Imported packages are loaded on demand: when ``go list`` reported their
source files, the first qualified identifier ``pkg.Name`` parses them and
collects their package-level declarations, so that selectors on values of
imported types find their fields and methods. Function bodies of imported
packages are never checked, and errors in them are not reported. Without
sources, ``pkg.Name`` refers to a placeholder member whose type is unknown.

"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from acmegodoc.errors import ParseError
from acmegodoc.gosrc.importer import ImportFailedError
from acmegodoc.gosrc.objects import GoObject, ObjectKind, Package, Scope, new_universe
from acmegodoc.gosrc.parser import parse_source
from acmegodoc.gosrc.types import (
	BASIC_TYPES,
	Array,
	Chan,
	Interface,
	Map,
	Named,
	Pointer,
	Signature,
	Slice,
	Struct,
	StructField,
	Tuple,
	Type,
	TypeParam,
	deref,
	element,
	range_types,
	underlying,
)

if TYPE_CHECKING:
	from collections.abc import Iterator

	from tree_sitter import Node

	from acmegodoc.gosrc.importer import Importer
	from acmegodoc.gosrc.parser import SyntaxTree

logger = logging.getLogger(__name__)

NodeKey = tuple[str, int, int]

# Tokens that name something; true, false, nil and iota are keywords to the grammar
IDENT_NODE_TYPES = frozenset(
	{
		"identifier",
		"type_identifier",
		"field_identifier",
		"package_identifier",
		"label_name",
		"true",
		"false",
		"nil",
		"iota",
	}
)

TYPE_NODE_TYPES = frozenset(
	{
		"type_identifier",
		"qualified_type",
		"generic_type",
		"pointer_type",
		"slice_type",
		"array_type",
		"implicit_length_array_type",
		"map_type",
		"channel_type",
		"function_type",
		"struct_type",
		"interface_type",
		"parenthesized_type",
		"negated_type",
	}
)

# Declared names: values, parameters and type parameters are identifiers, struct fields field identifiers
NAME_NODE_TYPES = frozenset({"identifier", "field_identifier"})

_COMPARISON_OPERATORS = frozenset({"==", "!=", "<", "<=", ">", ">=", "&&", "||"})


def node_key(filename: str, node: Node) -> NodeKey:
	"""Key identifying a node across the program's files."""
	return (filename, node.start_byte, node.end_byte)


def node_text(node: Node) -> str:
	return node.text.decode("utf-8") if node.text is not None else ""


def field_children(node: Node, field_name: str, types: frozenset[str] | None = None) -> list[Node]:
	"""
	Named children of node stored under field_name.

	A field covering a comma-separated list also tags the commas, so only
	named children are kept, optionally restricted to the given node types.

	"""
	found: list[Node] = []
	for i, child in enumerate(node.children):
		if not child.is_named or node.field_name_for_child(i) != field_name:
			continue
		if types is None or child.type in types:
			found.append(child)
	return found


@dataclass
class Info:
	"""Resolution tables filled in by the checker."""

	defs: dict[NodeKey, GoObject] = field(default_factory=dict)
	uses: dict[NodeKey, GoObject] = field(default_factory=dict)
	import_names: dict[str, dict[str, GoObject]] = field(default_factory=dict)
	"""Per file: names bound by its imports."""


@dataclass
class _Decl:
	"""Where a package-level object is declared."""

	file: SyntaxTree
	node: Node
	scope: Scope
	extra: Any = None
	owner: Checker | None = None
	"""The checker of the package declaring the object."""


class _TypeValue(Type):
	"""An expression that denotes a type rather than a value."""

	def __init__(self, type_: Type | None) -> None:
		self.type = type_


class _PackageValue(Type):
	def __init__(self, pkg: Package) -> None:
		self.pkg = pkg


class _BuiltinValue(Type):
	def __init__(self, name: str) -> None:
		self.name = name


def _value(t: Type | None) -> Type | None:
	"""Strip expression markers, keeping only real value types."""
	if isinstance(t, _PackageValue | _BuiltinValue | _TypeValue):
		return None
	return t


class Checker:
	"""Resolves the identifiers of one package."""

	def __init__(self, package: Package, importer: Importer) -> None:
		"""
		Initialize the checker.

		Args:
		        package: The local package the files belong to
		        importer: Maps import paths to packages

		"""
		self.pkg = package
		self.importer = importer
		self.universe = new_universe()
		self.pkg_scope = Scope(self.universe, kind="package")
		self.info = Info()
		self.errors: list[str] = []

		self._file: SyntaxTree | None = None
		self._file_scopes: dict[str, Scope] = {}
		self._dot_imports: dict[str, list[Package]] = {}
		self._method_decls: list[tuple[SyntaxTree, Node, GoObject]] = []
		self._done_specs: set[NodeKey] = set()
		self._funcs: dict[NodeKey, tuple[Scope, Signature]] = {}
		self._resolving: set[int] = set()
		self._labels: list[Scope] = []

	# ------------------------------------------------------------------
	# Driver
	# ------------------------------------------------------------------

	def check(self, files: list[SyntaxTree]) -> Info:
		"""
		Resolve every identifier of files.

		Errors are collected in ``self.errors`` rather than raised, so that
		all of them can be reported together.

		"""
		self.declare(files)
		self._check_import_conflicts()
		for file in files:
			with self._in_file(file):
				for decl in file.root.named_children:
					self._check_decl(decl, self._file_scopes[file.filename])
		logger.debug(
			"Checked package %s: %d defs, %d uses, %d errors",
			self.pkg.name,
			len(self.info.defs),
			len(self.info.uses),
			len(self.errors),
		)
		return self.info

	def declare(self, files: list[SyntaxTree]) -> Scope:
		"""
		Collect the package-level declarations of files without checking them.

		Returns:
		        Scope: The package scope

		"""
		self.importer.prefetch(spec.path for file in files for spec in file.imports)
		for file in files:
			with self._in_file(file):
				self._collect_imports(file)
		for file in files:
			with self._in_file(file):
				self._collect_objects(file)
		self._associate_methods()
		return self.pkg_scope

	@contextmanager
	def _in_file(self, file: SyntaxTree) -> Iterator[None]:
		previous = self._file
		self._file = file
		try:
			yield
		finally:
			self._file = previous

	@property
	def _filename(self) -> str:
		return self._file.filename if self._file is not None else ""

	def _error(self, node: Node, message: str) -> None:
		line, column = node.start_point
		error = f"{self._filename}:{line + 1}:{column + 1}: {message}"
		if error not in self.errors:
			self.errors.append(error)

	def _def(self, node: Node, obj: GoObject) -> None:
		self.info.defs[node_key(self._filename, node)] = obj

	def _use(self, node: Node, obj: GoObject) -> None:
		self.info.uses[node_key(self._filename, node)] = obj

	def _decl(self, file: SyntaxTree, node: Node, scope: Scope, extra: Any = None) -> _Decl:
		return _Decl(file, node, scope, extra, owner=self)

	def _declare(self, scope: Scope, node: Node, obj: GoObject) -> None:
		self._def(node, obj)
		existing = scope.insert(obj)
		if existing is not None:
			self._error(node, f"{obj.name} redeclared in this block")

	# ------------------------------------------------------------------
	# Package-level collection
	# ------------------------------------------------------------------

	def _collect_imports(self, file: SyntaxTree) -> None:
		file_scope = Scope(self.pkg_scope, kind="file")
		self._file_scopes[file.filename] = file_scope
		names = self.info.import_names.setdefault(file.filename, {})
		for spec in file.imports:
			try:
				imported = self.importer.import_package(spec.path)
			except ImportFailedError as e:
				self._error(spec.node, f"could not import {spec.path} ({e})")
				continue
			if spec.alias == ".":
				self._dot_imports.setdefault(file.filename, []).append(imported)
				continue
			if spec.alias == "_":
				continue
			name = spec.alias or imported.name
			obj = GoObject(ObjectKind.PKG_NAME, name, self.pkg, imported=imported)
			name_node = spec.node.child_by_field_name("name")
			if name_node is not None:
				self._def(name_node, obj)
			if file_scope.insert(obj) is not None:
				self._error(spec.node, f"{name} redeclared in this block")
				continue
			names[name] = obj

	def _collect_objects(self, file: SyntaxTree) -> None:
		file_scope = self._file_scopes[file.filename]
		for decl in file.root.named_children:
			if decl.type == "function_declaration":
				name_node = decl.child_by_field_name("name")
				if name_node is None:
					continue
				obj = GoObject(ObjectKind.FUNC, node_text(name_node), self.pkg)
				obj.decl_node = self._decl(file, decl, file_scope)
				if obj.name == "init":
					self._def(name_node, obj)
				else:
					self._declare(self.pkg_scope, name_node, obj)
			elif decl.type == "method_declaration":
				name_node = decl.child_by_field_name("name")
				if name_node is None:
					continue
				obj = GoObject(ObjectKind.FUNC, node_text(name_node), self.pkg, is_method=True)
				obj.decl_node = self._decl(file, decl, file_scope)
				self._def(name_node, obj)
				self._method_decls.append((file, decl, obj))
			elif decl.type == "type_declaration":
				for spec in self._type_specs(decl):
					self._declare_type_spec(spec, self.pkg_scope, file_scope)
			elif decl.type in {"var_declaration", "const_declaration"}:
				for spec, carried in self._value_specs(decl):
					kind = ObjectKind.CONST if decl.type == "const_declaration" else ObjectKind.VAR
					for name_node in field_children(spec, "name", NAME_NODE_TYPES):
						obj = GoObject(kind, node_text(name_node), self.pkg)
						obj.decl_node = self._decl(file, spec, file_scope, carried)
						self._declare(self.pkg_scope, name_node, obj)

	def _check_import_conflicts(self) -> None:
		for filename, names in self.info.import_names.items():
			for name, obj in names.items():
				if self.pkg_scope.lookup_local(name) is not None:
					self.errors.append(
						f"{filename}: {name} already declared through import of package {obj.imported.path}"
					)

	def _associate_methods(self) -> None:
		for file, decl, obj in self._method_decls:
			with self._in_file(file):
				base = self._receiver_base(decl)
				if base is None:
					continue
				type_obj = self.pkg_scope.lookup_local(node_text(base))
				if type_obj is None or type_obj.kind is not ObjectKind.TYPE:
					self._error(base, f"undefined: {node_text(base)}")
					continue
				if obj.name in type_obj.methods and obj.name != "_":
					self._error(decl.child_by_field_name("name"), f"method {type_obj.name}.{obj.name} already declared")
					continue
				type_obj.methods[obj.name] = obj

	@staticmethod
	def _receiver_base(decl: Node) -> Node | None:
		receiver = decl.child_by_field_name("receiver")
		if receiver is None:
			return None
		param = next((c for c in receiver.named_children if c.type == "parameter_declaration"), None)
		node = param.child_by_field_name("type") if param is not None else None
		while node is not None and node.type in {"pointer_type", "parenthesized_type", "generic_type"}:
			if node.type == "generic_type":
				node = node.child_by_field_name("type")
			else:
				node = node.named_children[0] if node.named_children else None
		if node is not None and node.type in {"type_identifier", "identifier"}:
			return node
		return None

	@staticmethod
	def _type_specs(decl: Node) -> Iterator[Node]:
		for child in decl.named_children:
			if child.type in {"type_spec", "type_alias"}:
				yield child
			elif child.type == "type_spec_list":
				yield from (c for c in child.named_children if c.type in {"type_spec", "type_alias"})

	@staticmethod
	def _value_specs(decl: Node) -> Iterator[tuple[Node, Node | None]]:
		"""Yield each spec with the spec an omitted const expression repeats."""
		previous: Node | None = None
		for child in decl.named_children:
			specs = child.named_children if child.type in {"var_spec_list", "const_spec_list"} else [child]
			for spec in specs:
				if spec.type not in {"var_spec", "const_spec"}:
					continue
				if spec.child_by_field_name("value") is not None or spec.child_by_field_name("type") is not None:
					previous = spec
					yield spec, None
				else:
					yield spec, previous

	def _declare_type_spec(self, spec: Node, scope: Scope, lookup_scope: Scope) -> GoObject | None:
		name_node = spec.child_by_field_name("name")
		if name_node is None:
			return None
		obj = GoObject(ObjectKind.TYPE, node_text(name_node), self.pkg)
		obj.decl_node = self._decl(self._file, spec, lookup_scope)
		if spec.type == "type_alias":
			obj.type = None
		else:
			named = Named(obj)
			file = self._file

			def compute() -> Type | None:
				with self._in_file(file):
					return underlying(self._resolve_spec_type(spec, obj.decl_node.scope))

			named.compute = compute
			obj.type = named
		self._declare(scope, name_node, obj)
		return obj

	def _resolve_spec_type(self, spec: Node, scope: Scope) -> Type | None:
		type_params = spec.child_by_field_name("type_parameters")
		if type_params is not None:
			scope = Scope(scope, kind="type")
			self._declare_type_params(type_params, scope)
		type_node = spec.child_by_field_name("type")
		return self._resolve_type(type_node, scope) if type_node is not None else None

	# ------------------------------------------------------------------
	# Lazily computed object types
	# ------------------------------------------------------------------

	def _object_type(self, obj: GoObject) -> Type | None:
		if obj.type is not None or not isinstance(obj.decl_node, _Decl) or id(obj) in self._resolving:
			return obj.type
		decl: _Decl = obj.decl_node
		if decl.owner is not None and decl.owner is not self:
			return decl.owner._object_type(obj)
		self._resolving.add(id(obj))
		try:
			with self._in_file(decl.file):
				if obj.kind is ObjectKind.FUNC:
					_, signature = self._func_signature(decl.node, decl.scope)
					obj.type = signature
				elif obj.kind is ObjectKind.TYPE:
					# Alias: the aliased type itself
					obj.type = self._resolve_spec_type(decl.node, decl.scope)
				elif obj.kind in {ObjectKind.VAR, ObjectKind.CONST}:
					self._check_value_spec(decl.node, decl.scope, decl.extra, package_level=True)
		finally:
			self._resolving.discard(id(obj))
		return obj.type

	def _func_signature(self, decl: Node, scope: Scope) -> tuple[Scope, Signature]:
		"""Build the function scope and signature of a declaration, once."""
		key = node_key(self._filename, decl)
		cached = self._funcs.get(key)
		if cached is not None:
			return cached
		func_scope = Scope(scope, kind="func")
		receiver = decl.child_by_field_name("receiver")
		if receiver is not None:
			self._declare_receiver_type_params(receiver, func_scope)
		type_params = decl.child_by_field_name("type_parameters")
		if type_params is not None:
			self._declare_type_params(type_params, func_scope)
		if receiver is not None:
			self._declare_params(receiver, func_scope)
		signature = self._signature(decl, func_scope, declare=True)
		self._funcs[key] = (func_scope, signature)
		return func_scope, signature

	def _declare_receiver_type_params(self, receiver: Node, scope: Scope) -> None:
		for param in receiver.named_children:
			node = param.child_by_field_name("type")
			while node is not None and node.type in {"pointer_type", "parenthesized_type"}:
				node = node.named_children[0] if node.named_children else None
			if node is None or node.type != "generic_type":
				continue
			args = node.child_by_field_name("type_arguments")
			for ident in self._iter_idents(args, {"type_identifier", "identifier"}):
				obj = GoObject(ObjectKind.TYPE, node_text(ident), self.pkg)
				obj.type = TypeParam(obj)
				self._declare(scope, ident, obj)

	def _declare_type_params(self, type_params: Node, scope: Scope) -> None:
		declared: list[tuple[GoObject, Node | None]] = []
		for param in type_params.named_children:
			if param.type != "type_parameter_declaration":
				continue
			constraint = param.child_by_field_name("type")
			for name_node in field_children(param, "name", NAME_NODE_TYPES):
				obj = GoObject(ObjectKind.TYPE, node_text(name_node), self.pkg)
				obj.type = TypeParam(obj)
				self._declare(scope, name_node, obj)
				declared.append((obj, constraint))
		# Constraints may refer to any of the parameters
		for obj, constraint in declared:
			if constraint is not None:
				obj.type.constraint = self._resolve_type(constraint, scope)

	# ------------------------------------------------------------------
	# Declarations
	# ------------------------------------------------------------------

	def _check_decl(self, decl: Node, scope: Scope) -> None:
		if decl.type in {"function_declaration", "method_declaration"}:
			self._check_func_decl(decl, scope)
		elif decl.type == "type_declaration":
			for spec in self._type_specs(decl):
				name_node = spec.child_by_field_name("name")
				obj = self.info.defs.get(node_key(self._filename, name_node)) if name_node is not None else None
				if obj is None:
					continue
				if isinstance(obj.type, Named):
					_ = obj.type.underlying
				else:
					self._object_type(obj)
		elif decl.type in {"var_declaration", "const_declaration"}:
			for spec, carried in self._value_specs(decl):
				self._check_value_spec(spec, scope, carried, package_level=True)

	def _check_func_decl(self, decl: Node, scope: Scope) -> None:
		func_scope, signature = self._func_signature(decl, scope)
		name_node = decl.child_by_field_name("name")
		if name_node is not None:
			obj = self.info.defs.get(node_key(self._filename, name_node))
			if obj is not None and obj.type is None:
				obj.type = signature
		body = decl.child_by_field_name("body")
		if body is not None:
			self._check_body(body, func_scope)

	def _check_body(self, body: Node, func_scope: Scope) -> None:
		labels = Scope(None, kind="labels")
		for labeled in self._iter_labeled(body):
			label = labeled.child_by_field_name("label")
			if label is not None:
				self._declare(labels, label, GoObject(ObjectKind.LABEL, node_text(label), self.pkg))
		self._labels.append(labels)
		try:
			self._check_stmts(body.named_children, func_scope)
		finally:
			self._labels.pop()

	def _iter_labeled(self, node: Node) -> Iterator[Node]:
		for child in node.named_children:
			if child.type == "func_literal":
				continue
			if child.type == "labeled_statement":
				yield child
			yield from self._iter_labeled(child)

	def _check_value_spec(
		self, spec: Node, scope: Scope, carried: Node | None, *, package_level: bool = False
	) -> list[GoObject]:
		"""Resolve a var or const spec; local specs also declare their names."""
		key = node_key(self._filename, spec)
		if package_level and key in self._done_specs:
			return []
		self._done_specs.add(key)

		source = carried if carried is not None else spec
		type_node = source.child_by_field_name("type")
		value_node = source.child_by_field_name("value")
		declared = self._resolve_type(type_node, scope) if type_node is not None else None
		values = [self._expr(v, scope) for v in value_node.named_children] if value_node is not None else []
		value_types = self._spread(values)

		names = field_children(spec, "name", NAME_NODE_TYPES)
		kind = ObjectKind.CONST if spec.type == "const_spec" else ObjectKind.VAR
		objs: list[GoObject] = []
		for i, name_node in enumerate(names):
			if package_level:
				obj = self.info.defs.get(node_key(self._filename, name_node))
				if obj is None:
					continue
			else:
				obj = GoObject(kind, node_text(name_node), self.pkg)
			if obj.type is None:
				obj.type = declared if declared is not None else (value_types[i] if i < len(value_types) else None)
			objs.append(obj)
		if not package_level:
			# Local names come into scope after the whole spec
			for name_node, obj in zip(names, objs, strict=False):
				self._declare(scope, name_node, obj)
		return objs

	@staticmethod
	def _spread(values: list[Type | None]) -> list[Type | None]:
		"""Expand a single multi-value expression into its component types."""
		if len(values) == 1 and isinstance(values[0], Tuple):
			return list(values[0].types)
		return [_value(v) for v in values]

	# ------------------------------------------------------------------
	# Statements
	# ------------------------------------------------------------------

	def _check_stmts(self, stmts: list[Node], scope: Scope) -> None:
		for stmt in stmts:
			self._stmt(stmt, scope)

	def _stmt(self, node: Node, scope: Scope) -> None:  # noqa: C901, PLR0912, PLR0915
		kind = node.type
		if kind in {"comment", "empty_statement", "fallthrough_statement"}:
			return
		if kind == "block":
			self._check_stmts(node.named_children, Scope(scope))
		elif kind == "statement_list":
			self._check_stmts(node.named_children, scope)
		elif kind == "expression_statement":
			for child in node.named_children:
				self._expr(child, scope)
		elif kind == "short_var_declaration":
			right = node.child_by_field_name("right")
			values = right.named_children if right is not None else []
			self._short_var_decl(node.child_by_field_name("left"), values, scope)
		elif kind == "var_declaration" or kind == "const_declaration":
			for spec, carried in self._value_specs(node):
				self._check_value_spec(spec, scope, carried)
		elif kind == "type_declaration":
			for spec in self._type_specs(node):
				obj = self._declare_type_spec(spec, scope, scope)
				if obj is None:
					continue
				if isinstance(obj.type, Named):
					_ = obj.type.underlying
				else:
					self._object_type(obj)
		elif kind == "if_statement":
			if_scope = Scope(scope)
			initializer = node.child_by_field_name("initializer")
			if initializer is not None:
				self._stmt(initializer, if_scope)
			condition = node.child_by_field_name("condition")
			if condition is not None:
				self._expr(condition, if_scope)
			consequence = node.child_by_field_name("consequence")
			if consequence is not None:
				self._stmt(consequence, if_scope)
			alternative = node.child_by_field_name("alternative")
			if alternative is not None:
				self._stmt(alternative, if_scope)
		elif kind == "for_statement":
			self._for_stmt(node, scope)
		elif kind == "expression_switch_statement":
			switch_scope = Scope(scope)
			initializer = node.child_by_field_name("initializer")
			if initializer is not None:
				self._stmt(initializer, switch_scope)
			value = node.child_by_field_name("value")
			if value is not None:
				self._expr(value, switch_scope)
			for clause in node.named_children:
				if clause.type in {"expression_case", "default_case"}:
					clause_scope = Scope(switch_scope)
					values = clause.child_by_field_name("value")
					if values is not None:
						for v in values.named_children:
							self._expr(v, switch_scope)
					self._check_stmts(self._case_body(clause), clause_scope)
		elif kind == "type_switch_statement":
			self._type_switch(node, scope)
		elif kind == "select_statement":
			for clause in node.named_children:
				if clause.type not in {"communication_case", "default_case"}:
					continue
				clause_scope = Scope(scope)
				communication = clause.child_by_field_name("communication")
				if communication is not None:
					self._stmt(communication, clause_scope)
				self._check_stmts(self._case_body(clause), clause_scope)
		elif kind == "receive_statement":
			left = node.child_by_field_name("left")
			right = node.child_by_field_name("right")
			if left is not None and self._has_token(node, ":="):
				self._short_var_decl(left, [right] if right is not None else [], scope)
			else:
				if left is not None:
					self._expr(left, scope)
				if right is not None:
					self._expr(right, scope)
		elif kind == "labeled_statement":
			label = node.child_by_field_name("label")
			for child in node.named_children:
				if label is None or child.start_byte != label.start_byte:
					self._stmt(child, scope)
		elif kind in {"break_statement", "continue_statement", "goto_statement"}:
			for label in node.named_children:
				if label.type == "label_name":
					self._use_label(label)
		elif kind in {"return_statement", "go_statement", "defer_statement", "inc_statement", "dec_statement"}:
			for child in node.named_children:
				self._expr(child, scope)
		elif kind in {"assignment_statement", "send_statement"}:
			for child in node.named_children:
				self._expr(child, scope)
		else:
			self._walk_unknown(node, scope)

	def _use_label(self, label: Node) -> None:
		obj = self._labels[-1].lookup_local(node_text(label)) if self._labels else None
		if obj is None:
			self._error(label, f"label {node_text(label)} not defined")
			return
		self._use(label, obj)

	@staticmethod
	def _has_token(node: Node, token: str) -> bool:
		return any(not c.is_named and c.type == token for c in node.children)

	@staticmethod
	def _case_body(clause: Node) -> list[Node]:
		"""Statements of a case clause: everything after its colon."""
		body: list[Node] = []
		seen_colon = False
		for child in clause.children:
			if seen_colon and child.is_named:
				body.append(child)
			elif child.type == ":":
				seen_colon = True
		return body

	def _short_var_decl(self, left: Node | None, right: list[Node], scope: Scope) -> None:
		types = self._spread([self._expr(v, scope) for v in right])
		if len(right) == 1 and left is not None:
			types = self._comma_ok(right[0], types, len(left.named_children))
		if left is None:
			return
		new: list[tuple[Node, GoObject]] = []
		for i, ident in enumerate(left.named_children):
			if ident.type != "identifier":
				self._expr(ident, scope)
				continue
			name = node_text(ident)
			existing = scope.lookup_local(name)
			if existing is not None and name != "_":
				self._use(ident, existing)
				continue
			obj = GoObject(ObjectKind.VAR, name, self.pkg, type=types[i] if i < len(types) else None)
			new.append((ident, obj))
		for ident, obj in new:
			self._declare(scope, ident, obj)

	@staticmethod
	def _comma_ok(expr: Node, types: list[Type | None], count: int) -> list[Type | None]:
		"""Types of `v, ok := m[k]`, `x.(T)` and `<-ch` forms."""
		if count == 2 and len(types) == 1 and expr.type in {  # noqa: PLR2004
			"index_expression",
			"type_assertion_expression",
			"unary_expression",
		}:
			return [types[0], BASIC_TYPES["bool"]]
		return types

	def _for_stmt(self, node: Node, scope: Scope) -> None:
		for_scope = Scope(scope)
		body = node.child_by_field_name("body")
		for child in node.named_children:
			if body is not None and child.start_byte == body.start_byte:
				continue
			if child.type == "for_clause":
				for field_name in ("initializer", "condition", "update"):
					part = child.child_by_field_name(field_name)
					if part is None:
						continue
					if field_name == "condition":
						self._expr(part, for_scope)
					else:
						self._stmt(part, for_scope)
			elif child.type == "range_clause":
				right = child.child_by_field_name("right")
				left = child.child_by_field_name("left")
				range_type = self._expr(right, for_scope) if right is not None else None
				if left is None:
					continue
				if self._has_token(child, ":="):
					key_type, value_type = range_types(_value(range_type))
					for ident, t in zip(left.named_children, (key_type, value_type), strict=False):
						self._declare(for_scope, ident, GoObject(ObjectKind.VAR, node_text(ident), self.pkg, type=t))
				else:
					for target in left.named_children:
						self._expr(target, for_scope)
			elif child.type != "comment":
				self._expr(child, for_scope)
		if body is not None:
			self._stmt(body, for_scope)

	def _type_switch(self, node: Node, scope: Scope) -> None:
		switch_scope = Scope(scope)
		initializer = node.child_by_field_name("initializer")
		if initializer is not None:
			self._stmt(initializer, switch_scope)
		value = node.child_by_field_name("value")
		value_type = _value(self._expr(value, switch_scope)) if value is not None else None
		alias_list = node.child_by_field_name("alias")
		alias = alias_list.named_children[0] if alias_list is not None and alias_list.named_children else None
		if alias is not None:
			self._def(alias, GoObject(ObjectKind.VAR, node_text(alias), self.pkg, type=value_type))
		for clause in node.named_children:
			if clause.type not in {"type_case", "default_case"}:
				continue
			clause_scope = Scope(switch_scope)
			case_types = [self._resolve_type(t, switch_scope) for t in field_children(clause, "type")]
			if alias is not None:
				alias_type = case_types[0] if len(case_types) == 1 else value_type
				clause_scope.insert(GoObject(ObjectKind.VAR, node_text(alias), self.pkg, type=alias_type))
			self._check_stmts(self._case_body(clause), clause_scope)

	def _walk_unknown(self, node: Node, scope: Scope) -> None:
		for child in node.named_children:
			if child.type in TYPE_NODE_TYPES:
				self._resolve_type(child, scope)
			elif child.type == "block" or child.type.endswith("_statement"):
				self._stmt(child, scope)
			else:
				self._expr(child, scope)

	# ------------------------------------------------------------------
	# Expressions
	# ------------------------------------------------------------------

	def _lookup(self, node: Node, scope: Scope, *, report: bool = True) -> GoObject | None:
		name = node_text(node)
		obj = scope.lookup(name)
		if obj is None:
			obj = self._dot_imported(name)
		if obj is None:
			if report:
				self._error(node, f"undefined: {name}")
			return None
		self._use(node, obj)
		return obj

	def _dot_imported(self, name: str) -> GoObject | None:
		packages = self._dot_imports.get(self._filename)
		if not packages:
			return None
		for pkg in packages:
			scope = self._package_scope(pkg)
			obj = scope.lookup_local(name) if scope is not None else None
			if obj is not None and obj.exported:
				return obj
		# Without sources the name is assumed to come from the first dot import
		return packages[0].member(name)

	def _member(self, pkg: Package, name: str) -> GoObject:
		"""The object an imported package exports under name."""
		scope = self._package_scope(pkg)
		obj = scope.lookup_local(name) if scope is not None else None
		if obj is not None and obj.exported:
			return obj
		return pkg.member(name)

	def _package_scope(self, pkg: Package) -> Scope | None:
		"""
		Load the package-level declarations of an imported package.

		The declarations are collected once per package, by a checker of
		their own, and kept on the package.

		"""
		if pkg.is_local or pkg.dir is None or not pkg.files:
			return None
		if pkg.scope is None:
			files: list[SyntaxTree] = []
			for name in pkg.files:
				path = Path(pkg.dir) / name
				try:
					files.append(parse_source(str(path), path.read_bytes()))
				except (OSError, ParseError) as e:
					logger.debug("Skipping %s of package %s: %s", name, pkg.path, e)
			checker = Checker(pkg, self.importer)
			pkg.scope = checker.pkg_scope
			checker.declare(files)
			logger.debug("Loaded %d declarations of package %s", len(pkg.scope.names), pkg.path)
		return pkg.scope

	def _object_value(self, obj: GoObject) -> Type | None:
		if obj.kind is ObjectKind.TYPE:
			return _TypeValue(self._object_type(obj))
		if obj.kind is ObjectKind.PKG_NAME:
			return _PackageValue(obj.imported)
		if obj.kind is ObjectKind.BUILTIN:
			return _BuiltinValue(obj.name)
		if obj.kind is ObjectKind.MEMBER:
			return None
		return self._object_type(obj)

	def _expr(self, node: Node | None, scope: Scope) -> Type | None:  # noqa: C901, PLR0911, PLR0912
		if node is None:
			return None
		kind = node.type
		if kind in {"identifier", "true", "false", "nil", "iota"}:
			if node_text(node) == "_":
				return None
			obj = self._lookup(node, scope)
			return self._object_value(obj) if obj is not None else None
		if kind == "int_literal":
			return BASIC_TYPES["int"]
		if kind == "float_literal":
			return BASIC_TYPES["float64"]
		if kind == "imaginary_literal":
			return BASIC_TYPES["complex128"]
		if kind == "rune_literal":
			return BASIC_TYPES["int32"]
		if kind in {"interpreted_string_literal", "raw_string_literal"}:
			return BASIC_TYPES["string"]
		if kind in {"parenthesized_expression", "literal_element"}:
			inner = node.named_children
			return self._expr(inner[0], scope) if inner else None
		if kind == "selector_expression":
			return self._selector(node, scope)
		if kind == "call_expression":
			return self._call(node, scope)
		if kind == "composite_literal":
			type_node = node.child_by_field_name("type")
			literal_type = self._resolve_type(type_node, scope) if type_node is not None else None
			body = node.child_by_field_name("body")
			if body is not None:
				self._literal_value(body, literal_type, scope)
			return literal_type
		if kind == "func_literal":
			func_scope = Scope(scope, kind="func")
			signature = self._signature(node, func_scope, declare=True)
			body = node.child_by_field_name("body")
			if body is not None:
				self._check_body(body, func_scope)
			return signature
		if kind == "unary_expression":
			return self._unary(node, scope)
		if kind == "binary_expression":
			left = self._expr(node.child_by_field_name("left"), scope)
			right = self._expr(node.child_by_field_name("right"), scope)
			operator = node.child_by_field_name("operator")
			if operator is not None and operator.type in _COMPARISON_OPERATORS:
				return BASIC_TYPES["bool"]
			return _value(left) or _value(right)
		if kind == "index_expression":
			operand = self._expr(node.child_by_field_name("operand"), scope)
			index = node.child_by_field_name("index")
			if index is not None:
				self._type_or_expr(index, scope)
			if isinstance(operand, _TypeValue | Signature):
				return operand
			return element(_value(operand))
		if kind == "slice_expression":
			operand = _value(self._expr(node.child_by_field_name("operand"), scope))
			for child in node.named_children[1:]:
				self._expr(child, scope)
			u = underlying(deref(operand))
			if isinstance(u, Array):
				return Slice(u.elem)
			return operand
		if kind == "type_assertion_expression":
			self._expr(node.child_by_field_name("operand"), scope)
			type_node = node.child_by_field_name("type")
			return self._resolve_type(type_node, scope) if type_node is not None else None
		if kind == "type_conversion_expression":
			target = self._resolve_type(node.child_by_field_name("type"), scope)
			self._expr(node.child_by_field_name("operand"), scope)
			return target
		if kind == "type_instantiation_expression":
			type_node = node.child_by_field_name("type")
			if self._is_value_selector(type_node, scope):
				# r.m[k] inside a block parses as an instantiation of the qualified type r.m
				operand = self._field_or_method(
					self._object_value(self._lookup(type_node.child_by_field_name("package"), scope)),
					type_node.child_by_field_name("name"),
				)
				for child in node.named_children[1:]:
					self._type_or_expr(child, scope)
				return element(_value(operand))
			base = self._resolve_type(type_node, scope)
			for child in node.named_children[1:]:
				self._type_or_expr(child, scope)
			return _TypeValue(base)
		if kind in TYPE_NODE_TYPES:
			return _TypeValue(self._resolve_type(node, scope))
		for child in node.named_children:
			self._type_or_expr(child, scope)
		return None

	@staticmethod
	def _is_value_selector(node: Node | None, scope: Scope) -> bool:
		"""Report whether a qualified type is really ``x.f`` with x a value."""
		if node is None or node.type != "qualified_type" or node.child_by_field_name("name") is None:
			return False
		package = node.child_by_field_name("package")
		obj = scope.lookup(node_text(package)) if package is not None else None
		return obj is not None and obj.kind is not ObjectKind.PKG_NAME

	def _type_or_expr(self, node: Node, scope: Scope) -> Type | None:
		if node.type in TYPE_NODE_TYPES:
			return _TypeValue(self._resolve_type(node, scope))
		return self._expr(node, scope)

	def _unary(self, node: Node, scope: Scope) -> Type | None:
		operand = self._expr(node.child_by_field_name("operand"), scope)
		operator = node.child_by_field_name("operator")
		op = operator.type if operator is not None else ""
		if op == "&":
			return Pointer(_value(operand))
		if op == "*":
			if isinstance(operand, _TypeValue):
				return _TypeValue(Pointer(operand.type))
			return deref(_value(operand))
		if op == "<-":
			return element(_value(operand))
		if op == "!":
			return BASIC_TYPES["bool"]
		return _value(operand)

	def _selector(self, node: Node, scope: Scope) -> Type | None:
		operand = self._expr(node.child_by_field_name("operand"), scope)
		field_node = node.child_by_field_name("field")
		if field_node is None:
			return None
		name = node_text(field_node)
		if isinstance(operand, _PackageValue):
			member = self._member(operand.pkg, name)
			self._use(field_node, member)
			return self._object_value(member)
		return self._field_or_method(operand, field_node)

	def _field_or_method(self, operand: Type | None, field_node: Node) -> Type | None:
		"""Resolve the selected name of ``x.f`` given the value of x."""
		base = operand.type if isinstance(operand, _TypeValue) else _value(operand)
		obj = self.lookup_field_or_method(base, node_text(field_node))
		if obj is None:
			return None
		self._use(field_node, obj)
		return self._object_type(obj)

	def _call(self, node: Node, scope: Scope) -> Type | None:
		function = node.child_by_field_name("function")
		callee = self._type_or_expr(function, scope) if function is not None else None
		type_args = node.child_by_field_name("type_arguments")
		if type_args is not None:
			self._resolve_type(type_args, scope)
		arguments = node.child_by_field_name("arguments")
		args = [self._type_or_expr(a, scope) for a in arguments.named_children] if arguments is not None else []

		if isinstance(callee, _TypeValue):
			return callee.type
		if isinstance(callee, _BuiltinValue):
			return self._builtin_result(callee.name, args)
		signature = underlying(_value(callee))
		if isinstance(signature, Signature):
			return signature.result()
		return None

	@staticmethod
	def _builtin_result(name: str, args: list[Type | None]) -> Type | None:
		first = args[0] if args else None
		first_type = first.type if isinstance(first, _TypeValue) else _value(first)
		if name == "new":
			return Pointer(first_type)
		if name in {"make", "append", "min", "max"}:
			return first_type
		if name in {"len", "cap", "copy"}:
			return BASIC_TYPES["int"]
		if name == "complex":
			return BASIC_TYPES["complex128"]
		if name in {"real", "imag"}:
			return BASIC_TYPES["float64"]
		if name == "recover":
			return BASIC_TYPES["any"]
		return None

	def _literal_value(self, node: Node, literal_type: Type | None, scope: Scope) -> None:
		u = underlying(deref(literal_type))
		for child in node.named_children:
			if child.type == "keyed_element":
				parts = [c for c in child.named_children if c.type != "comment"]
				if len(parts) < 2:  # noqa: PLR2004
					continue
				key, value = self._unwrap(parts[0]), self._unwrap(parts[-1])
				elem_type = self._keyed(key, u, scope)
			else:
				value = self._unwrap(child)
				elem_type = u.elem if isinstance(u, Slice | Array | Map) else None
			if value.type == "literal_value":
				self._literal_value(value, elem_type, scope)
			else:
				self._expr(value, scope)

	@staticmethod
	def _unwrap(node: Node) -> Node:
		while node.type == "literal_element" and node.named_children:
			node = node.named_children[0]
		return node

	def _keyed(self, key: Node, u: Type | None, scope: Scope) -> Type | None:
		"""Resolve the key of a keyed element and return the element type it selects."""
		if isinstance(u, Struct):
			if key.type in {"identifier", "field_identifier"}:
				name = node_text(key)
				for f in u.fields:
					if f.obj.name == name:
						self._use(key, f.obj)
						return f.type
				self._error(key, f"unknown field {name} in struct literal")
			return None
		if isinstance(u, Map):
			if key.type == "literal_value":
				self._literal_value(key, u.key, scope)
			else:
				self._expr(key, scope)
			return u.elem
		if isinstance(u, Slice | Array):
			self._expr(key, scope)
			return u.elem
		# Unknown literal type, e.g. a struct from an imported package
		if key.type in {"identifier", "field_identifier"}:
			self._lookup(key, scope, report=False)
		elif key.type == "literal_value":
			self._literal_value(key, None, scope)
		else:
			self._expr(key, scope)
		return None

	def lookup_field_or_method(self, t: Type | None, name: str) -> GoObject | None:
		"""Find the field or method name of t, searching embedded fields breadth first."""
		level: list[Type | None] = [t]
		seen: set[int] = set()
		while level:
			next_level: list[Type | None] = []
			for typ in level:
				base = deref(typ)
				if isinstance(base, Named):
					if id(base) in seen:
						continue
					seen.add(id(base))
					method = base.obj.methods.get(name)
					if method is not None:
						return method
				u = underlying(base)
				if isinstance(u, Struct):
					for f in u.fields:
						if f.obj.name == name:
							return f.obj
						if f.embedded:
							next_level.append(f.type)
				elif isinstance(u, Interface):
					method = u.methods.get(name)
					if method is not None:
						return method
					next_level.extend(u.embeddeds)
			level = next_level
		return None

	# ------------------------------------------------------------------
	# Types
	# ------------------------------------------------------------------

	def _resolve_type(self, node: Node | None, scope: Scope) -> Type | None:  # noqa: C901, PLR0911, PLR0912
		if node is None:
			return None
		kind = node.type
		if kind in {"type_identifier", "identifier"}:
			obj = self._lookup(node, scope)
			if obj is None:
				return None
			if obj.kind is ObjectKind.TYPE:
				return self._object_type(obj)
			if obj.kind is ObjectKind.MEMBER:
				return self._member_type(obj)
			return None
		if kind == "nil":
			self._lookup(node, scope)
			return None
		if kind == "qualified_type":
			package = node.child_by_field_name("package")
			name = node.child_by_field_name("name")
			pkg_obj = self._lookup(package, scope) if package is not None else None
			if pkg_obj is None or name is None:
				return None
			if pkg_obj.kind is not ObjectKind.PKG_NAME:
				# A selector on a value, as in the index expression r.m[k] inside a block
				self._field_or_method(self._object_value(pkg_obj), name)
				return None
			member = self._member(pkg_obj.imported, node_text(name))
			self._use(name, member)
			if member.kind is ObjectKind.TYPE:
				return self._object_type(member)
			return self._member_type(member) if member.kind is ObjectKind.MEMBER else None
		if kind == "generic_type":
			base = self._resolve_type(node.child_by_field_name("type"), scope)
			args = node.child_by_field_name("type_arguments")
			if args is not None:
				self._resolve_type(args, scope)
			return base
		if kind == "pointer_type":
			return Pointer(self._resolve_first(node, scope))
		if kind == "slice_type":
			return Slice(self._resolve_type(node.child_by_field_name("element"), scope))
		if kind in {"array_type", "implicit_length_array_type"}:
			length = node.child_by_field_name("length")
			if length is not None:
				self._expr(length, scope)
			return Array(self._resolve_type(node.child_by_field_name("element"), scope))
		if kind == "map_type":
			key = self._resolve_type(node.child_by_field_name("key"), scope)
			return Map(key, self._resolve_type(node.child_by_field_name("value"), scope))
		if kind == "channel_type":
			return Chan(self._resolve_type(node.child_by_field_name("value"), scope))
		if kind == "function_type":
			return self._signature(node, Scope(scope, kind="func"), declare=True)
		if kind == "struct_type":
			return self._struct(node, scope)
		if kind == "interface_type":
			return self._interface(node, scope)
		if kind in {"parenthesized_type", "negated_type"}:
			return self._resolve_first(node, scope)
		if kind in {"selector_expression", "parenthesized_expression"}:
			value = self._expr(node, scope)
			return value.type if isinstance(value, _TypeValue) else None
		resolved: Type | None = None
		for child in node.named_children:
			child_type = self._resolve_type(child, scope)
			resolved = resolved or child_type
		return resolved

	def _resolve_first(self, node: Node, scope: Scope) -> Type | None:
		children = node.named_children
		return self._resolve_type(children[0], scope) if children else None

	@staticmethod
	def _member_type(member: GoObject) -> Type:
		if member.type is None:
			member.type = Named(member)
		return member.type

	def _signature(self, node: Node, scope: Scope, *, declare: bool) -> Signature:
		signature = Signature()
		parameters = node.child_by_field_name("parameters")
		if parameters is not None:
			signature.params, signature.variadic = self._params(parameters, scope, declare=declare)
		result = node.child_by_field_name("result")
		if result is not None:
			if result.type == "parameter_list":
				signature.results, _ = self._params(result, scope, declare=declare)
			else:
				signature.results = [self._resolve_type(result, scope)]
		return signature

	def _params(self, params: Node, scope: Scope, *, declare: bool) -> tuple[list[Type | None], bool]:
		types: list[Type | None] = []
		variadic = False
		declared: list[tuple[Node, GoObject]] = []
		for param in params.named_children:
			if param.type not in {"parameter_declaration", "variadic_parameter_declaration"}:
				continue
			param_type = self._resolve_type(param.child_by_field_name("type"), scope)
			if param.type == "variadic_parameter_declaration":
				variadic = True
				param_type = Slice(param_type)
			names = field_children(param, "name", NAME_NODE_TYPES)
			types.extend([param_type] * max(len(names), 1))
			for name_node in names:
				declared.append((name_node, GoObject(ObjectKind.VAR, node_text(name_node), self.pkg, type=param_type)))
		# Parameter names come into scope together, after all their types
		if declare:
			for name_node, obj in declared:
				self._declare(scope, name_node, obj)
		return types, variadic

	def _declare_params(self, params: Node, scope: Scope) -> None:
		self._params(params, scope, declare=True)

	def _struct(self, node: Node, scope: Scope) -> Struct:
		struct = Struct()
		field_names: set[str] = set()
		for field_list in node.named_children:
			if field_list.type != "field_declaration_list":
				continue
			for decl in field_list.named_children:
				if decl.type != "field_declaration":
					continue
				type_node = decl.child_by_field_name("type")
				field_type = self._resolve_type(type_node, scope)
				names = field_children(decl, "name", NAME_NODE_TYPES)
				if names:
					for name_node in names:
						obj = GoObject(ObjectKind.VAR, node_text(name_node), self.pkg, type=field_type, is_field=True)
						self._def(name_node, obj)
						self._add_field(struct, field_names, name_node, StructField(obj, field_type))
					continue
				if self._has_token(decl, "*"):
					field_type = Pointer(field_type)
				base = self._embedded_name(type_node)
				if base is None:
					continue
				obj = GoObject(ObjectKind.VAR, node_text(base), self.pkg, type=field_type, is_field=True)
				self._add_field(struct, field_names, base, StructField(obj, field_type, embedded=True))
		return struct

	def _add_field(self, struct: Struct, names: set[str], node: Node, struct_field: StructField) -> None:
		name = struct_field.obj.name
		if name != "_" and name in names:
			self._error(node, f"{name} redeclared")
			return
		names.add(name)
		struct.fields.append(struct_field)

	@staticmethod
	def _embedded_name(type_node: Node | None) -> Node | None:
		node = type_node
		while node is not None:
			if node.type in {"type_identifier", "identifier"}:
				return node
			if node.type == "qualified_type":
				node = node.child_by_field_name("name")
			elif node.type == "generic_type":
				node = node.child_by_field_name("type")
			elif node.type in {"pointer_type", "parenthesized_type"}:
				node = node.named_children[0] if node.named_children else None
			else:
				return None
		return None

	def _interface(self, node: Node, scope: Scope) -> Interface:
		interface = Interface()
		for elem in node.named_children:
			if elem.type in {"method_elem", "method_spec"}:
				name_node = elem.child_by_field_name("name")
				if name_node is None:
					continue
				signature = self._signature(elem, Scope(scope, kind="func"), declare=True)
				obj = GoObject(ObjectKind.FUNC, node_text(name_node), self.pkg, type=signature, is_method=True)
				self._def(name_node, obj)
				if obj.name in interface.methods:
					self._error(name_node, f"duplicate method {obj.name}")
					continue
				interface.methods[obj.name] = obj
			elif elem.type != "comment":
				interface.embeddeds.append(self._resolve_type(elem, scope))
		return interface

	def _iter_idents(self, node: Node | None, kinds: set[str]) -> Iterator[Node]:
		if node is None:
			return
		for child in node.named_children:
			if child.type in kinds:
				yield child
			else:
				yield from self._iter_idents(child, kinds)
