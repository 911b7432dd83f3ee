"""Named program entities, packages and lexical scopes."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING

if TYPE_CHECKING:
	from acmegodoc.gosrc.types import Type


class ObjectKind(Enum):
	"""Kinds of named entities."""

	CONST = auto()
	FUNC = auto()
	TYPE = auto()
	VAR = auto()
	NIL = auto()
	BUILTIN = auto()
	PKG_NAME = auto()
	LABEL = auto()
	MEMBER = auto()
	"""Member of an imported package whose declaration is not loaded."""


@dataclass(eq=False)
class Package:
	"""A Go package: the one being edited, or one it imports."""

	path: str
	"""Import path; empty for the local package when it is not known."""

	name: str
	is_local: bool = False
	members: dict[str, GoObject] = field(default_factory=dict, repr=False)

	dir: str | None = None
	"""Source directory of an imported package, when go list reported one."""

	files: list[str] = field(default_factory=list, repr=False)
	"""Base names of the source files that build the package."""

	scope: Scope | None = field(default=None, repr=False)
	"""Package-level declarations, once loaded from the source files."""

	def member(self, name: str) -> GoObject:
		"""
		Get a placeholder for what an imported package exports under name.

		Used when the package's declarations are not available; placeholders
		are created on first use.

		"""
		obj = self.members.get(name)
		if obj is None:
			obj = GoObject(ObjectKind.MEMBER, name, self)
			self.members[name] = obj
		return obj


@dataclass(eq=False)
class GoObject:
	"""A named entity: constant, function, type, variable, package name, label or built-in."""

	kind: ObjectKind
	name: str
	pkg: Package | None
	"""Owning package; None for universe objects."""

	type: Type | None = field(default=None, repr=False)
	imported: Package | None = None
	"""The package a PKG_NAME object refers to."""

	is_field: bool = False
	is_method: bool = False
	decl_node: object | None = field(default=None, repr=False, compare=False)
	"""Declaring spec node, used to resolve package-level types lazily."""

	methods: dict[str, GoObject] = field(default_factory=dict, repr=False)
	"""Methods declared on a defined type."""

	@property
	def exported(self) -> bool:
		"""Report whether the name starts with an upper-case letter."""
		return bool(self.name) and self.name[0].isupper()


class Scope:
	"""A lexical block mapping names to objects."""

	def __init__(self, parent: Scope | None = None, kind: str = "block") -> None:
		self.parent = parent
		self.kind = kind
		self.names: dict[str, GoObject] = {}

	def lookup_local(self, name: str) -> GoObject | None:
		"""Find name in this scope only."""
		return self.names.get(name)

	def lookup(self, name: str) -> GoObject | None:
		"""Find name in this scope or the nearest enclosing one."""
		scope: Scope | None = self
		while scope is not None:
			obj = scope.names.get(name)
			if obj is not None:
				return obj
			scope = scope.parent
		return None

	def insert(self, obj: GoObject) -> GoObject | None:
		"""
		Declare obj in this scope.

		Returns:
		        The object already declared under the same name, if any; in that
		        case obj is not inserted. Blank identifiers are never declared.

		"""
		if obj.name == "_":
			return None
		existing = self.names.get(obj.name)
		if existing is not None:
			return existing
		self.names[obj.name] = obj
		return None


BUILTIN_TYPES = (
	"any",
	"bool",
	"byte",
	"comparable",
	"complex64",
	"complex128",
	"error",
	"float32",
	"float64",
	"int",
	"int8",
	"int16",
	"int32",
	"int64",
	"rune",
	"string",
	"uint",
	"uint8",
	"uint16",
	"uint32",
	"uint64",
	"uintptr",
)

BUILTIN_FUNCS = (
	"append",
	"cap",
	"clear",
	"close",
	"complex",
	"copy",
	"delete",
	"imag",
	"len",
	"make",
	"max",
	"min",
	"new",
	"panic",
	"print",
	"println",
	"real",
	"recover",
)

BUILTIN_CONSTS = ("true", "false", "iota")


def new_universe() -> Scope:
	"""Build the universe scope holding Go's predeclared identifiers."""
	from acmegodoc.gosrc.types import BASIC_TYPES, Interface, Named, Signature

	universe = Scope(kind="universe")
	for name in BUILTIN_TYPES:
		obj = GoObject(ObjectKind.TYPE, name, None)
		if name == "error":
			error_method = GoObject(
				ObjectKind.FUNC, "Error", None, type=Signature(results=[BASIC_TYPES["string"]]), is_method=True
			)
			error_type = Named(obj)
			error_type.underlying = Interface(methods={"Error": error_method})
			obj.type = error_type
		else:
			obj.type = BASIC_TYPES[name]
		universe.insert(obj)
	for name in BUILTIN_FUNCS:
		universe.insert(GoObject(ObjectKind.BUILTIN, name, None))
	for name in BUILTIN_CONSTS:
		const_type = BASIC_TYPES["int"] if name == "iota" else BASIC_TYPES["bool"]
		universe.insert(GoObject(ObjectKind.CONST, name, None, type=const_type))
	universe.insert(GoObject(ObjectKind.NIL, "nil", None))
	return universe
