"""A small model of Go types, enough to resolve selectors and method calls."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
	from collections.abc import Callable

	from acmegodoc.gosrc.objects import GoObject


class Type:
	"""Base class of all types."""


@dataclass(eq=False)
class Basic(Type):
	name: str


@dataclass(eq=False)
class Named(Type):
	"""A defined type; its underlying type is computed on first access."""

	obj: GoObject
	compute: Callable[[], Type | None] | None = field(default=None, repr=False)
	_underlying: Type | None = field(default=None, repr=False)
	_computing: bool = field(default=False, repr=False)

	@property
	def underlying(self) -> Type | None:
		if self._underlying is None and self.compute is not None and not self._computing:
			self._computing = True
			try:
				self._underlying = self.compute()
			finally:
				self._computing = False
				self.compute = None
		return self._underlying

	@underlying.setter
	def underlying(self, value: Type | None) -> None:
		self._underlying = value
		self.compute = None


@dataclass(eq=False)
class Pointer(Type):
	elem: Type | None


@dataclass(eq=False)
class Slice(Type):
	elem: Type | None


@dataclass(eq=False)
class Array(Type):
	elem: Type | None


@dataclass(eq=False)
class Map(Type):
	key: Type | None
	elem: Type | None


@dataclass(eq=False)
class Chan(Type):
	elem: Type | None


@dataclass(eq=False)
class Tuple(Type):
	types: list[Type | None]


@dataclass(eq=False)
class Signature(Type):
	params: list[Type | None] = field(default_factory=list)
	results: list[Type | None] = field(default_factory=list)
	variadic: bool = False

	def result(self) -> Type | None:
		"""The type a call expression evaluates to."""
		if len(self.results) == 1:
			return self.results[0]
		if self.results:
			return Tuple(list(self.results))
		return None


@dataclass(eq=False)
class StructField:
	obj: GoObject
	type: Type | None
	embedded: bool = False


@dataclass(eq=False)
class Struct(Type):
	fields: list[StructField] = field(default_factory=list)


@dataclass(eq=False)
class Interface(Type):
	methods: dict[str, GoObject] = field(default_factory=dict)
	embeddeds: list[Type | None] = field(default_factory=list)


@dataclass(eq=False)
class TypeParam(Type):
	obj: GoObject
	constraint: Type | None = None


BASIC_TYPES: dict[str, Basic] = {
	name: Basic(name)
	for name in (
		"bool",
		"string",
		"int",
		"int8",
		"int16",
		"int32",
		"int64",
		"uint",
		"uint8",
		"uint16",
		"uint32",
		"uint64",
		"uintptr",
		"float32",
		"float64",
		"complex64",
		"complex128",
		"any",
		"comparable",
	)
}
BASIC_TYPES["byte"] = BASIC_TYPES["uint8"]
BASIC_TYPES["rune"] = BASIC_TYPES["int32"]


def underlying(t: Type | None) -> Type | None:
	"""Follow defined types and type parameters to a type literal."""
	seen: set[int] = set()
	while isinstance(t, Named | TypeParam) and id(t) not in seen:
		seen.add(id(t))
		t = t.underlying if isinstance(t, Named) else t.constraint
	return t


def deref(t: Type | None) -> Type | None:
	"""Strip one level of pointer, looking through defined pointer types."""
	if isinstance(t, Pointer):
		return t.elem
	u = underlying(t)
	if isinstance(u, Pointer) and not isinstance(t, TypeParam):
		return u.elem
	return t


def element(t: Type | None) -> Type | None:
	"""Element type produced by indexing or receiving from t."""
	u = underlying(t)
	if isinstance(u, Pointer):
		u = underlying(u.elem)
	if isinstance(u, Slice | Array | Map | Chan):
		return u.elem
	if isinstance(u, Basic) and u.name == "string":
		return BASIC_TYPES["uint8"]
	return None


def range_types(t: Type | None) -> tuple[Type | None, Type | None]:
	"""Key and value types of a range clause over t."""
	u = underlying(t)
	if isinstance(u, Pointer):
		u = underlying(u.elem)
	if isinstance(u, Slice | Array):
		return BASIC_TYPES["int"], u.elem
	if isinstance(u, Map):
		return u.key, u.elem
	if isinstance(u, Chan):
		return u.elem, None
	if isinstance(u, Basic):
		if u.name == "string":
			return BASIC_TYPES["int"], BASIC_TYPES["int32"]
		return t, None
	if isinstance(u, Signature) and u.params:
		# Range-over-func: the yield function's parameters
		yield_sig = underlying(u.params[0])
		if isinstance(yield_sig, Signature):
			params = [*yield_sig.params, None, None]
			return params[0], params[1]
	return None, None
