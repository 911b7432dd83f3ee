"""Resolved symbols and the documentation keys they map to."""

from __future__ import annotations

from dataclasses import dataclass

from acmegodoc.gosrc.objects import ObjectKind

BUILTIN_PATH = "builtin"


@dataclass(frozen=True)
class LookupKey:
	"""What to ask the documentation viewer for."""

	path: str
	"""Import path of the documented package, or ``builtin``."""

	name: str = ""
	"""Identifier within the package; empty for the package itself."""


@dataclass(frozen=True)
class Builtin:
	"""A predeclared identifier."""

	name: str

	def key(self) -> LookupKey:
		return LookupKey(BUILTIN_PATH, self.name)


@dataclass(frozen=True)
class PackageRef:
	"""An import path literal or a package name."""

	import_path: str

	def key(self) -> LookupKey:
		return LookupKey(self.import_path)


@dataclass(frozen=True)
class Declaration:
	"""The defining occurrence of a symbol."""

	kind: ObjectKind
	name: str
	package_path: str

	def key(self) -> LookupKey:
		return LookupKey(self.package_path, self.name)


@dataclass(frozen=True)
class Usage:
	"""A reference to a symbol declared elsewhere."""

	kind: ObjectKind
	name: str
	package_path: str
	is_from_import: bool

	def key(self) -> LookupKey:
		return LookupKey(self.package_path, self.name)


ResolvedSymbol = Builtin | PackageRef | Declaration | Usage
