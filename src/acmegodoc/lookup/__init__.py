"""Locate and resolve the identifier under the cursor."""

from acmegodoc.lookup.import_path import current_import_path
from acmegodoc.lookup.locator import ident_at_offset, import_at_offset
from acmegodoc.lookup.offset import byte_offset
from acmegodoc.lookup.resolver import Resolver
from acmegodoc.lookup.symbols import Builtin, Declaration, LookupKey, PackageRef, ResolvedSymbol, Usage

__all__ = [
	"Builtin",
	"Declaration",
	"LookupKey",
	"PackageRef",
	"ResolvedSymbol",
	"Resolver",
	"Usage",
	"byte_offset",
	"current_import_path",
	"ident_at_offset",
	"import_at_offset",
]
