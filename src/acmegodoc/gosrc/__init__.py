"""Parsing and name resolution for Go packages."""

from acmegodoc.gosrc.checker import Checker, Info, node_key
from acmegodoc.gosrc.importer import Importer
from acmegodoc.gosrc.loader import Program, SourceSet, load_program
from acmegodoc.gosrc.objects import GoObject, ObjectKind, Package
from acmegodoc.gosrc.parser import SyntaxTree, parse_source

__all__ = [
	"Checker",
	"GoObject",
	"Importer",
	"Info",
	"ObjectKind",
	"Package",
	"Program",
	"SourceSet",
	"SyntaxTree",
	"load_program",
	"node_key",
	"parse_source",
]
