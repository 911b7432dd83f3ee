"""Exception hierarchy for acmegodoc.

Every stage of the lookup pipeline raises one of these. None of them is
retried: the CLI prints a one-line diagnostic and exits with status 1.

"""

from __future__ import annotations


class AcmeGodocError(Exception):
	"""Base class for all acmegodoc errors."""


class ConfigError(AcmeGodocError):
	"""Exception raised for configuration errors."""


class AdapterError(AcmeGodocError):
	"""The editor window state could not be read or written."""


class EncodingError(AcmeGodocError):
	"""A character offset lies beyond the end of the buffer."""


class CommandError(AcmeGodocError):
	"""An auxiliary external command failed."""


class ParseError(AcmeGodocError):
	"""A Go source file has a syntax error."""

	def __init__(self, filename: str, line: int, column: int, message: str) -> None:
		"""
		Initialize the parse error.

		Args:
		        filename: Name of the file that failed to parse
		        line: 1-based line of the first error
		        column: 1-based column (in bytes) of the first error
		        message: Short description of the problem

		"""
		self.filename = filename
		self.line = line
		self.column = column
		self.message = message
		super().__init__(f"{filename}:{line}:{column}: {message}")


class TypeCheckError(AcmeGodocError):
	"""Whole-package resolution failed; carries every error found."""

	def __init__(self, errors: list[str]) -> None:
		self.errors = list(errors)
		if not self.errors:
			summary = "type checking failed"
		elif len(self.errors) == 1:
			summary = self.errors[0]
		else:
			summary = f"{self.errors[0]} (and {len(self.errors) - 1} more errors)"
		super().__init__(summary)


class NotFoundError(AcmeGodocError):
	"""No identifier or import path spans the requested offset."""


class UnresolvedIdentifierError(AcmeGodocError):
	"""The identifier has neither a definition nor a use entry."""


class UnsupportedSymbolKindError(AcmeGodocError):
	"""The identifier resolves to something that has no documentation."""


class UnexportedIdentifierError(UnsupportedSymbolKindError):
	"""The identifier is unexported and only exported ones are allowed."""


class ViewerLaunchError(AcmeGodocError):
	"""The documentation viewer could not be started or failed."""

	def __init__(self, message: str, returncode: int | None = None) -> None:
		self.returncode = returncode
		super().__init__(message)
