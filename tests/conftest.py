"""Global test fixtures and configuration."""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import patch

import pytest

from acmegodoc.gosrc.importer import Importer
from acmegodoc.gosrc.loader import Program, SourceFile, SourceSet, load_program

if TYPE_CHECKING:
	from collections.abc import Callable
	from pathlib import Path

# Cut-down standard packages, listed by go list with their sources
STD_SOURCES = {
	"strings": """package strings

type Builder struct {
	buf []byte
}

func (b *Builder) WriteString(s string) (int, error) {
	b.buf = append(b.buf, s...)
	return len(s), nil
}

func (b *Builder) String() string { return string(b.buf) }
""",
	"os": """package os

import "errors"

type File struct {
	name string
}

func (f *File) Close() error { return nil }

func (f *File) Name() string { return f.name }

func NewFile(fd uintptr, name string) *File { return &File{name: name} }

var Stdout = NewFile(1, "/dev/stdout")

var ErrClosed = undefinedHelper("file already closed")

var ErrExist = errors.New("file already exists")
""",
	"errors": """package errors

func New(text string) error { return nil }
""",
}


@pytest.fixture
def guess_importer() -> Importer:
	"""An importer that never runs the go tool."""
	return Importer(mode="guess")


@pytest.fixture
def load_buffer(guess_importer: Importer) -> Callable[..., Program]:
	"""Load a program made of a single in-memory buffer."""

	def _load(source: str, filename: str = "/work/p/main.go") -> Program:
		buffer = SourceFile(filename=filename, source=source.encode("utf-8"), is_buffer=True)
		return load_program(SourceSet(buffer=buffer), importer=guess_importer)

	return _load


@pytest.fixture
def load_with_sources(tmp_path: Path) -> Callable[..., Program]:
	"""Load a single buffer whose standard imports have source files on disk."""
	for path, text in STD_SOURCES.items():
		directory = tmp_path / "goroot" / path
		directory.mkdir(parents=True)
		(directory / f"{path}.go").write_text(text, encoding="utf-8")

	def go_list(command: list[str], cwd: Path | None = None) -> str:
		paths = command[command.index("--") + 1 :]
		return "".join(
			f"{p}\t{p}\t{tmp_path / 'goroot' / p}\t{p}.go \t\n" if p in STD_SOURCES else f"{p}\t\t\t\tcannot find {p}\n"
			for p in paths
		)

	def _load(source: str, filename: str = "/work/p/main.go") -> Program:
		buffer = SourceFile(filename=filename, source=source.encode("utf-8"), is_buffer=True)
		with patch("acmegodoc.gosrc.importer.run_command", side_effect=go_list):
			return load_program(SourceSet(buffer=buffer), importer=Importer(mode="go-list"))

	return _load
