"""Tests for loading a package from a directory and an edited buffer."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from acmegodoc.errors import ParseError, TypeCheckError
from acmegodoc.gosrc.loader import SourceSet, load_program
from acmegodoc.utils.config_loader import ConfigLoader

if TYPE_CHECKING:
	from pathlib import Path

	from acmegodoc.gosrc.importer import Importer


@pytest.fixture
def package_dir(tmp_path: Path) -> Path:
	"""A package directory with one helper file and a stale copy of the edited file."""
	(tmp_path / "helper.go").write_text("package p\n\nfunc Helper() int { return 1 }\n")
	# On-disk version of the edited file; loading it as well would redeclare main
	(tmp_path / "main.go").write_text("package p\n\nfunc main() {}\n\nfunc Stale() {}\n")
	(tmp_path / "notes.txt").write_text("not go\n")
	return tmp_path


BUFFER = "package p\n\nfunc main() { _ = Helper() }\n"


@pytest.mark.integration
def test_from_directory_substitutes_buffer(package_dir: Path) -> None:
	source_set = SourceSet.from_directory(package_dir, str(package_dir / "main.go"), BUFFER)
	members = list(source_set)
	assert members[0].is_buffer
	assert members[0].source == BUFFER.encode("utf-8")
	assert [m.filename for m in members[1:]] == [str(package_dir / "helper.go")]


@pytest.mark.integration
def test_load_program_resolves_across_files(package_dir: Path, guess_importer: Importer) -> None:
	source_set = SourceSet.from_directory(package_dir, "main.go", BUFFER)
	program = load_program(source_set, importer=guess_importer)
	assert program.package.name == "p"
	assert program.edited.filename == str(package_dir / "main.go")
	assert len(program.files) == 2  # noqa: PLR2004
	helper = next(obj for obj in program.info.uses.values() if obj.name == "Helper")
	assert helper.pkg is program.package


@pytest.mark.integration
def test_stale_disk_copy_is_not_loaded(package_dir: Path, guess_importer: Importer) -> None:
	source_set = SourceSet.from_directory(package_dir, "main.go", BUFFER)
	program = load_program(source_set, importer=guess_importer)
	assert program.package.members == {}
	assert all(obj.name != "Stale" for obj in program.info.defs.values())


@pytest.mark.integration
def test_test_package_loads_with_package(package_dir: Path, guess_importer: Importer) -> None:
	(package_dir / "helper_test.go").write_text(
		'package p_test\n\nimport "testing"\n\nfunc TestHelper(t *testing.T) {}\n'
	)
	source_set = SourceSet.from_directory(package_dir, "main.go", BUFFER)
	program = load_program(source_set, importer=guess_importer)
	assert len(program.files) == 3  # noqa: PLR2004


@pytest.mark.integration
def test_ignored_files_are_skipped(package_dir: Path, guess_importer: Importer) -> None:
	(package_dir / "gen.go").write_text("//go:build ignore\n\npackage main\n\nfunc main() {}\n")
	source_set = SourceSet.from_directory(package_dir, "main.go", BUFFER)
	program = load_program(source_set, importer=guess_importer)
	assert all(not f.filename.endswith("gen.go") for f in program.files)


@pytest.mark.integration
def test_ignored_files_can_be_included(
	package_dir: Path, guess_importer: Importer, monkeypatch: pytest.MonkeyPatch
) -> None:
	"""With skipping disabled, an ignored file in another package is a conflict."""
	monkeypatch.chdir(package_dir)
	(package_dir / "gen.go").write_text("//go:build ignore\n\npackage main\n")
	config = ConfigLoader(environ={"ACMEGODOC_LOADER_SKIP_IGNORED": "false"})
	source_set = SourceSet.from_directory(package_dir, "main.go", BUFFER)
	with pytest.raises(TypeCheckError, match="found packages"):
		load_program(source_set, importer=guess_importer, config=config)


@pytest.mark.integration
def test_package_mismatch(package_dir: Path, guess_importer: Importer) -> None:
	(package_dir / "other.go").write_text("package q\n")
	source_set = SourceSet.from_directory(package_dir, "main.go", BUFFER)
	with pytest.raises(TypeCheckError, match=r"found packages p \(main\.go\) and q \(other\.go\)"):
		load_program(source_set, importer=guess_importer)


@pytest.mark.integration
def test_sibling_parse_error(package_dir: Path, guess_importer: Importer) -> None:
	(package_dir / "broken.go").write_text("package p\n\nfunc {\n")
	source_set = SourceSet.from_directory(package_dir, "main.go", BUFFER)
	with pytest.raises(ParseError) as exc_info:
		load_program(source_set, importer=guess_importer)
	assert exc_info.value.filename.endswith("broken.go")


@pytest.mark.integration
def test_custom_pattern(package_dir: Path) -> None:
	(package_dir / "extra.gox").write_text("package p\n")
	source_set = SourceSet.from_directory(package_dir, "main.go", BUFFER, pattern="*.gox")
	assert [m.filename for m in source_set.siblings] == [str(package_dir / "extra.gox")]
