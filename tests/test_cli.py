"""Tests for the acmegodoc command line."""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from acmegodoc.cli import app
from acmegodoc.editor.acme import WindowState
from acmegodoc.errors import AdapterError, ViewerLaunchError
from acmegodoc.lookup.symbols import LookupKey

if TYPE_CHECKING:
	from collections.abc import Generator
	from pathlib import Path


@pytest.mark.unit
class TestShowCommand:
	"""Drive the command with a stand-in acme window and viewer."""

	runner: CliRunner

	@pytest.fixture(autouse=True)
	def setup_cli(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
		"""Work in a module directory with the window, viewer and logging mocked."""
		self.package_dir = tmp_path
		(tmp_path / "go.mod").write_text("module example.com/p\n")
		monkeypatch.chdir(tmp_path)
		self.runner = CliRunner()
		self.env = {"winid": "1", "USER": "glenda", "ACMEGODOC_LOADER_IMPORTER": "guess"}
		with (
			patch("acmegodoc.cli.AcmeWindow") as self.mock_window_cls,
			patch("acmegodoc.cli.run_viewer") as self.mock_run_viewer,
			patch("acmegodoc.cli.setup_logging"),
		):
			self.window = MagicMock()
			self.mock_window_cls.open.return_value = self.window
			yield

	def select(self, body: str, needle: str) -> None:
		q0 = body.index(needle)
		self.window.read_window.return_value = WindowState(
			filename=str(self.package_dir / "main.go"), q0=q0, q1=q0, body=body
		)

	def test_builtin(self) -> None:
		self.select("package main\n\nfunc main() { var _ bool }\n", "bool")
		result = self.runner.invoke(app, [], env=self.env)
		assert result.exit_code == 0, result.output
		self.mock_run_viewer.assert_called_once_with(LookupKey("builtin", "bool"), ["go", "doc"])
		self.window.read_window.assert_called_once()

	def test_selection_after_multibyte_text(self) -> None:
		"""Character offsets from acme are converted to byte offsets."""
		self.select("package p\n\n// Größe ändert sich.\nfunc F() {}\n", "F()")
		result = self.runner.invoke(app, [], env=self.env)
		assert result.exit_code == 0, result.output
		self.mock_run_viewer.assert_called_once_with(LookupKey("example.com/p", "F"), ["go", "doc"])

	def test_sibling_file_declaration(self) -> None:
		(self.package_dir / "util.go").write_text("package p\n\nfunc Helper() {}\n")
		self.select("package p\n\nfunc f() { Helper() }\n", "Helper")
		result = self.runner.invoke(app, [], env={**self.env, "ACMEGODOC_VIEWER_COMMAND": "godoc"})
		assert result.exit_code == 0, result.output
		self.mock_run_viewer.assert_called_once_with(LookupKey("example.com/p", "Helper"), ["godoc"])

	def test_window_cannot_be_opened(self) -> None:
		self.mock_window_cls.open.side_effect = AdapterError("boom")
		result = self.runner.invoke(app, [], env=self.env)
		assert result.exit_code == 1
		assert "cannot open window: boom" in result.output
		self.mock_run_viewer.assert_not_called()

	def test_winid_not_set(self) -> None:
		result = self.runner.invoke(app, [], env={**self.env, "winid": None})
		assert result.exit_code == 1
		assert "cannot open window: $winid not set" in result.output

	def test_no_identifier(self) -> None:
		self.select("package p\n\nfunc f() {}\n", "package")
		result = self.runner.invoke(app, [], env=self.env)
		assert result.exit_code == 1
		assert "cannot find identifier: no identifier at offset 0" in result.output

	def test_label(self) -> None:
		self.select("package p\n\nfunc f() {\nL:\n\tfor {\n\t\tbreak L\n\t}\n}\n", "L:")
		result = self.runner.invoke(app, [], env=self.env)
		assert result.exit_code == 1
		assert "cannot print documentation: cannot print documentation of label L" in result.output

	def test_program_does_not_load(self) -> None:
		self.select("package p\n\nfunc f() { undefinedThing() }\n", "f()")
		result = self.runner.invoke(app, [], env=self.env)
		assert result.exit_code == 1
		assert "cannot load program" in result.output
		assert "undefined: undefinedThing" in result.output

	def test_unreadable_module_file(self) -> None:
		"""Failing to read go.mod is reported like any other load failure."""
		self.select("package p\n\nfunc F() {}\n", "F")
		with patch("acmegodoc.cli.current_import_path", side_effect=PermissionError(13, "Permission denied")):
			result = self.runner.invoke(app, [], env=self.env)
		assert result.exit_code == 1
		assert "cannot load program" in result.output
		assert "Permission denied" in result.output
		self.mock_run_viewer.assert_not_called()

	def test_viewer_failure(self) -> None:
		self.mock_run_viewer.side_effect = ViewerLaunchError("go exited with status 1", returncode=1)
		self.select("package p\n\nfunc F() {}\n", "F")
		result = self.runner.invoke(app, [], env=self.env)
		assert result.exit_code == 1
		assert "documentation viewer failed: go exited with status 1" in result.output

	def test_invalid_config_file(self) -> None:
		config_file = self.package_dir / "bad.yml"
		config_file.write_text("viewer: [unclosed\n")
		result = self.runner.invoke(app, ["--config", str(config_file)], env=self.env)
		assert result.exit_code == 1
		assert "invalid configuration" in result.output
		self.mock_window_cls.open.assert_not_called()
