"""Tests for the configuration loader."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from acmegodoc.errors import ConfigError
from acmegodoc.utils.config_loader import ConfigLoader

if TYPE_CHECKING:
	from pathlib import Path


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
	"""Run each test where no .acmegodoc.yml exists."""
	monkeypatch.chdir(tmp_path)
	return tmp_path


@pytest.mark.unit
def test_defaults() -> None:
	config = ConfigLoader(environ={})
	assert config.get("loader.pattern") == "*.go"
	assert config.get("lookup.exported_only") is False
	assert config.get("editor.namespace") is None
	assert config.get("missing.key", "fallback") == "fallback"
	assert config.get_viewer_command() == ["go", "doc"]
	assert config.get_importer_mode() == "auto"


@pytest.mark.unit
def test_file_is_merged(tmp_path: Path) -> None:
	config_file = tmp_path / "config.yml"
	config_file.write_text("viewer:\n  command: godoc -q\nloader:\n  importer: guess\n")
	config = ConfigLoader(config_file, environ={})
	assert config.get_viewer_command() == ["godoc", "-q"]
	assert config.get_importer_mode() == "guess"
	assert config.get("loader.pattern") == "*.go"


@pytest.mark.unit
def test_local_config_is_found(isolated_cwd: Path) -> None:
	(isolated_cwd / ".acmegodoc.yml").write_text("lookup:\n  exported_only: true\n")
	assert ConfigLoader(environ={}).get("lookup.exported_only") is True


@pytest.mark.unit
def test_env_overrides() -> None:
	environ = {
		"ACMEGODOC_LOADER_SKIP_IGNORED": "no",
		"ACMEGODOC_VIEWER_COMMAND": "go doc -all",
		"ACMEGODOC_EDITOR_WINID_ENV": "ACMEWIN",
		"ACMEGODOC_IGNORED": "x",
		"OTHER_LOADER_PATTERN": "*.c",
	}
	config = ConfigLoader(environ=environ)
	assert config.get("loader.skip_ignored") is False
	assert config.get_viewer_command() == ["go", "doc", "-all"]
	assert config.get("editor.winid_env") == "ACMEWIN"
	assert config.get("loader.pattern") == "*.go"


@pytest.mark.unit
def test_invalid_yaml(tmp_path: Path) -> None:
	config_file = tmp_path / "bad.yml"
	config_file.write_text("viewer: [unclosed\n")
	with pytest.raises(ConfigError, match="Error loading configuration"):
		ConfigLoader(config_file, environ={})


@pytest.mark.unit
def test_config_must_be_mapping(tmp_path: Path) -> None:
	config_file = tmp_path / "list.yml"
	config_file.write_text("- one\n- two\n")
	with pytest.raises(ConfigError, match="must be a mapping"):
		ConfigLoader(config_file, environ={})


@pytest.mark.unit
def test_missing_file_uses_defaults(tmp_path: Path) -> None:
	config = ConfigLoader(tmp_path / "absent.yml", environ={})
	assert config.get_importer_mode() == "auto"


@pytest.mark.unit
def test_bad_values_are_rejected() -> None:
	with pytest.raises(ConfigError, match="Unknown importer mode"):
		ConfigLoader(environ={"ACMEGODOC_LOADER_IMPORTER": "vendor"}).get_importer_mode()
	with pytest.raises(ConfigError, match="Invalid viewer command"):
		ConfigLoader(environ={"ACMEGODOC_VIEWER_COMMAND": " "}).get_viewer_command()
