"""Tests for CLI and logging helpers."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from unittest.mock import patch

import pytest
import typer
from rich.logging import RichHandler

from acmegodoc.utils.cli_utils import exit_with_error, handle_keyboard_interrupt, show_error
from acmegodoc.utils.log_setup import setup_logging

if TYPE_CHECKING:
	from collections.abc import Generator
	from pathlib import Path


@pytest.fixture
def root_logger() -> Generator[logging.Logger, None, None]:
	"""The root logger, with handlers added by the test removed afterwards."""
	logger = logging.getLogger()
	handlers, level = logger.handlers[:], logger.level
	yield logger
	for handler in logger.handlers[:]:
		if handler not in handlers:
			logger.removeHandler(handler)
			handler.close()
	logger.setLevel(level)


@pytest.mark.unit
class TestLogging:
	"""Root logger configuration."""

	def test_quiet_by_default(self, root_logger: logging.Logger) -> None:
		setup_logging()
		assert root_logger.level == logging.WARNING
		assert [type(h) for h in root_logger.handlers] == [RichHandler]

	def test_verbose(self, root_logger: logging.Logger) -> None:
		setup_logging(is_verbose=True)
		assert root_logger.level == logging.DEBUG

	def test_file_log(self, root_logger: logging.Logger, tmp_path: Path) -> None:
		log_file = tmp_path / "logs" / "acmegodoc.log"
		setup_logging(log_to_console=False, log_file_path=log_file)
		logging.getLogger("acmegodoc.test").warning("selection at %d", 42)
		for handler in root_logger.handlers:
			handler.flush()
		assert "selection at 42" in log_file.read_text(encoding="utf-8")

	def test_repeated_setup_does_not_duplicate_handlers(self, root_logger: logging.Logger) -> None:
		setup_logging()
		setup_logging(is_verbose=True)
		assert len(root_logger.handlers) == 1


@pytest.mark.unit
class TestErrors:
	"""One-line diagnostics."""

	def test_show_error_with_exception(self) -> None:
		with patch("acmegodoc.utils.cli_utils.console") as mock_console:
			show_error("cannot open window", ValueError("[bad] id"))
		printed = mock_console.print.call_args.args[0]
		assert printed == "cannot open window: \\[bad] id"

	def test_show_error_without_exception(self) -> None:
		with patch("acmegodoc.utils.cli_utils.console") as mock_console:
			show_error("cannot find identifier")
		assert mock_console.print.call_args.args[0] == "cannot find identifier"

	def test_exit_with_error(self) -> None:
		cause = RuntimeError("boom")
		with patch("acmegodoc.utils.cli_utils.console"), pytest.raises(typer.Exit) as exc_info:
			exit_with_error("documentation viewer failed", exception=cause)
		assert exc_info.value.exit_code == 1
		assert exc_info.value.__cause__ is cause

	def test_keyboard_interrupt(self) -> None:
		with patch("acmegodoc.utils.cli_utils.console"), pytest.raises(typer.Exit) as exc_info:
			handle_keyboard_interrupt()
		assert exc_info.value.exit_code == 130  # noqa: PLR2004
