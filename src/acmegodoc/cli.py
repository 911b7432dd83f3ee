"""Command-line interface for acmegodoc."""

from __future__ import annotations

import io
import logging
import sys
from pathlib import Path
from typing import Annotated

import typer

from acmegodoc import __version__
from acmegodoc.editor import AcmeWindow, EditorConfig
from acmegodoc.errors import AcmeGodocError, ConfigError, UnsupportedSymbolKindError
from acmegodoc.gosrc.loader import SourceSet, load_program
from acmegodoc.lookup import Resolver, byte_offset, current_import_path
from acmegodoc.utils.cli_utils import exit_with_error, handle_keyboard_interrupt
from acmegodoc.utils.config_loader import ConfigLoader
from acmegodoc.utils.log_setup import setup_logging
from acmegodoc.viewer import run_viewer

logger = logging.getLogger(__name__)

app = typer.Typer(
	help=f"acmegodoc - show the documentation of the Go identifier under the cursor in acme.\n\nVersion: {__version__}",
	add_completion=False,
	context_settings={"help_option_names": ["-h", "--help"]},
)

VerboseFlag = Annotated[
	bool,
	typer.Option("--verbose", "-v", help="Enable verbose logging"),
]

ConfigOpt = Annotated[
	Path | None,
	typer.Option("--config", "-c", help="Path to a configuration file", dir_okay=False),
]


@app.command()
def show(config: ConfigOpt = None, is_verbose: VerboseFlag = False) -> None:
	"""Show the documentation of the identifier at the selection of the window in $winid."""
	try:
		config_loader = ConfigLoader(config_file=config)
	except ConfigError as e:
		setup_logging(is_verbose=is_verbose)
		exit_with_error("invalid configuration", exception=e)
		return

	setup_logging(
		is_verbose=is_verbose or bool(config_loader.get("logging.verbose", False)),
		log_file_path=config_loader.get("logging.log_file"),
	)

	try:
		_show(config_loader)
	except KeyboardInterrupt:
		handle_keyboard_interrupt()


def _show(config: ConfigLoader) -> None:
	try:
		editor_config = EditorConfig.from_env(
			winid_env=config.get("editor.winid_env", "winid"),
			namespace=config.get("editor.namespace"),
		)
		window = AcmeWindow.open(editor_config)
	except AcmeGodocError as e:
		exit_with_error("cannot open window", exception=e)
		return

	with window:
		try:
			state = window.read_window()
			offset = byte_offset(io.StringIO(state.body, newline=""), state.q0)
		except AcmeGodocError as e:
			exit_with_error("cannot get selection", exception=e)
			return
	logger.debug("Selection in %s at character %d, byte %d", state.filename, state.q0, offset)

	directory = Path(state.filename).resolve().parent
	try:
		source_set = SourceSet.from_directory(
			directory, state.filename, state.body, pattern=config.get("loader.pattern", "*.go")
		)
		program = load_program(source_set, config=config)
		import_path = current_import_path(directory)
	except (AcmeGodocError, OSError) as e:
		exit_with_error("cannot load program", exception=e)
		return

	resolver = Resolver(
		program,
		import_path,
		exported_only=bool(config.get("lookup.exported_only", False)),
	)
	try:
		key = resolver.lookup(offset)
	except UnsupportedSymbolKindError as e:
		exit_with_error("cannot print documentation", exception=e)
		return
	except AcmeGodocError as e:
		exit_with_error("cannot find identifier", exception=e)
		return

	try:
		run_viewer(key, config.get_viewer_command())
	except AcmeGodocError as e:
		exit_with_error("documentation viewer failed", exception=e)


def main() -> int:
	"""Run the CLI application."""
	return app()


if __name__ == "__main__":
	sys.exit(main())
