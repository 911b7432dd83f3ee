"""Utility module for acmegodoc package."""

from .cli_utils import exit_with_error, show_error
from .config_loader import ConfigLoader
from .log_setup import console, setup_logging
from .process_utils import run_command

__all__ = [
	"ConfigLoader",
	"console",
	"exit_with_error",
	"run_command",
	"setup_logging",
	"show_error",
]
