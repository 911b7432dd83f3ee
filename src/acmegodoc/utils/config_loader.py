"""
Configuration loader for acmegodoc.

This module provides functionality for loading and managing
configuration settings.

"""

from __future__ import annotations

import copy
import logging
import os
from pathlib import Path
from typing import Any, TypeVar, cast

import yaml
from xdg.BaseDirectory import xdg_config_home

from acmegodoc.config import DEFAULT_CONFIG
from acmegodoc.errors import ConfigError

# Set up logger
logger = logging.getLogger(__name__)

T = TypeVar("T")

ENV_PREFIX = "ACMEGODOC_"

# Constant for minimum number of parts in environment variable
MIN_ENV_VAR_PARTS = 2


class ConfigLoader:
	"""
	Loads and manages configuration for acmegodoc.

	Configuration comes from the defaults, an optional YAML file and
	environment variable overrides, in that order.

	"""

	def __init__(self, config_file: str | Path | None = None, environ: dict[str, str] | None = None) -> None:
		"""
		Initialize the configuration loader.

		Args:
		        config_file: Path to configuration file (optional)
		        environ: Environment to read overrides from (defaults to os.environ)

		"""
		self.config: dict[str, Any] = {}
		self.environ = os.environ if environ is None else environ
		self.config_file = self._resolve_config_file(config_file)
		self.load_config()

	def _resolve_config_file(self, config_file: str | Path | None = None) -> Path | None:
		"""
		Resolve the configuration file path.

		If a config file is specified, use that. Otherwise, look in standard locations:
		1. ./.acmegodoc.yml in the current directory
		2. $XDG_CONFIG_HOME/acmegodoc/config.yml

		Args:
		        config_file: Explicitly provided config file path (optional)

		Returns:
		        Optional[Path]: Resolved config file path or None if no suitable file found

		"""
		if config_file:
			path = Path(config_file).expanduser().resolve()
			if not path.exists():
				logger.warning("Specified config file not found: %s", path)
			return path

		local_config = Path(".acmegodoc.yml")
		if local_config.exists():
			return local_config

		xdg_config_file = Path(xdg_config_home) / "acmegodoc" / "config.yml"
		if xdg_config_file.exists():
			return xdg_config_file

		return None

	def load_config(self) -> dict[str, Any]:
		"""
		Load configuration from file and apply environment variable overrides.

		Returns:
		        Dict[str, Any]: Loaded configuration

		Raises:
		        ConfigError: If configuration file exists but cannot be loaded

		"""
		self.config = copy.deepcopy(DEFAULT_CONFIG)

		if self.config_file:
			try:
				if self.config_file.exists():
					with self.config_file.open(encoding="utf-8") as f:
						file_config = yaml.safe_load(f)
					if file_config:
						if not isinstance(file_config, dict):
							msg = f"Configuration in {self.config_file} must be a mapping"
							raise ConfigError(msg)
						self._merge_configs(self.config, file_config)
					logger.debug("Loaded configuration from %s", self.config_file)
				else:
					logger.warning("Configuration file not found: %s", self.config_file)
			except (OSError, yaml.YAMLError) as e:
				error_msg = f"Error loading configuration from {self.config_file}: {e}"
				logger.exception(error_msg)
				raise ConfigError(error_msg) from e

		self._apply_env_overrides()
		return self.config

	def _merge_configs(self, base: dict[str, Any], override: dict[str, Any]) -> None:
		"""
		Recursively merge two configuration dictionaries.

		Args:
		        base: Base configuration dictionary to merge into
		        override: Override configuration to apply

		"""
		for key, value in override.items():
			if isinstance(value, dict) and key in base and isinstance(base[key], dict):
				self._merge_configs(base[key], value)
			else:
				base[key] = value

	def _apply_env_overrides(self) -> None:
		"""Apply environment variable overrides to configuration."""
		# Look for environment variables in the form ACMEGODOC_SECTION_KEY
		for env_var, value in self.environ.items():
			if not env_var.startswith(ENV_PREFIX):
				continue
			parts = env_var.lower().split("_")[1:]
			if len(parts) < MIN_ENV_VAR_PARTS:
				continue
			section, key = parts[0], "_".join(parts[1:])

			typed_value: Any
			if value.lower() in ("true", "yes", "1"):
				typed_value = True
			elif value.lower() in ("false", "no", "0"):
				typed_value = False
			elif section == "viewer" and key == "command":
				typed_value = value.split()
			else:
				typed_value = value

			if not isinstance(self.config.get(section), dict):
				self.config[section] = {}

			self.config[section][key] = typed_value
			logger.debug("Applied environment override %s: %s", env_var, typed_value)

	def get(self, key: str, default: T = None) -> T:
		"""
		Get a configuration value using dot notation.

		Examples:
		        config.get("viewer.command")

		Args:
		        key: Configuration key, can include dots for nested access
		        default: Default value if key not found

		Returns:
		        T: Configuration value or default

		"""
		current: Any = self.config
		for part in key.split("."):
			if isinstance(current, dict) and part in current:
				current = current[part]
			else:
				return default
		return cast("T", current)

	def get_viewer_command(self) -> list[str]:
		"""
		Get the documentation viewer command.

		Returns:
		        list[str]: Command and its leading arguments

		Raises:
		        ConfigError: If the configured command is empty or malformed

		"""
		command = self.get("viewer.command", DEFAULT_CONFIG["viewer"]["command"])
		if isinstance(command, str):
			command = command.split()
		if not command or not all(isinstance(part, str) for part in command):
			msg = f"Invalid viewer command: {command!r}"
			raise ConfigError(msg)
		return list(command)

	def get_importer_mode(self) -> str:
		"""
		Get how imported package names are resolved.

		Returns:
		        str: One of 'auto', 'go-list' or 'guess'

		Raises:
		        ConfigError: If the configured mode is unknown

		"""
		mode = str(self.get("loader.importer", "auto")).lower()
		if mode not in {"auto", "go-list", "guess"}:
			msg = f"Unknown importer mode: {mode!r}"
			raise ConfigError(msg)
		return mode
