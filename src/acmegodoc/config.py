"""Default configuration settings for the acmegodoc tool."""

DEFAULT_CONFIG = {
	# Editor adapter configuration
	"editor": {
		# Environment variable holding the acme window id
		"winid_env": "winid",
		# plan9port namespace directory (None derives it from $NAMESPACE, $USER and $DISPLAY)
		"namespace": None,
	},
	# Source loading configuration
	"loader": {
		# Glob pattern for sibling source files
		"pattern": "*.go",
		# How imported package names are found: 'auto', 'go-list' or 'guess'
		"importer": "auto",
		# Whether to skip files constrained with '//go:build ignore'
		"skip_ignored": True,
	},
	# Identifier lookup configuration
	"lookup": {
		# Reject unexported identifiers instead of looking them up in the current package
		"exported_only": False,
	},
	# Documentation viewer configuration
	"viewer": {
		# Command and leading arguments; the package path and identifier are appended
		"command": ["go", "doc"],
	},
	# Logging configuration
	"logging": {
		"verbose": False,
		"log_file": None,
	},
}
