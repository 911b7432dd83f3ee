"""Allow running acmegodoc with ``python -m acmegodoc``."""

import sys

from acmegodoc.cli import main

if __name__ == "__main__":
	sys.exit(main())
