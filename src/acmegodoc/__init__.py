"""acmegodoc - show Go documentation for the identifier under the acme cursor."""

__version__ = "0.3.0"
