"""Editor adapter: read the window a command was run from."""

from acmegodoc.editor.acme import AcmeWindow, EditorConfig, WindowState

__all__ = ["AcmeWindow", "EditorConfig", "WindowState"]
