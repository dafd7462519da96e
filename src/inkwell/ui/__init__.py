"""PySide6 shells for the editor: the bound text view, overlays and main window."""
