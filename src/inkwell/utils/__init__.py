"""Utility helpers shared across the Inkwell codebase."""

from .logging import get_log_path, setup_logging

__all__ = ["get_log_path", "setup_logging"]
