"""Persistence services: settings and document storage."""

from .settings import SecretVault, Settings, SettingsStore, redact_secret
from .storage import FileDocumentStore, document_id_for, write_text_atomic

__all__ = [
    "FileDocumentStore",
    "SecretVault",
    "Settings",
    "SettingsStore",
    "document_id_for",
    "redact_secret",
    "write_text_atomic",
]
