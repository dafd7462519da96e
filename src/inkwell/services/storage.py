"""File-backed document store used as the autosave sink."""

from __future__ import annotations

import logging
import os
import re
import tempfile
from pathlib import Path

LOGGER = logging.getLogger(__name__)

_DEFAULT_DOCUMENT_DIR = Path.home() / ".inkwell" / "documents"
_SAFE_ID_RE = re.compile(r"^[A-Za-z0-9_.-]+$")
_UNSAFE_CHARS_RE = re.compile(r"[^A-Za-z0-9_.-]+")


def write_text_atomic(path: Path | str, content: str, *, encoding: str = "utf-8") -> Path:
    """Write ``content`` via a temp file + rename so readers never see partial data."""

    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    descriptor, tmp_name = tempfile.mkstemp(dir=str(target.parent), prefix=f".{target.name}.", suffix=".tmp")
    try:
        with os.fdopen(descriptor, "w", encoding=encoding, newline="") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, target)
    finally:
        if os.path.exists(tmp_name):  # pragma: no cover - cleanup path
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
    return target


def document_id_for(name: str) -> str:
    """Slug usable as a document id, e.g. from a file stem."""

    slug = _UNSAFE_CHARS_RE.sub("-", name).strip("-.")
    return slug or "untitled"


class FileDocumentStore:
    """Stores each document as ``<root>/<document_id>.md``."""

    suffix = ".md"

    def __init__(self, root: Path | str | None = None) -> None:
        self._root = Path(root).expanduser() if root else _DEFAULT_DOCUMENT_DIR

    @property
    def root(self) -> Path:
        return self._root

    def path_for(self, document_id: str) -> Path:
        if not document_id or not _SAFE_ID_RE.match(document_id) or document_id in {".", ".."}:
            raise ValueError(f"Invalid document id: {document_id!r}")
        return self._root / f"{document_id}{self.suffix}"

    def save(self, document_id: str, content: str) -> None:
        path = write_text_atomic(self.path_for(document_id), content)
        LOGGER.debug("Saved document %s to %s", document_id, path)

    def load(self, document_id: str) -> str | None:
        path = self.path_for(document_id)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def exists(self, document_id: str) -> bool:
        return self.path_for(document_id).exists()


__all__ = ["FileDocumentStore", "document_id_for", "write_text_atomic"]
