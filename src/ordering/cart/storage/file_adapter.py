"""File-backed cart storage.

Each key maps to one JSON file inside the storage directory. Writes go to a
temporary file in the same directory and are moved into place with
``os.replace``, so readers see either the old or the new document.
"""

import os
import re
import tempfile
from pathlib import Path

from ordering.cart.storage.port import CartStorage, CartStorageError

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class FileCartStorage(CartStorage):
    """Stores cart documents as files under ``directory``."""

    def __init__(self, directory: Path | str) -> None:
        self.directory = Path(directory)

    def _path_for(self, key: str) -> Path:
        if not _SAFE_KEY.match(key) or key.startswith("."):
            raise CartStorageError(f"Invalid storage key: {key!r}")
        return self.directory / f"{key}.json"

    def read(self, key: str) -> str | None:
        path = self._path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            raise CartStorageError(f"Cannot read {path}: {exc}") from exc

    def write(self, key: str, data: str) -> None:
        path = self._path_for(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(dir=self.directory, prefix=f".{key}_", suffix=".tmp")
        except OSError as exc:
            raise CartStorageError(f"Cannot write {path}: {exc}") from exc

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_path, path)
        except OSError as exc:
            # Clean up temp file on failure (ignore errors if already removed)
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise CartStorageError(f"Cannot write {path}: {exc}") from exc

    def delete(self, key: str) -> None:
        path = self._path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise CartStorageError(f"Cannot delete {path}: {exc}") from exc
