"""
File-based storage manager for graph tables.

Each table (contacts, actor links, contributions, inferred edges, facts)
is one JSON document under the data directory. This is enough for a
single-process deployment; any durable keyed store could stand behind
the same interface.

Thread Safety:
    Uses atomic writes (write to temp file, then rename) so a reader never
    sees a half-written table. File renames are atomic on POSIX systems.
    Read-modify-write sequences are serialized by the repositories that
    own each table.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from profilegraph.models.errors import StorageUnavailableError

logger = logging.getLogger(__name__)


def _atomic_write(path: Path, content: str) -> None:
    """
    Atomically write content to a file.

    Uses the write-to-temp-then-rename pattern. The previous content stays
    in place until the rename, so a failed write leaves it untouched.

    Args:
        path: Target file path
        content: String content to write

    Raises:
        OSError: If write or rename fails
    """
    # Temp file in the same directory keeps the rename on one filesystem
    fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=path.stem, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(temp_path, path)
    except Exception:
        if os.path.exists(temp_path):
            os.unlink(temp_path)
        raise


class StorageManager:
    """JSON-file storage for named tables."""

    def __init__(self, base_dir: Path | str = "data") -> None:
        self.base_dir = Path(base_dir)
        self._ensure_dirs()

    def _ensure_dirs(self) -> None:
        """Create the storage directory if it doesn't exist."""
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageUnavailableError(
                f"Cannot create storage directory {self.base_dir}: {e}"
            ) from e

    def table_path(self, name: str) -> Path:
        """Get the file path backing a table."""
        return self.base_dir / f"{name}.json"

    def read_table(self, name: str, default: Any) -> Any:
        """
        Load a table from disk.

        Args:
            name: Table name
            default: Value returned when the table has never been written

        Returns:
            Parsed JSON content of the table

        Raises:
            StorageUnavailableError: If the file cannot be read or parsed
        """
        path = self.table_path(name)
        if not path.exists():
            return default
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read table {name}: {e}")
            raise StorageUnavailableError(f"Table {name} is unreadable: {e}") from e

    def write_table(self, name: str, data: Any) -> None:
        """
        Atomically replace a table on disk.

        Args:
            name: Table name
            data: JSON-serializable content

        Raises:
            StorageUnavailableError: If the write fails
        """
        try:
            _atomic_write(
                self.table_path(name), json.dumps(data, indent=2, default=str)
            )
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to write table {name}: {e}")
            raise StorageUnavailableError(f"Table {name} could not be written: {e}") from e
