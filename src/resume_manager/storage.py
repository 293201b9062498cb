"""
Persistence backends for the resume document.

A backend moves a whole JSON-compatible dict in and out of some medium.
The store is handed exactly one backend at construction time:

- JsonFileBackend: a single pretty-printed JSON file on disk
- MemoryBackend: a dict held in memory (tests, previews)
"""

import json
import logging
import os
import shutil
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from .errors import StorageError

logger = logging.getLogger(__name__)


class StorageBackend:
    """Interface for document persistence."""

    def read(self) -> Dict[str, Any]:
        """
        Return the stored document as parsed JSON.

        Raises:
            StorageError: If nothing is stored yet or the content is unreadable.
        """
        raise NotImplementedError

    def write(self, data: Dict[str, Any]) -> None:
        """
        Replace the stored document.

        Raises:
            StorageError: If the write fails.
        """
        raise NotImplementedError

    def preserve_corrupt(self) -> Optional[str]:
        """Keep a copy of unreadable content before it is overwritten."""
        return None

    def describe(self) -> str:
        return type(self).__name__


class JsonFileBackend(StorageBackend):
    """Stores the document as one UTF-8 JSON file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def read(self) -> Dict[str, Any]:
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise StorageError(f"Data file not found: {self.path}", missing=True)
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Cannot read data file {self.path}: {e}")

        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise StorageError(f"Invalid JSON in {self.path}: {e}")

    def write(self, data: Dict[str, Any]) -> None:
        payload = json.dumps(data, ensure_ascii=False, indent=2)
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.write("\n")
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as e:
            raise StorageError(f"Cannot write data file {self.path}: {e}")
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
        logger.debug(f"Wrote {len(payload)} bytes to {self.path}")

    def preserve_corrupt(self) -> Optional[str]:
        """
        Copy an existing unreadable data file aside.

        Returns:
            The backup path, or None if there was nothing to keep.
        """
        if not self.path.exists():
            return None
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        backup_path = self.path.with_name(f"{self.path.stem}.corrupt.{stamp}{self.path.suffix}")
        try:
            shutil.copy2(self.path, backup_path)
        except OSError as e:
            logger.warning(f"Could not back up unreadable data file {self.path}: {e}")
            return None
        logger.warning(f"Unreadable data file backed up to: {backup_path}")
        return str(backup_path)

    def describe(self) -> str:
        return str(self.path)


class MemoryBackend(StorageBackend):
    """Keeps the document in memory. Stores a JSON round-tripped copy."""

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        self._data: Optional[str] = None
        self.writes = 0
        if data is not None:
            self._data = json.dumps(data)

    def read(self) -> Dict[str, Any]:
        if self._data is None:
            raise StorageError("Nothing stored yet", missing=True)
        return json.loads(self._data)

    def write(self, data: Dict[str, Any]) -> None:
        self._data = json.dumps(data)
        self.writes += 1

    def describe(self) -> str:
        return "memory"
