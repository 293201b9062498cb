"""
Document store: the canonical in-memory resume document.

The store loads lazily on first access and keeps its copy for the lifetime
of the instance. Every mutating operation elsewhere ends in ``save()``,
which replaces the backing content whole.

Read failures never escape ``load()``: a missing or corrupt backing file
yields an empty document, which is written back on a best-effort basis.
A file only counts as corrupt when it is not JSON or lacks one of the
seven collection arrays; oddly typed records inside it are kept.
Write failures from ``save()`` are raised as StorageError.
"""

import logging
from pathlib import Path
from typing import Optional

from .errors import StorageError, ValidationError
from .models import Document
from .storage import JsonFileBackend, StorageBackend

logger = logging.getLogger(__name__)


class DocumentStore:
    """Owns one Document and the backend it is persisted to."""

    def __init__(self, backend: StorageBackend):
        self.backend = backend
        self._document: Optional[Document] = None

    @classmethod
    def from_path(cls, path: Path) -> "DocumentStore":
        """Store backed by a JSON file."""
        return cls(JsonFileBackend(path))

    @property
    def document(self) -> Document:
        """The in-memory document, loaded on first access."""
        if self._document is None:
            self._document = self.load()
        return self._document

    @property
    def loaded(self) -> bool:
        return self._document is not None

    def load(self) -> Document:
        """
        Read the document from the backend.

        Falls back to an empty document on any failure and tries to write
        that default back. Never raises.
        """
        corrupt = False
        try:
            data = self.backend.read()
            document = Document.from_dict(data)
            logger.info(f"Loaded resume data from {self.backend.describe()}")
            self._document = document
            return document
        except StorageError as e:
            corrupt = not e.missing
            if e.missing:
                logger.info(f"{e.message}; starting with an empty document")
            else:
                logger.warning(f"{e.message}; starting with an empty document")
        except ValidationError as e:
            corrupt = True
            logger.warning(f"Stored document has the wrong shape ({e.message}); starting with an empty document")

        document = Document()
        if corrupt:
            self.backend.preserve_corrupt()
        try:
            self.backend.write(document.to_dict())
        except StorageError as e:
            logger.error(f"Could not create default data file: {e.message}")
        self._document = document
        return document

    def save(self, document: Optional[Document] = None) -> None:
        """
        Persist ``document`` (default: the current one) and adopt it.

        Raises:
            StorageError: If the backend write fails. The in-memory copy is
                left as it was before the call.
        """
        target = document if document is not None else self.document
        self.backend.write(target.to_dict())
        self._document = target
        logger.debug(f"Saved resume data to {self.backend.describe()}")

    def reload(self) -> Document:
        """Drop the in-memory copy and read the backend again."""
        self._document = None
        return self.document
