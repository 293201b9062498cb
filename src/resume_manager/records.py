"""
Generic record collection API over the document store.

Provides CRUD and query operations for the seven named collections:
- get_all / get_by_id / create / update / delete
- search (case-insensitive, title/description/tags)
- filter_by_tags / all_tags
- the profile singleton (get/set/update/delete)

Reads hand out copies, so changing a returned record does not change the
store. Mutations never edit the live document in place: a new collection
list is built, saved, and only then adopted by the store. A failed save
therefore leaves the in-memory document untouched.
"""

import copy
import dataclasses
import logging
from typing import Any, Dict, Iterable, List, Optional

from .models import COLLECTIONS, Document, Profile, Record, record_type
from .store import DocumentStore

logger = logging.getLogger(__name__)


class RecordRepository:
    """Typed CRUD access to the collections of one DocumentStore."""

    def __init__(self, store: DocumentStore):
        self.store = store

    @property
    def document(self) -> Document:
        return self.store.document

    def _items(self, collection: str) -> List[Record]:
        return list(self.document.collection(collection))

    def _commit(self, **changes: Any) -> None:
        updated = dataclasses.replace(self.document, **changes)
        self.store.save(updated)

    # =========================================================================
    # READS
    # =========================================================================

    def get_all(self, collection: str) -> List[Record]:
        """All records of a collection in insertion order."""
        return copy.deepcopy(self._items(collection))

    def get_by_id(self, collection: str, record_id: str) -> Optional[Record]:
        """First record with the given id, or None."""
        for item in self.document.collection(collection):
            if item.id == record_id:
                return copy.deepcopy(item)
        return None

    def search(self, collection: str, text: str) -> List[Record]:
        """
        Case-insensitive substring search.

        A record matches if its title (name, for templates), its description,
        or any of its tags contains ``text``. An empty query matches all.
        """
        items = self.document.collection(collection)
        query = (text or "").lower()
        if not query:
            return copy.deepcopy(list(items))

        matches = []
        for item in items:
            haystack = item.search_text() + item.get_tags()
            if any(query in value.lower() for value in haystack):
                matches.append(item)
        return copy.deepcopy(matches)

    def filter_by_tags(self, collection: str, tags: Iterable[str]) -> List[Record]:
        """Records carrying at least one of ``tags``; all records if ``tags`` is empty."""
        items = self.document.collection(collection)
        wanted = set(tags or [])
        if not wanted:
            return copy.deepcopy(list(items))
        return copy.deepcopy([item for item in items if wanted.intersection(item.get_tags())])

    def all_tags(self, collection: Optional[str] = None) -> List[str]:
        """Sorted, de-duplicated tags of one collection, or of all of them."""
        names = [collection] if collection else list(COLLECTIONS)
        tags = set()
        for name in names:
            for item in self.document.collection(name):
                tags.update(item.get_tags())
        return sorted(tags)

    # =========================================================================
    # WRITES
    # =========================================================================

    def create(self, collection: str, fields: Dict[str, Any]) -> Record:
        """
        Create a record with a fresh id and timestamps, append it and persist.

        Raises:
            UnknownCollectionError: For an unknown collection.
            ValidationError: If a field has the wrong type.
            StorageError: If the document cannot be saved.
        """
        variant = record_type(collection)
        record = variant.new(fields)
        items = self._items(collection)
        items.append(record)
        self._commit(**{collection: items})
        logger.info(f"Created {collection} item {record.id}")
        return copy.deepcopy(record)

    def update(self, collection: str, record_id: str, updates: Dict[str, Any]) -> Optional[Record]:
        """
        Shallow-merge ``updates`` into a record and persist.

        Returns:
            The updated record, or None if no record has that id.
        """
        items = self._items(collection)
        for index, item in enumerate(items):
            if item.id == record_id:
                updated = item.merged(updates)
                items[index] = updated
                self._commit(**{collection: items})
                logger.info(f"Updated {collection} item {record_id}")
                return copy.deepcopy(updated)
        logger.debug(f"Update skipped: {collection} item {record_id} not found")
        return None

    def delete(self, collection: str, record_id: str) -> bool:
        """Remove the first record with that id. Persists only when one was removed."""
        items = self._items(collection)
        for index, item in enumerate(items):
            if item.id == record_id:
                del items[index]
                self._commit(**{collection: items})
                logger.info(f"Deleted {collection} item {record_id}")
                return True
        return False

    # =========================================================================
    # PROFILE
    # =========================================================================

    def get_profile(self) -> Optional[Profile]:
        return copy.deepcopy(self.document.profile)

    def set_profile(self, fields: Dict[str, Any]) -> Profile:
        """Create the profile, replacing any existing one."""
        profile = Profile.new(fields)
        self._commit(profile=profile)
        logger.info("Profile saved")
        return copy.deepcopy(profile)

    def update_profile(self, updates: Dict[str, Any]) -> Optional[Profile]:
        """Merge ``updates`` into the profile. None if there is no profile."""
        current = self.document.profile
        if current is None:
            return None
        profile = current.merged(updates)
        self._commit(profile=profile)
        return copy.deepcopy(profile)

    def delete_profile(self) -> bool:
        """Remove the profile. Returns whether one existed."""
        if self.document.profile is None:
            return False
        self._commit(profile=None)
        logger.info("Profile deleted")
        return True
