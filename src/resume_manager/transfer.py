"""
Whole-document import and export.

Provides:
- export_document: the full document as pretty-printed JSON text
- validate_payload: shape check for an incoming document
- preview_import: counts and id conflicts, without touching the store
- import_document: apply an incoming document in "override" or "merge" mode

Merge rules:
- Per collection, incoming records whose id already exists are skipped;
  existing records always win and are never updated. The same holds for
  an id repeated within the incoming document: the first one is kept.
- An incoming profile is adopted only when the store has no profile.
- The merged document is built on a copy and adopted only after it has
  been saved, so a merge applies to every collection or to none.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from .errors import StorageError, ValidationError
from .models import COLLECTIONS, Document
from .store import DocumentStore

logger = logging.getLogger(__name__)

MODE_OVERRIDE = "override"
MODE_MERGE = "merge"
IMPORT_MODES = (MODE_OVERRIDE, MODE_MERGE)


@dataclass
class ValidationResult:
    """Outcome of validate_payload."""

    valid: bool
    reason: Optional[str] = None
    document: Optional[Document] = None


@dataclass
class ImportConflict:
    """An incoming record whose id is already taken."""

    type: str
    id: str
    existing: str
    incoming: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "type": self.type,
            "id": self.id,
            "existing": self.existing,
            "incoming": self.incoming,
        }


@dataclass
class ImportPreview:
    """What an import would bring in."""

    valid: bool
    summary: Dict[str, int] = field(default_factory=dict)
    conflicts: List[ImportConflict] = field(default_factory=list)
    has_profile: bool = False
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isValid": self.valid,
            "summary": dict(self.summary),
            "conflicts": [c.to_dict() for c in self.conflicts],
            "hasProfile": self.has_profile,
            "error": self.error,
        }


@dataclass
class ImportResult:
    """Outcome of import_document."""

    success: bool
    mode: str
    added: Dict[str, int] = field(default_factory=dict)
    skipped: Dict[str, int] = field(default_factory=dict)
    profile_imported: bool = False
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "mode": self.mode,
            "added": dict(self.added),
            "skipped": dict(self.skipped),
            "profileImported": self.profile_imported,
            "error": self.error,
        }


def export_document(store: DocumentStore) -> str:
    """Serialize the whole document as pretty-printed JSON."""
    return json.dumps(store.document.to_dict(), ensure_ascii=False, indent=2)


def export_filename(today: Optional[date] = None) -> str:
    """Dated download name, e.g. resume-data-2024-03-01.json."""
    today = today or date.today()
    return f"resume-data-{today.isoformat()}.json"


def validate_payload(text: Any) -> ValidationResult:
    """
    Check that ``text`` is a complete resume document.

    Valid only if it parses as a JSON object whose seven collections are all
    present and are arrays. The records themselves are not judged: wrongly
    typed values and non-object items are carried through as they are.
    Unknown top-level keys are ignored.
    """
    if isinstance(text, bytes):
        try:
            text = text.decode("utf-8")
        except UnicodeDecodeError:
            return ValidationResult(False, "Payload is not UTF-8 text")
    if not isinstance(text, str):
        return ValidationResult(False, "Payload must be JSON text")

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        return ValidationResult(False, f"Invalid JSON: {e.msg} (line {e.lineno})")

    try:
        document = Document.from_dict(data)
    except ValidationError as e:
        return ValidationResult(False, e.message)
    return ValidationResult(True, None, document)


def _label(collection: str, record: Any) -> str:
    return record.label or f"{collection} item"


def find_conflicts(existing: Document, incoming: Document) -> List[ImportConflict]:
    """
    Incoming records that a merge would skip.

    An incoming record conflicts when its id is already used in the same
    collection, by an existing record or by an earlier incoming one; the
    earlier holder of the id is reported as ``existing``. Items without an
    id never conflict.
    """
    conflicts = []
    for name in COLLECTIONS:
        taken = {item.id: item for item in existing.collection(name) if item.id is not None}
        for item in incoming.collection(name):
            if item.id is None:
                continue
            match = taken.get(item.id)
            if match is None:
                taken[item.id] = item
                continue
            conflicts.append(
                ImportConflict(
                    type=name,
                    id=item.id,
                    existing=_label(name, match),
                    incoming=_label(name, item),
                )
            )
    return conflicts


def preview_import(store: DocumentStore, text: Any) -> ImportPreview:
    """Describe an incoming document without changing anything."""
    result = validate_payload(text)
    if not result.valid:
        return ImportPreview(valid=False, error=result.reason)

    incoming = result.document
    return ImportPreview(
        valid=True,
        summary=incoming.counts(),
        conflicts=find_conflicts(store.document, incoming),
        has_profile=incoming.profile is not None,
    )


def merge_documents(existing: Document, incoming: Document) -> Tuple[Document, ImportResult]:
    """
    Merge ``incoming`` into a copy of ``existing``.

    Returns:
        The merged copy and the per-collection counts.
    """
    merged = existing.copy()
    added: Dict[str, int] = {}
    skipped: Dict[str, int] = {}

    for name in COLLECTIONS:
        target = merged.collection(name)
        seen = {item.id for item in target if item.id is not None}
        added[name] = 0
        skipped[name] = 0
        for item in incoming.collection(name):
            if item.id in seen:
                skipped[name] += 1
                continue
            target.append(item)
            if item.id is not None:
                seen.add(item.id)
            added[name] += 1

    profile_imported = False
    if merged.profile is None and incoming.profile is not None:
        merged.profile = incoming.profile
        profile_imported = True

    result = ImportResult(
        success=True,
        mode=MODE_MERGE,
        added=added,
        skipped=skipped,
        profile_imported=profile_imported,
    )
    return merged, result


def import_document(store: DocumentStore, text: Any, mode: str = MODE_OVERRIDE) -> ImportResult:
    """
    Apply an incoming document.

    Args:
        store: Target store.
        text: JSON text of the incoming document.
        mode: "override" replaces the whole document; "merge" adds records
            whose ids are not taken yet.

    Returns:
        ImportResult; ``success`` is False (with ``error``) for invalid
        payloads or failed saves. Nothing is changed on failure.

    Raises:
        ValidationError: For an unknown mode.
    """
    if mode not in IMPORT_MODES:
        raise ValidationError(f"Unknown import mode: {mode!r} (expected override or merge)")

    result = validate_payload(text)
    if not result.valid:
        logger.warning(f"Import rejected: {result.reason}")
        return ImportResult(success=False, mode=mode, error=result.reason)

    incoming = result.document
    if mode == MODE_OVERRIDE:
        outcome = ImportResult(
            success=True,
            mode=mode,
            added=incoming.counts(),
            skipped={name: 0 for name in COLLECTIONS},
            profile_imported=incoming.profile is not None,
        )
        target = incoming
    else:
        target, outcome = merge_documents(store.document, incoming)

    try:
        store.save(target)
    except StorageError as e:
        logger.error(f"Import failed: {e.message}")
        return ImportResult(success=False, mode=mode, error=e.message)

    logger.info(
        f"Imported document ({mode}): {sum(outcome.added.values())} added, "
        f"{sum(outcome.skipped.values())} skipped"
    )
    return outcome
