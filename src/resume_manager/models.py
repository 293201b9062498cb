"""
Typed data model for the resume document.

The document holds seven named collections, each a list of one record
variant, plus an optional profile:

    experiences     -> Experience
    projects        -> Project
    certifications  -> Certification
    activities      -> Activity
    skills          -> Skill
    education       -> Education
    templates       -> LatexTemplate

Attributes are snake_case; the JSON form uses camelCase keys
(``start_date`` <-> ``startDate``). Keys a variant does not know about are
kept in ``extra`` and written back unchanged, so a document survives a
load/save cycle without losing fields.

Stored and imported records are read leniently: a value of the wrong type
leaves the attribute at its default and the raw value in ``extra``, and an
item that is not an object at all is carried as a ``RawItem``. Input to
``Record.new`` and ``Record.merged`` is checked strictly.

Every variant shares ``id``, ``created_at`` and ``updated_at``. The six
tagged variants also share ``title``, ``description`` and ``tags``.
"""

import copy
import dataclasses
import functools
import logging
import secrets
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Type

from .errors import UnknownCollectionError, ValidationError
from .schema import COLLECTIONS, check_document_shape
from .templates import extract_variables

logger = logging.getLogger(__name__)


# Keys set by the store, never taken from caller input
SYSTEM_KEYS = ("id", "createdAt", "updatedAt")

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


# =============================================================================
# IDS AND TIMESTAMPS
# =============================================================================

def _base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_id() -> str:
    """
    Generate a record id: base-36 millisecond timestamp + base-36 random part.

    Collision-resistant, not guaranteed unique.
    """
    return _base36(int(time.time() * 1000)) + _base36(secrets.randbits(52))


def utcnow() -> str:
    """Current UTC time as ISO-8601 with milliseconds and a Z suffix."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _parse_timestamp(value: str) -> Optional[datetime]:
    try:
        parsed = datetime.fromisoformat(value)
    except (TypeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def next_timestamp(previous: Optional[str]) -> str:
    """
    Timestamp for a mutation of a record last stamped ``previous``.

    Never earlier than ``previous``, so ``updatedAt`` cannot move backwards
    when the wall clock does.
    """
    now = utcnow()
    if not previous:
        return now
    prev_dt = _parse_timestamp(previous)
    if prev_dt is not None and prev_dt > _parse_timestamp(now):
        return previous
    return now


# =============================================================================
# FIELD HELPERS
# =============================================================================

def _to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _text(default: Optional[str] = "") -> Any:
    return field(default=default, metadata={"kind": "text"})


def _flag() -> Any:
    return field(default=False, metadata={"kind": "flag"})


def _number() -> Any:
    return field(default=None, metadata={"kind": "number"})


def _strings() -> Any:
    return field(default_factory=list, metadata={"kind": "strings"})


def _coerce(owner: str, key: str, kind: str, value: Any, default: Any) -> Any:
    """Check one incoming value against the field kind. Raises ValidationError."""
    if kind == "strings":
        if value is None:
            return []
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ValidationError(f"{owner}.{key} must be a list of strings")
        return list(value)
    if kind == "flag":
        if value is None:
            return False
        if not isinstance(value, bool):
            raise ValidationError(f"{owner}.{key} must be a boolean")
        return value
    if kind == "number":
        if value is None or value == "":
            return None
        if isinstance(value, bool):
            raise ValidationError(f"{owner}.{key} must be a number")
        if isinstance(value, (int, float)):
            return value
        if isinstance(value, str):
            try:
                return int(value)
            except ValueError:
                try:
                    return float(value)
                except ValueError:
                    pass
        raise ValidationError(f"{owner}.{key} must be a number")
    # text
    if value is None:
        return default
    if not isinstance(value, str):
        raise ValidationError(f"{owner}.{key} must be a string")
    return value


@functools.lru_cache(maxsize=None)
def _json_fields(cls: type) -> Dict[str, dataclasses.Field]:
    """Map camelCase JSON key -> dataclass field for a record variant."""
    return {
        _to_camel(f.name): f
        for f in dataclasses.fields(cls)
        if f.name != "extra"
    }


def _field_default(f: dataclasses.Field) -> Any:
    if f.default is not dataclasses.MISSING:
        return f.default
    if f.default_factory is not dataclasses.MISSING:  # type: ignore[misc]
        return f.default_factory()  # type: ignore[misc]
    return None


# =============================================================================
# RECORD VARIANTS
# =============================================================================

@dataclass
class Record:
    """Fields common to every stored item."""

    id: str = _text()
    created_at: str = _text()
    updated_at: str = _text()
    extra: Dict[str, Any] = field(default_factory=dict)

    # Name of the collection this variant lives in
    collection = ""

    @classmethod
    def from_dict(cls, data: Any, strict: bool = False) -> "Record":
        """
        Build a record from its JSON form.

        Args:
            data: The JSON object.
            strict: Reject wrongly typed values instead of keeping them raw.

        Raises:
            ValidationError: If ``data`` is not an object, or (strict only)
                a field has the wrong type.
        """
        owner = cls.__name__
        if not isinstance(data, dict):
            raise ValidationError(f"{owner} must be an object, got {type(data).__name__}")

        known = _json_fields(cls)
        values: Dict[str, Any] = {}
        extra: Dict[str, Any] = {}
        for key, value in data.items():
            f = known.get(key)
            if f is None:
                extra[key] = copy.deepcopy(value)
                continue
            kind = f.metadata.get("kind", "text")
            try:
                values[f.name] = _coerce(owner, key, kind, value, _field_default(f))
            except ValidationError as e:
                if strict:
                    raise
                logger.warning(f"{e.message}; keeping the stored value as is")
                extra[key] = copy.deepcopy(value)
        return cls(**values, extra=extra)

    @classmethod
    def new(cls, fields: Dict[str, Any], now: Optional[str] = None) -> "Record":
        """Create a fresh record: new id, both timestamps set to now."""
        payload = {k: v for k, v in (fields or {}).items() if k not in SYSTEM_KEYS}
        record = cls.from_dict(payload, strict=True)
        stamp = now or utcnow()
        record.id = generate_id()
        record.created_at = stamp
        record.updated_at = stamp
        record._derive()
        return record

    def merged(self, updates: Dict[str, Any], now: Optional[str] = None) -> "Record":
        """
        Return a copy with ``updates`` shallow-merged over this record.

        ``id`` and ``createdAt`` cannot be changed; ``updatedAt`` is advanced.
        Unknown keys are merged into ``extra``.
        """
        owner = type(self).__name__
        if not isinstance(updates, dict):
            raise ValidationError(f"{owner} update must be an object")

        known = _json_fields(type(self))
        changes: Dict[str, Any] = {}
        extra = copy.deepcopy(self.extra)
        for key, value in updates.items():
            if key in SYSTEM_KEYS:
                continue
            f = known.get(key)
            if f is None:
                extra[key] = copy.deepcopy(value)
                continue
            kind = f.metadata.get("kind", "text")
            changes[f.name] = _coerce(owner, key, kind, value, _field_default(f))
            extra.pop(key, None)

        record = dataclasses.replace(self, **changes, extra=extra)
        record.updated_at = now or next_timestamp(self.updated_at)
        record._derive()
        return record

    def _derive(self) -> None:
        """Recompute derived fields. Variants override as needed."""

    def to_dict(self) -> Dict[str, Any]:
        """
        JSON form; optional fields that are None are omitted.

        A raw value kept in ``extra`` under a known key is written in place
        of the attribute's default.
        """
        out: Dict[str, Any] = {}
        for key, f in _json_fields(type(self)).items():
            value = getattr(self, f.name)
            if value is None:
                continue
            out[key] = list(value) if isinstance(value, list) else value
        for key, value in self.extra.items():
            out[key] = copy.deepcopy(value)
        return out

    def get_tags(self) -> List[str]:
        return []

    @property
    def label(self) -> Optional[str]:
        """Human-readable name for listings and conflict reports."""
        return None

    def search_text(self) -> List[str]:
        """Strings matched by free-text search (tags excluded)."""
        return []


@dataclass
class TaggedRecord(Record):
    """Base of the six tagged variants."""

    title: str = _text()
    description: Optional[str] = _text(None)
    tags: List[str] = _strings()

    def get_tags(self) -> List[str]:
        return self.tags

    @property
    def label(self) -> Optional[str]:
        return self.title or self.extra.get("name") or None

    def search_text(self) -> List[str]:
        return [s for s in (self.title, self.description) if s]


@dataclass
class Experience(TaggedRecord):
    collection = "experiences"

    company: str = _text()
    position: str = _text()
    location: str = _text()
    type: str = _text("full-time")
    start_date: str = _text()
    end_date: Optional[str] = _text(None)
    current: bool = _flag()
    responsibilities: List[str] = _strings()
    achievements: List[str] = _strings()
    technologies: List[str] = _strings()


@dataclass
class Project(TaggedRecord):
    collection = "projects"

    url: Optional[str] = _text(None)
    repository: Optional[str] = _text(None)
    technologies: List[str] = _strings()
    status: str = _text("completed")
    type: str = _text("personal")
    year: Optional[int] = _number()
    highlights: List[str] = _strings()


@dataclass
class Certification(TaggedRecord):
    collection = "certifications"

    issuer: str = _text()
    issue_date: str = _text()
    expiration_date: Optional[str] = _text(None)
    credential_id: Optional[str] = _text(None)
    credential_url: Optional[str] = _text(None)
    url: Optional[str] = _text(None)
    status: str = _text("active")
    worthiness: str = _text("earned")


@dataclass
class Activity(TaggedRecord):
    collection = "activities"

    organization: str = _text()
    role: Optional[str] = _text(None)
    start_date: str = _text()
    end_date: Optional[str] = _text(None)
    current: bool = _flag()
    location: Optional[str] = _text(None)
    website: Optional[str] = _text(None)
    type: str = _text("volunteering")
    impact: List[str] = _strings()
    skills: List[str] = _strings()


@dataclass
class Skill(TaggedRecord):
    collection = "skills"

    name: Optional[str] = _text(None)
    category: str = _text("technical")
    level: Optional[str] = _text(None)
    proficiency: Optional[str] = _text(None)
    years: Optional[float] = _number()
    endorsements: Optional[int] = _number()
    projects: List[str] = _strings()

    @property
    def label(self) -> Optional[str]:
        return self.title or self.name or None


@dataclass
class Education(TaggedRecord):
    collection = "education"

    institution: str = _text()
    degree: str = _text()
    field: str = _text()
    location: Optional[str] = _text(None)
    start_date: str = _text()
    end_date: Optional[str] = _text(None)
    status: Optional[str] = _text(None)
    gpa: Optional[str] = _text(None)
    achievements: List[str] = _strings()
    coursework: List[str] = _strings()


@dataclass
class LatexTemplate(Record):
    """A LaTeX template. ``variables`` is derived from ``content``."""

    collection = "templates"

    name: str = _text()
    description: Optional[str] = _text(None)
    content: str = _text()
    variables: List[str] = _strings()

    def _derive(self) -> None:
        self.variables = extract_variables(self.content)

    @property
    def label(self) -> Optional[str]:
        return self.name or None

    def search_text(self) -> List[str]:
        return [s for s in (self.name, self.description) if s]


@dataclass
class Profile(Record):
    """The document's single personal profile."""

    first_name: str = _text()
    last_name: str = _text()
    email: str = _text()
    phone: Optional[str] = _text(None)
    location: Optional[str] = _text(None)
    website: Optional[str] = _text(None)
    linkedin: Optional[str] = _text(None)
    github: Optional[str] = _text(None)
    twitter: Optional[str] = _text(None)
    portfolio: Optional[str] = _text(None)
    professional_summary: str = _text()
    profile_photo: Optional[str] = _text(None)
    job_title: Optional[str] = _text(None)
    years_of_experience: Optional[float] = _number()
    preferred_industries: List[str] = _strings()
    roles: List[str] = _strings()

    @classmethod
    def new(cls, fields: Dict[str, Any], now: Optional[str] = None) -> "Profile":
        profile = super().new(fields, now)
        profile.id = str(uuid.uuid4())
        return profile

    @property
    def label(self) -> Optional[str]:
        name = f"{self.first_name} {self.last_name}".strip()
        return name or None


class RawItem:
    """
    A collection item that is not a JSON object.

    It has no id, title or tags, so no lookup, search or tag filter finds
    it. It is kept so that saving the document writes it back unchanged.
    """

    id = None
    created_at = None
    updated_at = None
    label = None

    def __init__(self, value: Any):
        self.value = value

    def __repr__(self) -> str:
        return f"RawItem({self.value!r})"

    def __eq__(self, other: Any) -> bool:
        return isinstance(other, RawItem) and other.value == self.value

    def to_dict(self) -> Any:
        return copy.deepcopy(self.value)

    def get_tags(self) -> List[str]:
        return []

    def search_text(self) -> List[str]:
        return []


RECORD_TYPES: Dict[str, Type[Record]] = {
    "experiences": Experience,
    "projects": Project,
    "certifications": Certification,
    "activities": Activity,
    "skills": Skill,
    "education": Education,
    "templates": LatexTemplate,
}


def record_type(collection: str) -> Type[Record]:
    """Variant class for a collection name. Raises UnknownCollectionError."""
    try:
        return RECORD_TYPES[collection]
    except (KeyError, TypeError):
        raise UnknownCollectionError(str(collection))


# =============================================================================
# DOCUMENT
# =============================================================================

@dataclass
class Document:
    """The whole resume: seven collections plus an optional profile."""

    experiences: List[Experience] = field(default_factory=list)
    projects: List[Project] = field(default_factory=list)
    certifications: List[Certification] = field(default_factory=list)
    activities: List[Activity] = field(default_factory=list)
    skills: List[Skill] = field(default_factory=list)
    education: List[Education] = field(default_factory=list)
    templates: List[LatexTemplate] = field(default_factory=list)
    profile: Optional[Profile] = None

    def collection(self, name: str) -> List[Record]:
        """The live list for ``name``. Raises UnknownCollectionError."""
        record_type(name)
        return getattr(self, name)

    def copy(self) -> "Document":
        return copy.deepcopy(self)

    def counts(self) -> Dict[str, int]:
        return {name: len(getattr(self, name)) for name in COLLECTIONS}

    @classmethod
    def from_dict(cls, data: Any) -> "Document":
        """
        Build a document from parsed JSON.

        All seven collections must be present and be arrays; that shape is
        the only thing checked. Records are read leniently, items that are
        not objects become ``RawItem``, and unknown top-level keys are
        ignored. A ``profile`` that is not an object is dropped.

        Raises:
            ValidationError: If the shape is wrong, naming the collection.
        """
        check_document_shape(data)

        values: Dict[str, Any] = {}
        for name in COLLECTIONS:
            variant = RECORD_TYPES[name]
            values[name] = [
                variant.from_dict(item) if isinstance(item, dict) else RawItem(item)
                for item in data[name]
            ]

        profile = data.get("profile")
        if isinstance(profile, dict):
            values["profile"] = Profile.from_dict(profile)
        elif profile is not None:
            logger.warning(f"Ignoring profile: expected an object, got {type(profile).__name__}")

        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        if self.profile is not None:
            out["profile"] = self.profile.to_dict()
        for name in COLLECTIONS:
            out[name] = [item.to_dict() for item in getattr(self, name)]
        return out
