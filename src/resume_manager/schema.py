"""
JSON Schema for the shape of a whole resume document.

A document is valid when it is an object holding all seven collections as
arrays. Unknown top-level keys are allowed. Array items are not constrained
here: records are parsed leniently by the model layer, and items that are
not objects are carried through unchanged.
"""

import logging
from typing import Any, Dict, List, Tuple

from jsonschema import Draft7Validator

from .errors import ValidationError

logger = logging.getLogger(__name__)

COLLECTIONS: Tuple[str, ...] = (
    "experiences",
    "projects",
    "certifications",
    "activities",
    "skills",
    "education",
    "templates",
)

DOCUMENT_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Resume document",
    "type": "object",
    "required": list(COLLECTIONS),
    "properties": {name: {"type": "array"} for name in COLLECTIONS},
    "additionalProperties": True,
}

_validator = Draft7Validator(DOCUMENT_SCHEMA)


def _format_json_path(path: List[Any]) -> str:
    """
    Format a JSON path for display.

    Args:
        path: List of path components (keys and indices).

    Returns:
        JSONPath-like string (e.g., "$.experiences[0]").
    """
    if not path:
        return "$"

    parts = ["$"]
    for component in path:
        if isinstance(component, int):
            parts.append(f"[{component}]")
        else:
            parts.append(f".{component}")
    return "".join(parts)


def shape_errors(data: Any) -> List[Tuple[str, str]]:
    """
    List every shape problem in ``data``.

    Returns:
        ``(json_path, reason)`` pairs, the document itself first and then
        the collections in their canonical order. Empty when the shape is valid.
    """
    problems: Dict[str, str] = {}
    root_problem = None
    for error in _validator.iter_errors(data):
        path = list(error.absolute_path)
        if error.validator == "required":
            for name in error.validator_value:
                if name not in error.instance:
                    problems[name] = f"{name} must be an array"
        elif path:
            name = str(path[0])
            problems[name] = f"{name} must be an array"
        else:
            root_problem = "document must be an object"

    if root_problem is not None:
        return [(_format_json_path([]), root_problem)]
    return [
        (_format_json_path([name]), problems[name])
        for name in COLLECTIONS
        if name in problems
    ]


def check_document_shape(data: Any) -> None:
    """
    Raise ValidationError naming the first shape problem in ``data``.

    The message reads "Invalid data structure: <reason> (at <path>)".
    """
    errors = shape_errors(data)
    if not errors:
        return
    for path, reason in errors[1:]:
        logger.debug(f"Also invalid: {path}: {reason}")
    path, reason = errors[0]
    raise ValidationError(f"Invalid data structure: {reason} (at {path})")
