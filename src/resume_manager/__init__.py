"""
Resume Manager - personal resume data in one JSON document.

This package provides:
- A typed record store for experiences, projects, certifications,
  activities, skills, education and LaTeX templates, plus a profile
- Search, tag filtering and whole-document import/export/merge
- A JSON HTTP API and read-only MCP tools for AI assistants
- A stdio proxy that forwards MCP requests to the HTTP API
"""

__version__ = "1.0.0"
__author__ = "Resume Manager Contributors"

# Errors
from .errors import (
    ResumeManagerError,
    StorageError,
    ToolError,
    UnknownCollectionError,
    ValidationError,
)

# Data model
from .models import COLLECTIONS, Document, Profile, Record

# Persistence
from .records import RecordRepository
from .storage import JsonFileBackend, MemoryBackend
from .store import DocumentStore

# Import / export
from .transfer import export_document, import_document, preview_import

__all__ = [
    # Errors
    "ResumeManagerError",
    "StorageError",
    "ToolError",
    "UnknownCollectionError",
    "ValidationError",
    # Data model
    "COLLECTIONS",
    "Document",
    "Profile",
    "Record",
    # Persistence
    "DocumentStore",
    "JsonFileBackend",
    "MemoryBackend",
    "RecordRepository",
    # Import / export
    "export_document",
    "import_document",
    "preview_import",
    # Version
    "__version__",
]
