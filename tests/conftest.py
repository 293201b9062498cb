"""Test configuration and fixtures for Resume Manager tests."""

import json
import logging
import sys
from pathlib import Path

import pytest

# Add src to path for development testing
_src_dir = Path(__file__).parent.parent / "src"
if _src_dir.exists():
    sys.path.insert(0, str(_src_dir))

from resume_manager.models import COLLECTIONS  # noqa: E402
from resume_manager.records import RecordRepository  # noqa: E402
from resume_manager.storage import MemoryBackend  # noqa: E402
from resume_manager.store import DocumentStore  # noqa: E402
from resume_manager.web import create_app  # noqa: E402


# ==============================================================================
# Document helpers
# ==============================================================================

def empty_document() -> dict:
    """Return a document with all seven collections empty and no profile."""
    return {name: [] for name in COLLECTIONS}


def sample_document() -> dict:
    """Return a small but complete document."""
    data = empty_document()
    data["profile"] = {
        "id": "p-1",
        "firstName": "Ada",
        "lastName": "Lovelace",
        "email": "ada@example.com",
        "professionalSummary": "Analyst",
        "createdAt": "2024-01-01T00:00:00.000Z",
        "updatedAt": "2024-01-01T00:00:00.000Z",
    }
    data["experiences"] = [
        {
            "id": "e-1",
            "title": "Engineer at Acme",
            "company": "Acme",
            "position": "Engineer",
            "location": "Remote",
            "type": "full-time",
            "startDate": "Jan 2020",
            "endDate": "Jul 2021",
            "current": False,
            "tags": ["Python", "backend"],
            "createdAt": "2024-01-01T00:00:00.000Z",
            "updatedAt": "2024-01-01T00:00:00.000Z",
        }
    ]
    data["skills"] = [
        {
            "id": "s-1",
            "title": "Python",
            "name": "Python",
            "category": "technical",
            "tags": ["python"],
            "createdAt": "2024-01-01T00:00:00.000Z",
            "updatedAt": "2024-01-01T00:00:00.000Z",
        }
    ]
    return data


def write_document(path: Path, data: dict) -> Path:
    """Write a document to disk as JSON."""
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return path


# ==============================================================================
# Shared pytest fixtures
# ==============================================================================

@pytest.fixture
def memory_store() -> DocumentStore:
    """Return a store over an empty in-memory document."""
    return DocumentStore(MemoryBackend(empty_document()))


@pytest.fixture
def sample_store() -> DocumentStore:
    """Return an in-memory store holding the sample document."""
    return DocumentStore(MemoryBackend(sample_document()))


@pytest.fixture
def data_file(tmp_path) -> Path:
    """Return a path to a data file holding the sample document."""
    return write_document(tmp_path / "resume.json", sample_document())


@pytest.fixture
def file_store(data_file) -> DocumentStore:
    """Return a store backed by the sample data file."""
    return DocumentStore.from_path(data_file)


@pytest.fixture
def repository(memory_store) -> RecordRepository:
    """Return a repository over an empty in-memory store."""
    return RecordRepository(memory_store)


@pytest.fixture
def app(sample_store):
    """Create a Flask app over the sample document."""
    app = create_app(store=sample_store)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    """Return a Flask test client."""
    return app.test_client()


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers installed by setup_logging so they do not leak between tests."""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in root.handlers[:]:
        if type(handler) in (logging.StreamHandler, logging.FileHandler):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
    logging.getLogger("resume_manager").setLevel(logging.NOTSET)
