"""
Tests for resume_manager.storage and resume_manager.store modules.

Tests the JSON file backend, lazy loading, fallback to defaults for
missing or corrupt files, and save failures.
"""

import json
from unittest import mock

import pytest

from conftest import empty_document, sample_document
from resume_manager.errors import StorageError
from resume_manager.models import COLLECTIONS, Document, Experience
from resume_manager.storage import JsonFileBackend, MemoryBackend
from resume_manager.store import DocumentStore


class TestJsonFileBackend:
    """Tests for the JSON file backend."""

    def test_write_then_read(self, tmp_path):
        """Written data reads back unchanged."""
        backend = JsonFileBackend(tmp_path / "resume.json")
        backend.write(sample_document())
        assert backend.read() == sample_document()

    def test_write_creates_parent_dirs(self, tmp_path):
        """Missing parent directories are created."""
        path = tmp_path / "nested" / "dir" / "resume.json"
        JsonFileBackend(path).write(empty_document())
        assert path.exists()

    def test_write_is_pretty_printed(self, tmp_path):
        """Files are indented UTF-8 with a trailing newline."""
        path = tmp_path / "resume.json"
        data = empty_document()
        data["skills"] = [{"id": "1", "title": "Café"}]
        JsonFileBackend(path).write(data)
        text = path.read_text(encoding="utf-8")
        assert "Café" in text
        assert text.endswith("\n")
        assert '\n  "experiences"' in text

    def test_write_leaves_no_temp_files(self, tmp_path):
        """The temporary file is renamed into place."""
        backend = JsonFileBackend(tmp_path / "resume.json")
        backend.write(empty_document())
        assert [p.name for p in tmp_path.iterdir()] == ["resume.json"]

    def test_read_missing(self, tmp_path):
        """A missing file is reported as missing."""
        with pytest.raises(StorageError) as exc_info:
            JsonFileBackend(tmp_path / "nope.json").read()
        assert exc_info.value.missing is True

    def test_read_invalid_json(self, tmp_path):
        """Broken JSON is a storage error, not a missing file."""
        path = tmp_path / "resume.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(StorageError) as exc_info:
            JsonFileBackend(path).read()
        assert exc_info.value.missing is False
        assert "Invalid JSON" in exc_info.value.message

    def test_write_failure_raises(self, tmp_path):
        """An OS error during write is a StorageError."""
        backend = JsonFileBackend(tmp_path / "resume.json")
        with mock.patch("resume_manager.storage.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(StorageError) as exc_info:
                backend.write(empty_document())
        assert "disk full" in exc_info.value.message
        assert not (tmp_path / "resume.json").exists()
        assert list(tmp_path.iterdir()) == []

    def test_preserve_corrupt(self, tmp_path):
        """An unreadable file is copied aside."""
        path = tmp_path / "resume.json"
        path.write_text("garbage", encoding="utf-8")
        backup = JsonFileBackend(path).preserve_corrupt()
        assert backup is not None
        assert ".corrupt." in backup
        assert backup.endswith(".json")
        assert (tmp_path / backup.split("/")[-1]).read_text(encoding="utf-8") == "garbage"

    def test_preserve_corrupt_nothing_to_keep(self, tmp_path):
        assert JsonFileBackend(tmp_path / "resume.json").preserve_corrupt() is None


class TestMemoryBackend:
    """Tests for the in-memory backend."""

    def test_empty_read_is_missing(self):
        with pytest.raises(StorageError) as exc_info:
            MemoryBackend().read()
        assert exc_info.value.missing is True

    def test_read_returns_copy(self):
        backend = MemoryBackend(empty_document())
        data = backend.read()
        data["experiences"].append({"id": "x"})
        assert backend.read()["experiences"] == []

    def test_counts_writes(self):
        backend = MemoryBackend()
        backend.write(empty_document())
        backend.write(empty_document())
        assert backend.writes == 2


class TestDocumentStoreLoad:
    """Tests for DocumentStore loading behavior."""

    def test_lazy_load(self, data_file):
        """Nothing is read until the document is first accessed."""
        store = DocumentStore.from_path(data_file)
        assert store.loaded is False
        assert store.document.experiences[0].id == "e-1"
        assert store.loaded is True

    def test_missing_file_creates_default(self, tmp_path):
        """A missing file yields an empty document written to disk."""
        path = tmp_path / "data" / "resume.json"
        store = DocumentStore.from_path(path)
        assert store.document.counts() == {name: 0 for name in COLLECTIONS}
        assert json.loads(path.read_text(encoding="utf-8")) == empty_document()

    def test_corrupt_file_backed_up(self, tmp_path):
        """Corrupt content is kept aside before defaults are written."""
        path = tmp_path / "resume.json"
        path.write_text("{broken", encoding="utf-8")
        store = DocumentStore.from_path(path)
        assert store.document.profile is None
        backups = list(tmp_path.glob("resume.corrupt.*.json"))
        assert len(backups) == 1
        assert backups[0].read_text(encoding="utf-8") == "{broken"
        assert json.loads(path.read_text(encoding="utf-8")) == empty_document()

    def test_wrong_shape_falls_back(self, tmp_path):
        """Valid JSON with the wrong shape also falls back to defaults."""
        path = tmp_path / "resume.json"
        path.write_text(json.dumps({"experiences": "nope"}), encoding="utf-8")
        store = DocumentStore.from_path(path)
        assert store.document.experiences == []
        assert list(tmp_path.glob("resume.corrupt.*.json"))

    def test_mistyped_record_keeps_file(self, tmp_path):
        """A record with an odd field does not cost the rest of the document."""
        data = empty_document()
        data["experiences"] = [{"id": "e-1", "title": "Engineer", "current": False}]
        data["projects"] = [{"id": "p-1", "title": "Thesis", "year": "2021-2022"}]
        path = tmp_path / "resume.json"
        path.write_text(json.dumps(data), encoding="utf-8")
        before = path.read_text(encoding="utf-8")

        store = DocumentStore.from_path(path)

        assert [e.id for e in store.document.experiences] == ["e-1"]
        assert store.document.projects[0].to_dict()["year"] == "2021-2022"
        assert path.read_text(encoding="utf-8") == before
        assert not list(tmp_path.glob("resume.corrupt.*.json"))

    def test_mistyped_record_survives_save(self, tmp_path):
        data = empty_document()
        data["projects"] = [{"id": "p-1", "title": "Thesis", "year": "2021-2022"}, "loose note"]
        path = tmp_path / "resume.json"
        path.write_text(json.dumps(data), encoding="utf-8")

        store = DocumentStore.from_path(path)
        store.save()

        projects = json.loads(path.read_text(encoding="utf-8"))["projects"]
        assert projects[0]["year"] == "2021-2022"
        assert projects[1] == "loose note"

    def test_default_write_failure_is_not_fatal(self, tmp_path):
        """If the default cannot be written, loading still succeeds."""
        backend = MemoryBackend()
        with mock.patch.object(backend, "write", side_effect=StorageError("read-only")):
            store = DocumentStore(backend)
            assert store.document.counts()["skills"] == 0

    def test_reload(self, data_file):
        """reload() picks up changes made on disk."""
        store = DocumentStore.from_path(data_file)
        assert len(store.document.experiences) == 1
        data = sample_document()
        data["experiences"] = []
        data_file.write_text(json.dumps(data), encoding="utf-8")
        assert store.reload().experiences == []


class TestDocumentStoreSave:
    """Tests for DocumentStore.save."""

    def test_save_persists(self, data_file):
        store = DocumentStore.from_path(data_file)
        doc = store.document.copy()
        doc.experiences.append(Experience.new({"title": "New"}))
        store.save(doc)
        assert store.document is doc
        on_disk = json.loads(data_file.read_text(encoding="utf-8"))
        assert [e["title"] for e in on_disk["experiences"]] == ["Engineer at Acme", "New"]

    def test_save_failure_keeps_memory(self, memory_store):
        """A failed save leaves the in-memory document as it was."""
        before = memory_store.document
        with mock.patch.object(memory_store.backend, "write", side_effect=StorageError("boom")):
            with pytest.raises(StorageError):
                memory_store.save(Document(experiences=[Experience.new({"title": "x"})]))
        assert memory_store.document is before
        assert memory_store.document.experiences == []
