"""
Tests for resume_manager.errors module.
"""

from resume_manager.errors import (
    EXIT_COLLECTION_ERROR,
    EXIT_STORAGE_ERROR,
    ConfigurationError,
    ResumeManagerError,
    StorageError,
    ToolError,
    UnknownCollectionError,
    ValidationError,
)


class TestErrors:
    """Tests for the exception hierarchy."""

    def test_all_share_base(self):
        for cls in (ConfigurationError, StorageError, ToolError, ValidationError):
            assert issubclass(cls, ResumeManagerError)
            assert str(cls("boom")) == "boom"

    def test_exit_codes_distinct(self):
        codes = {cls.exit_code for cls in (
            ResumeManagerError, ConfigurationError, StorageError,
            UnknownCollectionError, ValidationError, ToolError,
        )}
        assert len(codes) == 6

    def test_storage_error_missing_flag(self):
        assert StorageError("gone", missing=True).missing is True
        assert StorageError("bad").missing is False
        assert StorageError.exit_code == EXIT_STORAGE_ERROR

    def test_unknown_collection_message(self):
        error = UnknownCollectionError("hobbies")
        assert error.collection == "hobbies"
        assert error.message == "Unknown collection: 'hobbies'"
        assert error.exit_code == EXIT_COLLECTION_ERROR
