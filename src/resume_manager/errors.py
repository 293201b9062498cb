"""
Custom error types and exit codes for Resume Manager.
"""

# Exit codes
EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_CONFIG_ERROR = 2
EXIT_STORAGE_ERROR = 3
EXIT_COLLECTION_ERROR = 4
EXIT_VALIDATION_ERROR = 5
EXIT_TOOL_ERROR = 6


class ResumeManagerError(Exception):
    """Base exception for Resume Manager errors."""

    exit_code = EXIT_ERROR

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ConfigurationError(ResumeManagerError):
    """Configuration or path-related errors."""

    exit_code = EXIT_CONFIG_ERROR


class StorageError(ResumeManagerError):
    """Backing file could not be read or written."""

    exit_code = EXIT_STORAGE_ERROR

    def __init__(self, message: str, missing: bool = False):
        self.missing = missing
        super().__init__(message)


class UnknownCollectionError(ResumeManagerError):
    """A collection name outside the seven known collections was used."""

    exit_code = EXIT_COLLECTION_ERROR

    def __init__(self, collection: str):
        self.collection = collection
        super().__init__(f"Unknown collection: {collection!r}")


class ValidationError(ResumeManagerError):
    """Malformed record fields or import payloads."""

    exit_code = EXIT_VALIDATION_ERROR


class ToolError(ResumeManagerError):
    """A tool call could not be completed (bad arguments, missing item)."""

    exit_code = EXIT_TOOL_ERROR

