"""Custom exceptions for the module importer.

Exception Hierarchy:
    ModuleImporterError (base)
    ├── FixtureError
    │   ├── FixtureNotFoundError
    │   └── FixtureParseError
    ├── StorageError
    │   ├── CredentialsNotFoundError
    │   ├── StorageConnectionError
    │   ├── DocumentWriteError
    │   └── ResetError (recoverable, with deleted count)
    ├── ValidationError
    │   └── InvalidRecordError
    └── ConfigurationError
"""

from typing import Optional


class ModuleImporterError(Exception):
    """Base exception for all module importer errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# Fixture Errors
# =============================================================================

class FixtureError(ModuleImporterError):
    """Base class for fixture file errors."""

    def __init__(self, message: str, path: Optional[str] = None, **kwargs):
        self.path = path
        details = kwargs.pop('details', {})
        if path:
            details['path'] = path
        super().__init__(message, details=details)


class FixtureNotFoundError(FixtureError):
    """Raised when a required fixture file does not exist."""

    def __init__(self, path: str):
        super().__init__(f"Fixture file not found: '{path}'", path=path)


class FixtureParseError(FixtureError):
    """Raised when a fixture file is not a valid JSON array."""

    def __init__(self, path: str, reason: Optional[str] = None):
        self.reason = reason
        message = f"Could not parse fixture file '{path}'"
        if reason:
            message += f": {reason}"
        super().__init__(message, path=path, details={'reason': reason})


# =============================================================================
# Storage Errors
# =============================================================================

class StorageError(ModuleImporterError):
    """Base class for document store errors."""
    pass


class CredentialsNotFoundError(StorageError):
    """Raised when the service account key file is missing."""

    def __init__(self, credentials_path: str):
        self.credentials_path = credentials_path
        super().__init__(
            f"Service account key not found: '{credentials_path}'",
            details={'credentials_path': credentials_path}
        )


class StorageConnectionError(StorageError):
    """Raised when the Firestore client cannot be initialized."""

    def __init__(self, credentials_path: str, reason: Optional[str] = None):
        self.credentials_path = credentials_path
        message = "Failed to connect to Firestore"
        if reason:
            message += f": {reason}"
        super().__init__(message, details={'credentials_path': credentials_path, 'reason': reason})


class DocumentWriteError(StorageError):
    """Raised when a merge write to a document fails."""

    def __init__(self, document_path: str, reason: Optional[str] = None):
        self.document_path = document_path
        message = f"Failed to write document '{document_path}'"
        if reason:
            message += f": {reason}"
        super().__init__(message, details={'document_path': document_path, 'reason': reason})


class ResetError(StorageError):
    """Raised when a collection could not be emptied.

    Attributes:
        deleted: Number of documents removed before the failure
    """

    def __init__(self, collection_path: str, deleted: int = 0,
                 reason: Optional[str] = None):
        self.collection_path = collection_path
        self.deleted = deleted
        message = f"Reset of '{collection_path}' failed after {deleted} deletions"
        if reason:
            message += f": {reason}"
        super().__init__(
            message,
            details={'collection_path': collection_path, 'deleted': deleted, 'reason': reason}
        )


# =============================================================================
# Validation Errors
# =============================================================================

class ValidationError(ModuleImporterError):
    """Raised when fixture data cannot be used."""

    def __init__(self, message: str, field: Optional[str] = None,
                 value: Optional[str] = None):
        self.field = field
        self.value = value
        details = {}
        if field:
            details['field'] = field
        if value is not None:
            details['value'] = str(value)[:100]  # Truncate long values
        super().__init__(message, details=details)


class InvalidRecordError(ValidationError):
    """Raised when a record has no usable document id."""

    def __init__(self, dataset: str, record: object):
        self.dataset = dataset
        super().__init__(
            f"Record in '{dataset}' has no usable 'id'",
            field='id',
            value=record
        )


# =============================================================================
# Configuration Errors
# =============================================================================

class ConfigurationError(ModuleImporterError):
    """Raised when there's a configuration problem."""

    def __init__(self, message: str, config_key: Optional[str] = None):
        self.config_key = config_key
        super().__init__(message, details={'config_key': config_key})
