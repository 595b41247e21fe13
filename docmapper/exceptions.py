"""Custom exceptions for the schema, model, and driver layers."""

from typing import Any, List, Optional


class DocMapperError(Exception):
    """Base class for every docmapper failure.

    Attributes:
        message: Human readable description of the failure.
        cause: Optional underlying exception that triggered this one.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        if self.cause is None:
            return self.message
        return "{0}: {1}".format(self.message, self.cause)


class ConfigurationError(DocMapperError):
    """Raised for invalid setup: missing primary keys, unknown drivers or hooks."""


class SchemaValidationError(DocMapperError):
    """Raised when a document does not satisfy its schema."""

    @property
    def errors(self) -> List[Any]:
        """Return the structured validation errors of the wrapped cause, if any."""
        if self.cause is not None and hasattr(self.cause, "errors"):
            return list(self.cause.errors())
        return []


class PreconditionError(DocMapperError):
    """Raised when an operation is attempted on a document in the wrong state."""


class DriverError(DocMapperError):
    """Raised when a storage backend client fails."""
