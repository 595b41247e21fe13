"""Public package exports for docmapper."""

from . import drivers
from .document import Document
from .exceptions import (
    ConfigurationError,
    DocMapperError,
    DriverError,
    PreconditionError,
    SchemaValidationError,
)
from .hookable import HookArgs, HookRegistry
from .model import Model, Page
from .schema import Schema

__version__ = "0.1.0"

__all__ = [
    "drivers",
    "Document",
    "HookArgs",
    "HookRegistry",
    "Model",
    "Page",
    "Schema",
    "DocMapperError",
    "ConfigurationError",
    "DriverError",
    "PreconditionError",
    "SchemaValidationError",
]
