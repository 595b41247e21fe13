"""JSON-Schema-like document descriptors compiled to pydantic validators."""

import copy
import logging
from typing import Any, Dict, List, Literal, Mapping, Optional, Tuple, Type, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, create_model

from .exceptions import ConfigurationError, SchemaValidationError


logger = logging.getLogger(__name__)

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

_TYPE_MAPPING: Dict[str, Any] = {
    "string": str,
    "integer": int,
    "number": float,
    "boolean": bool,
    "array": list,
    "object": dict,
    "null": type(None),
}

_STRING_CONSTRAINTS = {"minLength": "min_length", "maxLength": "max_length", "pattern": "pattern"}
_NUMBER_CONSTRAINTS = {
    "minimum": "ge",
    "maximum": "le",
    "exclusiveMinimum": "gt",
    "exclusiveMaximum": "lt",
}
_ARRAY_CONSTRAINTS = {"minItems": "min_length", "maxItems": "max_length"}


class Schema:
    """Immutable descriptor of a document shape plus its primary-key field.

    Args:
        name: Identifier used in log and error messages.
        definition: JSON-Schema-like mapping with ``properties`` and ``required``.
        primary_key: Name of the field holding the record identity. It may also be
            assigned once after construction.
    """

    def __init__(self, name: str, definition: Mapping[str, Any], primary_key: Optional[str] = None) -> None:
        if not isinstance(definition, Mapping):
            raise ConfigurationError("Schema {0} definition must be a mapping".format(name))
        self.name = name
        self._definition = copy.deepcopy(dict(definition))
        self._properties: Dict[str, Dict[str, Any]] = dict(self._definition.get("properties") or {})
        self._required: Tuple[str, ...] = tuple(self._definition.get("required") or ())
        self._primary_key: Optional[str] = None
        self._validator: Optional[Type[BaseModel]] = None
        if primary_key is not None:
            self.primary_key = primary_key

    @property
    def definition(self) -> Dict[str, Any]:
        """Return a copy of the raw schema definition."""
        return copy.deepcopy(self._definition)

    @property
    def properties(self) -> Dict[str, Dict[str, Any]]:
        """Return property descriptors keyed by name, in declaration order."""
        return copy.deepcopy(self._properties)

    @property
    def property_names(self) -> List[str]:
        """Return declared property names in declaration order."""
        return list(self._properties)

    @property
    def required(self) -> Tuple[str, ...]:
        return self._required

    @property
    def primary_key(self) -> Optional[str]:
        return self._primary_key

    @primary_key.setter
    def primary_key(self, value: str) -> None:
        if not value:
            raise ConfigurationError("Schema {0} primary key cannot be empty".format(self.name))
        if self._primary_key is not None and self._primary_key != value:
            raise ConfigurationError(
                "Schema {0} already uses primary key {1}".format(self.name, self._primary_key)
            )
        self._primary_key = value

    def has_property(self, name: str) -> bool:
        return name in self._properties

    def default_for(self, name: str) -> Any:
        """Return a fresh copy of the declared default for ``name`` or None."""
        descriptor = self._properties.get(name) or {}
        return copy.deepcopy(descriptor.get("default"))

    def validate_document(self, document: Any) -> None:
        """Validate a document or plain mapping against the declared properties.

        Documents are validated on their presented values, i.e. after get
        transformers. Unset optional values are ignored.

        Raises:
            SchemaValidationError: If the values do not satisfy the schema.
        """
        values = self._presented_values(document)
        missing = [name for name in self._required if values.get(name) is None]
        if missing:
            raise SchemaValidationError(
                "Schema {0}: missing required properties {1}".format(self.name, ", ".join(missing))
            )
        payload = {name: value for name, value in values.items() if value is not None}
        try:
            self._compiled().model_validate(payload)
        except ValidationError as exc:
            logger.debug("Validation failed for schema %s: %s", self.name, exc)
            raise SchemaValidationError("Schema {0}: document failed validation".format(self.name), exc)

    def _presented_values(self, document: Any) -> Dict[str, Any]:
        if isinstance(document, Mapping):
            return dict(document)
        return {name: document.get(name) for name in self._properties}

    def _compiled(self) -> Type[BaseModel]:
        if self._validator is None:
            self._validator = self._build_validator()
        return self._validator

    def _build_validator(self) -> Type[BaseModel]:
        fields: Dict[str, Any] = {}
        for index, (name, descriptor) in enumerate(self._properties.items()):
            annotation, field_kwargs = _field_definition(descriptor or {})
            fields["field_{0}".format(index)] = (
                annotation,
                Field(default=None, alias=name, **field_kwargs),
            )
        model_name = "".join(part.capitalize() for part in str(self.name).replace("-", "_").split("_")) or "Document"
        return create_model(
            "{0}Validator".format(model_name),
            __config__=ConfigDict(extra="forbid", strict=True, populate_by_name=False),
            **fields,
        )

    def __repr__(self) -> str:
        return "Schema({0!r}, primary_key={1!r})".format(self.name, self._primary_key)


def _field_definition(descriptor: Mapping[str, Any]) -> Tuple[Any, Dict[str, Any]]:
    """Translate one property descriptor into a type annotation and Field kwargs."""
    if "enum" in descriptor:
        return Literal[tuple(descriptor["enum"])], {}

    declared = descriptor.get("type")
    if declared is None:
        return Any, {}
    type_names = [declared] if isinstance(declared, str) else list(declared)
    unknown = [name for name in type_names if name not in _TYPE_MAPPING]
    if unknown:
        raise ConfigurationError("Unsupported schema type(s): {0}".format(", ".join(unknown)))

    concrete = [name for name in type_names if name != "null"]
    if len(concrete) != 1:
        members = tuple(_TYPE_MAPPING[name] for name in type_names)
        return (Union[members] if len(members) > 1 else members[0]), {}

    type_name = concrete[0]
    field_kwargs: Dict[str, Any] = {}
    if type_name == "string":
        for key, target in _STRING_CONSTRAINTS.items():
            if key in descriptor:
                field_kwargs[target] = descriptor[key]
        if descriptor.get("format") == "email" and "pattern" not in field_kwargs:
            field_kwargs["pattern"] = EMAIL_PATTERN
    elif type_name in ("integer", "number"):
        for key, target in _NUMBER_CONSTRAINTS.items():
            if key in descriptor:
                field_kwargs[target] = descriptor[key]
    elif type_name == "array":
        for key, target in _ARRAY_CONSTRAINTS.items():
            if key in descriptor:
                field_kwargs[target] = descriptor[key]
    return _TYPE_MAPPING[type_name], field_kwargs
