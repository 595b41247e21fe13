"""Schema-bound documents with generated field accessors."""

import logging
import types
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Mapping, Optional, Type

from .exceptions import PreconditionError


if TYPE_CHECKING:  # pragma: no cover
    from .model import Model


logger = logging.getLogger(__name__)


class Document:
    """Live wrapper around one raw record of a Model.

    Field access goes through :meth:`get`, :meth:`set` and :meth:`delete_property`,
    which only accept the property names declared by the model schema. Models bind
    a subclass of this class that carries one generated property per declared
    field, so ``doc.name = "x"`` and ``doc["name"] = "x"`` are equivalent to
    ``doc.set("name", "x")``.
    """

    __slots__ = ("_model", "_data")

    def __init__(self, model: "Model", data: Optional[Mapping[str, Any]] = None) -> None:
        object.__setattr__(self, "_model", model)
        object.__setattr__(self, "_data", dict(data or {}))

    @property
    def model(self) -> "Model":
        return self._model

    @property
    def primary_key(self) -> Any:
        """Return the raw primary-key value, or None before the first save."""
        return self._data.get(self._model.schema.primary_key)

    @primary_key.setter
    def primary_key(self, value: Any) -> None:
        field = self._model.schema.primary_key
        if value is None:
            self._data.pop(field, None)
        else:
            self._data[field] = value

    def _check_declared(self, name: str) -> None:
        if not self._model.schema.has_property(name):
            raise PreconditionError(
                "Property {0} is not declared by model {1}".format(name, self._model.name)
            )

    def _transformer(self, name: str, direction: str):
        transformer = self._model.transformers.get(name) or {}
        return transformer.get(direction)

    def get(self, name: str) -> Any:
        """Return the value of a declared property after its get transformer.

        Unset properties read as None; their get transformer is not called.
        """
        self._check_declared(name)
        value = self._data.get(name)
        if value is None:
            return None
        getter = self._transformer(name, "get")
        return getter(value) if getter else value

    def set(self, name: str, value: Any) -> None:
        """Store a declared property through its set transformer.

        Raises:
            PreconditionError: If ``name`` is undeclared or is the primary-key field.
        """
        self._check_declared(name)
        if name == self._model.schema.primary_key:
            raise PreconditionError(
                "Property {0} is the primary key; assign primary_key instead".format(name)
            )
        setter = self._transformer(name, "set")
        self._data[name] = setter(value) if setter else value

    def delete_property(self, name: str) -> None:
        self._data.pop(name, None)

    def keys(self) -> List[str]:
        return self._model.schema.property_names

    def to_raw_json(self) -> Dict[str, Any]:
        """Return a shallow copy of the raw record, as handed to drivers."""
        return dict(self._data)

    def save(self) -> "Document":
        return self._model._save(self)

    def delete(self) -> Optional[int]:
        """Delete the stored record and return the number of records removed."""
        if self.primary_key is None:
            raise PreconditionError("This document does not have a primary key")
        return self._model._delete(self)

    def update(self, payload: Mapping[str, Any]) -> "Document":
        """Merge ``payload`` into the document through the model update hooks."""
        return self._model._update(self, payload)

    def _update(self, payload: Mapping[str, Any]) -> None:
        """Raw merge of ``payload``; set transformers are not applied."""
        allowed = self._model.updateable_properties_hash
        primary_key = self._model.schema.primary_key
        for name in payload:
            self._check_declared(name)
            if name == primary_key or (allowed is not None and name not in allowed):
                raise PreconditionError("The property {0} cannot be updated".format(name))
        for name, value in payload.items():
            self._data[name] = value

    def __getitem__(self, name: str) -> Any:
        return self.get(name)

    def __setitem__(self, name: str, value: Any) -> None:
        self.set(name, value)

    def __delitem__(self, name: str) -> None:
        self._check_declared(name)
        self.delete_property(name)

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self._model.schema.has_property(name)

    def __getattr__(self, name: str) -> Any:
        # Only reached when regular lookup fails: model-level extensions.
        if name.startswith("__"):
            raise AttributeError(name)
        model = object.__getattribute__(self, "_model")
        if name in model.instance_methods:
            return types.MethodType(model.instance_methods[name], self)
        if name in model.instance_properties:
            getter = _accessor(model.instance_properties[name], "get")
            if getter is None:
                raise AttributeError("Instance property {0} is not readable".format(name))
            return getter(self)
        raise AttributeError(
            "{0} has no attribute {1}".format(type(self).__name__, name)
        )

    def __setattr__(self, name: str, value: Any) -> None:
        if isinstance(getattr(type(self), name, None), property):
            object.__setattr__(self, name, value)
            return
        if name in self._model.instance_properties:
            setter = _accessor(self._model.instance_properties[name], "set")
            if setter is None:
                raise PreconditionError("Instance property {0} is read-only".format(name))
            setter(self, value)
            return
        raise PreconditionError("You cannot add properties to a document directly: {0}".format(name))

    def __delattr__(self, name: str) -> None:
        if isinstance(getattr(type(self), name, None), property):
            object.__delattr__(self, name)
            return
        raise PreconditionError("You cannot delete property {0} of a document".format(name))

    def __dir__(self) -> List[str]:
        model = self._model
        return sorted(
            set(super().__dir__())
            | set(model.schema.property_names)
            | set(model.instance_methods)
            | set(model.instance_properties)
        )

    def __repr__(self) -> str:
        return "<{0} {1}={2!r}>".format(
            type(self).__name__, self._model.schema.primary_key, self.primary_key
        )


def _accessor(definition: Any, direction: str):
    if isinstance(definition, property):
        return definition.fget if direction == "get" else definition.fset
    return definition.get(direction)


def _field_property(name: str) -> property:
    def getter(self):
        return self.get(name)

    def setter(self, value):
        self.set(name, value)

    def deleter(self):
        self.delete_property(name)

    return property(getter, setter, deleter, "Schema property {0}.".format(name))


def bind_document_class(model: "Model", base: Type[Document] = Document) -> Type[Document]:
    """Return a ``base`` subclass with one accessor per declared schema property.

    Properties whose name is not an identifier or would shadow a Document
    attribute are left to :meth:`Document.get` and item access.
    """
    namespace: Dict[str, Any] = {
        "__module__": base.__module__,
        "__slots__": (),
        "__qualname__": base.__qualname__,
        "_bound_model": model,
    }
    for name in model.schema.property_names:
        if not name.isidentifier() or hasattr(base, name):
            logger.warning(
                "Model %s: property %s has no attribute accessor; use item access", model.name, name
            )
            continue
        namespace[name] = _field_property(name)
    return type(base.__name__, (base,), namespace)
