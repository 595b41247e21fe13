"""Model: CRUD orchestration of documents wrapped in lifecycle hook cycles."""

from dataclasses import dataclass, field
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Type, Union

from .document import Document, bind_document_class
from .drivers import BaseDriver, DriverRegistry, default_registry
from .exceptions import ConfigurationError, PreconditionError
from .hookable import HookArgs, HookCallback, HookRegistry
from .schema import Schema


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Page:
    """One page of a paginated query."""

    count: int
    start: int
    limit: int
    docs: List[Document] = field(default_factory=list)


class Model:
    """A logical collection of documents stored through one driver.

    Args:
        name: Model name, used in logs and error messages.
        schema: Schema describing the documents; it must declare a primary key.
        bucket: Backend container name (collection, table, ...).
        driver: Driver instance, or the name of a driver in ``registry``.
        document_class: Document subclass to instantiate. Defaults to :class:`Document`.
        registry: Registry used to resolve ``driver`` names. Defaults to the
            process-wide registry.

    Raises:
        ConfigurationError: If the schema has no primary key or the driver name is unknown.
    """

    HOOKS: Tuple[str, ...] = (
        "did_create",
        "will_find",
        "did_find",
        "will_find_one",
        "did_find_one",
        "will_get",
        "did_get",
        "will_initialize",
        "did_initialize",
        "will_update",
        "did_update",
        "will_save",
        "did_save",
        "will_delete",
        "did_delete",
    )

    def __init__(
        self,
        name: str,
        schema: Schema,
        bucket: str,
        driver: Union[str, BaseDriver],
        document_class: Optional[Type[Document]] = None,
        registry: Optional[DriverRegistry] = None,
    ) -> None:
        if not schema.primary_key:
            raise ConfigurationError("Schema is missing a primary key")
        self.name = name
        self.schema = schema
        self.bucket = bucket
        registry = registry if registry is not None else default_registry
        self.driver = registry.instance(driver) if isinstance(driver, str) else driver
        self._bound_classes: Dict[type, Type[Document]] = {}
        self.document_class = self.bound_document_class(document_class or Document)

        self.instance_methods: Dict[str, Callable[..., Any]] = {}
        self.instance_properties: Dict[str, Any] = {}
        self.transformers: Dict[str, Dict[str, Callable[[Any], Any]]] = {}
        self._updateable_properties: Any = None
        self.updateable_properties_hash: Optional[Dict[str, int]] = None

        self.hook_registry = HookRegistry(self.HOOKS)
        logger.debug("Model %s bound to bucket %s", name, bucket)

    @property
    def hooks(self) -> Tuple[str, ...]:
        return self.hook_registry.names

    def hook(self, name: str, callback: Optional[HookCallback] = None):
        """Register ``callback`` for hook ``name``; usable as a decorator."""
        if callback is None:
            return lambda func: self.hook_registry.register(name, func)
        return self.hook_registry.register(name, callback)

    def unhook(self, name: str, callback: HookCallback) -> None:
        self.hook_registry.unregister(name, callback)

    def call_hook(self, name: str, args: HookArgs) -> None:
        self.hook_registry.call(name, args)

    def perform_hook_cycle(self, base_name: str, args: HookArgs, action: Callable[[], Any]) -> None:
        self.hook_registry.perform_cycle(base_name, args, action)

    @property
    def updateable_properties(self) -> Any:
        return self._updateable_properties

    @updateable_properties.setter
    def updateable_properties(self, value: Any) -> None:
        self._updateable_properties = value
        if value is None:
            self.updateable_properties_hash = None
        elif isinstance(value, Mapping):
            self.updateable_properties_hash = dict(value)
        else:
            self.updateable_properties_hash = {name: 1 for name in value}

    def bound_document_class(self, document_class: Type[Document]) -> Type[Document]:
        """Return ``document_class`` extended with accessors for this model's fields."""
        if getattr(document_class, "_bound_model", None) is self:
            return document_class
        bound = self._bound_classes.get(document_class)
        if bound is None:
            bound = bind_document_class(self, document_class)
            self._bound_classes[document_class] = bound
        return bound

    def _initialize(self, data: Mapping[str, Any]) -> Document:
        args = HookArgs(data=data, document_class=self.document_class)
        self.call_hook("will_initialize", args)
        args.document = self.bound_document_class(args.document_class)(self, args.data)
        self.call_hook("did_initialize", args)
        return args.document

    def create(self) -> Document:
        """Return a new, unsaved document filled with the schema defaults."""
        document = self._initialize(self.driver.create(self))
        raw = document.to_raw_json()
        for name in self.schema.property_names:
            if name == self.schema.primary_key or raw.get(name) is not None:
                continue
            default = self.schema.default_for(name)
            if default is not None:
                document.set(name, default)
        self.call_hook("did_create", HookArgs(document=document))
        return document

    def get(self, key: Any) -> Optional[Document]:
        """Fetch a document by primary key; returns None when it does not exist."""
        args = HookArgs(key=key, document=None)

        def action() -> None:
            data = self.driver.get(self, args.key)
            if data is not None:
                args.document = self._initialize(data)

        self.perform_hook_cycle("get", args, action)
        return args.document

    def get_or_create(self, key: Any) -> Tuple[Document, bool]:
        """Fetch a document, or create an unsaved one carrying ``key``.

        Returns:
            Tuple of the document and a flag telling whether it was created.
        """
        document = self.get(key)
        if document is not None:
            return document, False
        document = self.create()
        document.primary_key = key
        return document, True

    def find(self, spec: Mapping[str, Any]) -> List[Document]:
        args = HookArgs(spec=spec, documents=[])

        def action() -> None:
            records = self.driver.find(self, args.spec) or []
            args.documents = [self._initialize(data) for data in records]

        self.perform_hook_cycle("find", args, action)
        return args.documents

    def find_limit(self, spec: Mapping[str, Any], start: int, limit: int) -> Page:
        """Return one page of matches together with the total match count."""
        args = HookArgs(spec=spec, start=start, limit=limit, count=0, documents=[])

        def action() -> None:
            page = self.driver.find_limit(self, args.spec, start, limit)
            args.count = page.count
            args.documents = [self._initialize(data) for data in page.docs or []]

        self.perform_hook_cycle("find", args, action)
        return Page(count=args.count, start=start, limit=limit, docs=args.documents)

    def find_one(self, spec: Mapping[str, Any]) -> Optional[Document]:
        args = HookArgs(spec=spec, document=None)

        def action() -> None:
            data = self.driver.find_one(self, args.spec)
            if data is not None:
                args.document = self._initialize(data)

        self.perform_hook_cycle("find_one", args, action)
        return args.document

    def _update(self, document: Document, payload: Mapping[str, Any]) -> Document:
        args = HookArgs(doc=document, payload=payload)
        self.perform_hook_cycle("update", args, lambda: document._update(args.payload))
        return document

    def _save(self, document: Document) -> Document:
        self.schema.validate_document(document)
        payload = document.to_raw_json() if hasattr(document, "to_raw_json") else document
        args = HookArgs(doc=document, payload=payload)

        def action() -> None:
            if args.doc.primary_key is not None:
                self.driver.put(args.doc, args.payload)
            else:
                self.driver.post(args.doc, args.payload)

        self.perform_hook_cycle("save", args, action)
        logger.debug("Model %s saved document %r", self.name, document.primary_key)
        return document

    def _delete(self, document: Document) -> Optional[int]:
        if document.primary_key is None:
            raise PreconditionError("This document does not have a primary key")
        args = HookArgs(doc=document, count=None)

        def action() -> None:
            spec = {self.schema.primary_key: args.doc.primary_key}
            args.count = self.driver.delete(self, spec)

        self.perform_hook_cycle("delete", args, action)
        return args.count

    def __repr__(self) -> str:
        return "Model({0!r}, bucket={1!r})".format(self.name, self.bucket)
