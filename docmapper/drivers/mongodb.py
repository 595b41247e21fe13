"""MongoDB driver backed by pymongo collections."""

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional
from uuid import uuid4

from bson import ObjectId
from pymongo.database import Database
from pymongo.errors import PyMongoError

from ..exceptions import DriverError, PreconditionError
from .base import BaseDriver, RawPage, Record


if TYPE_CHECKING:  # pragma: no cover
    from ..document import Document
    from ..model import Model


logger = logging.getLogger(__name__)


class MongoDBDriver(BaseDriver):
    """Stores each model bucket in a collection of one MongoDB database.

    When the schema primary key is ``_id``, MongoDB assigns ObjectIds on insert
    and 24-character hex keys are converted back to ObjectIds on lookup. Any
    other primary-key field receives a random hex identifier.
    """

    def __init__(self, database: Database) -> None:
        self._database = database
        logger.info("Initialized MongoDBDriver database=%s", getattr(database, "name", database))

    def _collection(self, model: "Model"):
        return self._database[model.bucket]

    @staticmethod
    def _key(model: "Model", key: Any) -> Any:
        if model.schema.primary_key == "_id" and isinstance(key, str) and ObjectId.is_valid(key):
            return ObjectId(key)
        return key

    def _spec(self, model: "Model", spec: Mapping[str, Any]) -> Dict[str, Any]:
        query = dict(spec)
        primary_key = model.schema.primary_key
        if primary_key in query:
            query[primary_key] = self._key(model, query[primary_key])
        return query

    def create(self, model: "Model") -> Record:
        return {}

    def get(self, model: "Model", key: Any) -> Optional[Record]:
        try:
            return self._collection(model).find_one({model.schema.primary_key: self._key(model, key)})
        except PyMongoError as exc:
            logger.exception("Failed to get key=%s bucket=%s", key, model.bucket)
            raise DriverError("MongoDB get failed for {0}".format(model.bucket), exc)

    def post(self, document: "Document", payload: Record) -> None:
        if document.primary_key is not None:
            raise PreconditionError(
                "You cannot call post on an object that already has a primary key. Clone it first."
            )
        model = document.model
        primary_key = model.schema.primary_key
        body = {name: value for name, value in payload.items() if not (name == primary_key and value is None)}
        if primary_key != "_id":
            body[primary_key] = uuid4().hex
        try:
            result = self._collection(model).insert_one(body)
        except PyMongoError as exc:
            logger.exception("Failed to insert into bucket=%s", model.bucket)
            raise DriverError("MongoDB insert failed for {0}".format(model.bucket), exc)
        document.primary_key = result.inserted_id if primary_key == "_id" else body[primary_key]

    def put(self, document: "Document", payload: Record) -> None:
        model = document.model
        primary_key = model.schema.primary_key
        key = self._key(model, document.primary_key)
        body = dict(payload)
        body[primary_key] = key
        try:
            result = self._collection(model).replace_one({primary_key: key}, body)
        except PyMongoError as exc:
            logger.exception("Failed to replace key=%s bucket=%s", key, model.bucket)
            raise DriverError("MongoDB replace failed for {0}".format(model.bucket), exc)
        if not result.matched_count:
            logger.debug("Put skipped, no record %s in bucket %s", key, model.bucket)
        return None

    def delete(self, model: "Model", spec: Mapping[str, Any]) -> int:
        try:
            result = self._collection(model).delete_many(self._spec(model, spec))
        except PyMongoError as exc:
            logger.exception("Failed to delete spec=%s bucket=%s", spec, model.bucket)
            raise DriverError("MongoDB delete failed for {0}".format(model.bucket), exc)
        return result.deleted_count

    def find(self, model: "Model", spec: Mapping[str, Any]) -> List[Record]:
        try:
            return list(self._collection(model).find(self._spec(model, spec)))
        except PyMongoError as exc:
            logger.exception("Failed query spec=%s bucket=%s", spec, model.bucket)
            raise DriverError("MongoDB find failed for {0}".format(model.bucket), exc)

    def find_one(self, model: "Model", spec: Mapping[str, Any]) -> Optional[Record]:
        try:
            return self._collection(model).find_one(self._spec(model, spec))
        except PyMongoError as exc:
            logger.exception("Failed query spec=%s bucket=%s", spec, model.bucket)
            raise DriverError("MongoDB find_one failed for {0}".format(model.bucket), exc)

    def find_limit(self, model: "Model", spec: Mapping[str, Any], start: int, limit: int) -> RawPage:
        query = self._spec(model, spec)
        collection = self._collection(model)
        try:
            count = collection.count_documents(query)
            # A zero limit means "no limit" to MongoDB.
            docs = list(collection.find(query).skip(start).limit(limit)) if limit > 0 else []
        except PyMongoError as exc:
            logger.exception("Failed paginated query spec=%s bucket=%s", spec, model.bucket)
            raise DriverError("MongoDB find_limit failed for {0}".format(model.bucket), exc)
        return RawPage(count=count, docs=docs)
