"""Cloud Firestore driver: buckets are collections, primary keys are document ids."""

import logging
import os
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional

from google.api_core.exceptions import GoogleAPIError, NotFound
from google.cloud import firestore
from google.oauth2 import service_account

from ..exceptions import DriverError, PreconditionError
from .base import BaseDriver, RawPage, Record


if TYPE_CHECKING:  # pragma: no cover
    from ..document import Document
    from ..model import Model


logger = logging.getLogger(__name__)

DOCUMENT_ID_FIELD = "__name__"


class FirestoreDriver(BaseDriver):
    """Encapsulates a Firestore client and maps the driver contract onto it."""

    def __init__(
        self,
        client: Optional[firestore.Client] = None,
        project_id: Optional[str] = None,
        credentials_path: Optional[str] = None,
    ) -> None:
        """Initialize the Firestore client.

        Args:
            client: Ready client; when given, the other arguments are ignored.
            project_id: Optional Google Cloud project id override.
            credentials_path: Optional path to a service account json file.
        """
        if client is not None:
            self._client = client
            return
        try:
            if credentials_path:
                os.environ["GOOGLE_APPLICATION_CREDENTIALS"] = credentials_path
                credentials = service_account.Credentials.from_service_account_file(credentials_path)
                self._client = firestore.Client(project=project_id, credentials=credentials)
            else:
                self._client = firestore.Client(project=project_id) if project_id else firestore.Client()
            logger.info("FirestoreDriver initialized for project_id=%s", project_id)
        except Exception as exc:
            logger.exception("Failed to initialize Firestore client.")
            raise DriverError("Cannot initialize Firestore client", exc)

    def _collection(self, model: "Model"):
        return self._client.collection(model.bucket)

    @staticmethod
    def _record(model: "Model", snapshot) -> Record:
        data = snapshot.to_dict() or {}
        data[model.schema.primary_key] = snapshot.id
        return data

    @staticmethod
    def _body(model: "Model", payload: Mapping[str, Any]) -> Dict[str, Any]:
        primary_key = model.schema.primary_key
        return {name: value for name, value in payload.items() if name != primary_key}

    @staticmethod
    def _replacement(model: "Model", payload: Mapping[str, Any]) -> Dict[str, Any]:
        # Declared fields absent from the payload are deleted.
        body = FirestoreDriver._body(model, payload)
        updates = {firestore.Client.field_path(name): value for name, value in body.items()}
        for name in model.schema.property_names:
            if name != model.schema.primary_key and name not in body:
                updates[firestore.Client.field_path(name)] = firestore.DELETE_FIELD
        return updates

    def _query(self, model: "Model", spec: Mapping[str, Any]):
        collection = self._collection(model)
        query = collection
        for field_name, value in spec.items():
            if field_name == model.schema.primary_key:
                query = query.where(DOCUMENT_ID_FIELD, "==", collection.document(str(value)))
            else:
                query = query.where(field_name, "==", value)
        return query

    def create(self, model: "Model") -> Record:
        return {}

    def get(self, model: "Model", key: Any) -> Optional[Record]:
        try:
            snapshot = self._collection(model).document(str(key)).get()
            if not snapshot.exists:
                return None
            return self._record(model, snapshot)
        except GoogleAPIError as exc:
            logger.exception("Failed to get document collection=%s document_id=%s", model.bucket, key)
            raise DriverError("Firestore get failed for {0}".format(model.bucket), exc)

    def post(self, document: "Document", payload: Record) -> None:
        if document.primary_key is not None:
            raise PreconditionError(
                "You cannot call post on an object that already has a primary key. Clone it first."
            )
        model = document.model
        try:
            ref = self._collection(model).document()
            ref.set(self._body(model, payload))
        except GoogleAPIError as exc:
            logger.exception("Failed to insert document collection=%s", model.bucket)
            raise DriverError("Firestore insert failed for {0}".format(model.bucket), exc)
        document.primary_key = ref.id

    def put(self, document: "Document", payload: Record) -> None:
        """Replace the stored document in a single write.

        ``update`` fails on missing documents, so a put never inserts; the
        missing case is logged and ignored.
        """
        model = document.model
        key = str(document.primary_key)
        try:
            self._collection(model).document(key).update(self._replacement(model, payload))
        except NotFound:
            logger.debug("Put skipped, no document %s in collection %s", key, model.bucket)
            return None
        except GoogleAPIError as exc:
            logger.exception("Failed to replace document collection=%s document_id=%s", model.bucket, key)
            raise DriverError("Firestore replace failed for {0}".format(model.bucket), exc)
        return None

    def delete(self, model: "Model", spec: Mapping[str, Any]) -> int:
        try:
            snapshots = list(self._query(model, spec).stream())
            for snapshot in snapshots:
                snapshot.reference.delete()
        except GoogleAPIError as exc:
            logger.exception("Failed to delete documents collection=%s", model.bucket)
            raise DriverError("Firestore delete failed for {0}".format(model.bucket), exc)
        return len(snapshots)

    def find(self, model: "Model", spec: Mapping[str, Any]) -> List[Record]:
        try:
            return [self._record(model, snapshot) for snapshot in self._query(model, spec).stream()]
        except GoogleAPIError as exc:
            logger.exception("Failed query for collection=%s", model.bucket)
            raise DriverError("Firestore find failed for {0}".format(model.bucket), exc)

    def find_one(self, model: "Model", spec: Mapping[str, Any]) -> Optional[Record]:
        try:
            for snapshot in self._query(model, spec).limit(1).stream():
                return self._record(model, snapshot)
        except GoogleAPIError as exc:
            logger.exception("Failed query for collection=%s", model.bucket)
            raise DriverError("Firestore find_one failed for {0}".format(model.bucket), exc)
        return None

    def find_limit(self, model: "Model", spec: Mapping[str, Any], start: int, limit: int) -> RawPage:
        query = self._query(model, spec)
        try:
            aggregate = query.count().get()
            count = int(aggregate[0][0].value) if aggregate else 0
            snapshots = query.offset(start).limit(limit).stream() if limit > 0 else []
            docs = [self._record(model, snapshot) for snapshot in snapshots]
        except GoogleAPIError as exc:
            logger.exception("Failed paginated query for collection=%s", model.bucket)
            raise DriverError("Firestore find_limit failed for {0}".format(model.bucket), exc)
        return RawPage(count=count, docs=docs)
