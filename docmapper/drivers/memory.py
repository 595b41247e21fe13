"""In-process dictionary driver, mainly for tests and prototyping."""

import copy
import logging
import numbers
import re
from threading import RLock
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional
from uuid import uuid4

from ..exceptions import PreconditionError
from .base import BaseDriver, RawPage, Record


if TYPE_CHECKING:  # pragma: no cover
    from ..document import Document
    from ..model import Model


logger = logging.getLogger(__name__)


def match_spec(record: Mapping[str, Any], spec: Mapping[str, Any]) -> bool:
    """Return True when ``record`` satisfies every condition in ``spec``.

    Numbers compare numerically, strings and compiled patterns are searched as
    regular expressions in the string form of the field, anything else compares
    by equality. Missing fields never match.
    """
    for key, expected in spec.items():
        if key not in record:
            return False
        actual = record[key]
        if isinstance(expected, numbers.Number) and not isinstance(expected, bool):
            try:
                if float(actual) != expected:
                    return False
            except (TypeError, ValueError):
                return False
        elif isinstance(expected, (str, re.Pattern)):
            if re.search(expected, str(actual)) is None:
                return False
        elif actual != expected:
            return False
    return True


class MemoryDriver(BaseDriver):
    """Keeps records in per-bucket dictionaries, in insertion order."""

    def __init__(self) -> None:
        self._buckets: Dict[str, Dict[Any, Record]] = {}
        self._lock = RLock()

    def _bucket(self, model: "Model") -> Dict[Any, Record]:
        return self._buckets.setdefault(model.bucket, {})

    def create(self, model: "Model") -> Record:
        return {}

    def get(self, model: "Model", key: Any) -> Optional[Record]:
        with self._lock:
            record = self._bucket(model).get(key)
            return copy.deepcopy(record) if record is not None else None

    def post(self, document: "Document", payload: Record) -> None:
        if document.primary_key is not None:
            raise PreconditionError(
                "You cannot call post on an object that already has a primary key. Clone it first."
            )
        model = document.model
        key = uuid4().hex
        record = copy.deepcopy(dict(payload))
        record[model.schema.primary_key] = key
        with self._lock:
            self._bucket(model)[key] = record
        document.primary_key = key
        logger.debug("Inserted %s into bucket %s", key, model.bucket)

    def put(self, document: "Document", payload: Record) -> None:
        model = document.model
        key = document.primary_key
        with self._lock:
            bucket = self._bucket(model)
            if key not in bucket:
                logger.debug("Put skipped, no record %s in bucket %s", key, model.bucket)
                return None
            record = copy.deepcopy(dict(payload))
            record[model.schema.primary_key] = key
            bucket[key] = record
        return None

    def delete(self, model: "Model", spec: Mapping[str, Any]) -> int:
        primary_key = model.schema.primary_key
        with self._lock:
            bucket = self._bucket(model)
            if set(spec) == {primary_key}:
                keys = [spec[primary_key]] if spec[primary_key] in bucket else []
            else:
                keys = [key for key, record in bucket.items() if match_spec(record, spec)]
            for key in keys:
                del bucket[key]
        return len(keys)

    def _matches(self, model: "Model", spec: Mapping[str, Any]) -> List[Record]:
        with self._lock:
            return [
                copy.deepcopy(record)
                for record in self._bucket(model).values()
                if match_spec(record, spec)
            ]

    def find(self, model: "Model", spec: Mapping[str, Any]) -> List[Record]:
        return self._matches(model, spec)

    def find_one(self, model: "Model", spec: Mapping[str, Any]) -> Optional[Record]:
        with self._lock:
            for record in self._bucket(model).values():
                if match_spec(record, spec):
                    return copy.deepcopy(record)
        return None

    def find_limit(self, model: "Model", spec: Mapping[str, Any], start: int, limit: int) -> RawPage:
        matches = self._matches(model, spec)
        return RawPage(count=len(matches), docs=matches[start:start + limit])

    def clear(self, bucket: Optional[str] = None) -> None:
        """Drop every record, or only those of ``bucket``."""
        with self._lock:
            if bucket is None:
                self._buckets.clear()
            else:
                self._buckets.pop(bucket, None)
