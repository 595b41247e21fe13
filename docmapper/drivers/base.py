"""Driver contract every storage backend implements."""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, NamedTuple, Optional


if TYPE_CHECKING:  # pragma: no cover
    from ..document import Document
    from ..model import Model


Record = Dict[str, Any]


class RawPage(NamedTuple):
    """Driver-level page: total match count and the raw records of one page."""

    count: int
    docs: List[Record]


class BaseDriver(ABC):
    """Common contract for record creation, lookup, persistence and deletion.

    Not-found outcomes return None (or an empty result) and never raise.
    """

    @abstractmethod
    def create(self, model: "Model") -> Record:
        """Return a fresh, empty raw record for ``model``."""

    @abstractmethod
    def get(self, model: "Model", key: Any) -> Optional[Record]:
        """Return the raw record stored under ``key`` or None."""

    @abstractmethod
    def post(self, document: "Document", payload: Record) -> None:
        """Insert ``payload`` and assign the new key to ``document.primary_key``.

        Raises:
            PreconditionError: If the document already carries a primary key.
        """

    @abstractmethod
    def put(self, document: "Document", payload: Record) -> None:
        """Replace the record keyed by ``document.primary_key``.

        Unknown keys are left alone; put never inserts.
        """

    @abstractmethod
    def delete(self, model: "Model", spec: Mapping[str, Any]) -> int:
        """Delete every record matching ``spec`` and return how many were removed."""

    @abstractmethod
    def find(self, model: "Model", spec: Mapping[str, Any]) -> List[Record]:
        """Return every raw record matching ``spec``."""

    @abstractmethod
    def find_one(self, model: "Model", spec: Mapping[str, Any]) -> Optional[Record]:
        """Return the first raw record matching ``spec`` or None."""

    @abstractmethod
    def find_limit(self, model: "Model", spec: Mapping[str, Any], start: int, limit: int) -> RawPage:
        """Return the total match count and the records of one page."""
