"""Unit tests for the Firestore driver against a mocked client."""

import unittest
from unittest.mock import MagicMock

from google.api_core.exceptions import GoogleAPIError, NotFound
from google.cloud import firestore

from docmapper import Model, Schema
from docmapper.drivers.firestore import DOCUMENT_ID_FIELD, FirestoreDriver
from docmapper.exceptions import DriverError


DEFINITION = {
    "properties": {
        "id": {"type": "string"},
        "name": {"type": "string"},
        "score": {"type": "integer"},
    },
}


def _snapshot(doc_id: str, data: dict, exists: bool = True) -> MagicMock:
    snapshot = MagicMock()
    snapshot.id = doc_id
    snapshot.exists = exists
    snapshot.to_dict.return_value = dict(data)
    return snapshot


class FirestoreDriverTests(unittest.TestCase):
    """Validate the mapping of the driver contract onto Firestore calls."""

    def setUp(self) -> None:
        self.client = MagicMock()
        self.collection = self.client.collection.return_value
        self.driver = FirestoreDriver(client=self.client)
        self.model = Model("Player", Schema("player", DEFINITION, primary_key="id"), "players", self.driver)

    def test_get_returns_record_with_document_id(self) -> None:
        """Expose the document id under the primary-key field."""
        self.collection.document.return_value.get.return_value = _snapshot("p1", {"name": "Ana"})
        doc = self.model.get("p1")
        self.client.collection.assert_called_with("players")
        self.collection.document.assert_called_with("p1")
        self.assertEqual(doc.primary_key, "p1")
        self.assertEqual(doc.name, "Ana")

    def test_get_missing_document_returns_none(self) -> None:
        """Treat a missing snapshot as absence."""
        self.collection.document.return_value.get.return_value = _snapshot("p1", {}, exists=False)
        self.assertIsNone(self.model.get("p1"))

    def test_post_uses_generated_document_id(self) -> None:
        """Store the body without the key and adopt the generated id."""
        ref = self.collection.document.return_value
        ref.id = "generated"
        doc = self.model.create()
        doc.name = "Ana"
        doc.save()
        ref.set.assert_called_with({"name": "Ana"})
        self.assertEqual(doc.primary_key, "generated")

    def test_put_skips_missing_documents(self) -> None:
        """Never create documents through put."""
        ref = self.collection.document.return_value
        ref.update.side_effect = NotFound("no document p9")
        doc = self.model.create()
        doc.primary_key = "p9"
        doc.save()
        ref.update.assert_called_once()
        ref.get.assert_not_called()
        ref.set.assert_not_called()

    def test_put_replaces_existing_documents(self) -> None:
        """Replace the stored document with one write, removing unset fields."""
        ref = self.collection.document.return_value
        doc = self.model.create()
        doc.primary_key = "p1"
        doc.name = "Bea"
        doc.save()
        self.collection.document.assert_called_with("p1")
        ref.update.assert_called_once_with({"name": "Bea", "score": firestore.DELETE_FIELD})
        ref.get.assert_not_called()

    def test_find_translates_spec_into_filters(self) -> None:
        """Use equality filters and document-id filters for the key."""
        query = self.collection.where.return_value
        query.where.return_value.stream.return_value = [_snapshot("p1", {"name": "Ana"})]
        docs = self.model.find({"name": "Ana", "id": "p1"})
        self.collection.where.assert_called_with("name", "==", "Ana")
        self.assertEqual(query.where.call_args[0][0], DOCUMENT_ID_FIELD)
        self.assertEqual([doc.primary_key for doc in docs], ["p1"])

    def test_delete_removes_each_match(self) -> None:
        """Delete every matching snapshot and report the count."""
        snapshots = [_snapshot("p1", {}), _snapshot("p2", {})]
        self.collection.where.return_value.stream.return_value = snapshots
        self.assertEqual(self.driver.delete(self.model, {"name": "Ana"}), 2)
        for snapshot in snapshots:
            snapshot.reference.delete.assert_called_once_with()

    def test_find_limit_counts_and_pages(self) -> None:
        """Count with an aggregation and page with offset and limit."""
        query = self.collection.where.return_value
        aggregate = MagicMock()
        aggregate.value = 7
        query.count.return_value.get.return_value = [[aggregate]]
        query.offset.return_value.limit.return_value.stream.return_value = [
            _snapshot("p3", {"score": 3}),
            _snapshot("p4", {"score": 4}),
        ]
        page = self.model.find_limit({"score": 1}, 2, 2)
        query.offset.assert_called_with(2)
        self.assertEqual(page.count, 7)
        self.assertEqual([doc.score for doc in page.docs], [3, 4])

    def test_find_one_returns_none_without_match(self) -> None:
        """Return None when the limited query yields nothing."""
        self.collection.where.return_value.limit.return_value.stream.return_value = []
        self.assertIsNone(self.model.find_one({"name": "Nobody"}))

    def test_client_errors_become_driver_errors(self) -> None:
        """Wrap Google API failures, keeping the original as cause."""
        failure = GoogleAPIError("unavailable")
        self.collection.document.return_value.get.side_effect = failure
        with self.assertLogs("docmapper.drivers.firestore", level="ERROR"):
            with self.assertRaises(DriverError) as ctx:
                self.model.get("p1")
        self.assertIs(ctx.exception.cause, failure)


if __name__ == "__main__":
    unittest.main()
