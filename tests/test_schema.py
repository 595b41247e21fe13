"""Unit tests for schema descriptors and validation."""

import unittest

from docmapper.exceptions import ConfigurationError, SchemaValidationError
from docmapper.schema import Schema


DEFINITION = {
    "type": "object",
    "required": ["name", "email"],
    "properties": {
        "name": {"type": "string", "minLength": 2, "maxLength": 20},
        "email": {"type": "string", "format": "email"},
        "age": {"type": "integer", "minimum": 0},
        "status": {"enum": ["active", "retired"], "default": "active"},
        "tags": {"type": "array", "maxItems": 2, "default": []},
        "_id": {"type": "string", "minLength": 24, "maxLength": 24},
    },
}


class SchemaTests(unittest.TestCase):
    """Validate descriptor access and pydantic-backed validation."""

    def setUp(self) -> None:
        self.schema = Schema("person", DEFINITION, primary_key="_id")

    def _valid(self, **overrides) -> dict:
        values = {"name": "Marco", "email": "marco@example.org"}
        values.update(overrides)
        return values

    def test_property_names_keep_declaration_order(self) -> None:
        """Return property names as declared."""
        self.assertEqual(self.schema.property_names, ["name", "email", "age", "status", "tags", "_id"])
        self.assertEqual(self.schema.required, ("name", "email"))

    def test_defaults_are_fresh_copies(self) -> None:
        """Return independent copies of mutable defaults."""
        first = self.schema.default_for("tags")
        first.append("x")
        self.assertEqual(self.schema.default_for("tags"), [])
        self.assertIsNone(self.schema.default_for("age"))

    def test_primary_key_can_be_assigned_once(self) -> None:
        """Allow out-of-band primary key assignment but not a change."""
        schema = Schema("late", DEFINITION)
        self.assertIsNone(schema.primary_key)
        schema.primary_key = "_id"
        self.assertEqual(schema.primary_key, "_id")
        with self.assertRaises(ConfigurationError):
            schema.primary_key = "name"

    def test_valid_payload_passes(self) -> None:
        """Accept a payload satisfying every constraint."""
        self.assertIsNone(self.schema.validate_document(self._valid(age=30, tags=["a"], _id="a" * 24)))

    def test_missing_required_property_fails(self) -> None:
        """Reject payloads without required values."""
        with self.assertRaises(SchemaValidationError):
            self.schema.validate_document({"name": "Marco"})
        with self.assertRaises(SchemaValidationError):
            self.schema.validate_document(self._valid(email=None))

    def test_constraint_violations_fail(self) -> None:
        """Reject payloads breaking type, length, format and enum constraints."""
        invalid = [
            self._valid(name="M"),
            self._valid(email="not-an-email"),
            self._valid(age=-1),
            self._valid(age="30"),
            self._valid(status="unknown"),
            self._valid(tags=["a", "b", "c"]),
            self._valid(_id="short"),
        ]
        for payload in invalid:
            with self.subTest(payload=payload):
                with self.assertRaises(SchemaValidationError) as ctx:
                    self.schema.validate_document(payload)
                self.assertTrue(ctx.exception.errors)

    def test_unsupported_type_is_a_configuration_error(self) -> None:
        """Reject schemas using unknown JSON types."""
        schema = Schema("odd", {"properties": {"x": {"type": "tuple"}}}, primary_key="x")
        with self.assertRaises(ConfigurationError):
            schema.validate_document({"x": 1})


if __name__ == "__main__":
    unittest.main()
