"""Tests for document trees."""

import pytest

from concept_hierarchy.document import (
    ArrayNode,
    ObjectNode,
    OtherNode,
    StringNode,
    parse_document,
    to_node,
)
from concept_hierarchy.errors import MalformedDocumentError


class TestParseDocument:
    """Tests for parsing JSON text into nodes."""

    def test_object_keeps_declaration_order(self):
        """Entries come back in the order they were written."""
        node = parse_document('{"b": 1, "a": 2, "c": 3}')

        assert isinstance(node, ObjectNode)
        assert node.keys() == ["b", "a", "c"]

    def test_duplicate_keys_survive(self):
        """Duplicate keys are kept; get() returns the first."""
        node = parse_document('{"X": "first", "X": "second"}')

        assert [name for name, _ in node.items()] == ["X", "X"]
        assert node.get("X").text() == "first"

    def test_nested_variants(self):
        """Arrays, strings and scalars map to their own node types."""
        node = parse_document('{"list": ["a", 1, null], "flag": true}')

        items = node.get("list")
        assert isinstance(items, ArrayNode)
        assert isinstance(items.elements()[0], StringNode)
        assert isinstance(items.elements()[1], OtherNode)
        assert isinstance(node.get("flag"), OtherNode)

    def test_invalid_json_raises(self):
        """Invalid JSON raises MalformedDocumentError naming the document."""
        with pytest.raises(MalformedDocumentError) as exc_info:
            parse_document("{not json", document="/docs/bad.json")

        assert exc_info.value.document == "/docs/bad.json"
        assert exc_info.value.error_type == "malformed_document"


class TestTotalAccessors:
    """Accessors never fail on a shape mismatch."""

    def test_string_node_has_no_entries(self):
        node = StringNode("value")
        assert node.get("anything") is None
        assert node.items() == ()
        assert node.elements() == ()
        assert node.text() == "value"

    def test_object_node_has_no_text(self):
        node = to_node({"a": 1})
        assert node.text() is None
        assert node.elements() == ()
        assert node.get("missing") is None

    def test_array_strings_skips_non_strings(self):
        node = to_node(["A", 2, {"x": 1}, "B"])
        assert node.strings() == ["A", "B"]

    def test_to_node_from_python_data(self):
        node = to_node({"Concept": {"directParents": ["Root"]}})
        parents = node.get("Concept").get("directParents")
        assert parents.is_array
        assert parents.strings() == ["Root"]
