"""Document trees for concept hierarchy files.

A parsed document is a tree of four node variants: objects, arrays, strings,
and everything else. Accessors are total: asking a node for a shape it does
not have returns ``None`` or an empty sequence instead of raising.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Optional

from concept_hierarchy.errors import MalformedDocumentError


@dataclass(frozen=True)
class Node:
    """Base class for document tree nodes."""

    @property
    def is_object(self) -> bool:
        return False

    @property
    def is_array(self) -> bool:
        return False

    def get(self, key: str) -> Optional[Node]:
        """Return the first value stored under ``key``, if this is an object."""
        return None

    def items(self) -> tuple[tuple[str, Node], ...]:
        """Return the object's entries in declaration order."""
        return ()

    def elements(self) -> tuple[Node, ...]:
        """Return the array's elements in declaration order."""
        return ()

    def text(self) -> Optional[str]:
        """Return the string value, if this is a string literal."""
        return None


@dataclass(frozen=True)
class ObjectNode(Node):
    """An object; entries keep declaration order and duplicate keys."""

    entries: tuple[tuple[str, Node], ...] = ()

    @property
    def is_object(self) -> bool:
        return True

    def get(self, key: str) -> Optional[Node]:
        for name, value in self.entries:
            if name == key:
                return value
        return None

    def items(self) -> tuple[tuple[str, Node], ...]:
        return self.entries

    def keys(self) -> list[str]:
        return [name for name, _ in self.entries]


@dataclass(frozen=True)
class ArrayNode(Node):
    """An array of nodes."""

    values: tuple[Node, ...] = ()

    @property
    def is_array(self) -> bool:
        return True

    def elements(self) -> tuple[Node, ...]:
        return self.values

    def strings(self) -> list[str]:
        """Return the string elements, skipping anything else."""
        return [v.text() for v in self.values if isinstance(v, StringNode)]


@dataclass(frozen=True)
class StringNode(Node):
    """A string literal."""

    value: str = ""

    def text(self) -> Optional[str]:
        return self.value


@dataclass(frozen=True)
class OtherNode(Node):
    """Numbers, booleans and nulls."""

    value: Any = None


class _Pairs(list):
    """Marker for decoded object pairs awaiting conversion."""


def to_node(value: Any) -> Node:
    """Convert decoded JSON (or plain Python data) into a document tree."""
    if isinstance(value, _Pairs):
        return ObjectNode(tuple((str(k), to_node(v)) for k, v in value))
    if isinstance(value, dict):
        return ObjectNode(tuple((str(k), to_node(v)) for k, v in value.items()))
    if isinstance(value, (list, tuple)):
        return ArrayNode(tuple(to_node(v) for v in value))
    if isinstance(value, str):
        return StringNode(value)
    return OtherNode(value)


def parse_document(text: str, document: Optional[str] = None) -> Node:
    """Parse JSON text into a document tree.

    Args:
        text: Document content.
        document: Identifier used in error messages.

    Returns:
        Root node of the document tree.

    Raises:
        MalformedDocumentError: If the text is not valid JSON.
    """
    try:
        decoded = json.loads(text, object_pairs_hook=_Pairs)
    except json.JSONDecodeError as e:
        raise MalformedDocumentError(f"Invalid JSON: {e}", document=document) from e
    return to_node(decoded)
