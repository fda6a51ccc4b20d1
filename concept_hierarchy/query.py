"""Classification queries against a published hierarchy snapshot."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

from concept_hierarchy.snapshot import HierarchySnapshot

FUNCTIONS_DIR = "functions"
VALUE_DOMAINS_DIR = "valueDomains"


class ClassificationQuery:
    """Membership and descent checks over one immutable snapshot.

    The snapshot is captured once at construction, so every answer from one
    query object is consistent even while a rebuild publishes a new one.
    """

    def __init__(
        self,
        snapshot: Optional[HierarchySnapshot],
        function_concept: str = "Function",
        value_domain_concept: str = "ValueDomain",
    ):
        self.snapshot = snapshot
        self.function_concept = function_concept
        self.value_domain_concept = value_domain_concept

    def is_concept(self, name: str) -> bool:
        return self.snapshot is not None and name in self.snapshot.concepts

    def is_descendant_of(self, name: str, ancestor: str) -> bool:
        """True if ``name`` is ``ancestor`` or derives from it."""
        if not self.is_concept(name):
            return False
        if name == ancestor:
            return True
        return ancestor in self.snapshot.all_ancestors.get(name, ())

    def is_function(self, name: str) -> bool:
        return self.is_descendant_of(name, self.function_concept)

    def is_value_domain(self, name: str) -> bool:
        return self.is_descendant_of(name, self.value_domain_concept)

    def ancestors_of(self, name: str) -> list[str]:
        if self.snapshot is None:
            return []
        return list(self.snapshot.all_ancestors.get(name, ()))

    def descendants_of(self, ancestor: str) -> list[str]:
        """Concepts deriving from ``ancestor`` (excluding itself), topologically ordered."""
        if self.snapshot is None:
            return []
        return [
            name
            for name in self.snapshot.topological_order
            if name != ancestor and ancestor in self.snapshot.all_ancestors.get(name, ())
        ]

    def category_dir(self, name: str) -> Optional[str]:
        """Header directory for a concept.

        A Function is also a ValueDomain, so functions are checked first.
        """
        if self.is_function(name):
            return FUNCTIONS_DIR
        if self.is_value_domain(name):
            return VALUE_DOMAINS_DIR
        return None


def load_hierarchy_index(index_path: Path | str) -> Optional[dict[str, Any]]:
    """Load a hierarchy index from file.

    Args:
        index_path: Path to hierarchy.json.

    Returns:
        Index data or None if loading fails.
    """
    index_path = Path(index_path)
    if not index_path.exists():
        return None

    try:
        content = index_path.read_text(encoding="utf-8")
        return json.loads(content)
    except (json.JSONDecodeError, IOError):
        return None


def load_snapshot(index_path: Path | str) -> Optional[HierarchySnapshot]:
    """Load a hierarchy index and turn it back into a snapshot."""
    index = load_hierarchy_index(index_path)
    if index is None:
        return None
    try:
        return HierarchySnapshot.from_index(index)
    except (KeyError, TypeError, ValueError):
        return None


def get_summary(index: dict[str, Any]) -> dict[str, Any]:
    """Get summary statistics from an index.

    Args:
        index: Hierarchy index data.

    Returns:
        Summary dictionary with counts and timestamp.
    """
    return {
        "root_document": index.get("root_document", "unknown"),
        "concept_count": index.get("concept_count", 0),
        "document_count": index.get("document_count", 0),
        "issue_count": index.get("issue_count", 0),
        "generated": index.get("generated", "unknown"),
        "schema_version": index.get("schema_version", "unknown"),
    }
