"""Concept hierarchy engine.

Builds an in-memory model of concepts defined across linked JSON documents:
- Include traversal (external lists, data and header references)
- Concept extraction with declared direct parents
- Ancestor closure and deterministic topological ordering
- Classification queries over atomically published snapshots
"""

from concept_hierarchy.coordinator import ModelCoordinator, RebuildResult, RebuildStatus
from concept_hierarchy.query import ClassificationQuery
from concept_hierarchy.snapshot import HierarchySnapshot
from concept_hierarchy.store import FileDocumentStore, MemoryDocumentStore

__version__ = "0.1.0"

__all__ = [
    "ClassificationQuery",
    "FileDocumentStore",
    "HierarchySnapshot",
    "MemoryDocumentStore",
    "ModelCoordinator",
    "RebuildResult",
    "RebuildStatus",
]
