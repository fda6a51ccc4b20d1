"""Immutable hierarchy snapshots and their JSON index form."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional, Sequence

from concept_hierarchy.errors import Issue
from concept_hierarchy.includes import InclusionEdge

SCHEMA_VERSION = "1.0"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class HierarchySnapshot:
    """One fully built concept hierarchy.

    Instances are never mutated after construction; use ``create`` to build
    one from mutable inputs, which copies everything into read-only
    containers.
    """

    root_document: str
    included_documents: tuple[str, ...]
    concepts_by_document: Mapping[str, frozenset[str]]
    concepts: frozenset[str]
    direct_parents: Mapping[str, tuple[str, ...]]
    all_ancestors: Mapping[str, tuple[str, ...]]
    topological_order: tuple[str, ...]
    edges: tuple[InclusionEdge, ...] = ()
    issues: tuple[Issue, ...] = ()
    version: int = 0
    generated: str = field(default_factory=_now)

    def __post_init__(self):
        if not self.root_document or not self.root_document.strip():
            raise ValueError("root_document must be non-blank")

    @classmethod
    def create(
        cls,
        root: str,
        included_documents: Iterable[str],
        concepts_by_document: Mapping[str, Iterable[str]],
        direct_parents: Mapping[str, Sequence[str]],
        all_ancestors: Mapping[str, Sequence[str]],
        topological_order: Sequence[str],
        edges: Iterable[InclusionEdge] = (),
        issues: Iterable[Issue] = (),
        version: int = 0,
        generated: Optional[str] = None,
    ) -> "HierarchySnapshot":
        """Build a snapshot, deriving ``concepts`` from ``concepts_by_document``."""
        by_document = {doc: frozenset(names) for doc, names in concepts_by_document.items()}
        concepts: frozenset[str] = frozenset().union(*by_document.values())
        return cls(
            root_document=root,
            included_documents=tuple(included_documents),
            concepts_by_document=MappingProxyType(by_document),
            concepts=concepts,
            direct_parents=MappingProxyType({k: tuple(v) for k, v in direct_parents.items()}),
            all_ancestors=MappingProxyType({k: tuple(v) for k, v in all_ancestors.items()}),
            topological_order=tuple(topological_order),
            edges=tuple(edges),
            issues=tuple(issues),
            version=version,
            generated=generated or _now(),
        )

    @classmethod
    def empty(cls, root: str, included_documents: Iterable[str] = ()) -> "HierarchySnapshot":
        return cls.create(root, included_documents, {}, {}, {}, [])

    def defined_in(self, concept: str) -> list[str]:
        """Documents that mention ``concept`` at their top level."""
        return sorted(doc for doc, names in self.concepts_by_document.items() if concept in names)

    def to_index(self) -> dict[str, Any]:
        """Serialize the snapshot to a JSON-compatible index."""
        return {
            "schema_version": SCHEMA_VERSION,
            "generated": self.generated,
            "version": self.version,
            "root_document": self.root_document,
            "concept_count": len(self.concepts),
            "document_count": len(self.included_documents),
            "issue_count": len(self.issues),
            "included_documents": list(self.included_documents),
            "concepts_by_document": {
                doc: sorted(names) for doc, names in self.concepts_by_document.items()
            },
            "concepts": sorted(self.concepts),
            "direct_parents": {k: list(v) for k, v in self.direct_parents.items()},
            "all_ancestors": {k: list(v) for k, v in self.all_ancestors.items()},
            "topological_order": list(self.topological_order),
            "edges": [edge.to_json() for edge in self.edges],
            "issues": [issue.to_json() for issue in self.issues],
        }

    @classmethod
    def from_index(cls, index: Mapping[str, Any]) -> "HierarchySnapshot":
        """Rebuild a snapshot from ``to_index`` output."""
        return cls.create(
            root=index["root_document"],
            included_documents=index.get("included_documents", []),
            concepts_by_document=index.get("concepts_by_document", {}),
            direct_parents=index.get("direct_parents", {}),
            all_ancestors=index.get("all_ancestors", {}),
            topological_order=index.get("topological_order", []),
            edges=[InclusionEdge.from_json(e) for e in index.get("edges", [])],
            issues=[Issue.from_json(i) for i in index.get("issues", [])],
            version=index.get("version", 0),
            generated=index.get("generated"),
        )
