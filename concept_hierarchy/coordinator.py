"""Owns the current hierarchy snapshot and rebuilds it on request.

Rebuilds are serialized: a request arriving while another rebuild runs waits
for it to finish and then performs its own full rebuild. The rebuild lock is
held across document reads, but it only orders rebuilds against each other.
Readers never take it: they read the snapshot reference once, and that
reference is only ever replaced by a complete new snapshot.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from concept_hierarchy.builder import HierarchyBuilder
from concept_hierarchy.config import HierarchyConfig
from concept_hierarchy.errors import DocumentNotFoundError, HierarchyError, Issue, IssueKind
from concept_hierarchy.extractor import ConceptExtractor, collect_concepts
from concept_hierarchy.includes import IncludeResolver
from concept_hierarchy.query import ClassificationQuery
from concept_hierarchy.snapshot import HierarchySnapshot
from concept_hierarchy.store import DocumentStore

logger = logging.getLogger(__name__)


class RebuildStatus(str, Enum):
    """Outcome of a rebuild request."""

    PUBLISHED = "published"
    FAILED = "failed"
    NOTHING_TO_DO = "nothing_to_do"


@dataclass(frozen=True)
class RebuildResult:
    """What a rebuild produced."""

    status: RebuildStatus
    snapshot: Optional[HierarchySnapshot] = None
    error: Optional[HierarchyError] = None

    @property
    def ok(self) -> bool:
        return self.status != RebuildStatus.FAILED


class ModelCoordinator:
    """Rebuilds and publishes hierarchy snapshots."""

    def __init__(
        self,
        store: DocumentStore,
        config: Optional[HierarchyConfig] = None,
        project_name: str = "",
    ):
        self.store = store
        self.config = config or HierarchyConfig()
        self.project_name = self.config.project_name or project_name
        self._snapshot: Optional[HierarchySnapshot] = None
        self._version = 0
        self._rebuild_lock = threading.Lock()

    def get_current_snapshot(self) -> Optional[HierarchySnapshot]:
        return self._snapshot

    def query(self) -> ClassificationQuery:
        """Classification queries bound to the snapshot current right now."""
        return ClassificationQuery(
            self._snapshot,
            function_concept=self.config.classification.function_concept,
            value_domain_concept=self.config.classification.value_domain_concept,
        )

    def is_concept(self, name: str) -> bool:
        return self.query().is_concept(name)

    def is_function(self, name: str) -> bool:
        return self.query().is_function(name)

    def is_value_domain(self, name: str) -> bool:
        return self.query().is_value_domain(name)

    def rebuild(self, root: Optional[str] = None) -> RebuildResult:
        """Rebuild the hierarchy from ``root`` (or the configured root).

        Never raises: failures leave the previous snapshot in place and are
        returned as a FAILED result.
        """
        with self._rebuild_lock:
            try:
                root_id = self._root_id(root)
                if root_id is None:
                    logger.info("No root document configured, nothing to rebuild")
                    return RebuildResult(RebuildStatus.NOTHING_TO_DO)

                logger.info(f"Rebuilding concept hierarchy from {root_id}")
                snapshot = self._build(root_id, self._version + 1)
            except HierarchyError as e:
                logger.warning(f"Rebuild failed, keeping previous hierarchy: {e}")
                return RebuildResult(RebuildStatus.FAILED, self._snapshot, e)
            except OSError as e:
                error = HierarchyError(f"I/O error during rebuild: {e}", error_type="io_error")
                logger.warning(f"Rebuild failed, keeping previous hierarchy: {error}")
                return RebuildResult(RebuildStatus.FAILED, self._snapshot, error)
            except Exception as e:
                logger.exception("Unexpected error during rebuild")
                error = HierarchyError(f"Unexpected error: {e}", error_type="rebuild_failed")
                return RebuildResult(RebuildStatus.FAILED, self._snapshot, error)

            self._version = snapshot.version
            self._snapshot = snapshot
            logger.info(
                f"Published hierarchy v{snapshot.version}: {len(snapshot.concepts)} concepts "
                f"from {len(snapshot.included_documents)} documents, {len(snapshot.issues)} issues"
            )
            return RebuildResult(RebuildStatus.PUBLISHED, snapshot)

    def _root_id(self, root: Optional[str]) -> Optional[str]:
        if root is not None:
            return root
        if not self.config.root:
            return None
        resolved = self.store.resolve_project_path(self.config.root)
        if resolved is None:
            raise DocumentNotFoundError("Configured root document not found", document=self.config.root)
        return resolved

    def _build(self, root: str, version: int) -> HierarchySnapshot:
        keywords = self.config.keywords
        resolver = IncludeResolver(
            self.store,
            keywords,
            include_headers=self.config.include_headers,
            project_name=self.project_name,
        )
        traversal = resolver.traverse(root)

        reserved = [keywords.header] if self.config.include_headers else []
        table = collect_concepts(traversal, ConceptExtractor(keywords, reserved))

        issues = traversal.issues + table.issues
        for concept, parents in table.direct_parents.items():
            for parent in parents:
                if parent not in table.direct_parents:
                    message = f"Parent '{parent}' of '{concept}' is not a defined concept"
                    logger.warning(message)
                    issues.append(
                        Issue(
                            IssueKind.UNRESOLVED_PARENT,
                            message,
                            document=table.defined_in.get(concept),
                            concept=concept,
                        )
                    )

        built = HierarchyBuilder().build(table.direct_parents, table.concepts)

        return HierarchySnapshot.create(
            root=traversal.root,
            included_documents=traversal.included_documents,
            concepts_by_document=table.concepts_by_document,
            direct_parents=table.direct_parents,
            all_ancestors=built.all_ancestors,
            topological_order=built.topological_order,
            edges=traversal.edges,
            issues=issues,
            version=version,
        )

