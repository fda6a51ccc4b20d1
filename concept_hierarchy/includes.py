"""Discover every document that contributes to a hierarchy.

Starting at the root document, follows the document-level ``external`` list,
per-concept ``data`` references and, optionally, top-level ``header``
references. Traversal is depth-first over an explicit stack so that deep or
cyclic include graphs neither recurse nor loop.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from concept_hierarchy.config import Keywords
from concept_hierarchy.document import Node
from concept_hierarchy.errors import (
    DocumentNotFoundError,
    Issue,
    IssueKind,
    MalformedDocumentError,
)
from concept_hierarchy.store import DocumentStore, join_path

logger = logging.getLogger(__name__)


class IncludeKind(str, Enum):
    """Mechanism through which a document was referenced."""

    EXTERNAL = "external"
    DATA = "data"
    HEADER = "header"


@dataclass(frozen=True)
class InclusionEdge:
    """One "this document references that document" fact."""

    source: str
    path: str  # literal path text as written
    target: Optional[str]  # None when the reference is dangling
    kind: IncludeKind
    concept: Optional[str] = None  # owning entry for data references

    def to_json(self) -> dict:
        return {
            "source": self.source,
            "path": self.path,
            "target": self.target,
            "kind": self.kind.value,
            "concept": self.concept,
        }

    @classmethod
    def from_json(cls, data: dict) -> "InclusionEdge":
        return cls(
            source=data["source"],
            path=data["path"],
            target=data.get("target"),
            kind=IncludeKind(data.get("kind", IncludeKind.EXTERNAL.value)),
            concept=data.get("concept"),
        )


@dataclass
class TraversalResult:
    """Everything discovered from one root."""

    root: str
    visited: list[str] = field(default_factory=list)  # structured documents, discovery order
    edges: list[InclusionEdge] = field(default_factory=list)
    documents: dict[str, Node] = field(default_factory=dict)  # parsed object documents
    issues: list[Issue] = field(default_factory=list)
    unparseable: set[str] = field(default_factory=set)  # targets that failed to parse

    @property
    def included_documents(self) -> list[str]:
        """All resolved include targets except the root, first-seen order."""
        seen: dict[str, None] = {}
        for edge in self.edges:
            if edge.target is not None and edge.target != self.root:
                seen.setdefault(edge.target, None)
        return list(seen)

    def documents_included_by(self, kind: IncludeKind) -> list[str]:
        """Parsed documents reached through ``kind`` edges, first-seen order."""
        seen: dict[str, None] = {}
        for edge in self.edges:
            if edge.kind == kind and edge.target in self.documents:
                seen.setdefault(edge.target, None)
        return list(seen)


class IncludeResolver:
    """Depth-first include traversal over a document store."""

    def __init__(
        self,
        store: DocumentStore,
        keywords: Optional[Keywords] = None,
        include_headers: bool = False,
        project_name: str = "",
    ):
        self.store = store
        self.keywords = keywords or Keywords()
        self.include_headers = include_headers
        self.project_name = project_name

    def traverse(self, root: str) -> TraversalResult:
        """Collect all documents and inclusion edges reachable from ``root``.

        Args:
            root: Identifier of the root document, in any spelling the store
                accepts; it is canonicalized before traversal.

        Returns:
            TraversalResult with edges in discovery order.

        Raises:
            DocumentNotFoundError: If the root document does not exist.
            MalformedDocumentError: If the root document cannot be parsed.
        """
        root = self.store.canonical_id(root)
        result = TraversalResult(root=root)
        visited: set[str] = {root}

        root_node = self.store.read(root)
        if root_node is None:
            raise DocumentNotFoundError("Root document not found", document=root)
        result.visited.append(root)

        stack: list[tuple[str, Node]] = []
        if self._accept(root, root_node, result):
            stack.append((root, root_node))

        while stack:
            current, node = stack.pop()
            logger.debug(f"At document {current}")

            pending: list[tuple[str, Node]] = []

            # 1) document-level "external" list
            external = node.get(self.keywords.external)
            if external is not None:
                if not external.is_array:
                    self._issue(
                        result,
                        IssueKind.MALFORMED_DOCUMENT,
                        f"'{self.keywords.external}' must be an array",
                        current,
                    )
                else:
                    for element in external.elements():
                        path = element.text()
                        if path is None:
                            self._issue(
                                result,
                                IssueKind.MALFORMED_DOCUMENT,
                                f"Non-string entry in '{self.keywords.external}'",
                                current,
                            )
                            continue
                        target = self.store.resolve_relative(current, path)
                        self._follow(
                            result, current, path, target, IncludeKind.EXTERNAL, visited, pending
                        )

            # 2) per-entry "data" references
            for name, value in node.items():
                if not value.is_object:
                    continue
                path = _string(value.get(self.keywords.data))
                if path is None:
                    continue
                target = self.store.resolve_relative(current, path)
                self._follow(result, current, path, target, IncludeKind.DATA, visited, pending, name)

            # 3) optional top-level "header", resolved from the project include dir
            if self.include_headers:
                path = _string(node.get(self.keywords.header))
                if path is not None:
                    target = self.store.resolve_project_path(header_path(self.project_name, path))
                    self._follow(result, current, path, target, IncludeKind.HEADER, visited, pending)

            stack.extend(pending)

        return result

    def _follow(
        self,
        result: TraversalResult,
        source: str,
        path: str,
        target: Optional[str],
        kind: IncludeKind,
        visited: set[str],
        pending: list[tuple[str, Node]],
        concept: Optional[str] = None,
    ) -> None:
        """Read ``target`` if it is new, then record the edge.

        A target that cannot be parsed is recorded as a dangling edge.
        """
        if target is None:
            result.edges.append(InclusionEdge(source, path, None, kind, concept))
            self._issue(
                result,
                IssueKind.DOCUMENT_NOT_FOUND,
                f"Unresolved {kind.value} reference '{path}'",
                source,
                concept,
            )
            return

        if target not in visited:
            visited.add(target)
            self._discover(target, result, pending)
        if target in result.unparseable:
            target = None
        result.edges.append(InclusionEdge(source, path, target, kind, concept))

    def _discover(
        self,
        target: str,
        result: TraversalResult,
        pending: list[tuple[str, Node]],
    ) -> None:
        try:
            node = self.store.read(target)
        except MalformedDocumentError as e:
            result.unparseable.add(target)
            self._issue(result, IssueKind.MALFORMED_DOCUMENT, e.message, target)
            return

        # Not a structured document (e.g. a header file); nothing to follow
        if node is None:
            return

        result.visited.append(target)
        if self._accept(target, node, result):
            pending.append((target, node))

    def _accept(self, document: str, node: Node, result: TraversalResult) -> bool:
        if not node.is_object:
            self._issue(
                result,
                IssueKind.MALFORMED_DOCUMENT,
                "Top-level value is not an object",
                document,
            )
            return False
        result.documents[document] = node
        return True

    def _issue(
        self,
        result: TraversalResult,
        kind: IssueKind,
        message: str,
        document: str,
        concept: Optional[str] = None,
    ) -> None:
        logger.warning(f"{message} in {document}")
        result.issues.append(Issue(kind, message, document=document, concept=concept))


def header_path(project_name: str, value: str, category_dir: Optional[str] = None) -> str:
    """Project-relative path of a header under ``include/<project>/``."""
    base = f"include/{project_name}"
    if category_dir:
        base = join_path(base, category_dir)
    return join_path(base, value)


def _string(node: Optional[Node]) -> Optional[str]:
    return node.text() if node is not None else None
