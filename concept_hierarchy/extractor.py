"""Extract concept definitions and their direct parents from documents."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from concept_hierarchy.config import Keywords
from concept_hierarchy.document import Node
from concept_hierarchy.errors import Issue, IssueKind
from concept_hierarchy.includes import IncludeKind, TraversalResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConceptDefinition:
    """A concept as declared by one top-level entry of a document."""

    name: str
    document: str
    direct_parents: tuple[str, ...] = ()


@dataclass
class ConceptTable:
    """Concept definitions aggregated over all concept documents."""

    concepts_by_document: dict[str, set[str]] = field(default_factory=dict)
    direct_parents: dict[str, list[str]] = field(default_factory=dict)
    defined_in: dict[str, str] = field(default_factory=dict)  # concept -> first document
    issues: list[Issue] = field(default_factory=list)

    @property
    def concepts(self) -> set[str]:
        names: set[str] = set()
        for defined in self.concepts_by_document.values():
            names |= defined
        return names


class ConceptExtractor:
    """Turns top-level document entries into concept definitions."""

    def __init__(self, keywords: Optional[Keywords] = None, reserved: Iterable[str] = ()):
        self.keywords = keywords or Keywords()
        self.reserved = {self.keywords.external, *reserved}

    def extract(
        self,
        document: str,
        content: Node,
        issues: Optional[list[Issue]] = None,
    ) -> list[ConceptDefinition]:
        """Extract every concept defined at the top level of ``content``.

        Args:
            document: Identifier of the document.
            content: Parsed document tree.
            issues: Optional list that collects shape problems.

        Returns:
            Definitions in declaration order.
        """
        definitions = []
        for name, value in content.items():
            if name in self.reserved:
                continue
            parents = self._direct_parents(document, name, value, issues)
            definitions.append(ConceptDefinition(name, document, tuple(parents)))
        return definitions

    def _direct_parents(
        self,
        document: str,
        name: str,
        value: Node,
        issues: Optional[list[Issue]],
    ) -> list[str]:
        declared = value.get(self.keywords.direct_parents)
        if declared is None:
            return []
        if not declared.is_array:
            _report(
                issues,
                IssueKind.MALFORMED_DOCUMENT,
                f"'{self.keywords.direct_parents}' of '{name}' must be an array",
                document,
                name,
            )
            return []

        parents = []
        for element in declared.elements():
            parent = element.text()
            if parent is None:
                _report(
                    issues,
                    IssueKind.MALFORMED_DOCUMENT,
                    f"Non-string parent of '{name}' ignored",
                    document,
                    name,
                )
                continue
            parents.append(parent)
        return parents


def collect_concepts(traversal: TraversalResult, extractor: ConceptExtractor) -> ConceptTable:
    """Aggregate definitions from the root and every ``external`` document.

    Documents reached only through ``data`` or ``header`` references are
    fragments of a concept, not concept documents, and are skipped. The first
    definition of a name in traversal order wins; later ones are reported and
    still listed under their document.
    """
    table = ConceptTable()

    documents = [traversal.root]
    for document in traversal.documents_included_by(IncludeKind.EXTERNAL):
        if document != traversal.root:
            documents.append(document)

    for document in documents:
        content = traversal.documents.get(document)
        if content is None:
            continue
        for definition in extractor.extract(document, content, table.issues):
            table.concepts_by_document.setdefault(document, set()).add(definition.name)

            if definition.name in table.direct_parents:
                first = table.defined_in[definition.name]
                _report(
                    table.issues,
                    IssueKind.DUPLICATE_CONCEPT,
                    f"Ignoring duplicate concept '{definition.name}' (first defined in {first})",
                    document,
                    definition.name,
                )
                continue

            table.direct_parents[definition.name] = list(definition.direct_parents)
            table.defined_in[definition.name] = document

    return table


def _report(
    issues: Optional[list[Issue]],
    kind: IssueKind,
    message: str,
    document: str,
    concept: Optional[str] = None,
) -> None:
    logger.warning(f"{message} in {document}")
    if issues is not None:
        issues.append(Issue(kind, message, document=document, concept=concept))
