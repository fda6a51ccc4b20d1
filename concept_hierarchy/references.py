"""Resolve string literals in hierarchy documents to the documents they name.

Only literals under a configured reference property (``external``, ``data``,
``header`` by default) are references. ``header`` values follow a naming
convention instead of a relative path: they live under
``include/<project>/<functions|valueDomains>/`` depending on how the owning
concept is classified in the current hierarchy.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from concept_hierarchy.config import HierarchyConfig
from concept_hierarchy.document import Node
from concept_hierarchy.includes import header_path
from concept_hierarchy.query import FUNCTIONS_DIR, VALUE_DOMAINS_DIR, ClassificationQuery
from concept_hierarchy.snapshot import HierarchySnapshot
from concept_hierarchy.store import DocumentStore

logger = logging.getLogger(__name__)


class HeaderType(Enum):
    """Header category, named after its directory."""

    FUNCTION = FUNCTIONS_DIR
    VALUE_DOMAIN = VALUE_DOMAINS_DIR


@dataclass(frozen=True)
class Reference:
    """A string literal that refers to another document."""

    document: str
    property_name: str
    path: str
    target: Optional[str]  # None when dangling
    header_type: Optional[HeaderType] = None

    def to_json(self) -> dict:
        return {
            "document": self.document,
            "property": self.property_name,
            "path": self.path,
            "target": self.target,
            "header_type": self.header_type.value if self.header_type else None,
        }


class ReferenceResolver:
    """Turns string literals into references against the current hierarchy."""

    def __init__(
        self,
        store: DocumentStore,
        config: HierarchyConfig,
        snapshot_provider: Callable[[], Optional[HierarchySnapshot]],
        project_name: str = "",
    ):
        self.store = store
        self.config = config
        self.snapshot_provider = snapshot_provider
        self.project_name = config.project_name or project_name

    def is_reference_context(self, property_name: str) -> bool:
        return property_name in self.config.reference_contexts

    def resolve(
        self,
        document: str,
        property_name: str,
        value: str,
        concept: Optional[str] = None,
        in_array: bool = False,
    ) -> Optional[Reference]:
        """Resolve one literal.

        Args:
            document: Document containing the literal.
            property_name: Nearest enclosing property name.
            value: The literal's text.
            concept: Top-level entry owning the literal (needed for headers).
            in_array: Whether the literal is an element of the property's array.

        Returns:
            A Reference (possibly dangling), or None if the literal is not a
            reference at this position.
        """
        if not self.is_reference_context(property_name):
            return None

        keywords = self.config.keywords
        if property_name == keywords.header:
            return self._resolve_header(document, property_name, value, concept)

        if property_name == keywords.external and not in_array:
            logger.warning(f"'{keywords.external}' entries in {document} are not bundled in an array")
            return None

        target = self.store.resolve_relative(document, value)
        return Reference(document, property_name, value, target)

    def find_references(self, document: str, content: Node) -> list[Reference]:
        """Every reference in ``content``, in declaration order."""
        references = []
        # (node, nearest property, owning concept, node is an array element)
        stack: list[tuple[Node, Optional[str], Optional[str], bool]] = [(content, None, None, False)]
        while stack:
            node, prop, concept, in_array = stack.pop()
            text = node.text()
            if text is not None:
                if prop is not None:
                    ref = self.resolve(document, prop, text, concept, in_array)
                    if ref is not None:
                        references.append(ref)
                continue

            children: list[tuple[Node, Optional[str], Optional[str], bool]] = []
            if node.is_object:
                for key, value in node.items():
                    owner = key if node is content else concept
                    children.append((value, key, owner, False))
            elif node.is_array:
                for element in node.elements():
                    children.append((element, prop, concept, True))
            stack.extend(reversed(children))
        return references

    def _resolve_header(
        self,
        document: str,
        property_name: str,
        value: str,
        concept: Optional[str],
    ) -> Optional[Reference]:
        query = ClassificationQuery(
            self.snapshot_provider(),
            function_concept=self.config.classification.function_concept,
            value_domain_concept=self.config.classification.value_domain_concept,
        )
        category = query.category_dir(concept) if concept else None
        if category is None:
            logger.warning(f"{concept} doesn't seem to be a function or value domain concept")
            return None

        header_type = HeaderType(category)
        path = header_path(self.project_name, value, category)
        target = self.store.resolve_project_path(path)
        return Reference(document, property_name, value, target, header_type)
