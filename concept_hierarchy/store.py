"""Document stores: reading documents and resolving paths between them."""

from __future__ import annotations

import logging
import posixpath
from pathlib import Path
from typing import Any, Iterable, Optional, Protocol

from concept_hierarchy.document import Node, parse_document, to_node
from concept_hierarchy.errors import MalformedDocumentError

logger = logging.getLogger(__name__)

DEFAULT_SUFFIXES = (".json",)


class DocumentStore(Protocol):
    """Read access to hierarchy documents."""

    def read(self, document_id: str) -> Optional[Node]:
        """Return the parsed document, or None if it is missing or not structured.

        Raises:
            MalformedDocumentError: If the document exists but cannot be parsed.
        """
        ...

    def canonical_id(self, identifier: str) -> str:
        """Return the single spelling of ``identifier`` used for identity checks."""
        ...

    def resolve_relative(self, base_id: str, relative_path: str) -> Optional[str]:
        """Resolve a path relative to the directory of ``base_id``."""
        ...

    def resolve_project_path(self, relative_path: str) -> Optional[str]:
        """Resolve a path relative to the project root."""
        ...


def join_path(base: str, child: str) -> str:
    """Join two path fragments with exactly one separator between them."""
    b = base.rstrip("/")
    c = child.lstrip("/")
    if not b:
        return c
    return f"{b}/{c}"


def document_id(path: Path | str) -> str:
    """Return the canonical identifier for a file path."""
    return Path(path).resolve().as_posix()


class FileDocumentStore:
    """Documents stored as JSON files on the local file system."""

    def __init__(
        self,
        project_root: Path | str,
        suffixes: Iterable[str] = DEFAULT_SUFFIXES,
        encoding: str = "utf-8",
    ):
        self.project_root = Path(project_root).resolve()
        self.suffixes = tuple(s.lower() for s in suffixes)
        self.encoding = encoding

    def read(self, document_id: str) -> Optional[Node]:
        path = Path(document_id)
        if path.suffix.lower() not in self.suffixes or not path.is_file():
            return None

        try:
            content = path.read_text(encoding=self.encoding)
        except UnicodeDecodeError as e:
            raise MalformedDocumentError(
                f"Cannot decode document: {e}", document=document_id
            ) from e
        except OSError as e:
            logger.warning(f"Could not read {document_id}: {e}")
            return None

        return parse_document(content, document=document_id)

    def canonical_id(self, identifier: str) -> str:
        return document_id(identifier)

    def resolve_relative(self, base_id: str, relative_path: str) -> Optional[str]:
        sanitized = relative_path.strip()
        if not sanitized:
            return None
        base_dir = Path(base_id).parent
        return self._existing(Path(join_path(base_dir.as_posix(), sanitized)))

    def resolve_project_path(self, relative_path: str) -> Optional[str]:
        sanitized = relative_path.strip()
        if not sanitized:
            return None
        if Path(sanitized).is_absolute():
            return self._existing(Path(sanitized))
        return self._existing(Path(join_path(self.project_root.as_posix(), sanitized)))

    def _existing(self, path: Path) -> Optional[str]:
        if not path.exists():
            return None
        return document_id(path)


class MemoryDocumentStore:
    """Documents held in memory, keyed by POSIX-style identifiers.

    Values may be JSON text or already-decoded Python data. ``files`` names
    additional identifiers that exist but are not structured documents
    (for example C headers referenced through ``data`` or ``header``).
    """

    def __init__(
        self,
        documents: Optional[dict[str, Any]] = None,
        files: Iterable[str] = (),
        project_root: str = "/project",
    ):
        self.documents: dict[str, Any] = {
            self._normalize(k): v for k, v in (documents or {}).items()
        }
        self.files = {self._normalize(f) for f in files}
        self.project_root = self._normalize(project_root)
        self.reads: list[str] = []

    def read(self, document_id: str) -> Optional[Node]:
        self.reads.append(document_id)
        document_id = self._normalize(document_id)
        if document_id not in self.documents:
            return None
        content = self.documents[document_id]
        if isinstance(content, str):
            return parse_document(content, document=document_id)
        return to_node(content)

    def canonical_id(self, identifier: str) -> str:
        return self._normalize(identifier)

    def resolve_relative(self, base_id: str, relative_path: str) -> Optional[str]:
        sanitized = relative_path.strip()
        if not sanitized:
            return None
        base_dir = posixpath.dirname(base_id)
        return self._existing(join_path(base_dir, sanitized))

    def resolve_project_path(self, relative_path: str) -> Optional[str]:
        sanitized = relative_path.strip()
        if not sanitized:
            return None
        if sanitized.startswith("/"):
            return self._existing(sanitized)
        return self._existing(join_path(self.project_root, sanitized))

    def _existing(self, path: str) -> Optional[str]:
        normalized = self._normalize(path)
        if normalized in self.documents or normalized in self.files:
            return normalized
        return None

    @staticmethod
    def _normalize(path: str) -> str:
        if not path.startswith("/"):
            path = "/" + path
        return posixpath.normpath(path)
