"""Errors and recorded issues for hierarchy rebuilds.

Exceptions here abort a rebuild. Everything that only affects one document or
one reference is recorded as an ``Issue`` instead and travels with the
published snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Optional


class HierarchyError(Exception):
    """Error that aborts a hierarchy rebuild."""

    def __init__(
        self,
        message: str,
        document: Optional[str] = None,
        error_type: str = "hierarchy_error",
    ):
        super().__init__(message)
        self.message = message
        self.document = document
        self.error_type = error_type

    def to_json(self) -> dict[str, Any]:
        """Serialize error to JSON format for machine parsing."""
        result: dict[str, Any] = {
            "error": self.error_type,
            "message": self.message,
        }
        if self.document:
            result["document"] = self.document
        return result

    def __str__(self) -> str:
        parts = [self.message]
        if self.document:
            parts.append(f"document: {self.document}")
        return " | ".join(parts)


class DocumentNotFoundError(HierarchyError):
    """A required document could not be found."""

    def __init__(self, message: str, document: Optional[str] = None):
        super().__init__(message, document=document, error_type="document_not_found")


class MalformedDocumentError(HierarchyError):
    """A document could not be parsed into a document tree."""

    def __init__(self, message: str, document: Optional[str] = None):
        super().__init__(message, document=document, error_type="malformed_document")


class CycleDetectedError(HierarchyError):
    """The direct-parent relation contains at least one cycle."""

    def __init__(self, remaining: Iterable[str]):
        self.remaining = frozenset(remaining)
        super().__init__(
            f"Cycle detected among concepts: {', '.join(sorted(self.remaining))}",
            error_type="cycle_detected",
        )

    def to_json(self) -> dict[str, Any]:
        result = super().to_json()
        result["remaining"] = sorted(self.remaining)
        return result


class IssueKind(str, Enum):
    """Kinds of non-fatal problems found while rebuilding."""

    DOCUMENT_NOT_FOUND = "document_not_found"
    MALFORMED_DOCUMENT = "malformed_document"
    DUPLICATE_CONCEPT = "duplicate_concept"
    UNRESOLVED_PARENT = "unresolved_parent"


@dataclass(frozen=True)
class Issue:
    """A non-fatal problem recorded during a rebuild."""

    kind: IssueKind
    message: str
    document: Optional[str] = None
    concept: Optional[str] = None

    def to_json(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "kind": self.kind.value,
            "message": self.message,
        }
        if self.document:
            result["document"] = self.document
        if self.concept:
            result["concept"] = self.concept
        return result

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "Issue":
        return cls(
            kind=IssueKind(data["kind"]),
            message=data.get("message", ""),
            document=data.get("document"),
            concept=data.get("concept"),
        )
