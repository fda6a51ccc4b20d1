"""Change detection for hierarchy rebuilds.

A change never triggers a partial recomputation: it only decides whether a
full rebuild is needed at all.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional

from concept_hierarchy.snapshot import HierarchySnapshot
from concept_hierarchy.store import DEFAULT_SUFFIXES


@dataclass
class HierarchyState:
    """Persisted state for incremental builds."""

    document_hashes: dict[str, str] = field(default_factory=dict)  # document -> SHA-256
    last_build: Optional[str] = None  # ISO timestamp


def compute_file_hash(file_path: Path | str) -> Optional[str]:
    """Compute SHA-256 hash of a file.

    Args:
        file_path: Path to the file.

    Returns:
        Hex string of SHA-256 hash, or None if file cannot be read.
    """
    file_path = Path(file_path)

    if not file_path.is_file():
        return None

    try:
        hasher = hashlib.sha256()
        with open(file_path, "rb") as f:
            for chunk in iter(lambda: f.read(8192), b""):
                hasher.update(chunk)
        return hasher.hexdigest()
    except OSError:
        return None


def load_state(state_path: Path | str) -> HierarchyState:
    """Load hierarchy state from file.

    Args:
        state_path: Path to hierarchy-state.json.

    Returns:
        HierarchyState, empty if file doesn't exist or is corrupted.
    """
    state_path = Path(state_path)

    if not state_path.exists():
        return HierarchyState()

    try:
        content = state_path.read_text(encoding="utf-8")
        data = json.loads(content)
        return HierarchyState(
            document_hashes=data.get("document_hashes", {}),
            last_build=data.get("last_build"),
        )
    except (json.JSONDecodeError, AttributeError, OSError):
        return HierarchyState()


def save_state(state: HierarchyState, state_path: Path | str) -> None:
    """Save hierarchy state to file, creating parent directories."""
    state_path = Path(state_path)
    state_path.parent.mkdir(parents=True, exist_ok=True)

    data = {
        "document_hashes": state.document_hashes,
        "last_build": state.last_build,
    }

    state_path.write_text(json.dumps(data, indent=2), encoding="utf-8")


def tracked_documents(snapshot: HierarchySnapshot) -> list[str]:
    """The root followed by every included document."""
    return [snapshot.root_document, *snapshot.included_documents]


def get_changed_documents(documents: Iterable[str], state: HierarchyState) -> list[str]:
    """Determine which documents changed since the last build.

    A document counts as changed when it is new, modified, or has
    disappeared since its hash was recorded.
    """
    changed = []

    for document in documents:
        current_hash = compute_file_hash(document)
        previous_hash = state.document_hashes.get(document)

        if current_hash is None:
            if previous_hash is not None:
                changed.append(document)
            continue

        if previous_hash != current_hash:
            changed.append(document)

    return changed


def update_state_hashes(documents: Iterable[str], state: HierarchyState) -> None:
    """Replace state hashes with the current hashes of ``documents``.

    Args:
        documents: Documents of the freshly built hierarchy.
        state: State to update (modified in place).
    """
    hashes = {}
    for document in documents:
        file_hash = compute_file_hash(document)
        if file_hash:
            hashes[document] = file_hash

    state.document_hashes = hashes
    state.last_build = datetime.now(timezone.utc).isoformat()


def should_rebuild(
    snapshot: Optional[HierarchySnapshot],
    root: Optional[str],
    changed_paths: Iterable[str],
    suffixes: Iterable[str] = DEFAULT_SUFFIXES,
) -> bool:
    """Whether a batch of changed files affects the hierarchy.

    Args:
        snapshot: Currently published hierarchy, if any.
        root: Identifier of the configured root document.
        changed_paths: Identifiers of changed files.
        suffixes: Suffixes of structured documents.

    Returns:
        True if the root or any included structured document changed.
    """
    interesting = set()
    if root:
        interesting.add(root)
    if snapshot is not None:
        interesting.update(snapshot.included_documents)

    wanted = tuple(s.lower() for s in suffixes)
    return any(
        path in interesting and Path(path).suffix.lower() in wanted for path in changed_paths
    )
