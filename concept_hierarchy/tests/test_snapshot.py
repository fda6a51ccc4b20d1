"""Tests for hierarchy snapshots."""

import dataclasses

import pytest

from concept_hierarchy.errors import Issue, IssueKind
from concept_hierarchy.includes import IncludeKind, InclusionEdge
from concept_hierarchy.snapshot import SCHEMA_VERSION, HierarchySnapshot


@pytest.fixture
def snapshot():
    return HierarchySnapshot.create(
        root="/root.json",
        included_documents=["/a.json", "/b.json"],
        concepts_by_document={"/a.json": ["A", "B"], "/b.json": ["B", "C"]},
        direct_parents={"A": [], "B": ["A"], "C": ["B"]},
        all_ancestors={"A": [], "B": ["A"], "C": ["B", "A"]},
        topological_order=["A", "B", "C"],
        edges=[InclusionEdge("/root.json", "a.json", "/a.json", IncludeKind.EXTERNAL)],
        issues=[Issue(IssueKind.DUPLICATE_CONCEPT, "dup", document="/b.json", concept="B")],
        version=3,
    )


class TestCreate:
    """Tests for snapshot construction."""

    def test_concepts_are_union_of_documents(self, snapshot):
        assert snapshot.concepts == frozenset({"A", "B", "C"})

    def test_defined_in(self, snapshot):
        assert snapshot.defined_in("B") == ["/a.json", "/b.json"]
        assert snapshot.defined_in("Z") == []

    def test_blank_root_rejected(self):
        with pytest.raises(ValueError):
            HierarchySnapshot.empty("  ")

    def test_empty(self):
        empty = HierarchySnapshot.empty("/root.json", ["/a.json"])

        assert empty.concepts == frozenset()
        assert empty.included_documents == ("/a.json",)
        assert empty.topological_order == ()


class TestImmutability:
    """Snapshots cannot be changed after construction."""

    def test_fields_are_frozen(self, snapshot):
        with pytest.raises(dataclasses.FrozenInstanceError):
            snapshot.concepts = frozenset()

    def test_mappings_are_read_only(self, snapshot):
        with pytest.raises(TypeError):
            snapshot.direct_parents["D"] = ("C",)

    def test_inputs_are_copied(self):
        parents = {"A": [], "B": ["A"]}
        snap = HierarchySnapshot.create("/r.json", [], {"/a.json": ["A", "B"]}, parents, {}, ["A", "B"])

        parents["B"].append("X")

        assert snap.direct_parents["B"] == ("A",)


class TestIndex:
    """Tests for the JSON index form."""

    def test_to_index_contents(self, snapshot):
        index = snapshot.to_index()

        assert index["schema_version"] == SCHEMA_VERSION
        assert index["concept_count"] == 3
        assert index["document_count"] == 2
        assert index["issue_count"] == 1
        assert index["concepts"] == ["A", "B", "C"]
        assert index["concepts_by_document"]["/b.json"] == ["B", "C"]
        assert index["edges"][0]["kind"] == "external"
        assert index["issues"][0]["kind"] == "duplicate_concept"

    def test_from_index_restores_snapshot(self, snapshot):
        restored = HierarchySnapshot.from_index(snapshot.to_index())

        assert restored.topological_order == snapshot.topological_order
        assert restored.all_ancestors == snapshot.all_ancestors
        assert restored.concepts_by_document == snapshot.concepts_by_document
        assert restored.edges == snapshot.edges
        assert restored.issues == snapshot.issues
        assert restored.version == 3
        assert restored.generated == snapshot.generated
