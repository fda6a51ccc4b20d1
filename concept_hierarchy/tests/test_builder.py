"""Tests for ancestor closure and topological ordering.

Tests:
- Ancestor sets (chains, diamonds, unresolved parents)
- Lexicographic tie-breaking
- Cycle detection without partial output
- Invariants over generated acyclic hierarchies
"""

import random

import pytest

from concept_hierarchy.builder import HierarchyBuilder
from concept_hierarchy.errors import CycleDetectedError


def _reachable(start, direct_parents):
    found = set()
    frontier = list(direct_parents.get(start, []))
    while frontier:
        node = frontier.pop()
        if node not in found:
            found.add(node)
            frontier.extend(direct_parents.get(node, []))
    found.discard(start)
    return found


class TestAncestors:
    """Tests for transitive ancestor sets."""

    def test_linear_chain(self):
        parents = {"A": [], "B": ["A"], "C": ["B"]}

        result = HierarchyBuilder().build(parents, parents.keys())

        assert set(result.all_ancestors["C"]) == {"A", "B"}
        assert result.all_ancestors["A"] == []

    def test_diamond_lists_shared_ancestor_once(self):
        parents = {"D": ["B", "C"], "B": ["A"], "C": ["A"], "A": []}

        result = HierarchyBuilder().build(parents, parents.keys())

        assert sorted(result.all_ancestors["D"]) == ["A", "B", "C"]
        assert result.all_ancestors["D"].count("A") == 1

    def test_self_excluded(self):
        parents = {"A": [], "B": ["A", "A"]}

        result = HierarchyBuilder().build(parents, parents.keys())

        assert "B" not in result.all_ancestors["B"]
        assert result.all_ancestors["B"] == ["A"]

    def test_unresolved_parent_listed_but_not_expanded(self):
        parents = {"B": ["Missing"], "C": ["B"]}

        result = HierarchyBuilder().build(parents, parents.keys())

        assert set(result.all_ancestors["C"]) == {"B", "Missing"}
        assert "Missing" not in result.topological_order
        assert result.topological_order == ["B", "C"]


class TestTopologicalOrder:
    """Tests for deterministic ordering."""

    def test_roots_sorted_lexicographically(self):
        parents = {"zeta": [], "alpha": [], "mid": []}

        result = HierarchyBuilder().build(parents, parents.keys())

        assert result.topological_order == ["alpha", "mid", "zeta"]

    def test_smallest_available_comes_next(self):
        """Released children compete with pending roots by name."""
        parents = {"B": [], "C": [], "A1": ["B"]}

        result = HierarchyBuilder().build(parents, parents.keys())

        assert result.topological_order == ["B", "A1", "C"]

    def test_parents_before_children(self):
        parents = {"Function": ["ValueDomain"], "ValueDomain": ["Concept"], "Concept": [], "Add": ["Function"]}

        result = HierarchyBuilder().build(parents, parents.keys())

        assert result.topological_order == ["Concept", "ValueDomain", "Function", "Add"]

    def test_duplicate_parent_entries(self):
        parents = {"A": [], "B": ["A", "A"]}

        result = HierarchyBuilder().build(parents, parents.keys())

        assert result.topological_order == ["A", "B"]

    def test_empty_hierarchy(self):
        result = HierarchyBuilder().build({}, [])

        assert result.topological_order == []
        assert result.all_ancestors == {}

    def test_repeated_builds_identical(self):
        parents = {"D": ["B", "C"], "B": ["A"], "C": ["A"], "A": [], "E": []}

        first = HierarchyBuilder().build(parents, set(parents))
        second = HierarchyBuilder().build(dict(reversed(list(parents.items()))), set(parents))

        assert first.topological_order == second.topological_order


class TestCycleDetection:
    """Tests for cycle reporting."""

    def test_two_node_cycle(self):
        parents = {"A": ["B"], "B": ["A"]}

        with pytest.raises(CycleDetectedError) as exc_info:
            HierarchyBuilder().build(parents, parents.keys())

        assert exc_info.value.remaining == frozenset({"A", "B"})
        assert exc_info.value.to_json()["remaining"] == ["A", "B"]

    def test_self_parent(self):
        parents = {"A": ["A"]}

        with pytest.raises(CycleDetectedError) as exc_info:
            HierarchyBuilder().build(parents, parents.keys())

        assert exc_info.value.remaining == frozenset({"A"})

    def test_cycle_with_acyclic_part(self):
        """Concepts depending on a cycle cannot be placed either."""
        parents = {"Root": [], "A": ["Root", "B"], "B": ["A"], "Leaf": ["A"], "Other": ["Root"]}

        with pytest.raises(CycleDetectedError) as exc_info:
            HierarchyBuilder().build(parents, parents.keys())

        assert {"A", "B"} <= exc_info.value.remaining
        assert "Root" not in exc_info.value.remaining
        assert "Other" not in exc_info.value.remaining


class TestGeneratedHierarchies:
    """Invariants over randomly generated acyclic hierarchies."""

    @pytest.mark.parametrize("seed", range(20))
    def test_invariants(self, seed):
        rng = random.Random(seed)
        names = [f"C{i:02d}" for i in range(rng.randint(1, 30))]
        rng.shuffle(names)
        # Parents only from earlier positions keeps the relation acyclic
        parents = {
            name: rng.sample(names[:i], rng.randint(0, min(3, i)))
            for i, name in enumerate(names)
        }

        result = HierarchyBuilder().build(parents, set(names))

        order = result.topological_order
        assert sorted(order) == sorted(names)
        position = {name: i for i, name in enumerate(order)}
        for child, declared in parents.items():
            for parent in declared:
                assert position[parent] < position[child]

        for name in names:
            ancestors = result.all_ancestors[name]
            assert len(ancestors) == len(set(ancestors))
            assert set(ancestors) == _reachable(name, parents)
            for ancestor in ancestors:
                assert set(parents[ancestor]) <= set(ancestors)
