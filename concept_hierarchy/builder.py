"""Ancestor closure and topological ordering of concepts.

Computes, for every concept, the transitive set of its ancestors and a
deterministic parents-before-children order. Cycles in the direct-parent
relation are reported through ``CycleDetectedError``.
"""

from __future__ import annotations

import heapq
from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence

from concept_hierarchy.errors import CycleDetectedError


@dataclass(frozen=True)
class BuildResult:
    """Output of a hierarchy build."""

    all_ancestors: dict[str, list[str]]
    topological_order: list[str]


class HierarchyBuilder:
    """Builds ancestor sets and a topological order from direct parents."""

    def build(
        self,
        direct_parents: Mapping[str, Sequence[str]],
        concepts: Iterable[str],
    ) -> BuildResult:
        """Build the hierarchy.

        Args:
            direct_parents: Concept name to declared direct parents.
            concepts: All defined concepts.

        Returns:
            BuildResult with ancestors per concept and the topological order.

        Raises:
            CycleDetectedError: If the parent relation contains a cycle.
        """
        nodes = set(concepts)
        order = self.topological_order(nodes, direct_parents)
        ancestors = {name: self.ancestors_of(name, direct_parents) for name in direct_parents}
        return BuildResult(all_ancestors=ancestors, topological_order=order)

    def ancestors_of(self, start: str, direct_parents: Mapping[str, Sequence[str]]) -> list[str]:
        """Transitive ancestors of ``start`` in discovery order, without duplicates.

        Names without an entry in ``direct_parents`` are listed but not expanded.
        """
        seen: dict[str, None] = {}
        stack = [p for p in direct_parents.get(start, ()) if p != start]
        while stack:
            parent = stack.pop()
            if parent in seen:
                continue
            seen[parent] = None
            for grandparent in direct_parents.get(parent, ()):
                if grandparent != start and grandparent not in seen:
                    stack.append(grandparent)
        return list(seen)

    def topological_order(
        self,
        concepts: set[str],
        direct_parents: Mapping[str, Sequence[str]],
    ) -> list[str]:
        """Order concepts so that every parent precedes its children.

        Ties are broken lexicographically: among all concepts whose parents
        are already placed, the smallest name comes next. Parents that are not
        concepts themselves do not constrain the order.

        Raises:
            CycleDetectedError: If some concepts can never be placed.
        """
        children: dict[str, set[str]] = {}
        indegree = {name: 0 for name in concepts}

        for child, parents in direct_parents.items():
            if child not in indegree:
                continue
            for parent in set(parents):
                if parent not in indegree:
                    continue
                children.setdefault(parent, set()).add(child)
                indegree[child] += 1

        queue = sorted(name for name, degree in indegree.items() if degree == 0)
        heapq.heapify(queue)
        result = []

        while queue:
            node = heapq.heappop(queue)
            result.append(node)
            for child in children.get(node, ()):
                indegree[child] -= 1
                if indegree[child] == 0:
                    heapq.heappush(queue, child)

        if len(result) != len(concepts):
            raise CycleDetectedError(concepts - set(result))

        return result
