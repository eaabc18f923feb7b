"""
Must-precede relation between obligations.

Edges are keyed by obligation id. The graph remembers the obligation
objects it has seen so names can be reported and serialized.
"""

import heapq
import logging
from collections.abc import Callable, Iterable, Sequence
from typing import Any

from .errors import CircularDependency
from .types import Obligation

logger = logging.getLogger(__name__)


class DependencyGraph:
    """
    Directed acyclic graph of "dependent requires prerequisite" edges.

    Every edge is cycle-checked before it is committed, so a rejected
    add_dependency leaves the graph exactly as it was.
    """

    def __init__(self) -> None:
        self._prerequisites: dict[str, set[str]] = {}
        self._obligations: dict[str, Obligation] = {}

    @classmethod
    def from_id_map(
        cls, mapping: dict[str, Iterable[str]], obligations: Iterable[Obligation]
    ) -> "DependencyGraph":
        """
        Build a graph from {dependent id: [prerequisite ids]}.

        Args:
            mapping: Dependent id to prerequisite ids
            obligations: Every obligation the ids may refer to

        Returns:
            Validated DependencyGraph

        Raises:
            ValueError: If an id is not among the obligations
            CircularDependency: If the edges contain a cycle
        """
        by_id = {o.id: o for o in obligations}
        graph = cls()
        for dependent_id, prerequisite_ids in mapping.items():
            for prerequisite_id in prerequisite_ids:
                for obligation_id in (dependent_id, prerequisite_id):
                    if obligation_id not in by_id:
                        raise ValueError(f"Unknown obligation id in dependencies: {obligation_id}")
                graph.add_dependency(by_id[dependent_id], by_id[prerequisite_id])
        return graph

    def add_dependency(self, dependent: Obligation, prerequisite: Obligation) -> None:
        """Record that `dependent` must be placed no earlier than `prerequisite`."""
        if dependent.id == prerequisite.id or self._reachable(prerequisite.id, dependent.id):
            raise CircularDependency(dependent, prerequisite)
        self._register(dependent)
        self._register(prerequisite)
        self._prerequisites[dependent.id].add(prerequisite.id)

    def remove_dependency(self, dependent: Obligation, prerequisite: Obligation) -> None:
        self._prerequisites.get(dependent.id, set()).discard(prerequisite.id)

    def prerequisites_of(self, obligation: Obligation | str) -> list[Obligation]:
        obligation_id = _id_of(obligation)
        return [self._obligations[i] for i in sorted(self._prerequisites.get(obligation_id, ()))]

    def dependents_of(self, obligation: Obligation | str) -> list[Obligation]:
        obligation_id = _id_of(obligation)
        return [
            self._obligations[dependent_id]
            for dependent_id, prerequisites in sorted(self._prerequisites.items())
            if obligation_id in prerequisites
        ]

    def all_prerequisites_of(self, obligation: Obligation | str) -> set[str]:
        """Ids of every transitive prerequisite."""
        return self._walk(_id_of(obligation), self._prerequisites)

    def all_dependents_of(self, obligation: Obligation | str) -> set[str]:
        """Ids of every transitive dependent."""
        reverse: dict[str, set[str]] = {}
        for dependent_id, prerequisites in self._prerequisites.items():
            for prerequisite_id in prerequisites:
                reverse.setdefault(prerequisite_id, set()).add(dependent_id)
        return self._walk(_id_of(obligation), reverse)

    def edges(self) -> list[tuple[Obligation, Obligation]]:
        """All (dependent, prerequisite) pairs."""
        return [
            (self._obligations[dependent_id], self._obligations[prerequisite_id])
            for dependent_id, prerequisites in sorted(self._prerequisites.items())
            for prerequisite_id in sorted(prerequisites)
        ]

    def obligations(self) -> list[Obligation]:
        return list(self._obligations.values())

    def get(self, obligation_id: str) -> Obligation | None:
        return self._obligations.get(obligation_id)

    def validate(self) -> None:
        """
        Re-check the whole graph for cycles.

        Raises:
            CircularDependency: naming the edge that closes a cycle
        """
        state: dict[str, int] = {}  # 1 = on stack, 2 = done
        for root in self._prerequisites:
            if root in state:
                continue
            stack: list[tuple[str, Any]] = [(root, iter(sorted(self._prerequisites.get(root, ()))))]
            state[root] = 1
            while stack:
                node, children = stack[-1]
                child = next(children, None)
                if child is None:
                    state[node] = 2
                    stack.pop()
                    continue
                if state.get(child) == 1:
                    raise CircularDependency(self._obligations[node], self._obligations[child])
                if child not in state:
                    state[child] = 1
                    stack.append((child, iter(sorted(self._prerequisites.get(child, ())))))

    def copy(self) -> "DependencyGraph":
        clone = DependencyGraph()
        clone._obligations = dict(self._obligations)
        clone._prerequisites = {k: set(v) for k, v in self._prerequisites.items()}
        return clone

    def merge(self, other: "DependencyGraph") -> None:
        """Add every edge of `other`, cycle-checking each one."""
        for dependent, prerequisite in other.edges():
            self.add_dependency(dependent, prerequisite)
        for obligation in other.obligations():
            self._register(obligation)

    def topological_order(
        self,
        obligations: Sequence[Obligation],
        key: Callable[[Obligation], Any],
    ) -> list[Obligation]:
        """
        Order `obligations` so every prerequisite precedes its dependents.

        Constraints that pass through obligations outside the sequence
        (e.g. flexible -> rigid -> flexible) still apply. Among obligations
        free of relative constraints, the smallest `key` goes first.

        Args:
            obligations: The obligations to order
            key: Tie-break key (e.g. deadline, then priority)

        Returns:
            The obligations in placement order
        """
        members = {o.id: o for o in obligations}
        position = {o.id: index for index, o in enumerate(obligations)}

        successors: dict[str, set[str]] = {obligation_id: set() for obligation_id in members}
        indegree: dict[str, int] = {obligation_id: 0 for obligation_id in members}
        for obligation_id in members:
            for prerequisite_id in self.all_prerequisites_of(obligation_id) & members.keys():
                successors[prerequisite_id].add(obligation_id)
                indegree[obligation_id] += 1

        available: list[tuple[Any, int, str]] = []
        for obligation_id, degree in indegree.items():
            if degree == 0:
                heapq.heappush(
                    available, (key(members[obligation_id]), position[obligation_id], obligation_id)
                )

        ordered_ids: list[str] = []
        while available:
            _, _, obligation_id = heapq.heappop(available)
            ordered_ids.append(obligation_id)
            for neighbour in successors[obligation_id]:
                indegree[neighbour] -= 1
                if indegree[neighbour] == 0:
                    heapq.heappush(
                        available, (key(members[neighbour]), position[neighbour], neighbour)
                    )

        return [members[obligation_id] for obligation_id in ordered_ids]

    def _register(self, obligation: Obligation) -> None:
        self._obligations[obligation.id] = obligation
        self._prerequisites.setdefault(obligation.id, set())

    def _reachable(self, start: str, target: str) -> bool:
        return target in self._walk(start, self._prerequisites)

    @staticmethod
    def _walk(start: str, adjacency: dict[str, set[str]]) -> set[str]:
        seen: set[str] = set()
        stack = list(adjacency.get(start, ()))
        while stack:
            node = stack.pop()
            if node in seen:
                continue
            seen.add(node)
            stack.extend(adjacency.get(node, ()))
        return seen

    def __contains__(self, obligation: object) -> bool:
        if isinstance(obligation, str):
            return obligation in self._obligations
        return getattr(obligation, "id", None) in self._obligations

    def __len__(self) -> int:
        """Number of edges."""
        return sum(len(prerequisites) for prerequisites in self._prerequisites.values())


def _id_of(obligation: Obligation | str) -> str:
    return obligation if isinstance(obligation, str) else obligation.id
