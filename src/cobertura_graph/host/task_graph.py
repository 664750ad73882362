"""Deterministic ordering graph over task paths used to finalize execution plans."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from heapq import heapify, heappop, heappush

from cobertura_graph.errors import CoberturaGraphError


class CycleError(CoberturaGraphError, ValueError):
    """Raised when task dependencies form a cycle."""

    cycles: tuple[tuple[str, ...], ...]

    def __init__(self, cycles: Iterable[Sequence[str]]) -> None:
        normalized: tuple[tuple[str, ...], ...] = tuple(tuple(path) for path in cycles)
        self.cycles = normalized

        if not normalized:
            message = "Task dependencies contain at least one cycle."
        else:
            preview = ", ".join(" -> ".join(path) for path in normalized[:3])
            suffix = "..." if len(normalized) > 3 else ""
            message = f"Task dependencies contain cycle(s): {preview}{suffix}"
        super().__init__(message)


class TaskGraph:
    """Directed ``before -> after`` graph keyed by task path.

    Nodes remember the order in which they were first added. Topological
    ordering prefers earlier nodes among those that are ready, so a plan built
    from the same requests always comes out in the same order.
    """

    __slots__ = ("_rank", "_successors", "_predecessors")

    def __init__(
        self,
        nodes: Iterable[str] | None = None,
        edges: Iterable[tuple[str, str]] | None = None,
    ) -> None:
        self._rank: dict[str, int] = {}
        self._successors: dict[str, set[str]] = {}
        self._predecessors: dict[str, set[str]] = {}

        if nodes is not None:
            for node in nodes:
                self.add_node(node)

        if edges is not None:
            for before, after in edges:
                self.add_edge(before, after)

    def __contains__(self, node: object) -> bool:
        return node in self._rank

    def __len__(self) -> int:
        return len(self._rank)

    @property
    def nodes(self) -> tuple[str, ...]:
        """Nodes in insertion order."""
        return tuple(self._rank)

    @property
    def edges(self) -> tuple[tuple[str, str], ...]:
        """All ``(before, after)`` pairs, grouped by ``before`` in insertion order."""
        ordered: list[tuple[str, str]] = []
        for before in self._rank:
            for after in sorted(self._successors[before], key=self._rank.__getitem__):
                ordered.append((before, after))
        return tuple(ordered)

    def add_node(self, node: str) -> None:
        """Add a node if it does not already exist."""
        if not node:
            raise ValueError("Task path must be non-empty.")
        if node in self._rank:
            return

        self._rank[node] = len(self._rank)
        self._successors[node] = set()
        self._predecessors[node] = set()

    def add_edge(self, before: str, after: str) -> None:
        """Record that ``before`` must complete before ``after`` starts."""
        self.add_node(before)
        self.add_node(after)
        self._successors[before].add(after)
        self._predecessors[after].add(before)

    def predecessors(self, node: str) -> tuple[str, ...]:
        self._assert_node_exists(node)
        return tuple(sorted(self._predecessors[node], key=self._rank.__getitem__))

    def topological_sort(self) -> tuple[str, ...]:
        """Return a deterministic ordering or raise ``CycleError``."""
        indegree: dict[str, int] = {node: len(self._predecessors[node]) for node in self._rank}
        ready: list[tuple[int, str]] = [
            (self._rank[node], node) for node, degree in indegree.items() if degree == 0
        ]
        heapify(ready)

        order: list[str] = []
        while ready:
            _, node = heappop(ready)
            order.append(node)
            for after in self._successors[node]:
                indegree[after] -= 1
                if indegree[after] == 0:
                    heappush(ready, (self._rank[after], after))

        if len(order) != len(self._rank):
            raise CycleError(self.detect_cycles())
        return tuple(order)

    def detect_cycles(self) -> tuple[tuple[str, ...], ...]:
        """Return cycles as closed paths, e.g. ``(":a", ":b", ":a")``."""
        state: dict[str, int] = {}
        stack: list[str] = []
        stack_index: dict[str, int] = {}
        cycles: dict[tuple[str, ...], None] = {}

        for start in sorted(self._rank):
            if state.get(start, 0) != 0:
                continue

            state[start] = 1
            stack.append(start)
            stack_index[start] = 0
            frames: list[tuple[str, Iterator[str]]] = [(start, iter(sorted(self._successors[start])))]

            while frames:
                node, successors = frames[-1]
                try:
                    after = next(successors)
                except StopIteration:
                    frames.pop()
                    state[node] = 2
                    stack.pop()
                    del stack_index[node]
                    continue

                after_state = state.get(after, 0)
                if after_state == 0:
                    state[after] = 1
                    stack_index[after] = len(stack)
                    stack.append(after)
                    frames.append((after, iter(sorted(self._successors[after]))))
                elif after_state == 1:
                    cycle = tuple(stack[stack_index[after] :] + [after])
                    cycles[_canonicalize_cycle(cycle)] = None

        return tuple(sorted(cycles))

    def serialize(self) -> dict[str, object]:
        """JSON-friendly ``{"nodes": [...], "edges": [[before, after], ...]}``."""
        return {
            "nodes": list(self.nodes),
            "edges": [[before, after] for before, after in self.edges],
        }

    def _assert_node_exists(self, node: str) -> None:
        if node not in self._rank:
            raise KeyError(f"Unknown task path: {node}")


def _canonicalize_cycle(cycle: Sequence[str]) -> tuple[str, ...]:
    core = tuple(cycle[:-1])
    if len(core) == 1:
        return (core[0], core[0])

    best = core
    for offset in range(1, len(core)):
        rotated = core[offset:] + core[:offset]
        if rotated < best:
            best = rotated
    return best + (best[0],)


__all__ = ["CycleError", "TaskGraph"]
