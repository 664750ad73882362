"""Unit tests for host.task_graph."""

from __future__ import annotations

import random

import pytest

from cobertura_graph.host.task_graph import CycleError, TaskGraph


def test_diamond_graph_orders_by_insertion_rank() -> None:
    graph = TaskGraph(
        edges=(
            (":compileJava", ":classes"),
            (":classes", ":instrument"),
            (":classes", ":test"),
            (":instrument", ":test"),
        )
    )

    assert graph.topological_sort() == (":compileJava", ":classes", ":instrument", ":test")
    assert graph.predecessors(":test") == (":classes", ":instrument")


def test_independent_nodes_keep_insertion_order() -> None:
    graph = TaskGraph(nodes=(":b", ":a", ":c"))

    assert graph.topological_sort() == (":b", ":a", ":c")
    assert len(graph) == 3
    assert ":a" in graph
    assert ":missing" not in graph


def test_duplicate_edges_are_ignored() -> None:
    graph = TaskGraph()
    graph.add_edge(":a", ":b")
    graph.add_edge(":a", ":b")

    assert graph.edges == ((":a", ":b"),)
    assert graph.serialize() == {"nodes": [":a", ":b"], "edges": [[":a", ":b"]]}


def test_cycle_detection_returns_cycle() -> None:
    graph = TaskGraph(
        edges=(
            (":a", ":b"),
            (":b", ":c"),
            (":c", ":a"),
            (":c", ":d"),
        )
    )

    cycles = graph.detect_cycles()
    assert cycles == ((":a", ":b", ":c", ":a"),)

    with pytest.raises(CycleError) as error:
        graph.topological_sort()
    assert error.value.cycles == cycles
    assert ":a -> :b -> :c -> :a" in str(error.value)


def test_self_loop_is_reported_as_cycle() -> None:
    graph = TaskGraph(edges=((":a", ":a"),))

    assert graph.detect_cycles() == ((":a", ":a"),)


def test_empty_node_and_unknown_query_are_rejected() -> None:
    graph = TaskGraph()
    with pytest.raises(ValueError):
        graph.add_node("")
    with pytest.raises(KeyError):
        graph.predecessors(":nope")


def test_seeded_random_dag_topological_sort_respects_every_edge() -> None:
    rng = random.Random(20_261_017)
    node_ids = [f":p{index:03d}:task" for index in range(300)]
    edges = []
    for index, node in enumerate(node_ids[1:], start=1):
        for parent in rng.sample(node_ids[:index], k=min(index, 3)):
            edges.append((parent, node))

    graph = TaskGraph(nodes=reversed(node_ids), edges=edges)
    order = graph.topological_sort()
    position = {node: rank for rank, node in enumerate(order)}

    assert len(order) == len(node_ids)
    assert all(position[before] < position[after] for before, after in edges)
    assert graph.topological_sort() == order
