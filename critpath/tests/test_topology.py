import itertools
import random
import unittest
from datetime import datetime

import networkx as nx

from critpath.domain.errors import CycleDetected
from critpath.domain.task import Task
from critpath.utils.graph import build_dependency_graph
from critpath.utils.topology import find_cycle, has_cycle, topological_order

CREATED = datetime(2025, 4, 1)


def make_graph(edges, nodes=()):
    """Build a graph from {task_id: [dependency ids]}."""
    ids = set(nodes) | set(edges)
    for deps in edges.values():
        ids.update(deps)
    tasks = [
        Task(task_id, f"Task {task_id}", CREATED, depends_on=edges.get(task_id, ()))
        for task_id in ids
    ]
    return build_dependency_graph(tasks)


def assert_is_cycle(test, graph, members):
    """Each member depends on the next; the last depends on the first."""
    test.assertTrue(members)
    test.assertEqual(len(members), len(set(members)))
    for current, following in zip(members, members[1:] + members[:1]):
        test.assertIn(following, graph.forward[current])


class TopologicalOrderTestCase(unittest.TestCase):
    def test_dependencies_come_first(self):
        graph = make_graph({"b": ["a"], "c": ["b"], "d": ["a", "c"]})
        order = topological_order(graph)

        self.assertEqual(len(order), 4)
        position = {task_id: i for i, task_id in enumerate(order)}
        for task_id, deps in graph.forward.items():
            for dep in deps:
                self.assertLess(position[dep], position[task_id])

    def test_ties_break_by_ascending_id(self):
        # Insertion order deliberately reversed
        tasks = [
            Task(task_id, f"Task {task_id}", CREATED) for task_id in [5, 3, 9, 1]
        ]
        order = topological_order(build_dependency_graph(tasks))
        self.assertEqual(order, [1, 3, 5, 9])

    def test_ready_tasks_interleave_by_id(self):
        graph = make_graph({2: [4], 3: [1]}, nodes=[1, 4])
        # 1 and 4 are ready; 1 releases 3, which sorts before 4
        self.assertEqual(topological_order(graph), [1, 3, 4, 2])

    def test_empty_graph(self):
        self.assertEqual(topological_order(make_graph({})), [])

    def test_matches_networkx_on_random_dags(self):
        rng = random.Random(42)
        for _ in range(20):
            size = rng.randint(1, 12)
            edges = {
                i: [j for j in range(i) if rng.random() < 0.3] for i in range(size)
            }
            graph = make_graph(edges)
            order = topological_order(graph)

            self.assertEqual(len(order), size)
            self.assertEqual(
                order,
                list(nx.lexicographical_topological_sort(graph.graph)),
            )


class CycleDetectionTestCase(unittest.TestCase):
    def test_two_task_cycle(self):
        graph = make_graph({"Y": ["Z"], "Z": ["Y"], "X": []})

        with self.assertRaises(CycleDetected) as ctx:
            topological_order(graph)

        self.assertEqual(ctx.exception.cycle_members, ["Y", "Z"])
        self.assertIn("Y -> Z -> Y", str(ctx.exception))

    def test_cycle_reported_in_depends_on_order(self):
        # 1 depends on 3, 3 depends on 2, 2 depends on 1
        graph = make_graph({1: [3], 3: [2], 2: [1]})

        with self.assertRaises(CycleDetected) as ctx:
            topological_order(graph)

        self.assertEqual(ctx.exception.cycle_members, [1, 3, 2])
        assert_is_cycle(self, graph, ctx.exception.cycle_members)

    def test_cycle_behind_acyclic_tasks(self):
        # 10 and 11 hang off the cycle but are not part of it
        graph = make_graph({10: [4], 11: [10], 4: [5], 5: [6], 6: [4]}, nodes=[0])

        with self.assertRaises(CycleDetected) as ctx:
            topological_order(graph)

        self.assertEqual(ctx.exception.cycle_members, [4, 5, 6])

    def test_find_cycle_on_acyclic_graph(self):
        graph = make_graph({2: [1]})
        self.assertEqual(find_cycle(graph), [])
        self.assertFalse(has_cycle(graph))

    def test_find_cycle_on_whole_graph(self):
        graph = make_graph({1: [2], 2: [3], 3: [2]})
        self.assertEqual(find_cycle(graph), [2, 3])
        self.assertTrue(has_cycle(graph))

    def test_random_cyclic_graphs(self):
        rng = random.Random(7)
        for _ in range(20):
            size = rng.randint(2, 10)
            edges = {
                i: [j for j in range(i) if rng.random() < 0.3] for i in range(size)
            }
            # Close a loop between two random tasks
            low, high = sorted(rng.sample(range(size), 2))
            edges[high] = list(set(edges[high]) | {low})
            edges[low] = list(set(edges[low]) | {high})
            graph = make_graph(edges)

            with self.assertRaises(CycleDetected) as ctx:
                topological_order(graph)
            assert_is_cycle(self, graph, ctx.exception.cycle_members)

    def test_sort_failure_surfaces_as_cycle_detected(self):
        graph = make_graph({"b": ["a"], "a": ["c"], "c": ["b"], "d": ["c"]})

        with self.assertRaises(CycleDetected) as ctx:
            topological_order(graph)

        self.assertNotIsInstance(ctx.exception, nx.NetworkXException)
        self.assertEqual(ctx.exception.cycle_members, ["a", "c", "b"])

    def test_find_cycle_within_remaining_tasks(self):
        graph = make_graph({2: [3], 3: [2], 7: [8], 8: [7]}, nodes=[1])

        self.assertEqual(find_cycle(graph, {7, 8}), [7, 8])
        self.assertEqual(find_cycle(graph, {1, 2, 3, 7, 8}), [2, 3])
        # A cycle broken by the subset is not reported
        self.assertEqual(find_cycle(graph, {2, 7}), [])

    def test_has_cycle_matches_networkx(self):
        rng = random.Random(3)
        for _ in range(20):
            size = rng.randint(1, 8)
            edges = {
                i: [j for j in range(size) if j != i and rng.random() < 0.15]
                for i in range(size)
            }
            graph = make_graph(edges)
            expected = bool(list(nx.simple_cycles(graph.graph)))

            self.assertEqual(has_cycle(graph), expected)
            self.assertEqual(bool(find_cycle(graph)), expected)

    def test_all_permutations_of_a_three_cycle_agree(self):
        for a, b, c in itertools.permutations(["p", "q", "r"]):
            graph = make_graph({a: [b], b: [c], c: [a]})
            with self.assertRaises(CycleDetected) as ctx:
                topological_order(graph)
            members = ctx.exception.cycle_members
            self.assertEqual(members[0], "p")
            assert_is_cycle(self, graph, members)


if __name__ == "__main__":
    unittest.main()
