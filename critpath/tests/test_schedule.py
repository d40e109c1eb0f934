import random
import unittest
from datetime import datetime, timedelta

from critpath.domain.errors import CycleDetected
from critpath.domain.task import Task
from critpath.services.schedule import calculate_earliest_starts, effective_completion
from critpath.utils.graph import build_dependency_graph
from critpath.utils.topology import topological_order

DAY0 = datetime(2025, 4, 1)


def day(n):
    return DAY0 + timedelta(days=n)


def make_task(task_id, depends_on=(), created=0, due=None):
    return Task(
        task_id,
        f"Task {task_id}",
        day(created),
        due_date=day(due) if due is not None else None,
        depends_on=depends_on,
    )


class EarliestStartTestCase(unittest.TestCase):
    def test_task_without_dependencies_starts_when_created(self):
        graph = build_dependency_graph([make_task("A", created=3), make_task("B")])
        starts = calculate_earliest_starts(graph)

        self.assertEqual(starts["A"], day(3))
        self.assertEqual(starts["B"], day(0))

    def test_chain_without_due_dates(self):
        """X -> Y -> Z with no due dates all start on day 0."""
        graph = build_dependency_graph(
            [make_task("X"), make_task("Y", ["X"]), make_task("Z", ["Y"])]
        )
        starts = calculate_earliest_starts(graph)

        self.assertEqual(starts, {"X": day(0), "Y": day(0), "Z": day(0)})

    def test_dependency_due_date_pushes_start(self):
        graph = build_dependency_graph([make_task("X", due=5), make_task("Y", ["X"])])
        starts = calculate_earliest_starts(graph)

        self.assertEqual(starts["Y"], day(5))

    def test_latest_dependency_wins(self):
        graph = build_dependency_graph(
            [
                make_task("A", due=3),
                make_task("B", due=7),
                make_task("T", ["A", "B"]),
            ]
        )
        starts = calculate_earliest_starts(graph)

        self.assertEqual(starts["T"], day(7))

    def test_creation_after_dependencies_complete(self):
        graph = build_dependency_graph(
            [make_task("A", due=2), make_task("B", ["A"], created=10)]
        )
        self.assertEqual(calculate_earliest_starts(graph)["B"], day(10))

    def test_earliest_start_propagates_without_due_dates(self):
        # B has no due date, so C waits for B's earliest start (A's due date)
        graph = build_dependency_graph(
            [
                make_task("A", due=4),
                make_task("B", ["A"]),
                make_task("C", ["B"]),
            ]
        )
        starts = calculate_earliest_starts(graph)

        self.assertEqual(starts["B"], day(4))
        self.assertEqual(starts["C"], day(4))

    def test_own_due_date_does_not_move_own_start(self):
        graph = build_dependency_graph([make_task("A", due=9, created=1)])
        self.assertEqual(calculate_earliest_starts(graph)["A"], day(1))

    def test_due_date_may_precede_dependency_start(self):
        # A due date earlier than the task's own earliest start is still used
        graph = build_dependency_graph(
            [
                make_task("A", due=8),
                make_task("B", ["A"], due=3),
                make_task("C", ["B"]),
            ]
        )
        starts = calculate_earliest_starts(graph)

        self.assertEqual(starts["B"], day(8))
        self.assertEqual(starts["C"], day(3))

    def test_accepts_precomputed_order(self):
        graph = build_dependency_graph([make_task(1, due=2), make_task(2, [1])])
        order = topological_order(graph)
        self.assertEqual(calculate_earliest_starts(graph, order)[2], day(2))

    def test_cycle_prevents_calculation(self):
        graph = build_dependency_graph([make_task(1, [2]), make_task(2, [1])])
        with self.assertRaises(CycleDetected):
            calculate_earliest_starts(graph)

    def test_effective_completion(self):
        with_due = make_task("A", due=5)
        without_due = make_task("B")
        starts = {"A": day(1), "B": day(2)}

        self.assertEqual(effective_completion(with_due, starts), day(5))
        self.assertEqual(effective_completion(without_due, starts), day(2))

    def test_recurrence_holds_on_random_snapshots(self):
        rng = random.Random(3)
        for _ in range(25):
            tasks = []
            for i in range(rng.randint(1, 15)):
                deps = [j for j in range(i) if rng.random() < 0.25]
                due = rng.randint(0, 30) if rng.random() < 0.5 else None
                tasks.append(
                    make_task(i, deps, created=rng.randint(0, 10), due=due)
                )
            graph = build_dependency_graph(tasks)
            starts = calculate_earliest_starts(graph)

            for task in tasks:
                expected = task.created_at
                for dep_id in task.depends_on:
                    dep = graph.tasks[dep_id]
                    completion = dep.due_date or starts[dep_id]
                    expected = max(expected, completion)
                self.assertEqual(starts[task.id], expected)


if __name__ == "__main__":
    unittest.main()
