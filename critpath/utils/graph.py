import logging

import networkx as nx

from critpath.domain.errors import DanglingReference, SelfDependency
from critpath.domain.task import TaskError

logger = logging.getLogger(__name__)


class DependencyGraph:
    """
    Index-based view of a task snapshot.

    forward maps each task ID to the IDs it depends on, reverse maps each task
    ID to the IDs depending on it. Both are derived from the tasks' depends-on
    sets and are never edited directly. graph is the same relation as a
    networkx DiGraph with edges pointing from dependency to dependent.
    """

    def __init__(self, tasks, forward, reverse, graph):
        self.tasks = tasks
        self.forward = forward
        self.reverse = reverse
        self.graph = graph

    @property
    def nodes(self):
        return frozenset(self.tasks)

    def dependencies_of(self, task_id):
        return self.forward[task_id]

    def dependents_of(self, task_id):
        return self.reverse[task_id]

    def edge_count(self):
        return sum(len(deps) for deps in self.forward.values())

    def __len__(self):
        return len(self.tasks)

    def __contains__(self, task_id):
        return task_id in self.tasks


def build_dependency_graph(tasks):
    """
    Build the forward and reverse dependency adjacency for a task snapshot.

    Args:
        tasks: Sequence of Task objects, or a dictionary of Task objects keyed by ID

    Returns:
        DependencyGraph

    Raises:
        TaskError: If two tasks share an ID
        SelfDependency: If a task lists itself as a dependency
        DanglingReference: If a dependency ID is not present in the snapshot
    """
    if isinstance(tasks, dict):
        tasks = list(tasks.values())

    task_map = {}
    for task in tasks:
        if task.id in task_map:
            raise TaskError(f"Duplicate task ID in snapshot: {task.id!r}")
        task_map[task.id] = task

    G = nx.DiGraph()

    # Add task nodes
    for task_id, task in task_map.items():
        G.add_node(task_id, task=task)

    forward = {}
    reverse = {task_id: set() for task_id in task_map}

    # Add dependency edges (dependency -> dependent)
    for task_id, task in task_map.items():
        for dep_id in task.depends_on:
            if dep_id == task_id:
                raise SelfDependency(task_id)
            if dep_id not in task_map:
                raise DanglingReference(dep_id, task_id)
            reverse[dep_id].add(task_id)
            G.add_edge(dep_id, task_id)
        forward[task_id] = task.depends_on

    reverse = {task_id: frozenset(ids) for task_id, ids in reverse.items()}

    logger.debug(
        "Built dependency graph with %d tasks and %d edges",
        G.number_of_nodes(),
        G.number_of_edges(),
    )
    return DependencyGraph(task_map, forward, reverse, G)
