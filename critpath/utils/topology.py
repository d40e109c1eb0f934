import logging

import networkx as nx

from critpath.domain.errors import CycleDetected

logger = logging.getLogger(__name__)


def topological_order(dependency_graph):
    """
    Order tasks so that every task comes after all the tasks it depends on.

    Uses networkx's lexicographical topological sort (Kahn's algorithm with a
    min-heap): whenever several tasks are ready at the same time the one with
    the smallest ID is taken first, so the order is reproducible.

    Args:
        dependency_graph: DependencyGraph built from the snapshot

    Returns:
        list: Task IDs, dependencies before dependents

    Raises:
        CycleDetected: If the dependencies contain a cycle
    """
    order = []
    try:
        for task_id in nx.lexicographical_topological_sort(dependency_graph.graph):
            order.append(task_id)
    except nx.NetworkXUnfeasible:
        remaining = set(dependency_graph.tasks) - set(order)
        cycle = find_cycle(dependency_graph, remaining)
        logger.debug(
            "Topological sort stopped after %d of %d tasks, cycle: %s",
            len(order),
            len(dependency_graph),
            cycle,
        )
        raise CycleDetected(cycle)

    return order


def find_cycle(dependency_graph, remaining=None):
    """
    Find one concrete cycle among the given tasks.

    Args:
        dependency_graph: DependencyGraph built from the snapshot
        remaining: Task IDs that could not be ordered (defaults to all tasks)

    Returns:
        list: Cycle members in depends-on order, starting at the smallest ID,
              or an empty list if the tasks contain no cycle
    """
    if remaining is None:
        remaining = dependency_graph.tasks
    remaining = sorted(remaining)

    # Edges point from a task to its dependencies, added in ID order so the
    # search always visits the smallest dependency first
    depends_on = nx.DiGraph()
    depends_on.add_nodes_from(remaining)
    members = set(remaining)
    for task_id in remaining:
        for dep_id in sorted(dependency_graph.forward[task_id] & members):
            depends_on.add_edge(task_id, dep_id)

    try:
        edges = nx.find_cycle(depends_on, source=remaining)
    except nx.NetworkXNoCycle:
        return []

    loop = [task_id for task_id, _ in edges]
    start = loop.index(min(loop))
    return loop[start:] + loop[:start]


def has_cycle(dependency_graph):
    """Return True if the snapshot's dependencies contain a cycle."""
    return not nx.is_directed_acyclic_graph(dependency_graph.graph)
