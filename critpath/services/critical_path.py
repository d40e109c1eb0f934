import logging

from critpath.services.schedule import effective_completion
from critpath.utils.topology import topological_order

logger = logging.getLogger(__name__)


def dependency_depths(dependency_graph, order):
    """
    Length of the longest chain of dependencies behind each task.

    A task without dependencies has depth 0.
    """
    depths = {}
    for task_id in order:
        deps = dependency_graph.forward[task_id]
        depths[task_id] = 1 + max(depths[dep_id] for dep_id in deps) if deps else 0
    return depths


def find_terminal_task(earliest_starts, order, depths=None):
    """
    Find the task that ends the critical path.

    This is the task with the latest earliest start. When several tasks share
    that start, the one with the longest chain of dependencies behind it wins;
    remaining ties go to the task appearing last in the topological order.

    Args:
        earliest_starts: Task ID -> earliest start
        order: Topological order of the snapshot
        depths: Optional task ID -> dependency depth, from dependency_depths

    Returns:
        The task ID, or None for an empty snapshot
    """
    terminal = None
    best = None
    for position, task_id in enumerate(order):
        depth = depths[task_id] if depths is not None else 0
        rank = (earliest_starts[task_id], depth, position)
        if best is None or rank > best:
            best = rank
            terminal = task_id
    return terminal


def identify_critical_path(dependency_graph, earliest_starts, order=None):
    """
    Identify the chain of tasks driving the latest earliest start.

    Starting at the terminal task, repeatedly step to the direct dependency
    with the latest effective completion (due date if set, else earliest
    start) until a task without dependencies is reached. Ties between
    dependencies are broken by ascending task ID.

    Args:
        dependency_graph: DependencyGraph built from the snapshot
        earliest_starts: Task ID -> earliest start, from calculate_earliest_starts
        order: Optional topological order; computed when not supplied

    Returns:
        list: Critical task IDs ordered from the first task to the terminal task
    """
    if order is None:
        order = topological_order(dependency_graph)

    depths = dependency_depths(dependency_graph, order)
    terminal = find_terminal_task(earliest_starts, order, depths)
    if terminal is None:
        return []

    tasks = dependency_graph.tasks
    path = [terminal]
    current = terminal

    while dependency_graph.forward[current]:
        next_id = None
        next_completion = None
        for dep_id in sorted(dependency_graph.forward[current]):
            completion = effective_completion(tasks[dep_id], earliest_starts)
            if next_completion is None or completion > next_completion:
                next_completion = completion
                next_id = dep_id

        path.append(next_id)
        current = next_id

    path.reverse()
    logger.debug("Critical path: %s", path)
    return path
