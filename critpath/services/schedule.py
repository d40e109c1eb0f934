import logging

from critpath.utils.topology import topological_order

logger = logging.getLogger(__name__)


def effective_completion(task, earliest_starts):
    """
    When a task is considered complete for the purpose of its dependents.

    A due date is used if one is set; otherwise the task's own earliest start
    stands in as a conservative estimate.
    """
    if task.due_date is not None:
        return task.due_date
    return earliest_starts[task.id]


def calculate_earliest_starts(dependency_graph, order=None):
    """
    Calculate the earliest possible start of every task (forward pass).

    A task without dependencies can start when it was created. A task with
    dependencies can start at the later of its creation and the completion
    of its latest-finishing direct dependency.

    Args:
        dependency_graph: DependencyGraph built from the snapshot
        order: Optional topological order; computed when not supplied

    Returns:
        dict: Task ID -> earliest start datetime

    Raises:
        CycleDetected: If no order was supplied and the snapshot has a cycle
    """
    if order is None:
        order = topological_order(dependency_graph)

    tasks = dependency_graph.tasks
    earliest_starts = {}

    for task_id in order:
        task = tasks[task_id]
        start = task.created_at

        for dep_id in dependency_graph.forward[task_id]:
            completion = effective_completion(tasks[dep_id], earliest_starts)
            if completion > start:
                start = completion

        earliest_starts[task_id] = start

    logger.debug("Calculated earliest starts for %d tasks", len(earliest_starts))
    return earliest_starts
