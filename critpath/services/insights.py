"""
Calling contract of the dependency engine.

build_insights runs the full pipeline over a snapshot:
graph builder -> topological sort -> schedule -> critical path -> insights.
The validate_* functions run the cycle detector against the hypothetical
snapshot that a mutation would produce, without changing anything.
"""

import logging
from datetime import datetime

from critpath.domain.errors import DanglingReference, SelfDependency
from critpath.domain.insight import TaskInsight
from critpath.domain.task import Task, TaskError
from critpath.services.critical_path import identify_critical_path
from critpath.services.schedule import calculate_earliest_starts
from critpath.utils.graph import build_dependency_graph
from critpath.utils.topology import topological_order

logger = logging.getLogger(__name__)

NEW_TASK_TITLE = "New task"


def assemble_insights(earliest_starts, critical_ids):
    """
    Combine earliest starts and critical path membership per task.

    Raises:
        KeyError: If a critical task has no earliest start
    """
    critical = set(critical_ids)
    missing = critical - set(earliest_starts)
    if missing:
        raise KeyError(f"Critical tasks without an earliest start: {sorted(missing)}")

    return {
        task_id: TaskInsight(earliest_start=start, is_critical=task_id in critical)
        for task_id, start in earliest_starts.items()
    }


def analyze(tasks):
    """
    Run the whole pipeline and keep the intermediate results.

    Args:
        tasks: Sequence of Task objects, or a dictionary of Task objects keyed by ID

    Returns:
        dict: {"graph", "order", "earliest_starts", "critical_path", "insights"}

    Raises:
        CycleDetected: If the snapshot contains a dependency cycle
        DanglingReference: If a dependency names a task missing from the snapshot
        SelfDependency: If a task depends on itself
    """
    graph = build_dependency_graph(tasks)
    order = topological_order(graph)
    earliest_starts = calculate_earliest_starts(graph, order)
    critical_path = identify_critical_path(graph, earliest_starts, order)
    insights = assemble_insights(earliest_starts, critical_path)

    logger.debug(
        "Analyzed %d tasks, %d on the critical path", len(insights), len(critical_path)
    )
    return {
        "graph": graph,
        "order": order,
        "earliest_starts": earliest_starts,
        "critical_path": critical_path,
        "insights": insights,
    }


def build_insights(tasks):
    """
    Compute the earliest start and criticality of every task.

    Returns:
        dict: Task ID -> TaskInsight

    Raises:
        CycleDetected: If the snapshot contains a dependency cycle
    """
    return analyze(tasks)["insights"]


def _snapshot_ids(tasks):
    if isinstance(tasks, dict):
        tasks = tasks.values()
    tasks = list(tasks)
    return tasks, {task.id for task in tasks}


def validate_dependency_change(tasks, task_id, proposed_depends_on):
    """
    Check whether a task's dependency set may be replaced.

    The change is simulated on a copy of the snapshot; nothing is modified.

    Args:
        tasks: Current committed snapshot
        task_id: ID of the task whose dependencies are being replaced
        proposed_depends_on: The complete new set of dependency IDs

    Raises:
        SelfDependency: If the task would depend on itself
        DanglingReference: If the task or a proposed dependency does not exist
        CycleDetected: If the change would introduce a cycle
    """
    tasks, ids = _snapshot_ids(tasks)
    proposed = set(proposed_depends_on)

    if task_id in proposed:
        raise SelfDependency(task_id)
    if task_id not in ids:
        raise DanglingReference(task_id)
    missing = sorted(proposed - ids)
    if missing:
        raise DanglingReference(missing[0], task_id)

    hypothetical = [
        task.with_dependencies(proposed) if task.id == task_id else task
        for task in tasks
    ]
    topological_order(build_dependency_graph(hypothetical))


def placeholder_task_id(ids):
    """Pick an ID that does not collide with the snapshot, for simulations."""
    if not ids:
        return 1
    if all(isinstance(task_id, int) for task_id in ids):
        return max(ids) + 1
    if all(isinstance(task_id, str) for task_id in ids):
        candidate = "~new"
        while candidate in ids:
            candidate += "~"
        return candidate
    raise TaskError("Snapshot mixes task ID types; pass an explicit task_id")


def validate_new_task(tasks, proposed_depends_on, task_id=None, created_at=None):
    """
    Check whether a new task with the given dependencies may be created.

    The dependencies are validated against the current committed snapshot
    plus a placeholder for the new task.

    Raises:
        SelfDependency: If the new task would depend on itself
        DanglingReference: If a proposed dependency does not exist
        CycleDetected: If adding the task would introduce a cycle
    """
    tasks, ids = _snapshot_ids(tasks)
    proposed = set(proposed_depends_on)

    if task_id is None:
        task_id = placeholder_task_id(ids)
    elif task_id in ids:
        raise TaskError(f"Task ID already exists: {task_id!r}")

    if task_id in proposed:
        raise SelfDependency(task_id)
    missing = sorted(proposed - ids)
    if missing:
        raise DanglingReference(missing[0], task_id)

    placeholder = Task(
        task_id,
        NEW_TASK_TITLE,
        created_at or datetime.now(),
        depends_on=proposed,
    )
    topological_order(build_dependency_graph(tasks + [placeholder]))


def describe_cycle(error, tasks):
    """
    Build a user-facing message naming the titles of the tasks in a cycle.

    Args:
        error: The CycleDetected error
        tasks: Snapshot used to look up titles; unknown IDs are shown as "Task <id>"
    """
    if isinstance(tasks, dict):
        tasks = tasks.values()
    titles = {task.id: task.title for task in tasks}
    names = [
        f"'{titles[member]}'" if member in titles else f"'Task {member}'"
        for member in error.cycle_members
    ]
    if not names:
        return str(error)
    return "Circular dependency detected: " + " -> ".join(names + names[:1])
