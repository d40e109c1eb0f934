import json

from critpath.domain.task import Task, TaskError


def parse_snapshot(data):
    """
    Convert decoded JSON into a list of Task objects.

    Accepts either a list of task rows or an object with a "tasks" list.

    Raises:
        TaskError: If the document or any row is malformed
    """
    if isinstance(data, dict):
        data = data.get("tasks")
    if not isinstance(data, list):
        raise TaskError("Snapshot must be a list of tasks or an object with 'tasks'")
    return [Task.from_dict(row) for row in data]


def load_snapshot(path):
    """Read a JSON task snapshot from a file."""
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise TaskError(f"Invalid JSON in {path}: {e}")
    return parse_snapshot(data)


def dump_snapshot(tasks, path):
    """Write tasks as a JSON snapshot that load_snapshot can read back."""
    with open(path, "w", encoding="utf-8") as f:
        json.dump({"tasks": [task.to_dict() for task in tasks]}, f, indent=2)
