from datetime import datetime
from typing import Any, Dict, Iterable, Optional


class TaskError(Exception):
    """Exception raised for errors in the Task class."""

    pass


def parse_datetime(value: Any, field: str) -> Optional[datetime]:
    """
    Convert a snapshot value into a datetime.

    Args:
        value: A datetime, an ISO-8601 string or None
        field: Name of the field, used in error messages

    Returns:
        datetime or None

    Raises:
        TaskError: If the value cannot be interpreted as a date/time
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        text = value.strip()
        # fromisoformat only learned the "Z" suffix in 3.11
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            raise TaskError(f"Invalid {field}: {value!r}")
    raise TaskError(f"Invalid {field} type: {type(value).__name__}")


class Task:
    """
    Represents a task in a dependency-driven task list.

    A task has a title, a creation timestamp, an optional due date, an opaque
    preview-image reference and the set of task IDs it depends on. The reverse
    relation (tasks depending on this one) is not stored here; it is always
    derived from the dependency graph.
    """

    def __init__(
        self,
        id,
        title: str,
        created_at: datetime,
        due_date: Optional[datetime] = None,
        depends_on: Optional[Iterable] = None,
        image_ref: Any = None,
    ):
        """
        Initialize a new Task.

        Args:
            id: Unique identifier for the task
            title: Non-empty title of the task
            created_at: When the task was created
            due_date: Optional date by which the task is expected to be complete
            depends_on: IDs of the tasks this task depends on
            image_ref: Opaque preview image reference, never inspected here

        Raises:
            TaskError: If any input validation fails
        """
        if id is None:
            raise TaskError("Task ID cannot be None")
        self._id = id

        if not title or not isinstance(title, str) or not title.strip():
            raise TaskError("Task title must be a non-empty string")
        self._title = title

        if not isinstance(created_at, datetime):
            raise TaskError("Task creation timestamp must be a datetime")
        self._created_at = created_at

        if due_date is not None and not isinstance(due_date, datetime):
            raise TaskError("Task due date must be a datetime or None")
        self._due_date = due_date

        if depends_on is None:
            depends_on = ()
        if isinstance(depends_on, (str, bytes)):
            raise TaskError("Dependencies must be a collection of task IDs")
        try:
            self._depends_on = frozenset(depends_on)
        except TypeError:
            raise TaskError("Dependencies must be a collection of task IDs")
        if None in self._depends_on:
            raise TaskError("Dependency IDs cannot be None")

        self._image_ref = image_ref

    @property
    def id(self):
        return self._id

    @property
    def title(self) -> str:
        return self._title

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def due_date(self) -> Optional[datetime]:
        return self._due_date

    @property
    def depends_on(self) -> frozenset:
        """IDs of the tasks this task cannot start before."""
        return self._depends_on

    @property
    def image_ref(self) -> Any:
        return self._image_ref

    def with_dependencies(self, depends_on: Iterable) -> "Task":
        """Return a copy of this task with its dependency set replaced."""
        return Task(
            self._id,
            self._title,
            self._created_at,
            due_date=self._due_date,
            depends_on=depends_on,
            image_ref=self._image_ref,
        )

    def with_image_ref(self, image_ref: Any) -> "Task":
        """Return a copy of this task carrying a preview image reference."""
        return Task(
            self._id,
            self._title,
            self._created_at,
            due_date=self._due_date,
            depends_on=self._depends_on,
            image_ref=image_ref,
        )

    @classmethod
    def from_dict(cls, row: Dict[str, Any]) -> "Task":
        """
        Build a Task from a loosely-typed snapshot row.

        Both camelCase (as served by the task API) and snake_case keys are
        accepted. Dependency entries may be plain IDs or objects with an "id".

        Args:
            row: Mapping with at least id, title and creation timestamp

        Returns:
            Task

        Raises:
            TaskError: If the row is missing fields or holds malformed values
        """
        if not isinstance(row, dict):
            raise TaskError(f"Task row must be a mapping, got {type(row).__name__}")

        def pick(*keys):
            for key in keys:
                if key in row:
                    return row[key]
            return None

        created_at = parse_datetime(pick("createdAt", "created_at"), "createdAt")
        if created_at is None:
            raise TaskError(f"Task {row.get('id')!r} has no creation timestamp")

        raw_deps = pick("dependsOn", "depends_on") or []
        if isinstance(raw_deps, (str, bytes)) or not isinstance(
            raw_deps, (list, tuple, set, frozenset)
        ):
            raise TaskError(f"Task {row.get('id')!r} has malformed dependencies")
        depends_on = []
        for dep in raw_deps:
            if isinstance(dep, dict):
                if "id" not in dep:
                    raise TaskError(
                        f"Task {row.get('id')!r} has a dependency without an id"
                    )
                dep = dep["id"]
            depends_on.append(dep)

        return cls(
            pick("id"),
            pick("title"),
            created_at,
            due_date=parse_datetime(pick("dueDate", "due_date"), "dueDate"),
            depends_on=depends_on,
            image_ref=pick("imageUrl", "image_ref"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert the task to a JSON-friendly dictionary."""
        return {
            "id": self._id,
            "title": self._title,
            "createdAt": self._created_at.isoformat(),
            "dueDate": self._due_date.isoformat() if self._due_date else None,
            "imageUrl": self._image_ref,
            "dependsOn": sorted(self._depends_on),
        }

    def __eq__(self, other):
        if not isinstance(other, Task):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __hash__(self):
        return hash((self._id, self._title, self._created_at))

    def __repr__(self):
        return f"Task(id={self._id!r}, title={self._title!r})"
