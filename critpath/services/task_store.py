import logging

from critpath.domain.task import TaskError

logger = logging.getLogger(__name__)


class TaskNotFound(KeyError):
    """Raised when the store has no task with the requested ID."""

    def __init__(self, task_id):
        self.task_id = task_id
        super().__init__(task_id)

    def __str__(self):
        return f"Task not found: {self.task_id!r}"


class InMemoryTaskStore:
    """
    Reference task store keeping Task values in a dictionary.

    Tasks are replaced, never mutated in place, so a snapshot returned by
    list_all() is not affected by later writes. The store does no locking of
    its own; TaskPlanner serializes access to it.
    """

    def __init__(self, tasks=None):
        self._tasks = {}
        self._last_id = 0
        for task in tasks or []:
            self.add(task)

    def next_id(self):
        """Return the next free integer task ID."""
        self._last_id += 1
        while self._last_id in self._tasks:
            self._last_id += 1
        return self._last_id

    def list_all(self):
        """Return all tasks, newest first."""
        return sorted(
            self._tasks.values(), key=lambda task: task.created_at, reverse=True
        )

    def get(self, task_id):
        try:
            return self._tasks[task_id]
        except KeyError:
            raise TaskNotFound(task_id)

    def add(self, task):
        if task.id in self._tasks:
            raise TaskError(f"Task ID already exists: {task.id!r}")
        self._tasks[task.id] = task
        if isinstance(task.id, int) and task.id > self._last_id:
            self._last_id = task.id
        return task

    def set_dependencies(self, task_id, depends_on):
        """Replace the full dependency set of one task."""
        task = self.get(task_id).with_dependencies(depends_on)
        self._tasks[task_id] = task
        return task

    def set_image_ref(self, task_id, image_ref):
        task = self.get(task_id).with_image_ref(image_ref)
        self._tasks[task_id] = task
        return task

    def delete(self, task_id):
        """Remove a task and every dependency edge pointing at it."""
        self.get(task_id)
        del self._tasks[task_id]

        for other_id, other in list(self._tasks.items()):
            if task_id in other.depends_on:
                self._tasks[other_id] = other.with_dependencies(
                    other.depends_on - {task_id}
                )
                logger.debug("Removed dependency %r from task %r", task_id, other_id)

    def __contains__(self, task_id):
        return task_id in self._tasks

    def __len__(self):
        return len(self._tasks)
