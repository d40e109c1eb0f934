import logging
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from datetime import datetime

from critpath.domain.errors import DependencyError
from critpath.domain.task import Task
from critpath.services.insights import (
    analyze,
    describe_cycle,
    validate_dependency_change,
    validate_new_task,
)
from critpath.services.task_store import InMemoryTaskStore
from critpath.utils.graph import build_dependency_graph

logger = logging.getLogger(__name__)


class TaskPlanner:
    """
    Task service enforcing an acyclic dependency graph.

    Every mutation reads the current snapshot, validates the hypothetical
    result and commits it while holding one lock, so two edits can never
    validate against the same stale snapshot. Preview images are looked up in
    the background after a task is committed.
    """

    def __init__(
        self,
        store=None,
        image_lookup=None,
        max_lookup_workers=2,
        clock=datetime.now,
    ):
        """
        Initialize a new TaskPlanner.

        Args:
            store: Task store collaborator (defaults to an InMemoryTaskStore)
            image_lookup: Optional callable title -> image reference or None
            max_lookup_workers: Size of the thread pool used for image lookups
            clock: Callable returning the current datetime for new tasks
        """
        self.store = store if store is not None else InMemoryTaskStore()
        self.image_lookup = image_lookup
        self.clock = clock

        self._lock = threading.RLock()
        self._executor = None
        self._pending_lookups = set()
        if image_lookup is not None:
            self._executor = ThreadPoolExecutor(
                max_workers=max_lookup_workers, thread_name_prefix="image-lookup"
            )

    def snapshot(self):
        """Return the current list of tasks."""
        with self._lock:
            return self.store.list_all()

    def create_task(self, title, due_date=None, depends_on=(), created_at=None):
        """
        Validate and commit a new task.

        Raises:
            TaskError: If the title or dates are invalid
            DanglingReference: If a dependency does not exist
            CycleDetected: If the dependencies would form a cycle
        """
        depends_on = set(depends_on)
        with self._lock:
            task = Task(
                self.store.next_id(),
                title,
                created_at or self.clock(),
                due_date=due_date,
                depends_on=depends_on,
            )
            try:
                validate_new_task(
                    self.store.list_all(),
                    depends_on,
                    task_id=task.id,
                    created_at=task.created_at,
                )
            except DependencyError as e:
                logger.warning("Rejected new task %r: %s", title, e)
                raise
            self.store.add(task)
            logger.info("Created task %r (%s)", task.id, task.title)

        if self._executor is not None:
            future = self._executor.submit(self._lookup_image, task.id, task.title)
            with self._lock:
                self._pending_lookups.add(future)
            future.add_done_callback(self._discard_lookup)
        return task

    def set_dependencies(self, task_id, depends_on):
        """
        Replace the dependencies of a task, atomically.

        The snapshot is left unchanged if validation fails.

        Raises:
            SelfDependency: If the task would depend on itself
            DanglingReference: If the task or a dependency does not exist
            CycleDetected: If the change would introduce a cycle
        """
        depends_on = set(depends_on)
        with self._lock:
            try:
                validate_dependency_change(self.store.list_all(), task_id, depends_on)
            except DependencyError as e:
                logger.warning("Rejected dependency change for %r: %s", task_id, e)
                raise
            task = self.store.set_dependencies(task_id, depends_on)
            logger.info(
                "Set dependencies of task %r to %s", task_id, sorted(depends_on)
            )
            return task

    def delete_task(self, task_id):
        """Delete a task and drop it from every other task's dependencies."""
        with self._lock:
            self.store.delete(task_id)
            logger.info("Deleted task %r", task_id)

    def dependents_of(self, task_id):
        """Return the IDs of the tasks that depend on the given task."""
        with self._lock:
            self.store.get(task_id)
            graph = build_dependency_graph(self.store.list_all())
        return graph.dependents_of(task_id)

    def analyze(self):
        """
        Run the full pipeline over the current snapshot.

        Returns:
            dict: graph, order, earliest_starts, critical_path and insights,
                  as returned by critpath.services.insights.analyze

        Raises:
            CycleDetected: If the stored snapshot contains a cycle
        """
        with self._lock:
            tasks = self.store.list_all()
        return analyze(tasks)

    def build_insights(self):
        """
        Compute earliest starts and critical path membership for all tasks.

        Raises:
            CycleDetected: If the stored snapshot contains a cycle
        """
        return self.analyze()["insights"]

    def critical_path(self):
        """Return the critical task IDs, from first task to terminal task."""
        return self.analyze()["critical_path"]

    def describe_cycle(self, error):
        """Build a user-facing message naming the tasks of a detected cycle."""
        return describe_cycle(error, self.snapshot())

    def wait_for_image_lookups(self, timeout=None):
        """Block until all scheduled image lookups have finished."""
        with self._lock:
            pending = list(self._pending_lookups)
        if pending:
            done, _ = wait(pending, timeout=timeout)
            with self._lock:
                self._pending_lookups.difference_update(done)

    def pending_image_lookups(self):
        """Return the number of image lookups that have not finished yet."""
        with self._lock:
            return len(self._pending_lookups)

    def _discard_lookup(self, future):
        with self._lock:
            self._pending_lookups.discard(future)

    def _lookup_image(self, task_id, title):
        try:
            image_ref = self.image_lookup(title)
        except Exception:
            logger.exception("Image lookup failed for task %r", task_id)
            return None

        if image_ref is None:
            logger.debug("No image found for task %r", task_id)
            return None

        with self._lock:
            if task_id not in self.store:
                logger.debug("Task %r was deleted before its image arrived", task_id)
                return None
            self.store.set_image_ref(task_id, image_ref)
        return image_ref

    def close(self):
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
