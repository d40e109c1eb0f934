from typing import List, Optional


class DependencyError(Exception):
    """Base class for dependency validation failures."""

    pass


class DanglingReference(DependencyError):
    """A dependency names a task that is not part of the snapshot."""

    def __init__(self, ref_id, task_id=None):
        self.ref_id = ref_id
        self.task_id = task_id
        if task_id is None:
            message = f"Unknown task referenced: {ref_id!r}"
        else:
            message = f"Task {task_id!r} depends on unknown task {ref_id!r}"
        super().__init__(message)


class SelfDependency(DependencyError):
    """A task names itself as one of its dependencies."""

    def __init__(self, task_id):
        self.task_id = task_id
        super().__init__(f"Task {task_id!r} cannot depend on itself")


class CycleDetected(DependencyError):
    """
    The dependency relation contains a cycle.

    cycle_members lists one concrete loop in depends-on order: each member
    depends on the next one and the last member depends on the first.
    """

    def __init__(self, cycle_members: List, message: Optional[str] = None):
        self.cycle_members = list(cycle_members)
        if message is None:
            loop = self.cycle_members + self.cycle_members[:1]
            message = "Circular dependency detected: " + " -> ".join(
                str(member) for member in loop
            )
        super().__init__(message)
