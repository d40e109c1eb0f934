"""
critpath
========

Task dependency and critical path engine.

Available modules:
- domain.task: Task value type and snapshot row parsing
- domain.errors: dependency validation errors
- utils.graph: dependency graph builder
- utils.topology: topological sort and cycle detection
- services.schedule: earliest start calculation
- services.critical_path: critical path identification
- services.insights: insight assembly and mutation validation
- services.planner: task service with simulate-then-commit mutations
"""

from critpath.domain.errors import (
    CycleDetected,
    DanglingReference,
    DependencyError,
    SelfDependency,
)
from critpath.domain.insight import TaskInsight
from critpath.domain.task import Task, TaskError
from critpath.services.insights import (
    build_insights,
    validate_dependency_change,
    validate_new_task,
)
from critpath.services.planner import TaskPlanner

__all__ = [
    "CycleDetected",
    "DanglingReference",
    "DependencyError",
    "SelfDependency",
    "Task",
    "TaskError",
    "TaskInsight",
    "TaskPlanner",
    "build_insights",
    "validate_dependency_change",
    "validate_new_task",
]
