"""
critpath
========

Command line entry point: analyze a JSON task snapshot or check whether a
dependency change would be accepted.
"""

import argparse
import logging
import sys

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from critpath.domain.errors import CycleDetected, DependencyError
from critpath.domain.task import TaskError
from critpath.examples.simple_project import create_sample_project
from critpath.services.insights import (
    analyze,
    describe_cycle,
    validate_dependency_change,
)
from critpath.utils.report import print_report
from critpath.utils.snapshot import load_snapshot

logger = logging.getLogger("critpath")


def _coerce_id(value, tasks):
    """Command line IDs are strings; match them to the snapshot's ID type."""
    ids = {task.id for task in tasks}
    if value in ids:
        return value
    try:
        number = int(value)
    except ValueError:
        return value
    return number if number in ids else value


def cmd_insights(args, console):
    tasks = load_snapshot(args.snapshot)
    result = analyze(tasks)
    print_report(tasks, result, console=console)
    return 0


def cmd_validate(args, console):
    tasks = load_snapshot(args.snapshot)
    task_id = _coerce_id(args.task_id, tasks)
    depends_on = {_coerce_id(dep, tasks) for dep in args.depends_on}

    try:
        validate_dependency_change(tasks, task_id, depends_on)
    except CycleDetected as e:
        console.print(f"[red]Rejected:[/red] {escape(describe_cycle(e, tasks))}")
        return 1
    except DependencyError as e:
        console.print(f"[red]Rejected:[/red] {escape(str(e))}")
        return 1

    console.print(f"Dependencies of task {task_id!r} may be set to {sorted(depends_on)}")
    return 0


def build_parser():
    parser = argparse.ArgumentParser(
        prog="critpath", description="Task dependency and critical path engine"
    )
    parser.add_argument(
        "--example", action="store_true", help="Run the example project"
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Enable debug logging"
    )
    subparsers = parser.add_subparsers(dest="command")

    insights = subparsers.add_parser(
        "insights", help="Show earliest starts and the critical path"
    )
    insights.add_argument("snapshot", help="JSON file with the task snapshot")
    insights.set_defaults(func=cmd_insights)

    validate = subparsers.add_parser(
        "validate", help="Check a proposed dependency change"
    )
    validate.add_argument("snapshot", help="JSON file with the task snapshot")
    validate.add_argument("task_id", help="Task whose dependencies are replaced")
    validate.add_argument(
        "--depends-on",
        nargs="*",
        default=[],
        metavar="ID",
        help="Complete new set of dependency IDs",
    )
    validate.set_defaults(func=cmd_validate)

    return parser


def main(argv=None, console=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    console = console or Console()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )

    if args.example:
        create_sample_project(console=console)
        return 0

    if not args.command:
        parser.print_help()
        return 1

    try:
        return args.func(args, console)
    except CycleDetected as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        return 1
    except (DependencyError, TaskError, OSError) as e:
        logger.debug("Command failed", exc_info=True)
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
