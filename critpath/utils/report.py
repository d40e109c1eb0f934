from rich.console import Console
from rich.markup import escape
from rich.table import Table

DATE_FORMAT = "%Y-%m-%d %H:%M"


def _format_date(value):
    return value.strftime(DATE_FORMAT) if value else "-"


def build_insights_table(tasks, result):
    """
    Build a rich table with one row per task in topological order.

    Args:
        tasks: Dictionary of Task objects keyed by ID
        result: Output of critpath.services.insights.analyze
    """
    table = Table(title="Task Insights")
    table.add_column("ID", justify="right")
    table.add_column("Title")
    table.add_column("Due")
    table.add_column("Depends on")
    table.add_column("Earliest start")
    table.add_column("Critical", justify="center")

    for task_id in result["order"]:
        task = tasks[task_id]
        insight = result["insights"][task_id]
        style = "bold red" if insight.is_critical else None
        table.add_row(
            str(task_id),
            escape(task.title),
            _format_date(task.due_date),
            ", ".join(str(dep) for dep in sorted(task.depends_on)) or "-",
            _format_date(insight.earliest_start),
            "yes" if insight.is_critical else "",
            style=style,
        )
    return table


def print_report(tasks, result, console=None):
    """Print the insights table and the critical path."""
    console = console or Console()
    if isinstance(tasks, (list, tuple)):
        tasks = {task.id: task for task in tasks}

    console.print(build_insights_table(tasks, result))

    path = result["critical_path"]
    if path:
        titles = " -> ".join(escape(tasks[task_id].title) for task_id in path)
        console.print(f"Critical path: {titles}")
        finish = result["insights"][path[-1]].earliest_start
        console.print(f"Latest earliest start: {_format_date(finish)}")
    else:
        console.print("No tasks.")
