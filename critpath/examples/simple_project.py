from datetime import datetime, timedelta

from critpath.services.planner import TaskPlanner
from critpath.utils.report import print_report


def create_sample_project(console=None):
    start_date = datetime(2025, 4, 1, 9, 0)

    planner = TaskPlanner()

    # Independent tasks
    design = planner.create_task(
        "Design", due_date=start_date + timedelta(days=5), created_at=start_date
    )
    budget = planner.create_task(
        "Budget approval",
        due_date=start_date + timedelta(days=3),
        created_at=start_date,
    )

    # Build waits for both design and budget
    build = planner.create_task(
        "Build",
        due_date=start_date + timedelta(days=20),
        depends_on=[design.id, budget.id],
        created_at=start_date + timedelta(days=1),
    )

    # Documentation has no due date, so its earliest start stands in
    docs = planner.create_task(
        "Documentation", depends_on=[design.id], created_at=start_date
    )

    planner.create_task(
        "Release",
        depends_on=[build.id, docs.id],
        created_at=start_date + timedelta(days=2),
    )

    result = planner.analyze()
    print_report(planner.snapshot(), result, console=console)
    return planner


if __name__ == "__main__":
    create_sample_project()
