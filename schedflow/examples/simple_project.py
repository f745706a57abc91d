from datetime import date

from schedflow.domain.task import Task
from schedflow.domain.deliverable import Deliverable
from schedflow.services.cascade import CascadePropagator
from schedflow.services.early_start import check_early_start
from schedflow.services.project_cpm import compute_project_cpm
from schedflow.services.repository import InMemoryRepository
from schedflow.utils.dates import format_date


def create_sample_project(today=None):
    today = today or date(2025, 3, 1)
    repository = InMemoryRepository()

    # Design feeds both Build tracks, which converge on Launch
    repository.add_task(Task(1, "Design", duration_days=2, explicit_start=today))
    repository.add_task(Task(2, "Build API", offset_days=1, dependencies=[1]))
    repository.add_task(Task(3, "Build UI", dependencies=[1]))
    repository.add_task(Task(4, "Launch", duration_days=1, dependencies=[2, 3]))

    # Deliverables: Build API is a chain, Build UI runs in parallel
    repository.add_deliverable(Deliverable(10, 1, duration_days=2, name="Wireframes"))
    repository.add_deliverable(Deliverable(20, 2, duration_days=3, name="Schema"))
    repository.add_deliverable(
        Deliverable(
            21, 2, duration_days=5, depends_on_deliverable_id=20, name="Endpoints"
        )
    )
    repository.add_deliverable(Deliverable(30, 3, duration_days=4, name="Screens"))
    repository.add_deliverable(Deliverable(31, 3, duration_days=2, name="Styles"))

    scheduler = CascadePropagator(repository, default_start=today)
    report = scheduler.run(1)

    print("Cascade Report")
    print("==============")
    print(f"Default start: {today.isoformat()}")
    print(f"Visited: {', '.join(str(task_id) for task_id in report.visited)}")
    if report.error is not None:
        print(f"Stopped at task {report.failed_task_id}: {report.error}")

    print("\nTasks:")
    for task in repository.tasks.values():
        print(
            f"  Task {task.id}: {task.name} - {task.duration_days} days, "
            f"{format_date(task.planned_start)} -> {format_date(task.planned_end)}"
        )
        for deliverable in repository.get_deliverables(task.id):
            print(
                f"    {deliverable.name}: {format_date(deliverable.planned_start)}"
                f" -> {format_date(deliverable.planned_end)}"
            )

    if report.warnings:
        print("\nWarnings:")
        for warning in report.warnings:
            print(f"  {warning}")

    cpm = compute_project_cpm(repository.tasks, default_start=today)
    print(f"\nProject duration: {cpm.duration_days} days ({cpm.status})")
    print(f"Critical path: {', '.join(str(task_id) for task_id in cpm.critical_path)}")

    # Launch work began while the builds are still open
    repository.tasks[4].start_task(today)
    check = check_early_start(repository, 4)
    if check.is_early_start:
        print(
            f"\nTask 4 started early; open predecessors: "
            f"{check.incomplete_predecessors}"
        )

    return report


if __name__ == "__main__":
    create_sample_project()
