import logging

from schedflow.config import DEFAULT_NEAR_CRITICAL_THRESHOLD_DAYS
from schedflow.utils.dates import days_between, to_date
from schedflow.utils.graph import (
    build_dependency_graph,
    find_cycle_members,
    forward_pass,
    backward_pass,
    find_critical_path,
)

logger = logging.getLogger(__name__)

STATUS_OK = "OK"
STATUS_CYCLE_DETECTED = "CYCLE_DETECTED"
STATUS_INSUFFICIENT_DATA = "INSUFFICIENT_DATA"


class CpmEntry:
    """Early/late dates and float of one task."""

    def __init__(
        self,
        task_id,
        early_start,
        early_finish,
        late_start,
        late_finish,
        total_float_days,
        near_critical_threshold,
    ):
        self.task_id = task_id
        self.early_start = early_start
        self.early_finish = early_finish
        self.late_start = late_start
        self.late_finish = late_finish
        self.total_float_days = total_float_days
        self.is_critical = total_float_days == 0
        self.is_near_critical = 0 < total_float_days <= near_critical_threshold

    def __repr__(self):
        return (
            f"CpmEntry(task_id={self.task_id!r}, es={self.early_start}, "
            f"ef={self.early_finish}, float={self.total_float_days})"
        )


class ProjectCpmResult:
    """Project-wide critical path analysis."""

    def __init__(self, status, project_start=None, project_finish=None):
        self.status = status
        self.project_start = project_start
        self.project_finish = project_finish
        self.entries = {}
        self.critical_path = []
        self.cycle = None

    @property
    def duration_days(self):
        if self.project_start is None or self.project_finish is None:
            return None
        return days_between(self.project_start, self.project_finish)


def compute_project_cpm(
    tasks,
    default_start,
    project_start=None,
    near_critical_threshold=DEFAULT_NEAR_CRITICAL_THRESHOLD_DAYS,
):
    """
    Run a critical path analysis over all tasks of a project.

    The start anchor is the explicit project start, else the earliest known
    task planned start, else the caller's default date. A cycle does not
    raise: the result carries CYCLE_DETECTED and the cycle members with no
    dates.

    Args:
        tasks: Dictionary of Task objects keyed by ID
        default_start: Fallback anchor date ("today")
        project_start: Explicit project start, if set
        near_critical_threshold: Max float (days) for near-critical tasks

    Returns:
        ProjectCpmResult
    """
    if not tasks:
        logger.info("No tasks to analyse")
        return ProjectCpmResult(STATUS_INSUFFICIENT_DATA)

    graph = build_dependency_graph(tasks, check_acyclic=False)
    cycle = find_cycle_members(graph)
    if cycle:
        logger.warning("Dependency cycle detected: %s", cycle)
        result = ProjectCpmResult(STATUS_CYCLE_DETECTED)
        result.cycle = cycle
        return result

    anchor = to_date(project_start)
    if anchor is None:
        known_starts = [
            t.explicit_start or t.planned_start
            for t in tasks.values()
            if t.explicit_start or t.planned_start
        ]
        anchor = min(known_starts) if known_starts else to_date(default_start)

    early = forward_pass(graph, tasks, anchor)
    late = backward_pass(graph, tasks, early)

    result = ProjectCpmResult(
        STATUS_OK, anchor, max(finish for _, finish in early.values())
    )
    for task_id in graph.nodes:
        early_start, early_finish = early[task_id]
        late_start, late_finish, total_float = late[task_id]
        result.entries[task_id] = CpmEntry(
            task_id,
            early_start,
            early_finish,
            late_start,
            late_finish,
            total_float,
            near_critical_threshold,
        )
    result.critical_path = find_critical_path(graph, late)

    logger.info(
        "Project CPM: %s days, critical path %s",
        result.duration_days,
        result.critical_path,
    )
    return result
