import logging
from collections import deque
from enum import Enum

import networkx as nx

from schedflow.config import DEFAULT_SEQUENTIAL_GAP_DAYS
from schedflow.domain.errors import (
    CyclicDependencyError,
    MissingEntityError,
    ScheduleWarning,
    SchedulingError,
)
from schedflow.services.deliverable_dates import propagate_deliverable_dates
from schedflow.services.duration import calculate_task_duration
from schedflow.services.task_dates import calculate_task_dates
from schedflow.utils.dates import to_date
from schedflow.utils.graph import find_cycle_members

logger = logging.getLogger(__name__)


class VisitState(Enum):
    """
    Per-run state of a task during a cascade.
    """

    UNVISITED = "unvisited"
    RECOMPUTING = "recomputing"
    PERSISTED = "persisted"


class TaskOutcome:
    """Everything computed and persisted for one task."""

    def __init__(self, task_id, duration, schedule, deliverable_dates, warnings):
        self.task_id = task_id
        self.duration = duration
        self.schedule = schedule
        self.deliverable_dates = deliverable_dates
        self.warnings = warnings


class CascadeReport:
    """
    Result of one cascade run.

    Attributes:
        origin_task_id: The task whose change seeded the run
        visited: Task IDs in the order recomputation started on them
        persisted: Task IDs whose results were written
        failed_task_id: Task on which the run stopped, if it stopped on an error
        partial_task_id: The failed task, when its own dates were written but
            one of its deliverable writes then failed
        error: The exception that stopped the run, unchanged
        warnings: Recovered conditions (dangling edges, unresolvable starts)
        cancelled: True if the caller aborted the run
        pending: Downstream task IDs not reached because the run stopped
        outcomes: TaskOutcome per persisted task
    """

    def __init__(self, origin_task_id):
        self.origin_task_id = origin_task_id
        self.visited = []
        self.persisted = []
        self.failed_task_id = None
        self.partial_task_id = None
        self.error = None
        self.warnings = []
        self.cancelled = False
        self.pending = []
        self.outcomes = {}

    @property
    def ok(self) -> bool:
        return self.error is None and not self.cancelled

    def raise_for_error(self):
        """Re-raise the error that stopped the run, if any."""
        if self.error is not None:
            raise self.error

    def add_warning(self, warning):
        if warning not in self.warnings:
            self.warnings.append(warning)

    def to_dict(self):
        return {
            "origin_task_id": self.origin_task_id,
            "success": self.ok,
            "visited": list(self.visited),
            "persisted": list(self.persisted),
            "failed_task_id": self.failed_task_id,
            "partial_task_id": self.partial_task_id,
            "error": str(self.error) if self.error is not None else None,
            "warnings": [str(w) for w in self.warnings],
            "cancelled": self.cancelled,
            "pending": list(self.pending),
        }

    def __repr__(self):
        return (
            f"CascadeReport(origin={self.origin_task_id!r}, "
            f"persisted={self.persisted}, error={self.error!r})"
        )


class CascadePropagator:
    """
    Recomputes a changed task and everything downstream of it.

    Each task is recomputed (duration, then dates, then deliverable dates)
    and persisted exactly once per run, only after all of its predecessors
    inside the affected subgraph have settled. The run walks strictly
    downstream and stops on the first failure, keeping what was already
    persisted.
    """

    def __init__(
        self,
        repository,
        default_start,
        sequential_gap_days=DEFAULT_SEQUENTIAL_GAP_DAYS,
    ):
        """
        Args:
            repository: ScheduleRepository used for reads and writes
            default_start: Date used when nothing else anchors a start ("today")
            sequential_gap_days: Days between sequential deliverables
        """
        self.repository = repository
        self.default_start = to_date(default_start)
        self.sequential_gap_days = sequential_gap_days

    def collect_downstream(self, task_id, report):
        """
        Build the subgraph of tasks reachable from task_id through successor edges.

        Edges pointing at tasks that no longer exist are skipped and reported.
        """
        graph = nx.DiGraph()
        graph.add_node(task_id)
        queue = deque([task_id])
        seen = {task_id}

        while queue:
            current = queue.popleft()
            for succ_id in self.repository.get_successor_ids(current):
                if self.repository.get_task(succ_id) is None:
                    message = f"Successor {succ_id} of task {current} no longer exists"
                    logger.warning(message)
                    report.add_warning(
                        ScheduleWarning(
                            ScheduleWarning.DANGLING_DEPENDENCY,
                            current,
                            message,
                            succ_id,
                        )
                    )
                    continue
                graph.add_edge(current, succ_id)
                if succ_id not in seen:
                    seen.add(succ_id)
                    queue.append(succ_id)

        return graph

    def compute_task(self, task_id, settled=None):
        """
        Compute duration, dates and deliverable dates for one task without
        writing anything.

        Args:
            task_id: Task to recompute
            settled: Planned ends already produced in this run, by task ID

        Returns:
            TaskOutcome

        Raises:
            MissingEntityError: If the task does not exist
            CyclicDependencyError: If its deliverable chain loops
        """
        settled = settled if settled is not None else {}

        task = self.repository.get_task(task_id)
        if task is None:
            raise MissingEntityError("Task", task_id)

        deliverables = self.repository.get_deliverables(task_id)
        duration = calculate_task_duration(deliverables, task_id)
        duration_days = duration.resolve(task.duration_days)
        warnings = list(duration.warnings)

        predecessor_ends = []
        for pred_id in self.repository.get_predecessor_ids(task_id):
            if pred_id in settled:
                predecessor_ends.append((pred_id, settled[pred_id]))
                continue

            predecessor = self.repository.get_task(pred_id)
            if predecessor is None:
                message = f"Predecessor {pred_id} no longer exists; edge ignored"
                logger.warning("Task %s: %s", task_id, message)
                warnings.append(
                    ScheduleWarning(
                        ScheduleWarning.DANGLING_DEPENDENCY, task_id, message, pred_id
                    )
                )
                continue
            predecessor_ends.append((pred_id, predecessor.planned_end))

        schedule = calculate_task_dates(
            task_id,
            duration_days,
            task.offset_days,
            self.default_start,
            explicit_start=task.explicit_start,
            predecessor_ends=predecessor_ends,
        )
        warnings.extend(schedule.warnings)

        deliverable_dates, _ = propagate_deliverable_dates(
            schedule.planned_start,
            deliverables,
            task_id=task_id,
            gap_days=self.sequential_gap_days,
        )

        logger.debug(
            "Task %s: %s days, %s -> %s",
            task_id,
            duration_days,
            schedule.planned_start,
            schedule.planned_end,
        )
        return TaskOutcome(task_id, duration, schedule, deliverable_dates, warnings)

    def save_outcome(self, outcome, report=None):
        """
        Write a computed task schedule, then its deliverable dates.

        If a deliverable write fails after the task row was written, the task
        is recorded as report.partial_task_id before the error propagates.
        """
        schedule = outcome.schedule
        self.repository.save_task_schedule(
            outcome.task_id,
            schedule.duration_days,
            schedule.planned_start,
            schedule.planned_end,
        )
        if report is not None:
            report.partial_task_id = outcome.task_id

        for deliverable_id, (start, end) in outcome.deliverable_dates.items():
            self.repository.save_deliverable_schedule(deliverable_id, start, end)

        if report is not None:
            report.partial_task_id = None

    def recompute_task(self, task_id, settled=None):
        """Recompute and persist one task and its deliverables."""
        outcome = self.compute_task(task_id, settled)
        self.save_outcome(outcome)
        return outcome

    def run(self, task_id, should_abort=None):
        """
        Recompute task_id and cascade to all of its downstream tasks.

        Args:
            task_id: The task whose inputs changed
            should_abort: Optional callable checked before each task; a true
                result stops the run with completed work kept

        Returns:
            CascadeReport
        """
        report = CascadeReport(task_id)

        try:
            if self.repository.get_task(task_id) is None:
                raise MissingEntityError("Task", task_id)

            graph = self.collect_downstream(task_id, report)
            cycle = find_cycle_members(graph)
            if cycle:
                raise CyclicDependencyError(cycle)
        except SchedulingError as e:
            logger.error("Cascade from task %s aborted: %s", task_id, e)
            report.error = e
            report.failed_task_id = task_id
            return report

        # Kahn's algorithm restricted to the affected subgraph: predecessors
        # outside it are already settled and do not count
        in_degree = {node: graph.in_degree(node) for node in graph}
        ready = deque(node for node in graph if in_degree[node] == 0)
        state = {node: VisitState.UNVISITED for node in graph}
        settled = {}

        while ready:
            if should_abort is not None and should_abort():
                logger.info("Cascade from task %s cancelled by caller", task_id)
                report.cancelled = True
                break

            # Each node enters the queue once, when its last in-subgraph
            # predecessor settles
            current = ready.popleft()
            try:
                state[current] = VisitState.RECOMPUTING
                report.visited.append(current)
                outcome = self.compute_task(current, settled)
                self.save_outcome(outcome, report)
            except Exception as e:
                logger.exception(
                    "Cascade from task %s failed at task %s", task_id, current
                )
                report.error = e
                report.failed_task_id = current
                break

            state[current] = VisitState.PERSISTED
            settled[current] = outcome.schedule.planned_end
            report.persisted.append(current)
            report.outcomes[current] = outcome
            for warning in outcome.warnings:
                report.add_warning(warning)

            for succ_id in graph.successors(current):
                in_degree[succ_id] -= 1
                if in_degree[succ_id] == 0:
                    ready.append(succ_id)

        report.pending = [
            node
            for node in nx.topological_sort(graph)
            if state[node] is VisitState.UNVISITED
        ]

        logger.info(
            "Cascade from task %s persisted %s task(s)%s",
            task_id,
            len(report.persisted),
            "" if report.ok else " before stopping",
        )
        return report


def update_task_dates_and_cascade(repository, task_id, default_start, **kwargs):
    """Run a cascade from task_id with a fresh CascadePropagator."""
    return CascadePropagator(repository, default_start, **kwargs).run(task_id)
