import logging

import networkx as nx

from schedflow.utils.graph import build_deliverable_graph

logger = logging.getLogger(__name__)


class DurationResult:
    """Outcome of aggregating the deliverables of one task."""

    def __init__(self, task_id, duration_days, finish_times, critical_path, warnings):
        self.task_id = task_id
        self.duration_days = duration_days
        self.finish_times = finish_times
        self.critical_path = critical_path
        self.warnings = warnings

    @property
    def has_deliverables(self) -> bool:
        """False when the task has no deliverables and keeps its seeded duration."""
        return bool(self.finish_times)

    def resolve(self, seeded_duration: int) -> int:
        """Duration to store on the task, given the duration it was seeded with."""
        return self.duration_days if self.has_deliverables else seeded_duration

    def __repr__(self):
        return (
            f"DurationResult(task_id={self.task_id!r}, "
            f"duration_days={self.duration_days}, critical_path={self.critical_path})"
        )


def calculate_task_duration(deliverables, task_id=None):
    """
    Calculate a task's duration as the critical path over its deliverables.

    A deliverable without a predecessor finishes at its own duration; a
    sequential one finishes at its predecessor's finish plus its own
    duration. The task duration is the latest finish. Finish times live in a
    dictionary created for this call only and each deliverable is settled
    once, in topological order.

    Args:
        deliverables: Deliverable objects belonging to one task
        task_id: Owning task, used for reporting

    Returns:
        DurationResult: duration, per-deliverable finish offsets, the chain
        of deliverables that determines the duration, and warnings

    Raises:
        CyclicDependencyError: If the depends-on chain loops
    """
    deliverables = list(deliverables)
    if not deliverables:
        return DurationResult(task_id, 0, {}, [], [])

    graph, warnings = build_deliverable_graph(task_id, deliverables)

    finish_times = {}
    for deliverable_id in nx.topological_sort(graph):
        deliverable = graph.nodes[deliverable_id]["deliverable"]
        start = 0
        for pred_id in graph.predecessors(deliverable_id):
            start = finish_times[pred_id]
        finish_times[deliverable_id] = start + deliverable.duration_days

    # First deliverable (in input order) reaching the latest finish wins ties
    last_id = max(
        (d.id for d in deliverables), key=lambda d_id: finish_times[d_id]
    )
    duration = finish_times[last_id]

    critical_path = [last_id]
    preds = list(graph.predecessors(last_id))
    while preds:
        critical_path.append(preds[0])
        preds = list(graph.predecessors(preds[0]))
    critical_path.reverse()

    logger.debug(
        "Task %s duration %s days over %s deliverables",
        task_id,
        duration,
        len(deliverables),
    )
    return DurationResult(task_id, duration, finish_times, critical_path, warnings)
